"""Stack graph scene - lays out stacks by level and routes drops to commands."""

from PySide6.QtCore import QMimeData, QPointF, QRectF, Qt, QTimer, Signal
from PySide6.QtGui import QColor, QFont, QPainterPath, QPen
from PySide6.QtWidgets import QGraphicsPathItem, QGraphicsScene, QGraphicsSimpleTextItem, QWidget

from stackview.drag.drop import (
    After,
    Before,
    Between,
    DropZonePosition,
    NewBranch,
    create_empty_change,
    resolve_drop,
)
from stackview.drag.payload import DragSessionTracker, DragState, InternalPayload, resolve_drag_payload
from stackview.graph.layout import StackLayout, compute_layout
from stackview.graph.parallel import ParallelGroup, detect_parallel_groups
from stackview.graph.stacks import Stack, StackGraph, StackId, build_stack_graph
from stackview.ui.dnd import run_drag, transfer_from_mime
from stackview.ui.stack_graph.drop_zone import DropZone
from stackview.ui.stack_graph.edges import ConnectionEdge
from stackview.ui.stack_graph.panel import ChangeCard
from stackview.ui.stack_graph.types import (
    PARALLEL_GROUP_COLOR,
    PARALLEL_GROUP_COMPLETE_COLOR,
    get_stack_color,
)
from stackview.vcs.commands import DomainCommand
from stackview.vcs.executor import CommandExecutor
from stackview.vcs.repository import StackRepository
from stackview.vcs.stats import total_stats
from stackview.vcs.types import ChangeId, CommitGraph, CommitId, CommitStats, find_divergent_change_ids


class StackGraphScene(QGraphicsScene):
    """
    Scene containing stacks of change cards, drop zones and connections.

    Level 0 (the roots) is drawn at the bottom; newer levels stack upwards.
    Inside a stack the newest commit is on top. The scene object lives as
    long as the window; reload() rebuilds its items from a fresh commit graph.
    """

    COLUMN_WIDTH = 280
    LEVEL_GAP = 48
    PADDING = 50
    LABEL_HEIGHT = 18

    command_requested = Signal(object)  # DomainCommand
    commit_selected = Signal(str)  # commit_id
    commit_menu_requested = Signal(str, object)  # (commit_id, screen position)
    reloaded = Signal()

    def __init__(
        self,
        repo: StackRepository,
        executor: CommandExecutor,
        tracker: DragSessionTracker,
        commit_limit: int | None = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.repo = repo
        self.executor = executor
        self.tracker = tracker
        self.commit_limit = commit_limit

        self.commit_graph: CommitGraph = {}
        self.stack_graph = StackGraph({}, [], [], [], {})
        self.parallel_groups: list[ParallelGroup] = []
        self.stack_layout = StackLayout()
        self.divergent: set[ChangeId] = set()

        self.commit_to_card: dict[CommitId, ChangeCard] = {}
        self.stack_rects: dict[StackId, QRectF] = {}
        self.stack_labels: dict[StackId, QGraphicsSimpleTextItem] = {}
        self.zones: list[DropZone] = []
        self._reload_pending = False

        self.setBackgroundBrush(QColor("#FAFAFA"))

    # --- Loading ---

    def reload(self) -> None:
        """Reload the commit graph and rebuild every item.

        Deferred while a drag is in flight, since the drag source is one of
        the items that would be destroyed.
        """
        if self.tracker.current is not None:
            self._reload_pending = True
            return
        self._reload_pending = False

        self.commit_graph = self.repo.load_commit_graph(self.commit_limit)
        self.stack_graph = build_stack_graph(self.commit_graph)
        self.parallel_groups = detect_parallel_groups(self.stack_graph)
        self.stack_layout = compute_layout(self.stack_graph, self.parallel_groups)
        self.divergent = find_divergent_change_ids(self.commit_graph)

        print(
            f"📊 Loaded {len(self.commit_graph)} commits in {len(self.stack_graph.stacks)} stacks, "
            f"{self.stack_layout.depth} levels, {len(self.parallel_groups)} parallel groups"
        )
        self._build_scene()
        self.reloaded.emit()

    def _stack_height(self, stack: Stack) -> float:
        n = len(stack.commits)
        # new-branch, after, between * (n - 1), before
        zone_count = n + 2
        return self.LABEL_HEIGHT + n * ChangeCard.HEIGHT + zone_count * DropZone.HEIGHT

    def _build_scene(self) -> None:
        self.clear()
        self.commit_to_card = {}
        self.stack_rects = {}
        self.stack_labels = {}
        self.zones = []

        levels = self.stack_layout.levels
        level_heights = [
            max(self._stack_height(self.stack_graph.stacks[item.stack_id]) for item in level)
            for level in levels
        ]
        widest = max((len(level) for level in levels), default=1)

        # Highest level at the top
        level_top: dict[int, float] = {}
        y = float(self.PADDING)
        for level_index in reversed(range(len(levels))):
            level_top[level_index] = y
            y += level_heights[level_index] + self.LEVEL_GAP
        total_height = y - self.LEVEL_GAP + self.PADDING

        color_index = 0
        for level_index, level in enumerate(levels):
            for column, item in enumerate(level):
                stack = self.stack_graph.stacks[item.stack_id]
                x = self.PADDING + column * self.COLUMN_WIDTH + self.COLUMN_WIDTH / 2
                # Bottom-align stacks within their level so connections stay short
                bottom = level_top[level_index] + level_heights[level_index]
                top = bottom - self._stack_height(stack)
                self._add_stack(stack, x, top, get_stack_color(color_index), parallel=item.is_parallel)
                color_index += 1

        for connection in self.stack_graph.connections:
            source = self.stack_graph.stacks[connection.from_stack]
            target = self.stack_graph.stacks[connection.to_stack]
            if source.tail not in self.commit_to_card or target.head not in self.commit_to_card:
                continue
            source_card = self.commit_to_card[source.tail]
            target_card = self.commit_to_card[target.head]
            start = source_card.scenePos() + QPointF(0, -ChangeCard.HEIGHT / 2)
            end = target_card.scenePos() + QPointF(0, ChangeCard.HEIGHT / 2)
            self.addItem(ConnectionEdge(start, end, connection.type))

        for group in self.parallel_groups:
            self._add_parallel_group(group)

        width = widest * self.COLUMN_WIDTH + 2 * self.PADDING
        self.setSceneRect(0, 0, width, max(total_height, 2 * self.PADDING))
        self.set_executing(self.executor.is_executing)

    def _add_zone(self, position: DropZonePosition, x: float, y: float) -> float:
        zone = DropZone(position, ChangeCard.WIDTH)
        zone.setPos(x, y + DropZone.HEIGHT / 2)
        self.addItem(zone)
        self.zones.append(zone)
        return y + DropZone.HEIGHT

    def _add_stack(self, stack: Stack, x: float, top: float, color: QColor, parallel: bool = False) -> None:
        label = QGraphicsSimpleTextItem(stack.id)
        font = QFont("sans-serif", 8)
        # Members of a parallel group get italic labels
        font.setItalic(parallel)
        label.setFont(font)
        label.setBrush(color.darker(130))
        label.setPos(x - ChangeCard.WIDTH / 2, top)
        self.addItem(label)
        self.stack_labels[stack.id] = label

        y = top + self.LABEL_HEIGHT
        newest_first = list(reversed(stack.commits))
        y = self._add_zone(NewBranch(stack.tail), x, y)
        y = self._add_zone(After(stack.tail), x, y)

        for index, commit_id in enumerate(newest_first):
            node = self.commit_graph[commit_id]
            card = ChangeCard(node.commit, color, is_divergent=node.commit.change_id in self.divergent)
            card.setPos(x, y + ChangeCard.HEIGHT / 2)
            card.clicked.connect(self.commit_selected.emit)
            card.menu_requested.connect(self.commit_menu_requested.emit)
            self.addItem(card)
            self.commit_to_card[commit_id] = card
            y += ChangeCard.HEIGHT

            if index + 1 < len(newest_first):
                older = newest_first[index + 1]
                y = self._add_zone(Between(older, commit_id), x, y)

        self._add_zone(Before(stack.head), x, y)
        self.stack_rects[stack.id] = QRectF(
            x - ChangeCard.WIDTH / 2, top, ChangeCard.WIDTH, self._stack_height(stack)
        )

    def _add_parallel_group(self, group: ParallelGroup) -> None:
        rects = [self.stack_rects[s] for s in group.stack_ids if s in self.stack_rects]
        if not rects:
            return
        bounds = rects[0]
        for rect in rects[1:]:
            bounds = bounds.united(rect)
        bounds = bounds.adjusted(-12, -8, 12, 8)

        path = QPainterPath()
        path.addRoundedRect(bounds, 12, 12)
        item = QGraphicsPathItem(path)
        color = PARALLEL_GROUP_COMPLETE_COLOR if group.is_complete else PARALLEL_GROUP_COLOR
        item.setBrush(color)
        pen = QPen(color.darker(120), 1)
        pen.setStyle(Qt.PenStyle.DashLine)
        item.setPen(pen)
        item.setZValue(-2)
        state = "merged back" if group.is_complete else "open"
        item.setToolTip(f"{group.id}: {len(group.stack_ids)} parallel stacks ({state})")
        self.addItem(item)

    # --- Stats ---

    def stats_batches(self) -> list[tuple[str, list[CommitId]]]:
        """One batch of commit ids per stack, in layout order."""
        batches: list[tuple[str, list[CommitId]]] = []
        for level in self.stack_layout.levels:
            for item in level:
                batches.append((item.stack_id, list(self.stack_graph.stacks[item.stack_id].commits)))
        return batches

    def apply_stack_stats(self, stack_id: str, stats: dict[CommitId, CommitStats]) -> None:
        """Apply a whole stack's stats at once. Unknown stacks are ignored."""
        stack = self.stack_graph.stacks.get(StackId(stack_id))
        if stack is None:
            return
        for commit_id in stack.commits:
            card = self.commit_to_card.get(commit_id)
            if card is not None:
                card.set_stats(stats.get(commit_id))

        label = self.stack_labels.get(stack.id)
        if label is not None:
            total = total_stats(stats.get(commit_id) for commit_id in stack.commits)
            label.setText(f"{stack.id}  +{total.additions} -{total.deletions}")

    # --- Commands ---

    def set_executing(self, executing: bool) -> None:
        for zone in self.zones:
            zone.set_executing(executing)

    def command_for_drop(self, position: DropZonePosition, mime: QMimeData | None) -> DomainCommand | None:
        """The command a drop would produce, or None if it must be refused."""
        if self.executor.is_executing:
            return None
        payload = resolve_drag_payload(transfer_from_mime(mime), self.tracker.current)
        return resolve_drop(position, payload)

    def drop(self, position: DropZonePosition, mime: QMimeData | None) -> bool:
        command = self.command_for_drop(position, mime)
        if command is None:
            return False
        self.command_requested.emit(command)
        return True

    def request_empty_change(self, position: DropZonePosition) -> None:
        if self.executor.is_executing:
            return
        command = create_empty_change(position)
        if command is not None:
            self.command_requested.emit(command)

    # --- Drags ---

    def start_drag(self, payload: InternalPayload, source: QWidget) -> None:
        """Run a drag of an item in this scene."""
        run_drag(source, self.tracker, payload, on_state=self.show_drag_state)
        if self._reload_pending:
            QTimer.singleShot(0, self.reload)

    def show_drag_state(self, state: DragState) -> None:
        """Reflect the drag in flight: dim its source, outline the zones."""
        for commit_id, card in self.commit_to_card.items():
            card.set_grayed_out(state.kind == "change" and commit_id == state.commit_id)
        for zone in self.zones:
            zone.set_drag_active(state.accepts_drops)

    def cancel_drag(self) -> None:
        """Drop any drag session left behind by an interrupted gesture."""
        self.tracker.end()
        self.show_drag_state(DragState())
        if self._reload_pending:
            QTimer.singleShot(0, self.reload)

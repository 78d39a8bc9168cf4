"""Change card - interactive display for a single commit of a stack."""

from typing import TYPE_CHECKING

from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QFont, QFontMetrics, QPainter, QPen
from PySide6.QtWidgets import (
    QGraphicsItem,
    QGraphicsObject,
    QGraphicsSceneContextMenuEvent,
    QGraphicsSceneDragDropEvent,
    QGraphicsSceneMouseEvent,
    QStyle,
    QStyleOptionGraphicsItem,
    QWidget,
)

from stackview.drag.drop import Existing
from stackview.drag.payload import BookmarkPayload, ChangePayload
from stackview.ui.stack_graph.types import (
    ADDITIONS_COLOR,
    CONFLICT_COLOR,
    DELETIONS_COLOR,
    DIVERGENT_COLOR,
    DROP_HIGHLIGHT_COLOR,
)
from stackview.vcs.types import BookmarkName, Commit, CommitStats

if TYPE_CHECKING:
    from stackview.ui.stack_graph.scene import StackGraphScene


class ChangeCard(QGraphicsObject):
    """
    A card showing one commit: ids, summary, author, bookmarks and stats.

    Dragging the card drags the change. Dragging a bookmark label drags the
    bookmark. Dropping onto the card targets the commit itself (squash,
    move a file into it, move a bookmark to it).
    """

    clicked = Signal(str)  # commit_id
    menu_requested = Signal(str, object)  # (commit_id, screen position)

    WIDTH = 240
    HEIGHT = 76
    CORNER_RADIUS = 8
    DRAG_THRESHOLD = 5

    def __init__(
        self,
        commit: Commit,
        color: QColor,
        is_divergent: bool = False,
        parent: QGraphicsItem | None = None,
    ) -> None:
        super().__init__(parent)
        self.commit = commit
        self.color = color
        self.is_divergent = is_divergent
        self.stats: CommitStats | None = None
        self._hovered = False
        self._grayed_out = False  # Source of the drag in flight
        self._drop_hover = False

        # Bookmark label rects for drag detection (populated during paint)
        self._bookmark_label_rects: list[tuple[QRectF, BookmarkName]] = []
        self._press_pos: QPointF | None = None
        self._pressed_bookmark: BookmarkName | None = None

        self.setAcceptHoverEvents(True)
        self.setAcceptDrops(True)
        self.setFlag(QGraphicsItem.GraphicsItemFlag.ItemIsSelectable)
        self.setToolTip(f"{commit.commit_id}\n{commit.author.name}\n\n{commit.description}")

    @property
    def position(self) -> Existing:
        return Existing(self.commit.commit_id)

    def _stack_scene(self) -> "StackGraphScene | None":
        from stackview.ui.stack_graph.scene import StackGraphScene

        scene = self.scene()
        return scene if isinstance(scene, StackGraphScene) else None

    def boundingRect(self) -> QRectF:  # noqa: N802
        # Card is drawn with top-left at (-WIDTH/2, -HEIGHT/2)
        return QRectF(-self.WIDTH / 2, -self.HEIGHT / 2, self.WIDTH, self.HEIGHT)

    def set_stats(self, stats: CommitStats | None) -> None:
        self.stats = stats
        self.update()

    def set_grayed_out(self, grayed_out: bool) -> None:
        if grayed_out != self._grayed_out:
            self._grayed_out = grayed_out
            self.update()

    def paint(
        self,
        painter: QPainter,
        option: QStyleOptionGraphicsItem,
        widget: QWidget | None = None,
    ) -> None:
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        card_rect = self.boundingRect()

        # Shadow
        painter.setBrush(QColor(0, 0, 0, 30))
        painter.setPen(Qt.PenStyle.NoPen)
        painter.drawRoundedRect(card_rect.translated(2, 2), self.CORNER_RADIUS, self.CORNER_RADIUS)

        # Background
        state = option.state  # type: ignore[attr-defined]
        is_selected = bool(state and (state & QStyle.StateFlag.State_Selected))
        painter.setBrush(QColor("#E3F2FD") if is_selected else QColor("#FFFFFF"))

        if self._drop_hover:
            painter.setPen(QPen(DROP_HIGHLIGHT_COLOR, 3))
        else:
            border_color = self.color if not self._hovered else self.color.darker(110)
            painter.setPen(QPen(border_color, 2))
        painter.drawRoundedRect(card_rect, self.CORNER_RADIUS, self.CORNER_RADIUS)

        # Left color bar
        bar_rect = QRectF(card_rect.left(), card_rect.top() + 4, 4, self.HEIGHT - 8)
        painter.setBrush(CONFLICT_COLOR if self.commit.has_conflicts else self.color)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.drawRoundedRect(bar_rect, 2, 2)

        text_x = card_rect.left() + 12
        text_width = self.WIDTH - 24
        top = card_rect.top() + 6

        # Change id and short commit id
        font = QFont("monospace", 9)
        font.setBold(True)
        painter.setFont(font)
        painter.setPen(DIVERGENT_COLOR if self.is_divergent else QColor("#666666"))
        change_label = self.commit.change_id[:8] + ("??" if self.is_divergent else "")
        painter.drawText(QRectF(text_x, top, text_width, 16), Qt.AlignmentFlag.AlignLeft, change_label)
        painter.setPen(QColor("#999999"))
        painter.setFont(QFont("monospace", 8))
        painter.drawText(
            QRectF(text_x, top, text_width, 16), Qt.AlignmentFlag.AlignRight, self.commit.short_id
        )

        # Summary line
        painter.setPen(QColor("#333333"))
        painter.setFont(QFont("sans-serif", 9))
        fm = QFontMetrics(painter.font())
        summary = fm.elidedText(self.commit.summary, Qt.TextElideMode.ElideRight, int(text_width))
        painter.drawText(QRectF(text_x, top + 18, text_width, 16), Qt.AlignmentFlag.AlignLeft, summary)

        # Author and stats
        bottom_y = top + 38
        painter.setPen(QColor("#888888"))
        painter.setFont(QFont("sans-serif", 8))
        painter.drawText(
            QRectF(text_x, bottom_y, text_width, 14), Qt.AlignmentFlag.AlignLeft, self.commit.author.name
        )
        if self.stats is not None:
            self._draw_stats(painter, self.stats, QRectF(text_x, bottom_y, text_width, 14))

        self._draw_bookmarks(painter, card_rect)

        if self.commit.has_conflicts:
            painter.setPen(CONFLICT_COLOR)
            font = QFont("sans-serif", 8)
            font.setBold(True)
            painter.setFont(font)
            painter.drawText(
                QRectF(text_x, bottom_y, text_width, 14), Qt.AlignmentFlag.AlignHCenter, "conflict"
            )

        if self._grayed_out:
            painter.setBrush(QColor(255, 255, 255, 180))
            painter.setPen(Qt.PenStyle.NoPen)
            painter.drawRoundedRect(card_rect, self.CORNER_RADIUS, self.CORNER_RADIUS)

    def _draw_stats(self, painter: QPainter, stats: CommitStats, rect: QRectF) -> None:
        font = QFont("monospace", 8)
        painter.setFont(font)
        if stats.is_empty:
            painter.setPen(QColor("#AAAAAA"))
            painter.drawText(rect, Qt.AlignmentFlag.AlignRight, "(empty)")
            return
        fm = QFontMetrics(font)
        deletions = f"-{stats.deletions}"
        additions = f"+{stats.additions} "
        painter.setPen(DELETIONS_COLOR)
        painter.drawText(rect, Qt.AlignmentFlag.AlignRight, deletions)
        painter.setPen(ADDITIONS_COLOR)
        shifted = rect.adjusted(0, 0, -fm.horizontalAdvance(deletions), 0)
        painter.drawText(shifted, Qt.AlignmentFlag.AlignRight, additions)

    def _draw_bookmarks(self, painter: QPainter, card_rect: QRectF) -> None:
        """Draw bookmark labels hanging off the right edge of the card."""
        self._bookmark_label_rects = []
        if not self.commit.bookmarks:
            return

        font = QFont("sans-serif", 8)
        fm = QFontMetrics(font)
        painter.setFont(font)
        label_x = card_rect.left() + 12
        label_y = card_rect.bottom() - 18
        for bookmark in self.commit.bookmarks[:3]:  # Max 3 labels
            label_text = bookmark if len(bookmark) <= 14 else bookmark[:12] + "…"
            label_width = fm.horizontalAdvance(label_text) + 8
            label_rect = QRectF(label_x, label_y, label_width, 14)

            painter.setBrush(self.color.lighter(140))
            painter.setPen(QPen(self.color, 1))
            painter.drawRoundedRect(label_rect, 3, 3)
            painter.setPen(self.color.darker(120))
            painter.drawText(label_rect, Qt.AlignmentFlag.AlignCenter, label_text)

            self._bookmark_label_rects.append((label_rect, bookmark))
            label_x += label_width + 4

    # --- Mouse: click selects, drag starts a change or bookmark drag ---

    def hoverEnterEvent(self, event: object) -> None:  # noqa: N802
        self._hovered = True
        self.update()

    def hoverLeaveEvent(self, event: object) -> None:  # noqa: N802
        self._hovered = False
        self.update()

    def mousePressEvent(self, event: QGraphicsSceneMouseEvent) -> None:  # noqa: N802
        if event.button() != Qt.MouseButton.LeftButton:
            super().mousePressEvent(event)
            return

        self._press_pos = event.pos()
        self._pressed_bookmark = None
        for label_rect, bookmark in self._bookmark_label_rects:
            if label_rect.contains(event.pos()):
                self._pressed_bookmark = bookmark
                break
        # Base handler selects the card
        super().mousePressEvent(event)
        event.accept()

    def mouseMoveEvent(self, event: QGraphicsSceneMouseEvent) -> None:  # noqa: N802
        if self._press_pos is None:
            super().mouseMoveEvent(event)
            return
        if (event.pos() - self._press_pos).manhattanLength() <= self.DRAG_THRESHOLD:
            return

        bookmark = self._pressed_bookmark
        self._press_pos = None
        self._pressed_bookmark = None

        stack_scene = self._stack_scene()
        if stack_scene is None or event.widget() is None:
            return
        if bookmark is not None:
            stack_scene.start_drag(BookmarkPayload(bookmark_name=bookmark), event.widget())
        else:
            stack_scene.start_drag(
                ChangePayload(change_id=self.commit.change_id, commit_id=self.commit.commit_id),
                event.widget(),
            )
        event.accept()

    def mouseReleaseEvent(self, event: QGraphicsSceneMouseEvent) -> None:  # noqa: N802
        if self._press_pos is not None:
            self.clicked.emit(self.commit.commit_id)
        self._press_pos = None
        self._pressed_bookmark = None
        super().mouseReleaseEvent(event)

    def contextMenuEvent(self, event: QGraphicsSceneContextMenuEvent) -> None:  # noqa: N802
        self.menu_requested.emit(self.commit.commit_id, event.screenPos())
        event.accept()

    # --- Drops onto the commit itself ---

    def dragEnterEvent(self, event: QGraphicsSceneDragDropEvent) -> None:  # noqa: N802
        stack_scene = self._stack_scene()
        if stack_scene is not None and stack_scene.command_for_drop(self.position, event.mimeData()):
            self._drop_hover = True
            self.update()
            event.acceptProposedAction()
        else:
            event.ignore()

    def dragLeaveEvent(self, event: QGraphicsSceneDragDropEvent) -> None:  # noqa: N802
        self._drop_hover = False
        self.update()

    def dropEvent(self, event: QGraphicsSceneDragDropEvent) -> None:  # noqa: N802
        self._drop_hover = False
        self.update()
        stack_scene = self._stack_scene()
        if stack_scene is not None and stack_scene.drop(self.position, event.mimeData()):
            event.acceptProposedAction()
        else:
            event.ignore()

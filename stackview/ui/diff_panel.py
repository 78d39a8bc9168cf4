"""
Diff panel - files and hunks of the selected commit, both draggable.

Files are dragged from the file list; hunks are dragged by their header.
Hunks whose header cannot be parsed are shown but cannot be dragged.
"""

from collections.abc import Callable
from datetime import datetime

from PySide6.QtCore import QPoint, Qt
from PySide6.QtGui import QColor, QFont, QMouseEvent
from PySide6.QtWidgets import (
    QAbstractItemView,
    QFrame,
    QLabel,
    QScrollArea,
    QSplitter,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from stackview.drag.hunks import DiffHunk, group_diff_into_hunks, split_patch_by_file
from stackview.drag.payload import FileChangePayload, HunkPayload, InternalPayload
from stackview.vcs.repository import StackRepository
from stackview.vcs.types import Commit, FileChange

DragRunner = Callable[[InternalPayload, QWidget], None]

STATUS_COLORS = {
    "A": "#2e7d32",  # Green
    "D": "#c62828",  # Red
    "M": "#1565c0",  # Blue
    "R": "#7b1fa2",  # Purple
}


def _escape(line: str) -> str:
    return line.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def render_diff_lines(lines: tuple[str, ...] | list[str]) -> str:
    """Render diff lines as colored HTML."""
    html_lines = []
    for line in lines:
        escaped = _escape(line)
        if line.startswith("+") and not line.startswith("+++"):
            html_lines.append(f'<span style="background:#e6ffe6;color:#2e7d32">{escaped}</span>')
        elif line.startswith("-") and not line.startswith("---"):
            html_lines.append(f'<span style="background:#ffe6e6;color:#c62828">{escaped}</span>')
        else:
            html_lines.append(escaped)
    return f'<pre style="margin:0;font-family:monospace;">{"<br>".join(html_lines)}</pre>'


class FileListWidget(QTreeWidget):
    """File list whose items drag as file-change payloads."""

    def __init__(self, drag_runner: DragRunner, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._drag_runner = drag_runner
        self.commit: Commit | None = None
        self.setHeaderLabels(["Files Changed"])
        self.setDragEnabled(True)
        self.setDragDropMode(QAbstractItemView.DragDropMode.DragOnly)

    def startDrag(self, supported_actions: Qt.DropAction) -> None:  # noqa: N802
        item = self.currentItem()
        if item is None or self.commit is None:
            return
        file_change = item.data(0, Qt.ItemDataRole.UserRole)
        if not isinstance(file_change, FileChange):
            return
        payload = FileChangePayload(
            file=file_change,
            from_change_id=self.commit.change_id,
            from_commit_id=self.commit.commit_id,
        )
        self._drag_runner(payload, self)


class HunkWidget(QFrame):
    """One hunk: a draggable header above the colored lines."""

    DRAG_THRESHOLD = 5

    def __init__(
        self,
        hunk: DiffHunk,
        file_path: str,
        commit: Commit,
        drag_runner: DragRunner,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.hunk = hunk
        self.file_path = file_path
        self.commit = commit
        self._drag_runner = drag_runner
        self._press_pos: QPoint | None = None

        self.setFrameShape(QFrame.Shape.StyledPanel)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(2)

        header = QLabel(_escape(hunk.header))
        header.setFont(QFont("monospace", 9))
        if hunk.line_range is not None:
            header.setStyleSheet("color:#7b1fa2;font-weight:bold;")
            header.setToolTip(
                f"Drag to move lines {hunk.line_range.start_line}-{hunk.line_range.end_line}"
            )
            self.setCursor(Qt.CursorShape.OpenHandCursor)
        else:
            header.setStyleSheet("color:#999;")
            header.setToolTip("This hunk cannot be moved")
        layout.addWidget(header)

        body = QLabel(render_diff_lines(hunk.lines))
        body.setTextFormat(Qt.TextFormat.RichText)
        body.setFont(QFont("monospace", 9))
        layout.addWidget(body)

    def mousePressEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if event.button() == Qt.MouseButton.LeftButton and self.hunk.is_draggable:
            self._press_pos = event.position().toPoint()
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if self._press_pos is None or self.hunk.line_range is None:
            super().mouseMoveEvent(event)
            return
        if (event.position().toPoint() - self._press_pos).manhattanLength() <= self.DRAG_THRESHOLD:
            return

        self._press_pos = None
        payload = HunkPayload(
            file_path=self.file_path,
            start_line=self.hunk.line_range.start_line,
            end_line=self.hunk.line_range.end_line,
            from_commit_id=self.commit.commit_id,
        )
        self._drag_runner(payload, self)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        self._press_pos = None
        super().mouseReleaseEvent(event)


class DiffPanel(QWidget):
    """Panel showing the selected commit's files and hunks."""

    def __init__(
        self,
        repo: StackRepository,
        drag_runner: DragRunner,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.repo = repo
        self._drag_runner = drag_runner
        self.commit: Commit | None = None
        self._file_diffs: dict[str, str] = {}

        self._setup_ui()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)

        self._header = QLabel("Select a change to view its diff")
        self._header.setWordWrap(True)
        self._header.setStyleSheet("""
            QLabel {
                background: #f5f5f5;
                border: 1px solid #ddd;
                border-radius: 4px;
                padding: 8px;
                font-size: 12px;
            }
        """)
        layout.addWidget(self._header)

        splitter = QSplitter(Qt.Orientation.Vertical)
        layout.addWidget(splitter, 1)

        self._file_tree = FileListWidget(self._drag_runner)
        self._file_tree.itemClicked.connect(self._on_file_clicked)
        splitter.addWidget(self._file_tree)

        self._hunk_container = QWidget()
        self._hunk_layout = QVBoxLayout(self._hunk_container)
        self._hunk_layout.setContentsMargins(0, 0, 0, 0)
        self._hunk_layout.addStretch(1)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(self._hunk_container)
        splitter.addWidget(scroll)
        splitter.setSizes([150, 450])

    @property
    def commit_id(self) -> str | None:
        return self.commit.commit_id if self.commit else None

    def show_commit(self, commit: Commit) -> None:
        """Load and display a commit."""
        self.commit = commit
        self._file_tree.commit = commit

        commit_time = datetime.fromtimestamp(commit.timestamp)
        conflict = " <b style='color:#c62828'>(conflict)</b>" if commit.has_conflicts else ""
        self._header.setText(
            f"<b>{_escape(commit.change_id[:12])}</b> {commit.commit_id[:12]}{conflict}<br>"
            f"<b>Author:</b> {_escape(commit.author.name)} &lt;{_escape(commit.author.email)}&gt;<br>"
            f"<b>Date:</b> {commit_time.strftime('%Y-%m-%d %H:%M:%S')}<br>"
            f"<b>Description:</b> {_escape(commit.description)}"
        )

        self._file_diffs = split_patch_by_file(self.repo.get_commit_diff(commit.commit_id))
        self._file_tree.clear()
        for file_change in self.repo.get_file_changes(commit.commit_id):
            counts = ""
            if file_change.additions is not None and file_change.deletions is not None:
                counts = f"  +{file_change.additions} -{file_change.deletions}"
            item = QTreeWidgetItem([f"[{file_change.status}] {file_change.path}{counts}"])
            item.setData(0, Qt.ItemDataRole.UserRole, file_change)
            if file_change.status in STATUS_COLORS:
                item.setForeground(0, QColor(STATUS_COLORS[file_change.status]))
            self._file_tree.addTopLevelItem(item)

        self._clear_hunks()

    def clear(self) -> None:
        self.commit = None
        self._file_tree.commit = None
        self._file_tree.clear()
        self._file_diffs = {}
        self._clear_hunks()
        self._header.setText("Select a change to view its diff")

    def _clear_hunks(self) -> None:
        while self._hunk_layout.count() > 1:
            item = self._hunk_layout.takeAt(0)
            widget = item.widget()
            if widget is not None:
                widget.deleteLater()

    def _on_file_clicked(self, item: QTreeWidgetItem, column: int) -> None:
        file_change = item.data(0, Qt.ItemDataRole.UserRole)
        if not isinstance(file_change, FileChange) or self.commit is None:
            return
        self._show_hunks(self.commit, file_change.path)

    def _show_hunks(self, commit: Commit, path: str) -> None:
        self._clear_hunks()
        parsed = group_diff_into_hunks(self._file_diffs.get(path, ""))
        for index, hunk in enumerate(parsed.hunks):
            widget = HunkWidget(hunk, path, commit, self._drag_runner)
            self._hunk_layout.insertWidget(index, widget)

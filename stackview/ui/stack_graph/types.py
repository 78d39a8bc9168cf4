"""Colors and styling for stack graph visualization."""

from PySide6.QtCore import Qt
from PySide6.QtGui import QColor

from stackview.graph.stacks import ConnectionType

# Colors for stacks, assigned round-robin in layout order
STACK_COLORS = [
    QColor("#4CAF50"),  # Green
    QColor("#2196F3"),  # Blue
    QColor("#FF9800"),  # Orange
    QColor("#9C27B0"),  # Purple
    QColor("#F44336"),  # Red
    QColor("#00BCD4"),  # Cyan
    QColor("#E91E63"),  # Pink
    QColor("#795548"),  # Brown
]

CONNECTION_COLORS = {
    ConnectionType.LINEAR: QColor("#90A4AE"),
    ConnectionType.BRANCH: QColor("#2196F3"),
    ConnectionType.MERGE: QColor("#9C27B0"),
}

CONNECTION_STYLES = {
    ConnectionType.LINEAR: Qt.PenStyle.SolidLine,
    ConnectionType.BRANCH: Qt.PenStyle.SolidLine,
    ConnectionType.MERGE: Qt.PenStyle.DashLine,
}

PARALLEL_GROUP_COLOR = QColor("#FFF8E1")
PARALLEL_GROUP_COMPLETE_COLOR = QColor("#E8F5E9")

ADDITIONS_COLOR = QColor("#2e7d32")
DELETIONS_COLOR = QColor("#c62828")
CONFLICT_COLOR = QColor("#F44336")
DIVERGENT_COLOR = QColor("#FF9800")
DROP_HIGHLIGHT_COLOR = QColor("#2196F3")


def get_stack_color(index: int) -> QColor:
    """Get color for the index-th stack."""
    return STACK_COLORS[index % len(STACK_COLORS)]

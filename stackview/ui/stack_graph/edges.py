"""Edge rendering for the stack graph - spline connections between stacks."""

from PySide6.QtCore import QPointF, Qt
from PySide6.QtGui import QPainterPath, QPen
from PySide6.QtWidgets import QGraphicsItem, QGraphicsPathItem

from stackview.graph.stacks import ConnectionType
from stackview.ui.stack_graph.types import CONNECTION_COLORS, CONNECTION_STYLES


class ConnectionEdge(QGraphicsPathItem):
    """
    A connection from a parent stack up to a child stack.

    Newer stacks are drawn higher up, so the edge starts at the top of the
    parent stack's head card and ends at the bottom of the child stack's
    tail card (start.y > end.y). Diagonal connections are drawn as an
    S-shaped cubic curve with vertical tangents at both ends.
    """

    def __init__(
        self,
        start: QPointF,
        end: QPointF,
        connection_type: ConnectionType,
        parent: QGraphicsItem | None = None,
    ) -> None:
        super().__init__(parent)
        self.start = start
        self.end = end
        self.connection_type = connection_type
        self._build_path()
        self._setup_style()

    def _build_path(self) -> None:
        path = QPainterPath()
        path.moveTo(self.start)

        if abs(self.end.x() - self.start.x()) < 5:
            path.lineTo(self.end)
        else:
            mid_y = (self.start.y() + self.end.y()) / 2
            path.cubicTo(
                QPointF(self.start.x(), mid_y),
                QPointF(self.end.x(), mid_y),
                self.end,
            )

        self.setPath(path)

    def _setup_style(self) -> None:
        pen = QPen(CONNECTION_COLORS[self.connection_type], 2.5)
        pen.setStyle(CONNECTION_STYLES[self.connection_type])
        pen.setCapStyle(Qt.PenCapStyle.RoundCap)
        pen.setJoinStyle(Qt.PenJoinStyle.RoundJoin)
        self.setPen(pen)
        self.setBrush(Qt.BrushStyle.NoBrush)

        # Draw behind cards
        self.setZValue(-1)
        self.setToolTip(f"{self.connection_type.value} connection")

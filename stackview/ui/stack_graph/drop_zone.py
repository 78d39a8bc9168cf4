"""Drop zones - the gaps around and between change cards."""

from typing import TYPE_CHECKING

from PySide6.QtCore import QRectF, Qt
from PySide6.QtGui import QColor, QFont, QPainter, QPen
from PySide6.QtWidgets import (
    QGraphicsItem,
    QGraphicsObject,
    QGraphicsSceneDragDropEvent,
    QGraphicsSceneMouseEvent,
    QStyleOptionGraphicsItem,
    QWidget,
)

from stackview.drag.drop import DropZonePosition, NewBranch, can_create_empty_change
from stackview.ui.stack_graph.types import DROP_HIGHLIGHT_COLOR

if TYPE_CHECKING:
    from stackview.ui.stack_graph.scene import StackGraphScene


class DropZone(QGraphicsObject):
    """
    A thin strip that accepts drops for one position.

    While hovered it shows a "+" button that creates an empty change at
    the position. The button is disabled while a command is executing.
    """

    HEIGHT = 16
    BUTTON_SIZE = 14

    def __init__(
        self,
        position: DropZonePosition,
        width: float,
        parent: QGraphicsItem | None = None,
    ) -> None:
        super().__init__(parent)
        self.position = position
        self.zone_width = width
        self._hovered = False
        self._drop_hover = False
        self._executing = False
        self._drag_active = False

        self.setAcceptHoverEvents(True)
        self.setAcceptDrops(True)
        self.setToolTip(self._tooltip())

    def _tooltip(self) -> str:
        if isinstance(self.position, NewBranch):
            return f"New branch from {self.position.commit_id[:8]}"
        return f"{self.position.kind}"

    def _stack_scene(self) -> "StackGraphScene | None":
        from stackview.ui.stack_graph.scene import StackGraphScene

        scene = self.scene()
        return scene if isinstance(scene, StackGraphScene) else None

    def boundingRect(self) -> QRectF:  # noqa: N802
        return QRectF(-self.zone_width / 2, -self.HEIGHT / 2, self.zone_width, self.HEIGHT)

    def _button_rect(self) -> QRectF:
        size = self.BUTTON_SIZE
        return QRectF(self.zone_width / 2 - size - 4, -size / 2, size, size)

    @property
    def button_enabled(self) -> bool:
        return can_create_empty_change(self.position, self._executing)

    def set_executing(self, executing: bool) -> None:
        self._executing = executing
        self.update()

    def set_drag_active(self, active: bool) -> None:
        self._drag_active = active
        self.update()

    def paint(
        self,
        painter: QPainter,
        option: QStyleOptionGraphicsItem,
        widget: QWidget | None = None,
    ) -> None:
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        rect = self.boundingRect()

        if self._drop_hover:
            painter.setBrush(DROP_HIGHLIGHT_COLOR.lighter(170))
            painter.setPen(QPen(DROP_HIGHLIGHT_COLOR, 2))
            painter.drawRoundedRect(rect.adjusted(2, 2, -2, -2), 4, 4)
        elif self._drag_active and not self._executing:
            pen = QPen(QColor("#BDBDBD"), 1)
            pen.setStyle(Qt.PenStyle.DashLine)
            painter.setPen(pen)
            painter.setBrush(Qt.BrushStyle.NoBrush)
            painter.drawRoundedRect(rect.adjusted(2, 2, -2, -2), 4, 4)

        if self._hovered and not self._drag_active:
            self._draw_button(painter)

    def _draw_button(self, painter: QPainter) -> None:
        button = self._button_rect()
        enabled = self.button_enabled
        painter.setBrush(QColor("#4CAF50") if enabled else QColor("#E0E0E0"))
        painter.setPen(Qt.PenStyle.NoPen)
        painter.drawEllipse(button)

        painter.setPen(QColor("#FFFFFF") if enabled else QColor("#9E9E9E"))
        font = QFont("sans-serif", 9)
        font.setBold(True)
        painter.setFont(font)
        painter.drawText(button, Qt.AlignmentFlag.AlignCenter, "+")

    def hoverEnterEvent(self, event: object) -> None:  # noqa: N802
        self._hovered = True
        self.update()

    def hoverLeaveEvent(self, event: object) -> None:  # noqa: N802
        self._hovered = False
        self.update()

    def mousePressEvent(self, event: QGraphicsSceneMouseEvent) -> None:  # noqa: N802
        if event.button() == Qt.MouseButton.LeftButton and self._button_rect().contains(event.pos()):
            stack_scene = self._stack_scene()
            if stack_scene is not None and self.button_enabled:
                stack_scene.request_empty_change(self.position)
            event.accept()
            return
        super().mousePressEvent(event)

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

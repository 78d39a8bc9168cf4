"""Stack graph view widget - main entry point for the stack visualization."""

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeyEvent, QPainter, QWheelEvent
from PySide6.QtWidgets import QGraphicsView, QWidget

from stackview.ui.stack_graph.scene import StackGraphScene


class StackGraphView(QGraphicsView):
    """Pannable and zoomable view of the stack graph.

    Zoom is kept as a single factor so it can be persisted in the settings
    and restored on the next start.
    """

    ZOOM_RANGE = (0.2, 2.0)
    ZOOM_STEP = 1.15

    def __init__(self, scene: StackGraphScene, zoom: float = 1.0, parent: QWidget | None = None) -> None:
        super().__init__(scene, parent)
        self._scene = scene
        self._scene.reloaded.connect(self._on_reloaded)

        self.setRenderHints(QPainter.RenderHint.Antialiasing | QPainter.RenderHint.TextAntialiasing)
        self.setDragMode(QGraphicsView.DragMode.ScrollHandDrag)
        self.setTransformationAnchor(QGraphicsView.ViewportAnchor.AnchorUnderMouse)
        self.setAlignment(Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignTop)
        self.setAcceptDrops(True)

        self._zoom = 1.0
        self.set_zoom(zoom)

    @property
    def zoom(self) -> float:
        return self._zoom

    def set_zoom(self, zoom: float) -> None:
        low, high = self.ZOOM_RANGE
        zoom = max(low, min(high, zoom))
        if zoom == self._zoom:
            return
        self.scale(zoom / self._zoom, zoom / self._zoom)
        self._zoom = zoom

    def zoom_in(self) -> None:
        self.set_zoom(self._zoom * self.ZOOM_STEP)

    def zoom_out(self) -> None:
        self.set_zoom(self._zoom / self.ZOOM_STEP)

    def reset_zoom(self) -> None:
        self.set_zoom(1.0)

    def wheelEvent(self, event: QWheelEvent) -> None:  # noqa: N802
        """Ctrl+wheel zooms, plain wheel scrolls."""
        if not event.modifiers() & Qt.KeyboardModifier.ControlModifier:
            super().wheelEvent(event)
            return
        steps = event.angleDelta().y() / 120
        if steps:
            self.set_zoom(self._zoom * self.ZOOM_STEP**steps)
        event.accept()

    def keyPressEvent(self, event: QKeyEvent) -> None:  # noqa: N802
        """Escape clears any leftover drag state."""
        if event.key() == Qt.Key.Key_Escape:
            self._scene.cancel_drag()
            event.accept()
            return
        super().keyPressEvent(event)

    def _on_reloaded(self) -> None:
        # Newest work is at the top
        self.verticalScrollBar().setValue(self.verticalScrollBar().minimum())

    def fit_in_view(self) -> None:
        """Show the whole graph, within the zoom range."""
        self.fitInView(self._scene.sceneRect(), Qt.AspectRatioMode.KeepAspectRatio)
        self._zoom = self.transform().m11()
        self.set_zoom(self._zoom)

"""Stack graph visualization components."""

from stackview.ui.stack_graph.scene import StackGraphScene
from stackview.ui.stack_graph.widget import StackGraphView

__all__ = ["StackGraphScene", "StackGraphView"]

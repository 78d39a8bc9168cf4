"""Stack graph construction and layout"""

from stackview.graph.layout import LayoutItem, StackLayout, compute_layout, compute_levels
from stackview.graph.parallel import ParallelGroup, detect_parallel_groups, parallel_group_for_stack
from stackview.graph.stacks import (
    ConnectionType,
    Stack,
    StackConnection,
    StackGraph,
    StackId,
    build_stack_graph,
    classify_connection,
)

__all__ = [
    "ConnectionType",
    "LayoutItem",
    "ParallelGroup",
    "Stack",
    "StackConnection",
    "StackGraph",
    "StackId",
    "StackLayout",
    "build_stack_graph",
    "classify_connection",
    "compute_layout",
    "compute_levels",
    "detect_parallel_groups",
    "parallel_group_for_stack",
]

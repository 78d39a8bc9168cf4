"""
Layered layout of a stack graph.

Levels are assigned breadth-first from all root stacks at once. A stack takes
the level at which it is first discovered and is never revisited, so a stack
reachable through paths of different lengths sits one level below whichever
parent the traversal reaches first. This is not a longest-path layering and
can place the tip of an uneven diamond close to its shorter side.
"""

from collections import deque
from dataclasses import dataclass, field

from stackview.graph.parallel import ParallelGroup, parallel_group_for_stack
from stackview.graph.stacks import StackGraph, StackId


@dataclass(frozen=True)
class LayoutItem:
    """A stack placed on a level."""

    stack_id: StackId
    parallel_group_id: str | None = None

    @property
    def is_parallel(self) -> bool:
        return self.parallel_group_id is not None


@dataclass
class StackLayout:
    """Levels of stacks, index 0 holding the roots."""

    levels: list[list[LayoutItem]] = field(default_factory=list)
    level_of: dict[StackId, int] = field(default_factory=dict)

    def stack_ids(self, level: int) -> list[StackId]:
        return [item.stack_id for item in self.levels[level]]

    @property
    def depth(self) -> int:
        return len(self.levels)


def compute_levels(stack_graph: StackGraph) -> list[list[StackId]]:
    """Assign each reachable stack a level, first-seen-wins."""
    levels: list[list[StackId]] = []
    visited: set[StackId] = set()
    queue: deque[tuple[StackId, int]] = deque()

    for stack_id in stack_graph.root_stacks:
        if stack_id in visited:
            continue
        visited.add(stack_id)
        queue.append((stack_id, 0))

    while queue:
        stack_id, level = queue.popleft()
        while len(levels) <= level:
            levels.append([])
        levels[level].append(stack_id)

        for child_id in stack_graph.stacks[stack_id].child_stacks:
            if child_id in visited:
                continue
            visited.add(child_id)
            queue.append((child_id, level + 1))

    return levels


def compute_layout(
    stack_graph: StackGraph, parallel_groups: list[ParallelGroup] | None = None
) -> StackLayout:
    """Compute levels and tag stacks that belong to a parallel group."""
    groups = parallel_groups or []
    layout = StackLayout()

    for level_index, stack_ids in enumerate(compute_levels(stack_graph)):
        items: list[LayoutItem] = []
        for stack_id in stack_ids:
            group = parallel_group_for_stack(stack_id, groups)
            items.append(LayoutItem(stack_id, group.id if group else None))
            layout.level_of[stack_id] = level_index
        layout.levels.append(items)

    return layout

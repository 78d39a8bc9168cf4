"""
Parallel group detection.

Sibling stacks that share a parent stack and have no ancestry relation
between them represent concurrent lines of work. Groups only drive display
emphasis; they never change the stack partition.
"""

from dataclasses import dataclass

from stackview.graph.stacks import ConnectionType, StackGraph, StackId


@dataclass(frozen=True)
class ParallelGroup:
    """Stacks running in parallel below a common parent stack."""

    id: str
    stack_ids: tuple[StackId, ...]
    parent_stack: StackId
    child_stacks: tuple[StackId, ...]
    is_complete: bool  # Every member merges into the same children


def _ancestor_sets(stack_graph: StackGraph) -> dict[StackId, set[StackId]]:
    """Compute the transitive parent stacks of every stack."""
    ancestors: dict[StackId, set[StackId]] = {}

    for stack_id in stack_graph.stacks:
        seen: set[StackId] = set()
        pending = list(stack_graph.stacks[stack_id].parent_stacks)
        while pending:
            current = pending.pop()
            if current in seen:
                continue
            seen.add(current)
            pending.extend(stack_graph.stacks[current].parent_stacks)
        ancestors[stack_id] = seen

    return ancestors


def _is_complete(stack_graph: StackGraph, members: list[StackId]) -> bool:
    """Check whether all members merge into the same set of child stacks."""
    first_children = set(stack_graph.stacks[members[0]].child_stacks)
    if not first_children:
        return False
    for member in members:
        if set(stack_graph.stacks[member].child_stacks) != first_children:
            return False

    merge_edges = {
        (connection.from_stack, connection.to_stack)
        for connection in stack_graph.connections
        if connection.type == ConnectionType.MERGE
    }
    return all((member, child) in merge_edges for member in members for child in first_children)


def detect_parallel_groups(stack_graph: StackGraph) -> list[ParallelGroup]:
    """Find groups of sibling stacks with no ancestry between them.

    Children of each branching stack are placed greedily, in child order,
    into the first group whose members are all unrelated to them. A child
    that descends from a sibling (for example the merge side of a diamond
    fed directly by the branch point) therefore lands in a separate group.
    """
    ancestors = _ancestor_sets(stack_graph)

    def related(a: StackId, b: StackId) -> bool:
        return a in ancestors[b] or b in ancestors[a]

    groups: list[ParallelGroup] = []
    for stack in stack_graph.stacks.values():
        if len(stack.child_stacks) < 2:
            continue

        buckets: list[list[StackId]] = []
        for child_id in stack.child_stacks:
            for bucket in buckets:
                if not any(related(child_id, member) for member in bucket):
                    bucket.append(child_id)
                    break
            else:
                buckets.append([child_id])

        for bucket in buckets:
            if len(bucket) < 2:
                continue
            shared_children = [
                child
                for child in stack_graph.stacks[bucket[0]].child_stacks
                if all(child in stack_graph.stacks[m].child_stacks for m in bucket)
            ]
            groups.append(
                ParallelGroup(
                    id=f"parallel-group-{len(groups)}",
                    stack_ids=tuple(bucket),
                    parent_stack=stack.id,
                    child_stacks=tuple(shared_children),
                    is_complete=_is_complete(stack_graph, bucket),
                )
            )

    return groups


def parallel_group_for_stack(
    stack_id: StackId, groups: list[ParallelGroup]
) -> ParallelGroup | None:
    """Return the first group containing the stack, if any."""
    for group in groups:
        if stack_id in group.stack_ids:
            return group
    return None

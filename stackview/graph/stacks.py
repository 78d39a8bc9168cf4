"""
Stack building - groups a commit DAG into linear stacks.

A stack is a maximal unbranching run of commits. Inside a stack every commit
except the last has exactly one child, and that child has exactly one parent
and is the next commit of the stack. Stacks are linked to each other by
boundary edges, which are classified as linear, branch or merge.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import NewType

from stackview.vcs.types import CommitGraph, CommitId

StackId = NewType("StackId", str)


class ConnectionType(str, Enum):
    """Kind of edge between two stacks."""

    LINEAR = "linear"
    MERGE = "merge"
    BRANCH = "branch"


@dataclass
class Stack:
    """A linear sequence of commits, oldest first."""

    id: StackId
    commits: list[CommitId]
    parent_stacks: list[StackId] = field(default_factory=list)
    child_stacks: list[StackId] = field(default_factory=list)

    @property
    def head(self) -> CommitId:
        """Oldest commit of the stack."""
        return self.commits[0]

    @property
    def tail(self) -> CommitId:
        """Newest commit of the stack."""
        return self.commits[-1]


@dataclass(frozen=True)
class StackConnection:
    """A boundary edge between two stacks."""

    from_stack: StackId
    to_stack: StackId
    type: ConnectionType


@dataclass
class StackGraph:
    """Result of grouping a commit graph into stacks."""

    stacks: dict[StackId, Stack]
    connections: list[StackConnection]
    root_stacks: list[StackId]
    leaf_stacks: list[StackId]
    commit_to_stack: dict[CommitId, StackId]

    def stack_of(self, commit_id: CommitId) -> Stack | None:
        stack_id = self.commit_to_stack.get(commit_id)
        return self.stacks[stack_id] if stack_id is not None else None


def _in_graph_edges(
    graph: CommitGraph,
) -> tuple[dict[CommitId, list[CommitId]], dict[CommitId, list[CommitId]]]:
    """Collect children and parents restricted to commits present in the graph.

    Dangling children are dropped and duplicate entries collapsed.
    """
    children: dict[CommitId, list[CommitId]] = {commit_id: [] for commit_id in graph}
    parents: dict[CommitId, list[CommitId]] = {commit_id: [] for commit_id in graph}

    for commit_id, node in graph.items():
        for child_id in node.children:
            if child_id not in graph or child_id in children[commit_id]:
                continue
            children[commit_id].append(child_id)
            parents[child_id].append(commit_id)

    return children, parents


def classify_connection(source: Stack, target: Stack) -> ConnectionType:
    """Classify the edge source -> target.

    Branch is checked before merge, so an edge leaving a branch point and
    entering a merge point is reported as a branch.
    """
    if len(source.child_stacks) > 1:
        return ConnectionType.BRANCH
    if len(target.parent_stacks) > 1:
        return ConnectionType.MERGE
    return ConnectionType.LINEAR


def build_stack_graph(graph: CommitGraph) -> StackGraph:
    """Partition the commit graph into stacks and link them."""
    children, parents = _in_graph_edges(graph)

    def starts_stack(commit_id: CommitId) -> bool:
        commit_parents = parents[commit_id]
        if len(commit_parents) != 1:
            return True
        return len(children[commit_parents[0]]) != 1

    # Oldest first; sorted() is stable so equal timestamps keep graph order
    ordered = sorted(graph, key=lambda commit_id: graph[commit_id].commit.timestamp)

    stacks: dict[StackId, Stack] = {}
    commit_to_stack: dict[CommitId, StackId] = {}

    def build_chain(start: CommitId) -> None:
        stack_id = StackId(f"stack-{len(stacks)}")
        chain: list[CommitId] = []
        current = start

        while True:
            chain.append(current)
            commit_to_stack[current] = stack_id

            if len(children[current]) != 1:
                break
            next_id = children[current][0]
            if len(parents[next_id]) != 1 or next_id in commit_to_stack:
                break
            current = next_id

        stacks[stack_id] = Stack(id=stack_id, commits=chain)

    for commit_id in ordered:
        if commit_id not in commit_to_stack and starts_stack(commit_id):
            build_chain(commit_id)

    # Only reachable when the input contains a cycle
    for commit_id in ordered:
        if commit_id not in commit_to_stack:
            build_chain(commit_id)

    edges: list[tuple[Stack, Stack]] = []
    for stack in stacks.values():
        for child_id in children[stack.tail]:
            child_stack = stacks[commit_to_stack[child_id]]
            if child_stack.id == stack.id or child_stack.id in stack.child_stacks:
                continue
            stack.child_stacks.append(child_stack.id)
            child_stack.parent_stacks.append(stack.id)
            edges.append((stack, child_stack))

    # Classification needs the complete fan-in and fan-out of every stack
    connections = [
        StackConnection(
            from_stack=source.id,
            to_stack=target.id,
            type=classify_connection(source, target),
        )
        for source, target in edges
    ]

    return StackGraph(
        stacks=stacks,
        connections=connections,
        root_stacks=[stack.id for stack in stacks.values() if not stack.parent_stacks],
        leaf_stacks=[stack.id for stack in stacks.values() if not stack.child_stacks],
        commit_to_stack=commit_to_stack,
    )

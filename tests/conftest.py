"""Shared fixtures for stackview tests."""

from collections.abc import Callable

import pytest

from stackview.vcs.types import Author, ChangeId, Commit, CommitGraph, CommitGraphNode, CommitId


def make_commit(commit_id: str, timestamp: int = 0, change_id: str | None = None, **kwargs) -> Commit:
    return Commit(
        commit_id=CommitId(commit_id),
        change_id=ChangeId(change_id or f"change-{commit_id}"),
        description=f"commit {commit_id}",
        author=Author(name="Test Author", email="test@example.com"),
        timestamp=timestamp,
        **kwargs,
    )


def make_graph(children: dict[str, list[str]]) -> CommitGraph:
    """Build a commit graph from a child adjacency map.

    Timestamps follow insertion order, so list parents before children.
    Children missing from the map are kept as dangling references.
    """
    graph: CommitGraph = {}
    for index, (commit_id, child_ids) in enumerate(children.items()):
        graph[CommitId(commit_id)] = CommitGraphNode(
            commit=make_commit(commit_id, timestamp=index),
            children=[CommitId(c) for c in child_ids],
        )
    return graph


@pytest.fixture
def graph_factory() -> Callable[[dict[str, list[str]]], CommitGraph]:
    return make_graph


@pytest.fixture
def commit_factory() -> Callable[..., Commit]:
    return make_commit

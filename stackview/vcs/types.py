"""Commit graph model shared by the stack builder, resolvers and UI."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal, NewType

from stackview.constants import NO_DESCRIPTION

CommitId = NewType("CommitId", str)
ChangeId = NewType("ChangeId", str)
BookmarkName = NewType("BookmarkName", str)

FileStatus = Literal["M", "A", "D", "R", "C"]


def normalize_description(text: str) -> str:
    """Strip a commit description, substituting the placeholder when empty."""
    stripped = text.strip()
    return stripped if stripped else NO_DESCRIPTION


@dataclass(frozen=True)
class Author:
    """Commit author."""

    name: str
    email: str = ""


@dataclass(frozen=True)
class Commit:
    """
    Immutable snapshot of one commit.

    A commit is identified by its commit id, which changes every time the
    commit is amended. The change id survives amendment, so several commits
    may briefly share one (see find_divergent_change_ids).
    """

    commit_id: CommitId
    change_id: ChangeId
    description: str
    author: Author
    timestamp: int
    has_conflicts: bool = False
    parents: tuple[CommitId, ...] = ()
    bookmarks: tuple[BookmarkName, ...] = ()

    @property
    def short_id(self) -> str:
        return self.commit_id[:8]

    @property
    def summary(self) -> str:
        """First line of the description."""
        return self.description.split("\n")[0]


@dataclass
class CommitGraphNode:
    """A commit together with the ids of its children."""

    commit: Commit
    children: list[CommitId] = field(default_factory=list)


CommitGraph = dict[CommitId, CommitGraphNode]


@dataclass(frozen=True)
class FileChange:
    """One file touched by a commit."""

    path: str
    status: FileStatus
    additions: int | None = None
    deletions: int | None = None


@dataclass(frozen=True)
class CommitStats:
    """Line statistics for a commit."""

    additions: int
    deletions: int

    @property
    def is_empty(self) -> bool:
        return self.additions == 0 and self.deletions == 0


def build_commit_graph(commits: Iterable[Commit]) -> CommitGraph:
    """
    Build a commit graph from commits carrying parent ids.

    Parents that are not among the given commits are ignored, so a partial
    history (for example a limited walk) produces a graph whose oldest
    commits are roots.
    """
    graph: CommitGraph = {}
    for commit in commits:
        graph[commit.commit_id] = CommitGraphNode(commit=commit)

    for commit_id, node in graph.items():
        for parent_id in node.commit.parents:
            parent = graph.get(parent_id)
            if parent is not None and commit_id not in parent.children:
                parent.children.append(commit_id)

    return graph


def find_divergent_change_ids(graph: CommitGraph) -> set[ChangeId]:
    """Return change ids carried by more than one commit in the graph."""
    seen: set[ChangeId] = set()
    divergent: set[ChangeId] = set()
    for node in graph.values():
        change_id = node.commit.change_id
        if change_id in seen:
            divergent.add(change_id)
        seen.add(change_id)
    return divergent


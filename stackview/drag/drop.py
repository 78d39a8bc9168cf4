"""
Drop resolution: (drop zone position, drag payload) -> domain command.

Everything here is pure. A None result means the drop is a no-op and the UI
must not dispatch anything.
"""

from dataclasses import dataclass
from typing import ClassVar

from stackview.drag.payload import (
    BookmarkPayload,
    ChangePayload,
    DragPayload,
    FileChangePayload,
    HunkPayload,
)
from stackview.vcs.commands import (
    AfterTarget,
    BeforeTarget,
    BetweenTarget,
    CommandTarget,
    CreateEmptyChange,
    DomainCommand,
    IntoCommitTarget,
    MoveBookmark,
    MoveFile,
    MoveHunk,
    NewBranchTarget,
    RebaseChange,
    SquashChange,
)
from stackview.vcs.types import CommitId


@dataclass(frozen=True)
class Before:
    commit_id: CommitId
    kind: ClassVar[str] = "before"


@dataclass(frozen=True)
class After:
    commit_id: CommitId
    kind: ClassVar[str] = "after"


@dataclass(frozen=True)
class Between:
    """Gap between two adjacent commits of a stack (older side first)."""

    before_commit_id: CommitId
    after_commit_id: CommitId
    kind: ClassVar[str] = "between"


@dataclass(frozen=True)
class Existing:
    """Onto a commit card itself."""

    commit_id: CommitId
    kind: ClassVar[str] = "existing"


@dataclass(frozen=True)
class NewBranch:
    commit_id: CommitId
    kind: ClassVar[str] = "new-branch"


DropZonePosition = Before | After | Between | Existing | NewBranch


def position_to_target(position: DropZonePosition) -> CommandTarget:
    """Strip the UI position down to the target the dispatcher understands."""
    if isinstance(position, Before):
        return BeforeTarget(position.commit_id)
    if isinstance(position, After):
        return AfterTarget(position.commit_id)
    if isinstance(position, Between):
        return BetweenTarget(position.before_commit_id, position.after_commit_id)
    if isinstance(position, NewBranch):
        return NewBranchTarget(position.commit_id)
    return IntoCommitTarget(position.commit_id)


def position_commits(position: DropZonePosition) -> tuple[CommitId, ...]:
    if isinstance(position, Between):
        return (position.before_commit_id, position.after_commit_id)
    return (position.commit_id,)


def _source_commit(payload: DragPayload) -> CommitId | None:
    if isinstance(payload, ChangePayload):
        return payload.commit_id
    if isinstance(payload, (FileChangePayload, HunkPayload)):
        return payload.from_commit_id
    return None


def is_self_drop(payload: DragPayload, position: DropZonePosition) -> bool:
    """True when a change, file or hunk would be dropped onto its own commit.

    A change is already adjacent to any gap that touches it. File and hunk
    moves into a gap next to their source are real edits (a split).
    """
    source = _source_commit(payload)
    if source is None:
        return False
    commits = position_commits(position)
    if isinstance(payload, ChangePayload):
        return source in commits
    return all(commit_id == source for commit_id in commits)


def resolve_drop(position: DropZonePosition, payload: DragPayload) -> DomainCommand | None:
    """Map a drop onto one domain command, or None for a no-op."""
    if is_self_drop(payload, position):
        return None

    target = position_to_target(position)

    if isinstance(payload, ChangePayload):
        if isinstance(target, IntoCommitTarget):
            return SquashChange(source_commit_id=payload.commit_id, target=target)
        return RebaseChange(commit_id=payload.commit_id, change_id=payload.change_id, target=target)

    if isinstance(payload, FileChangePayload):
        return MoveFile(
            file=payload.file,
            source_commit_id=payload.from_commit_id,
            source_change_id=payload.from_change_id,
            target=target,
        )

    if isinstance(payload, HunkPayload):
        return MoveHunk(
            file_path=payload.file_path,
            start_line=payload.start_line,
            end_line=payload.end_line,
            source_commit_id=payload.from_commit_id,
            target=target,
        )

    if isinstance(payload, BookmarkPayload):
        if isinstance(target, IntoCommitTarget):
            return MoveBookmark(bookmark_name=payload.bookmark_name, target=target)
        return None

    # external content and unresolved drags never become commands
    return None


def create_empty_change(position: DropZonePosition) -> CreateEmptyChange | None:
    """The "new change here" command for a zone, without any drag."""
    target = position_to_target(position)
    if isinstance(target, IntoCommitTarget):
        return None
    return CreateEmptyChange(target=target)


def can_create_empty_change(position: DropZonePosition, is_executing: bool) -> bool:
    return not is_executing and not isinstance(position, Existing)

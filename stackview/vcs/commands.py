"""
Domain commands and their dispatch to the version control engine.

Each command is a frozen dataclass naming one history edit. The drag and
drop edits (rebase, squash, moves, new empty change) carry the CommandTarget
they apply to; the per-commit edits (abandon, describe, edit) name their
commit, and undo and redo act on the operation log. Dispatchers turn commands
into real repository operations; this module only ships one that drives the
jj command line.
"""

import os
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from stackview.vcs.types import BookmarkName, ChangeId, CommitId, FileChange


class CommandDispatchError(ValueError):
    """Raised when the engine rejects or fails to run a command."""


class DomainAction(str, Enum):
    """The history edit a command performs."""

    REBASE = "rebase"
    SQUASH = "squash"
    MOVE_FILE = "move-file"
    MOVE_HUNK = "move-hunk"
    MOVE_BOOKMARK = "move-bookmark"
    CREATE_EMPTY = "create-empty"
    ABANDON = "abandon"
    DESCRIBE = "describe"
    CHECKOUT = "checkout"
    UNDO = "undo"
    REDO = "redo"


# --- Command targets ---


@dataclass(frozen=True)
class BeforeTarget:
    """Place the subject as a parent of commit_id."""

    commit_id: CommitId
    kind: ClassVar[str] = "before"


@dataclass(frozen=True)
class AfterTarget:
    """Place the subject as a child of commit_id."""

    commit_id: CommitId
    kind: ClassVar[str] = "after"


@dataclass(frozen=True)
class BetweenTarget:
    """Place the subject between two adjacent commits.

    before_commit_id is the older (ancestor) side, after_commit_id the newer.
    """

    before_commit_id: CommitId
    after_commit_id: CommitId
    kind: ClassVar[str] = "between"


@dataclass(frozen=True)
class NewBranchTarget:
    """Start a new line of work on top of from_commit_id."""

    from_commit_id: CommitId
    kind: ClassVar[str] = "new-branch"


@dataclass(frozen=True)
class IntoCommitTarget:
    """Fold the subject into an existing commit."""

    commit_id: CommitId
    kind: ClassVar[str] = "existing-commit"


CommandTarget = BeforeTarget | AfterTarget | BetweenTarget | NewBranchTarget | IntoCommitTarget


# --- Commands ---


@dataclass(frozen=True)
class RebaseChange:
    commit_id: CommitId
    change_id: ChangeId
    target: BeforeTarget | AfterTarget | BetweenTarget | NewBranchTarget
    action: ClassVar[DomainAction] = DomainAction.REBASE

    def description(self) -> str:
        return f"Rebase {self.commit_id[:8]} ({self.target.kind})"


@dataclass(frozen=True)
class SquashChange:
    source_commit_id: CommitId
    target: IntoCommitTarget
    action: ClassVar[DomainAction] = DomainAction.SQUASH

    def description(self) -> str:
        return f"Squash {self.source_commit_id[:8]} into {self.target.commit_id[:8]}"


@dataclass(frozen=True)
class MoveFile:
    """Move a file's whole change out of its commit."""

    file: FileChange
    source_commit_id: CommitId
    source_change_id: ChangeId
    target: CommandTarget
    action: ClassVar[DomainAction] = DomainAction.MOVE_FILE

    def description(self) -> str:
        return f"Move {self.file.path} from {self.source_commit_id[:8]} ({self.target.kind})"


@dataclass(frozen=True)
class MoveHunk:
    """Move an inclusive, 1-indexed line range of one file."""

    file_path: str
    start_line: int
    end_line: int
    source_commit_id: CommitId
    target: CommandTarget
    action: ClassVar[DomainAction] = DomainAction.MOVE_HUNK

    def description(self) -> str:
        return (
            f"Move {self.file_path}:{self.start_line}-{self.end_line} "
            f"from {self.source_commit_id[:8]} ({self.target.kind})"
        )


@dataclass(frozen=True)
class MoveBookmark:
    bookmark_name: BookmarkName
    target: IntoCommitTarget
    action: ClassVar[DomainAction] = DomainAction.MOVE_BOOKMARK

    def description(self) -> str:
        return f"Move bookmark '{self.bookmark_name}' to {self.target.commit_id[:8]}"


@dataclass(frozen=True)
class CreateEmptyChange:
    target: BeforeTarget | AfterTarget | BetweenTarget | NewBranchTarget
    action: ClassVar[DomainAction] = DomainAction.CREATE_EMPTY

    def description(self) -> str:
        return f"Create empty change ({self.target.kind})"


@dataclass(frozen=True)
class AbandonChange:
    commit_id: CommitId
    action: ClassVar[DomainAction] = DomainAction.ABANDON

    def description(self) -> str:
        return f"Abandon {self.commit_id[:8]}"


@dataclass(frozen=True)
class DescribeChange:
    commit_id: CommitId
    message: str
    action: ClassVar[DomainAction] = DomainAction.DESCRIBE

    def description(self) -> str:
        return f"Describe {self.commit_id[:8]}"


@dataclass(frozen=True)
class CheckoutChange:
    """Make commit_id the working-copy commit."""

    commit_id: CommitId
    action: ClassVar[DomainAction] = DomainAction.CHECKOUT

    def description(self) -> str:
        return f"Edit {self.commit_id[:8]}"


@dataclass(frozen=True)
class UndoOperation:
    action: ClassVar[DomainAction] = DomainAction.UNDO

    def description(self) -> str:
        return "Undo last operation"


@dataclass(frozen=True)
class RedoOperation:
    action: ClassVar[DomainAction] = DomainAction.REDO

    def description(self) -> str:
        return "Redo last undone operation"


DomainCommand = (
    RebaseChange
    | SquashChange
    | MoveFile
    | MoveHunk
    | MoveBookmark
    | CreateEmptyChange
    | AbandonChange
    | DescribeChange
    | CheckoutChange
    | UndoOperation
    | RedoOperation
)


# --- Dispatch ---


class CommandDispatcher(ABC):
    """Executes domain commands against the real repository."""

    @abstractmethod
    def dispatch(self, command: DomainCommand) -> None:
        """Run the command. Raises CommandDispatchError on failure."""
        ...


def _placement_args(target: CommandTarget) -> list[str]:
    """jj placement flags for a target."""
    if isinstance(target, BeforeTarget):
        return ["--insert-before", target.commit_id]
    if isinstance(target, AfterTarget):
        return ["--insert-after", target.commit_id]
    if isinstance(target, BetweenTarget):
        return [
            "--insert-after",
            target.before_commit_id,
            "--insert-before",
            target.after_commit_id,
        ]
    if isinstance(target, NewBranchTarget):
        return ["--destination", target.from_commit_id]
    return ["--destination", target.commit_id]


def jj_arguments(command: DomainCommand) -> list[str]:
    """Translate a command into jj arguments (without the binary)."""
    if isinstance(command, RebaseChange):
        return ["rebase", "-r", command.commit_id, *_placement_args(command.target)]

    if isinstance(command, SquashChange):
        return ["squash", "-u", "--from", command.source_commit_id, "--into", command.target.commit_id]

    if isinstance(command, MoveFile):
        path = command.file.path
        if isinstance(command.target, IntoCommitTarget):
            return [
                "squash",
                "-u",
                "--from",
                command.source_commit_id,
                "--into",
                command.target.commit_id,
                "--",
                path,
            ]
        target = command.target
        if isinstance(target, BetweenTarget) and target.after_commit_id == command.source_commit_id:
            # The source cannot also be the descendant side of its own split
            target = AfterTarget(target.before_commit_id)
        return ["split", "-r", command.source_commit_id, *_placement_args(target), "--", path]

    if isinstance(command, MoveBookmark):
        return [
            "bookmark",
            "set",
            "--allow-backwards",
            command.bookmark_name,
            "-r",
            command.target.commit_id,
        ]

    if isinstance(command, CreateEmptyChange):
        if isinstance(command.target, NewBranchTarget):
            return ["new", command.target.from_commit_id]
        return ["new", *_placement_args(command.target)]

    if isinstance(command, AbandonChange):
        return ["abandon", "-r", command.commit_id]

    if isinstance(command, DescribeChange):
        return ["describe", "-r", command.commit_id, "-m", command.message]

    if isinstance(command, CheckoutChange):
        return ["edit", "-r", command.commit_id]

    if isinstance(command, UndoOperation):
        return ["undo"]

    if isinstance(command, RedoOperation):
        return ["redo"]

    raise CommandDispatchError(f"{command.action.value} cannot be expressed with the jj CLI")


class JujutsuDispatcher(CommandDispatcher):
    """Runs commands through the jj binary in a repository checkout."""

    def __init__(self, repo_path: str, jj_binary: str = "jj") -> None:
        self.repo_path = repo_path
        self.jj_binary = jj_binary

    def _environment(self) -> dict[str, str]:
        # jj must never block on an interactive editor
        env = dict(os.environ)
        for name in ("JJ_EDITOR", "EDITOR", "VISUAL", "GIT_EDITOR"):
            env.setdefault(name, "true")
        env.setdefault("JJ_UI", "text")
        return env

    def dispatch(self, command: DomainCommand) -> None:
        args = [self.jj_binary, *jj_arguments(command)]
        print(f"🚀 Executing: {' '.join(args)} in {self.repo_path}")

        try:
            subprocess.run(
                args,
                cwd=self.repo_path,
                env=self._environment(),
                check=True,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise CommandDispatchError(f"jj binary not found: {self.jj_binary}") from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise CommandDispatchError(stderr or f"jj exited with status {e.returncode}") from e

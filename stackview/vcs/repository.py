"""
Repository access using pygit2.

Reads the commit graph, per-commit statistics and diffs. Works on plain git
repositories and on the git store of jj repositories, where jj records the
change id and conflict state in extra commit headers.
"""

from pathlib import Path

import pygit2

from stackview.constants import CHANGE_ID_HEADER, CHANGE_ID_TRAILER
from stackview.vcs.types import (
    Author,
    BookmarkName,
    ChangeId,
    Commit,
    CommitGraph,
    CommitId,
    CommitStats,
    FileChange,
    FileStatus,
    build_commit_graph,
    normalize_description,
)

# jj stores conflicted trees in this header instead of a plain tree
CONFLICT_HEADER = "jj:trees"

STATUS_CHARS: dict[pygit2.enums.DeltaStatus, FileStatus] = {
    pygit2.enums.DeltaStatus.ADDED: "A",
    pygit2.enums.DeltaStatus.DELETED: "D",
    pygit2.enums.DeltaStatus.MODIFIED: "M",
    pygit2.enums.DeltaStatus.RENAMED: "R",
    pygit2.enums.DeltaStatus.COPIED: "C",
}


def parse_commit_headers(raw: bytes) -> dict[str, str]:
    """Parse the header block of a raw commit object.

    Continuation lines (starting with a space) are folded into the previous
    header; repeated headers keep their first value.
    """
    headers: dict[str, str] = {}
    last_key: str | None = None
    for line in raw.decode("utf-8", errors="replace").split("\n"):
        if not line:
            break
        if line.startswith(" ") and last_key is not None:
            headers[last_key] += "\n" + line[1:]
            continue
        key, _, value = line.partition(" ")
        if key not in headers:
            headers[key] = value
        last_key = key
    return headers


def extract_change_id(headers: dict[str, str], message: str, commit_id: str) -> str:
    """Find the change id: jj header, then Change-Id trailer, then the commit id."""
    if CHANGE_ID_HEADER in headers:
        return headers[CHANGE_ID_HEADER].strip()
    for line in reversed(message.strip().split("\n")):
        if line.startswith(CHANGE_ID_TRAILER):
            value = line[len(CHANGE_ID_TRAILER) :].strip()
            if value:
                return value
    return commit_id


class StackRepository:
    """Read-only view of a repository for the stack graph."""

    def __init__(self, repo_path: str | None = None) -> None:
        if repo_path is None:
            repo_path = self._find_repo()

        try:
            self.repo = pygit2.Repository(repo_path)
        except pygit2.GitError as e:
            raise ValueError(f"Not a git repository: {repo_path}") from e
        self.path = self.repo.workdir or self.repo.path

    def _find_repo(self) -> str:
        """Find repository in current directory or parents"""
        current = Path.cwd()
        while current != current.parent:
            if (current / ".git").exists():
                return str(current)
            current = current.parent
        raise ValueError("Not in a git repository")

    def watch_paths(self) -> list[str]:
        """Directories that change whenever the history may have moved.

        jj adds a file under its operation heads on every operation; git
        rewrites HEAD, packed-refs and branch refs by renaming lock files.
        Only existing directories are returned.
        """
        workdir = Path(self.path)
        gitdir = Path(self.repo.path)
        candidates = [
            workdir / ".jj" / "repo" / "op_heads" / "heads",
            gitdir,
            gitdir / "refs" / "heads",
        ]
        return [str(p) for p in candidates if p.is_dir()]

    def get_bookmarks(self) -> dict[CommitId, list[BookmarkName]]:
        """Map commit ids to the local branches (bookmarks) pointing at them."""
        tips: dict[CommitId, list[BookmarkName]] = {}
        for branch_name in self.repo.branches.local:
            branch = self.repo.branches[branch_name]
            commit = branch.peel(pygit2.Commit)
            tips.setdefault(CommitId(str(commit.id)), []).append(BookmarkName(branch_name))
        return tips

    def get_current_commit_id(self) -> CommitId | None:
        """Commit checked out in the working copy, if any."""
        if self.repo.head_is_unborn:
            return None
        return CommitId(str(self.repo.head.peel(pygit2.Commit).id))

    def _to_commit(self, c: pygit2.Commit, bookmarks: list[BookmarkName]) -> Commit:
        commit_id = str(c.id)
        headers = parse_commit_headers(c.read_raw())
        message = c.message or ""
        return Commit(
            commit_id=CommitId(commit_id),
            change_id=ChangeId(extract_change_id(headers, message, commit_id)),
            description=normalize_description(message),
            author=Author(name=c.author.name, email=c.author.email),
            timestamp=c.commit_time,
            has_conflicts=CONFLICT_HEADER in headers,
            parents=tuple(CommitId(str(p)) for p in c.parent_ids),
            bookmarks=tuple(bookmarks),
        )

    def load_commits(self, limit: int | None = None) -> list[Commit]:
        """Collect commits reachable from any local branch, newest first."""
        bookmarks = self.get_bookmarks()
        starts = [self.repo.branches[name].peel(pygit2.Commit) for name in self.repo.branches.local]
        current = self.get_current_commit_id()
        if current is not None:
            starts.append(self.repo[current])  # type: ignore[arg-type]
        if not starts:
            return []

        walker = self.repo.walk(starts[0].id, pygit2.enums.SortMode.TIME)
        for extra in starts[1:]:
            walker.push(extra.id)

        commits: list[Commit] = []
        for c in walker:
            if limit is not None and len(commits) >= limit:
                break
            commit_id = CommitId(str(c.id))
            commits.append(self._to_commit(c, bookmarks.get(commit_id, [])))
        return commits

    def load_commit_graph(self, limit: int | None = None) -> CommitGraph:
        """Load the commit graph. Parents outside the walk are dropped."""
        return build_commit_graph(self.load_commits(limit))

    def _get_commit(self, commit_id: str) -> pygit2.Commit:
        obj = self.repo[commit_id]
        if not isinstance(obj, pygit2.Commit):
            raise ValueError(f"{commit_id} is not a commit")
        return obj

    def _commit_diff(self, commit: pygit2.Commit) -> pygit2.Diff:
        if commit.parents:
            return self.repo.diff(commit.parents[0], commit)
        # Initial commit - diff against empty tree
        return commit.tree.diff_to_tree(swap=True)

    def get_commit_stats(self, commit_id: str) -> CommitStats:
        """Line additions and deletions of a commit against its first parent."""
        stats = self._commit_diff(self._get_commit(commit_id)).stats
        return CommitStats(additions=stats.insertions, deletions=stats.deletions)

    def get_file_changes(self, commit_id: str) -> list[FileChange]:
        """Files touched by a commit, with per-file line counts."""
        changes: list[FileChange] = []
        for patch in self._commit_diff(self._get_commit(commit_id)):
            delta = patch.delta
            path = delta.new_file.path or delta.old_file.path
            _, additions, deletions = patch.line_stats
            changes.append(
                FileChange(
                    path=path,
                    status=STATUS_CHARS.get(delta.status, "M"),
                    additions=additions,
                    deletions=deletions,
                )
            )
        return changes

    def get_commit_diff(self, commit_id: str) -> str:
        """Unified diff of the whole commit."""
        return self._commit_diff(self._get_commit(commit_id)).patch or ""

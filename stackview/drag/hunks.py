"""Unified diff helpers: hunk headers, hunk grouping and per-file splitting."""

import re
from dataclasses import dataclass

HUNK_HEADER_RE = re.compile(r"^@@ -\d+(?:,\d+)? \+(\d+)(?:,(\d+))? @@")


@dataclass(frozen=True)
class LineRange:
    """Inclusive, 1-indexed line range in the new version of a file."""

    start_line: int
    end_line: int


@dataclass(frozen=True)
class DiffHunk:
    header: str
    lines: tuple[str, ...]
    line_range: LineRange | None  # None disables dragging this hunk

    @property
    def is_draggable(self) -> bool:
        return self.line_range is not None


@dataclass(frozen=True)
class ParsedDiff:
    metadata: tuple[str, ...]
    hunks: tuple[DiffHunk, ...]


def parse_hunk_header(header: str) -> LineRange | None:
    """Parse '@@ -a[,b] +c[,d] @@' into the new-file range [c, c + d - 1].

    The count d defaults to 1. A zero count (pure deletion) yields an end
    line before the start line, matching the empty range in the new file.
    """
    match = HUNK_HEADER_RE.match(header)
    if not match:
        return None

    start_line = int(match.group(1))
    line_count = int(match.group(2)) if match.group(2) is not None else 1
    return LineRange(start_line=start_line, end_line=start_line + line_count - 1)


def group_diff_into_hunks(diff: str) -> ParsedDiff:
    """Split a single-file unified diff into its metadata lines and hunks."""
    metadata: list[str] = []
    hunks: list[DiffHunk] = []
    header: str | None = None
    lines: list[str] = []

    def flush() -> None:
        if header is not None:
            hunks.append(DiffHunk(header, tuple(lines), parse_hunk_header(header)))

    for line in diff.split("\n"):
        if line.startswith("@@"):
            flush()
            header = line
            lines = []
        elif header is None:
            metadata.append(line)
        else:
            lines.append(line)

    flush()
    return ParsedDiff(metadata=tuple(metadata), hunks=tuple(hunks))


def split_patch_by_file(patch: str) -> dict[str, str]:
    """Split a multi-file git patch into per-file diffs keyed by new path."""
    files: dict[str, str] = {}
    current_path: str | None = None
    current: list[str] = []

    def flush() -> None:
        if current_path is not None:
            files[current_path] = "\n".join(current)

    for line in patch.split("\n"):
        if line.startswith("diff --git "):
            flush()
            # "diff --git a/<old> b/<new>"
            _, _, new_part = line.rpartition(" b/")
            current_path = new_part
            current = [line]
        elif current_path is not None:
            current.append(line)

    flush()
    return files

"""
Drag payloads: wire format, resolution and the per-gesture drag session.

A drag carries one of several payload kinds. At drag start the source widget
records the resolved payload in a DragSession owned by the scene; drop
handlers consult that session first and only fall back to parsing the mime
data (or classifying foreign content) when no session is active, e.g. for
drags that come from another application.
"""

import math
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from stackview.constants import FILES_TYPE, JSON_MIME, TEXT_MIME, URI_LIST_MIME
from stackview.vcs.types import BookmarkName, ChangeId, CommitId, FileChange, FileStatus

# --- Wire format ---

_WIRE_CONFIG = ConfigDict(frozen=True, strict=True, extra="ignore", populate_by_name=True)


class ChangeDragData(BaseModel):
    model_config = _WIRE_CONFIG

    source: Literal["change"]
    change_id: str = Field(..., alias="changeId")
    commit_id: str = Field(..., alias="commitId")


class FileChangeData(BaseModel):
    model_config = _WIRE_CONFIG

    path: str
    status: FileStatus
    # JSON has a single number type; other writers may send 3.0
    additions: int | float | None = None
    deletions: int | float | None = None


class FileChangeDragData(BaseModel):
    model_config = _WIRE_CONFIG

    source: Literal["file-change"]
    file_change: FileChangeData = Field(..., alias="fileChange")
    from_change_id: str = Field(..., alias="fromChangeId")
    from_commit_id: str = Field(..., alias="fromCommitId")


class BookmarkDragData(BaseModel):
    model_config = _WIRE_CONFIG

    source: Literal["bookmark"]
    bookmark_name: str = Field(..., alias="bookmarkName")


class HunkDragData(BaseModel):
    model_config = _WIRE_CONFIG

    source: Literal["hunk"]
    file_path: str = Field(..., alias="filePath")
    start_line: int = Field(..., alias="startLine")
    end_line: int = Field(..., alias="endLine")
    from_commit_id: str = Field(..., alias="fromCommitId")


# --- Resolved payloads ---


@dataclass(frozen=True)
class ChangePayload:
    change_id: ChangeId
    commit_id: CommitId
    kind: ClassVar[str] = "change"


@dataclass(frozen=True)
class FileChangePayload:
    file: FileChange
    from_change_id: ChangeId
    from_commit_id: CommitId
    kind: ClassVar[str] = "file-change"


@dataclass(frozen=True)
class HunkPayload:
    """An inclusive, 1-indexed line range of one file in one commit."""

    file_path: str
    start_line: int
    end_line: int
    from_commit_id: CommitId
    kind: ClassVar[str] = "hunk"


@dataclass(frozen=True)
class BookmarkPayload:
    bookmark_name: BookmarkName
    kind: ClassVar[str] = "bookmark"


@dataclass(frozen=True)
class ExternalFilePayload:
    kind: ClassVar[str] = "external-file"


@dataclass(frozen=True)
class ExternalTextPayload:
    kind: ClassVar[str] = "external-text"


@dataclass(frozen=True)
class UnresolvedPayload:
    kind: ClassVar[str] = "unresolved"


DragPayload = (
    ChangePayload
    | FileChangePayload
    | HunkPayload
    | BookmarkPayload
    | ExternalFilePayload
    | ExternalTextPayload
    | UnresolvedPayload
)

# Payloads that originate inside the application and can become commands
InternalPayload = ChangePayload | FileChangePayload | HunkPayload | BookmarkPayload


@dataclass(frozen=True)
class TransferData:
    """Snapshot of what a drag event carries.

    types lists the declared content kinds in the order the source offered
    them; data holds the text for the kinds that were readable.
    """

    types: tuple[str, ...] = ()
    data: dict[str, str] = field(default_factory=dict)

    def get_data(self, mime_type: str) -> str | None:
        return self.data.get(mime_type)


# --- Parser chain ---


def _parse_change(text: str) -> ChangePayload | None:
    try:
        data = ChangeDragData.model_validate_json(text)
    except ValidationError:
        return None
    return ChangePayload(change_id=ChangeId(data.change_id), commit_id=CommitId(data.commit_id))


def _line_count(value: int | float | None) -> int | None:
    """Whole line count; fractional counts are truncated, non-finite ones dropped."""
    if value is None or not math.isfinite(value):
        return None
    return int(value)


def _parse_file_change(text: str) -> FileChangePayload | None:
    try:
        data = FileChangeDragData.model_validate_json(text)
    except ValidationError:
        return None
    fc = data.file_change
    return FileChangePayload(
        file=FileChange(
            path=fc.path,
            status=fc.status,
            additions=_line_count(fc.additions),
            deletions=_line_count(fc.deletions),
        ),
        from_change_id=ChangeId(data.from_change_id),
        from_commit_id=CommitId(data.from_commit_id),
    )


def _parse_bookmark(text: str) -> BookmarkPayload | None:
    try:
        data = BookmarkDragData.model_validate_json(text)
    except ValidationError:
        return None
    return BookmarkPayload(bookmark_name=BookmarkName(data.bookmark_name))


def _parse_hunk(text: str) -> HunkPayload | None:
    try:
        data = HunkDragData.model_validate_json(text)
    except ValidationError:
        return None
    return HunkPayload(
        file_path=data.file_path,
        start_line=data.start_line,
        end_line=data.end_line,
        from_commit_id=CommitId(data.from_commit_id),
    )


PayloadParser = Callable[[str], InternalPayload | None]

# Tried in order; the first parser that accepts the text wins
PAYLOAD_PARSERS: tuple[PayloadParser, ...] = (
    _parse_change,
    _parse_file_change,
    _parse_bookmark,
    _parse_hunk,
)


def parse_structured_payload(text: str) -> InternalPayload | None:
    """Run the parser chain over a JSON document. Never raises."""
    for parser in PAYLOAD_PARSERS:
        payload = parser(text)
        if payload is not None:
            return payload
    return None


def encode_drag_data(payload: InternalPayload) -> str:
    """Serialize a payload to the JSON written into the drag's mime data."""
    data: BaseModel
    if isinstance(payload, ChangePayload):
        data = ChangeDragData(source="change", change_id=payload.change_id, commit_id=payload.commit_id)
    elif isinstance(payload, FileChangePayload):
        data = FileChangeDragData(
            source="file-change",
            file_change=FileChangeData(
                path=payload.file.path,
                status=payload.file.status,
                additions=payload.file.additions,
                deletions=payload.file.deletions,
            ),
            from_change_id=payload.from_change_id,
            from_commit_id=payload.from_commit_id,
        )
    elif isinstance(payload, BookmarkPayload):
        data = BookmarkDragData(source="bookmark", bookmark_name=payload.bookmark_name)
    else:
        data = HunkDragData(
            source="hunk",
            file_path=payload.file_path,
            start_line=payload.start_line,
            end_line=payload.end_line,
            from_commit_id=payload.from_commit_id,
        )
    return data.model_dump_json(by_alias=True, exclude_none=True)


# --- Drag session ---


@dataclass(frozen=True)
class DragSession:
    """The payload of the one drag gesture currently in flight."""

    payload: InternalPayload
    serial: int


class DragSessionTracker:
    """Owns at most one DragSession at a time.

    The scene holds one tracker and hands it to every drag source and drop
    target. Starting a drag replaces whatever an interrupted gesture left
    behind.
    """

    def __init__(self) -> None:
        self._current: DragSession | None = None
        self._serial = 0

    @property
    def current(self) -> DragSession | None:
        return self._current

    def begin(self, payload: InternalPayload) -> DragSession:
        if self._current is not None:
            print(f"🧹 Discarding stale drag session #{self._current.serial}")
        self._serial += 1
        self._current = DragSession(payload=payload, serial=self._serial)
        return self._current

    def end(self, session: DragSession | None = None) -> None:
        """Clear the active session.

        With a session argument, only clears if it is still the active one,
        so a late end() from an old gesture cannot wipe a newer drag.
        """
        if session is not None and self._current is not session:
            return
        self._current = None

    @contextmanager
    def session(self, payload: InternalPayload) -> Iterator[DragSession]:
        """Scope a drag gesture; the session is cleared however the block exits."""
        active = self.begin(payload)
        try:
            yield active
        finally:
            self.end(active)


# --- Resolution ---


def resolve_drag_payload(
    transfer: TransferData | None,
    session: DragSession | None = None,
) -> DragPayload:
    """Classify a drag into exactly one payload kind. Never raises."""
    if session is not None:
        return session.payload

    if transfer is None:
        return UnresolvedPayload()

    text = transfer.get_data(JSON_MIME)
    if text:
        payload = parse_structured_payload(text)
        if payload is not None:
            return payload

    if FILES_TYPE in transfer.types or URI_LIST_MIME in transfer.types:
        return ExternalFilePayload()
    if TEXT_MIME in transfer.types:
        return ExternalTextPayload()
    return UnresolvedPayload()


@dataclass(frozen=True)
class DragState:
    """What the rendering layer needs to highlight during a drag."""

    kind: str | None = None
    commit_id: CommitId | None = None
    change_id: ChangeId | None = None
    file_path: str | None = None
    bookmark_name: BookmarkName | None = None

    @property
    def is_dragging(self) -> bool:
        return self.kind is not None

    @property
    def accepts_drops(self) -> bool:
        return self.kind in ("change", "file-change", "hunk", "bookmark")


def project_drag_state(payload: DragPayload | None) -> DragState:
    """Pure projection of a payload into display state."""
    if payload is None:
        return DragState()
    if isinstance(payload, ChangePayload):
        return DragState(kind=payload.kind, commit_id=payload.commit_id, change_id=payload.change_id)
    if isinstance(payload, FileChangePayload):
        return DragState(
            kind=payload.kind,
            commit_id=payload.from_commit_id,
            change_id=payload.from_change_id,
            file_path=payload.file.path,
        )
    if isinstance(payload, HunkPayload):
        return DragState(kind=payload.kind, commit_id=payload.from_commit_id, file_path=payload.file_path)
    if isinstance(payload, BookmarkPayload):
        return DragState(kind=payload.kind, bookmark_name=payload.bookmark_name)
    return DragState(kind=payload.kind)

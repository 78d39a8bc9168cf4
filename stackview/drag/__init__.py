"""Drag-and-drop resolution: payloads, drop zones and diff hunks"""

from stackview.drag.drop import (
    After,
    Before,
    Between,
    DropZonePosition,
    Existing,
    NewBranch,
    can_create_empty_change,
    create_empty_change,
    is_self_drop,
    position_to_target,
    resolve_drop,
)
from stackview.drag.hunks import DiffHunk, LineRange, ParsedDiff, group_diff_into_hunks, parse_hunk_header, split_patch_by_file
from stackview.drag.payload import (
    BookmarkPayload,
    ChangePayload,
    DragPayload,
    DragSession,
    DragSessionTracker,
    DragState,
    ExternalFilePayload,
    ExternalTextPayload,
    FileChangePayload,
    HunkPayload,
    TransferData,
    UnresolvedPayload,
    encode_drag_data,
    project_drag_state,
    resolve_drag_payload,
)

__all__ = [
    "After",
    "Before",
    "Between",
    "BookmarkPayload",
    "ChangePayload",
    "DiffHunk",
    "DragPayload",
    "DragSession",
    "DragSessionTracker",
    "DragState",
    "DropZonePosition",
    "Existing",
    "ExternalFilePayload",
    "ExternalTextPayload",
    "FileChangePayload",
    "HunkPayload",
    "LineRange",
    "NewBranch",
    "ParsedDiff",
    "TransferData",
    "UnresolvedPayload",
    "can_create_empty_change",
    "create_empty_change",
    "encode_drag_data",
    "group_diff_into_hunks",
    "is_self_drop",
    "parse_hunk_header",
    "position_to_target",
    "project_drag_state",
    "resolve_drag_payload",
    "split_patch_by_file",
]

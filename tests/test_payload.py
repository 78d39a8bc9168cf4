"""Tests for drag payload resolution and the drag session tracker."""

import json

import pytest

from stackview.constants import FILES_TYPE, JSON_MIME, TEXT_MIME, URI_LIST_MIME
from stackview.drag.payload import (
    BookmarkPayload,
    ChangePayload,
    DragSessionTracker,
    DragState,
    ExternalFilePayload,
    ExternalTextPayload,
    FileChangePayload,
    HunkPayload,
    TransferData,
    UnresolvedPayload,
    encode_drag_data,
    parse_structured_payload,
    project_drag_state,
    resolve_drag_payload,
)
from stackview.vcs.types import BookmarkName, ChangeId, CommitId, FileChange

CHANGE = ChangePayload(change_id=ChangeId("kxyz"), commit_id=CommitId("c1"))
FILE = FileChangePayload(
    file=FileChange(path="src/app.py", status="M", additions=3, deletions=1),
    from_change_id=ChangeId("kxyz"),
    from_commit_id=CommitId("c1"),
)
HUNK = HunkPayload(file_path="src/app.py", start_line=10, end_line=14, from_commit_id=CommitId("c1"))
BOOKMARK = BookmarkPayload(bookmark_name=BookmarkName("main"))


def json_transfer(document) -> TransferData:
    text = document if isinstance(document, str) else json.dumps(document)
    return TransferData(types=(JSON_MIME,), data={JSON_MIME: text})


class TestStructuredPayloads:
    """JSON documents written by the application's own drag sources."""

    def test_change(self):
        payload = resolve_drag_payload(json_transfer({"source": "change", "changeId": "kxyz", "commitId": "c1"}))
        assert payload == CHANGE

    def test_file_change(self):
        document = {
            "source": "file-change",
            "fileChange": {"path": "src/app.py", "status": "M", "additions": 3, "deletions": 1},
            "fromChangeId": "kxyz",
            "fromCommitId": "c1",
        }
        assert resolve_drag_payload(json_transfer(document)) == FILE

    def test_file_change_without_line_counts(self):
        document = {
            "source": "file-change",
            "fileChange": {"path": "new.txt", "status": "A"},
            "fromChangeId": "kxyz",
            "fromCommitId": "c1",
        }
        payload = resolve_drag_payload(json_transfer(document))
        assert isinstance(payload, FileChangePayload)
        assert payload.file.additions is None

    @pytest.mark.parametrize(
        "additions,deletions,expected",
        [
            (3.0, 1.0, (3, 1)),
            (1.5, 0, (1, 0)),
        ],
    )
    def test_file_change_with_float_line_counts(self, additions, deletions, expected):
        """Counts written as JSON floats still resolve to a file move."""
        document = {
            "source": "file-change",
            "fileChange": {"path": "src/app.py", "status": "M", "additions": additions, "deletions": deletions},
            "fromChangeId": "kxyz",
            "fromCommitId": "c1",
        }
        payload = resolve_drag_payload(json_transfer(document))
        assert isinstance(payload, FileChangePayload)
        assert (payload.file.additions, payload.file.deletions) == expected

    def test_bookmark(self):
        payload = resolve_drag_payload(json_transfer({"source": "bookmark", "bookmarkName": "main"}))
        assert payload == BOOKMARK

    def test_hunk(self):
        document = {"source": "hunk", "filePath": "src/app.py", "startLine": 10, "endLine": 14, "fromCommitId": "c1"}
        assert resolve_drag_payload(json_transfer(document)) == HUNK

    def test_extra_fields_are_ignored(self):
        document = {"source": "change", "changeId": "kxyz", "commitId": "c1", "origin": "elsewhere"}
        assert resolve_drag_payload(json_transfer(document)) == CHANGE

    @pytest.mark.parametrize("payload", [CHANGE, FILE, HUNK, BOOKMARK])
    def test_encoded_payload_resolves_to_itself(self, payload):
        """What a drag source writes is what a drop target reads back."""
        assert resolve_drag_payload(json_transfer(encode_drag_data(payload))) == payload

    def test_encoding_uses_wire_names(self):
        document = json.loads(encode_drag_data(HUNK))
        assert document == {
            "source": "hunk",
            "filePath": "src/app.py",
            "startLine": 10,
            "endLine": 14,
            "fromCommitId": "c1",
        }


class TestMalformedPayloads:
    """Anything the parsers reject falls through to content sniffing."""

    @pytest.mark.parametrize(
        "text",
        [
            "not json",
            "[]",
            "{}",
            '{"changeId": "kxyz", "commitId": "c1"}',  # missing source
            '{"source": "change", "changeId": "kxyz"}',  # missing commitId
            '{"source": "hunk", "filePath": "x", "startLine": "10", "endLine": 14, "fromCommitId": "c1"}',
            '{"source": "file-change", "fileChange": {"path": "x", "status": "Z"}, '
            '"fromChangeId": "k", "fromCommitId": "c"}',
            '{"source": "teleport", "commitId": "c1"}',
        ],
    )
    def test_rejected_documents_are_unresolved(self, text):
        assert parse_structured_payload(text) is None
        assert resolve_drag_payload(json_transfer(text)) == UnresolvedPayload()

    def test_rejected_json_with_text_is_external_text(self):
        transfer = TransferData(types=(JSON_MIME, TEXT_MIME), data={JSON_MIME: "{}", TEXT_MIME: "hello"})
        assert resolve_drag_payload(transfer) == ExternalTextPayload()


class TestForeignContent:
    def test_files_are_external_file(self):
        assert resolve_drag_payload(TransferData(types=(FILES_TYPE,))) == ExternalFilePayload()

    def test_uri_list_is_external_file(self):
        transfer = TransferData(types=(URI_LIST_MIME, TEXT_MIME), data={URI_LIST_MIME: "file:///tmp/x"})
        assert resolve_drag_payload(transfer) == ExternalFilePayload()

    def test_plain_text_is_external_text(self):
        transfer = TransferData(types=(TEXT_MIME,), data={TEXT_MIME: "some words"})
        assert resolve_drag_payload(transfer) == ExternalTextPayload()

    def test_empty_transfer_is_unresolved(self):
        assert resolve_drag_payload(TransferData()) == UnresolvedPayload()

    def test_missing_transfer_is_unresolved(self):
        assert resolve_drag_payload(None) == UnresolvedPayload()


class TestSessionPriority:
    """The in-process session beats whatever the transfer claims."""

    def test_session_wins_over_transfer(self):
        tracker = DragSessionTracker()
        session = tracker.begin(CHANGE)
        transfer = json_transfer({"source": "bookmark", "bookmarkName": "main"})

        assert resolve_drag_payload(transfer, session) == CHANGE

    def test_session_wins_over_missing_transfer(self):
        session = DragSessionTracker().begin(HUNK)
        assert resolve_drag_payload(None, session) == HUNK


class TestDragSessionTracker:
    def test_begin_and_end(self):
        tracker = DragSessionTracker()
        session = tracker.begin(CHANGE)

        assert tracker.current is session
        assert session.payload == CHANGE
        tracker.end()
        assert tracker.current is None

    def test_begin_replaces_stale_session(self):
        tracker = DragSessionTracker()
        first = tracker.begin(CHANGE)
        second = tracker.begin(BOOKMARK)

        assert tracker.current is second
        assert second.serial > first.serial

    def test_late_end_does_not_clear_newer_session(self):
        """Ending an interrupted gesture leaves the active one alone."""
        tracker = DragSessionTracker()
        first = tracker.begin(CHANGE)
        second = tracker.begin(BOOKMARK)

        tracker.end(first)
        assert tracker.current is second
        tracker.end(second)
        assert tracker.current is None

    def test_session_context_clears_on_error(self):
        tracker = DragSessionTracker()
        with pytest.raises(RuntimeError):
            with tracker.session(FILE) as session:
                assert tracker.current is session
                raise RuntimeError("drag aborted")
        assert tracker.current is None


class TestProjectDragState:
    """Display state is a pure function of the payload."""

    def test_idle(self):
        state = project_drag_state(None)
        assert state == DragState()
        assert not state.is_dragging
        assert not state.accepts_drops

    def test_change(self):
        state = project_drag_state(CHANGE)
        assert state == DragState(kind="change", commit_id=CommitId("c1"), change_id=ChangeId("kxyz"))
        assert state.accepts_drops

    def test_file_change_keeps_path(self):
        state = project_drag_state(FILE)
        assert state.kind == "file-change"
        assert state.file_path == "src/app.py"
        assert state.commit_id == "c1"

    def test_hunk(self):
        state = project_drag_state(HUNK)
        assert (state.kind, state.commit_id, state.file_path) == ("hunk", "c1", "src/app.py")

    def test_bookmark(self):
        assert project_drag_state(BOOKMARK).bookmark_name == "main"

    @pytest.mark.parametrize("payload", [ExternalFilePayload(), ExternalTextPayload(), UnresolvedPayload()])
    def test_foreign_payloads_do_not_accept_drops(self, payload):
        state = project_drag_state(payload)
        assert state.is_dragging
        assert not state.accepts_drops

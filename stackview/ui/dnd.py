"""Qt glue for drags: QMimeData conversion and the drag gesture itself."""

from collections.abc import Callable

from PySide6.QtCore import QMimeData, QObject, Qt
from PySide6.QtGui import QDrag

from stackview.constants import FILES_TYPE, JSON_MIME, TEXT_MIME, URI_LIST_MIME
from stackview.drag.payload import (
    DragSessionTracker,
    DragState,
    InternalPayload,
    TransferData,
    encode_drag_data,
    project_drag_state,
)

DragStateListener = Callable[[DragState], None]


def transfer_from_mime(mime: QMimeData | None) -> TransferData:
    """Snapshot a QMimeData into the toolkit-neutral TransferData."""
    if mime is None:
        return TransferData()

    types = list(mime.formats())
    if mime.hasUrls():
        if URI_LIST_MIME not in types:
            types.append(URI_LIST_MIME)
        if any(url.isLocalFile() for url in mime.urls()):
            types.append(FILES_TYPE)

    data: dict[str, str] = {}
    if mime.hasFormat(JSON_MIME):
        raw = bytes(mime.data(JSON_MIME).data())
        data[JSON_MIME] = raw.decode("utf-8", errors="replace")
    if mime.hasText():
        data[TEXT_MIME] = mime.text()

    return TransferData(types=tuple(types), data=data)


def mime_for_payload(payload: InternalPayload) -> QMimeData:
    mime = QMimeData()
    mime.setData(JSON_MIME, encode_drag_data(payload).encode("utf-8"))
    return mime


def run_drag(
    source: QObject,
    tracker: DragSessionTracker,
    payload: InternalPayload,
    on_state: DragStateListener | None = None,
) -> Qt.DropAction:
    """Run one drag gesture to completion.

    QDrag.exec() blocks until the drop or cancel, so the session covers the
    whole gesture and is cleared on every exit path.
    """
    drag = QDrag(source)
    drag.setMimeData(mime_for_payload(payload))

    with tracker.session(payload):
        if on_state is not None:
            on_state(project_drag_state(payload))
        try:
            return drag.exec(Qt.DropAction.MoveAction)
        finally:
            if on_state is not None:
                on_state(DragState())

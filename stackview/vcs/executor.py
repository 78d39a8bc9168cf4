"""
Command execution with an at-most-one-in-flight guarantee.

The executor owns a single slot. Anything that would create a new command
(drop zones, "new change" buttons) checks is_executing and stays disabled
while the slot is taken. Work runs inside claim(), which releases the slot on
every exit path. Listeners are called on the thread that claims the slot.
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from threading import BoundedSemaphore

from stackview.vcs.commands import CommandDispatcher

StateListener = Callable[[bool], None]


class CommandExecutor:
    """Guards command dispatch with a capacity-one semaphore."""

    def __init__(self, dispatcher: CommandDispatcher) -> None:
        self.dispatcher = dispatcher
        self._slot = BoundedSemaphore(1)
        self._executing = False
        self._listeners: list[StateListener] = []
        self.last_error: str | None = None

    @property
    def is_executing(self) -> bool:
        return self._executing

    def add_listener(self, listener: StateListener) -> None:
        """Register a callback invoked with the new is_executing value.

        Called from whichever thread takes or releases the slot.
        """
        self._listeners.append(listener)

    def _set_executing(self, value: bool) -> None:
        self._executing = value
        for listener in self._listeners:
            listener(value)

    def begin(self) -> bool:
        """Take the slot without blocking. Returns False if a command is running."""
        if not self._slot.acquire(blocking=False):
            return False
        self.last_error = None
        self._set_executing(True)
        return True

    def end(self, error: str | None = None) -> None:
        """Release the slot, recording the failure message if any."""
        self.last_error = error
        self._set_executing(False)
        self._slot.release()

    @contextmanager
    def claim(self) -> Iterator[bool]:
        """Hold the slot for the duration of the block.

        Yields False (and holds nothing) when another command is running.
        """
        if not self.begin():
            yield False
            return
        error: str | None = None
        try:
            yield True
        except Exception as e:
            error = str(e) or type(e).__name__
            raise
        finally:
            self.end(error)

"""
Background worker classes for the stack graph window.

These QObject workers run in separate threads to handle:
- Per-stack statistics collection
- Command dispatch to jj
"""

from typing import TYPE_CHECKING

from PySide6.QtCore import QObject, Signal

from stackview.vcs.commands import CommandDispatchError

if TYPE_CHECKING:
    from stackview.vcs.commands import DomainCommand
    from stackview.vcs.executor import CommandExecutor
    from stackview.vcs.stats import StatsCollector
    from stackview.vcs.types import CommitId


class StatsWorker(QObject):
    """Worker collecting stats stack by stack in background"""

    stack_ready = Signal(str, object)  # (stack_id, StatsResult)
    finished = Signal(int)  # Emitted with the generation when all stacks are done
    error = Signal(str)

    def __init__(
        self,
        collector: "StatsCollector",
        batches: list[tuple[str, list["CommitId"]]],
        generation: int,
    ) -> None:
        super().__init__()
        self.collector = collector
        self.batches = batches
        self.generation = generation
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def run(self) -> None:
        """Collect every batch, emitting each stack's result as one unit"""
        try:
            for stack_id, commit_ids in self.batches:
                if self._cancelled or self.collector.generation != self.generation:
                    break
                result = self.collector.collect(commit_ids, generation=self.generation)
                self.stack_ready.emit(stack_id, result)
            self.finished.emit(self.generation)
        except Exception as e:
            import traceback

            print(f"❌ StatsWorker error: {e}")
            traceback.print_exc()
            self.error.emit(str(e))


class CommandWorker(QObject):
    """Worker dispatching one command while holding the executor slot"""

    finished = Signal(str)  # Command description
    error = Signal(str, str)  # (command description, error message)

    def __init__(self, executor: "CommandExecutor", command: "DomainCommand") -> None:
        super().__init__()
        self.executor = executor
        self.command = command

    def run(self) -> None:
        description = self.command.description()
        try:
            with self.executor.claim() as acquired:
                if not acquired:
                    print(f"⏳ Command ignored, another is running: {description}")
                    self.error.emit(description, "Another command is still running")
                    return
                self.executor.dispatcher.dispatch(self.command)
        except CommandDispatchError as e:
            print(f"❌ Command failed: {description}: {e}")
            self.error.emit(description, str(e))
            return
        except Exception as e:
            import traceback

            print(f"❌ CommandWorker error: {e}")
            traceback.print_exc()
            self.error.emit(description, str(e))
            return
        print(f"✅ {description}")
        self.finished.emit(description)

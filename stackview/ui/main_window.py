"""
Main window for stackview - stack graph on the left, diff panel on the right
"""

from pathlib import Path

from PySide6.QtCore import QFileSystemWatcher, QPoint, QThread, Qt, QTimer, Signal
from PySide6.QtWidgets import (
    QInputDialog,
    QLabel,
    QMainWindow,
    QMenu,
    QMessageBox,
    QSplitter,
    QStatusBar,
    QWidget,
)

from stackview.config.settings import Settings
from stackview.drag.payload import DragSessionTracker, InternalPayload
from stackview.ui.diff_panel import DiffPanel
from stackview.ui.stack_graph import StackGraphScene, StackGraphView
from stackview.ui.workers import CommandWorker, StatsWorker
from stackview.vcs.commands import (
    AbandonChange,
    CheckoutChange,
    DescribeChange,
    DomainCommand,
    JujutsuDispatcher,
    RedoOperation,
    UndoOperation,
)
from stackview.vcs.executor import CommandExecutor
from stackview.vcs.repository import StackRepository
from stackview.vcs.stats import StatsCollector, StatsResult, filter_present
from stackview.vcs.types import Commit, CommitId


class MainWindow(QMainWindow):
    """Main application window"""

    # Executor listeners run on the command thread; this hops to the GUI thread
    executing_changed = Signal(bool)

    def __init__(
        self,
        repo_path: str | None = None,
        commit_limit: int | None = None,
        settings: Settings | None = None,
    ) -> None:
        super().__init__()
        self.setGeometry(100, 100, 1400, 900)

        self.settings = settings or Settings()

        # Raises ValueError outside a repository
        self.repo = StackRepository(repo_path)
        self.setWindowTitle(f"stackview - {Path(self.repo.path).name}")

        self.tracker = DragSessionTracker()
        self.executor = CommandExecutor(JujutsuDispatcher(self.repo.path, self.settings.get_jj_binary()))
        self.executing_changed.connect(self._on_executing_changed)
        self.executor.add_listener(self.executing_changed.emit)
        self.stats_collector = StatsCollector(
            self.repo.get_commit_stats, max_workers=self.settings.get_stats_workers()
        )

        # Superseded stats threads keep running until they notice the new generation
        self._stats_threads: list[tuple[QThread, StatsWorker]] = []
        self.stats_worker: StatsWorker | None = None
        self.command_thread: QThread | None = None
        self.command_worker: CommandWorker | None = None

        self.scene = StackGraphScene(
            self.repo,
            self.executor,
            self.tracker,
            commit_limit=commit_limit or self.settings.get_commit_limit(),
        )
        self.scene.command_requested.connect(self._run_command)
        self.scene.commit_selected.connect(self._on_commit_selected)
        self.scene.commit_menu_requested.connect(self._show_commit_menu)
        self.scene.reloaded.connect(self._on_reloaded)

        self._setup_ui()
        self._setup_menus()
        self._setup_watcher()
        self.refresh()

    def _setup_ui(self) -> None:
        splitter = QSplitter(Qt.Orientation.Horizontal)
        self.setCentralWidget(splitter)

        self.graph_view = StackGraphView(self.scene, zoom=self.settings.get_zoom())
        splitter.addWidget(self.graph_view)

        self.diff_panel = DiffPanel(self.repo, self._run_drag)
        splitter.addWidget(self.diff_panel)
        splitter.setSizes([900, 500])

        # Status bar
        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.status_bar.showMessage("Ready")

        self.executing_label = QLabel("")
        self.executing_label.setToolTip("A jj command is running; drops are disabled")
        self.status_bar.addPermanentWidget(self.executing_label)

    def _setup_menus(self) -> None:
        menubar = self.menuBar()

        file_menu = menubar.addMenu("&File")
        file_menu.addAction("&Refresh", self.refresh).setShortcut("F5")
        file_menu.addSeparator()
        file_menu.addAction("E&xit", self.close)

        edit_menu = menubar.addMenu("&Edit")
        self.undo_action = edit_menu.addAction("&Undo Operation", lambda: self._run_command(UndoOperation()))
        self.undo_action.setShortcut("Ctrl+Z")
        self.redo_action = edit_menu.addAction("&Redo Operation", lambda: self._run_command(RedoOperation()))
        self.redo_action.setShortcut("Ctrl+Shift+Z")

        view_menu = menubar.addMenu("&View")
        view_menu.addAction("Zoom &In", self.graph_view.zoom_in).setShortcut("Ctrl++")
        view_menu.addAction("Zoom &Out", self.graph_view.zoom_out).setShortcut("Ctrl+-")
        view_menu.addAction("&Actual Size", self.graph_view.reset_zoom).setShortcut("Ctrl+0")
        view_menu.addAction("&Fit Graph", self.graph_view.fit_in_view).setShortcut("Ctrl+F")

    def _run_drag(self, payload: InternalPayload, source: QWidget) -> None:
        self.scene.start_drag(payload, source)

    # --- Refresh and stats ---

    def refresh(self) -> None:
        """Reload the graph from the repository."""
        self.scene.reload()

    def _setup_watcher(self) -> None:
        """Refresh when jj or git changes the repository behind our back"""
        self._refresh_timer = QTimer(self)
        self._refresh_timer.setSingleShot(True)
        self._refresh_timer.setInterval(self.settings.get_watch_debounce_ms())
        self._refresh_timer.timeout.connect(self._on_watched_change_settled)

        self.watcher = QFileSystemWatcher(self)
        if not self.settings.get_watch_enabled():
            return
        paths = self.repo.watch_paths()
        if paths:
            print(f"📁 Watching {len(paths)} repository paths for changes")
            self.watcher.addPaths(paths)
        self.watcher.directoryChanged.connect(self._on_watched_change)

    def _on_watched_change(self, path: str) -> None:
        # Restarting the timer folds a burst of writes into one refresh
        self._refresh_timer.start()

    def _on_watched_change_settled(self) -> None:
        if self.executor.is_executing or self.command_thread is not None:
            # The finished command refreshes anyway
            return
        print("📝 Repository changed on disk, refreshing")
        self.refresh()

    def _on_reloaded(self) -> None:
        commit_id = self.diff_panel.commit_id
        if commit_id is not None:
            node = self.scene.commit_graph.get(CommitId(commit_id))
            if node is None:
                self.diff_panel.clear()
            else:
                self.diff_panel.show_commit(node.commit)
        self._start_stats()

    def _start_stats(self) -> None:
        """Start collecting stats for the current graph, superseding older runs"""
        generation = self.stats_collector.next_generation()
        if self.stats_worker is not None:
            self.stats_worker.cancel()

        thread = QThread()
        worker = StatsWorker(self.stats_collector, self.scene.stats_batches(), generation)
        worker.moveToThread(thread)

        worker.stack_ready.connect(self._on_stack_stats)
        worker.finished.connect(thread.quit)
        worker.error.connect(thread.quit)
        thread.finished.connect(lambda: self._on_stats_thread_finished(thread))
        thread.started.connect(worker.run)

        self.stats_worker = worker
        self._stats_threads.append((thread, worker))
        thread.start()

    def _on_stats_thread_finished(self, thread: QThread) -> None:
        self._stats_threads = [(t, w) for t, w in self._stats_threads if t is not thread]
        if not self._stats_threads:
            self.stats_worker = None

    def _on_stack_stats(self, stack_id: str, result: StatsResult) -> None:
        if not self.stats_collector.is_current(result):
            return
        stats = filter_present(result, self.scene.commit_graph)
        self.scene.apply_stack_stats(stack_id, stats)

    # --- Commands ---

    def _on_executing_changed(self, executing: bool) -> None:
        self.scene.set_executing(executing)
        self.undo_action.setEnabled(not executing)
        self.redo_action.setEnabled(not executing)
        self.executing_label.setText("⏳ Executing…" if executing else "")

    def _run_command(self, command: DomainCommand) -> None:
        """Dispatch a command in background, at most one at a time.

        The worker holds the executor slot while jj runs, so a command that
        never starts never takes the slot.
        """
        if self.executor.is_executing or self.command_thread is not None:
            self.status_bar.showMessage("Another command is still running", 3000)
            return

        description = command.description()
        self.status_bar.showMessage(f"Running: {description}")

        self.command_thread = QThread()
        self.command_worker = CommandWorker(self.executor, command)
        self.command_worker.moveToThread(self.command_thread)

        self.command_worker.finished.connect(self._on_command_finished)
        self.command_worker.error.connect(self._on_command_error)
        self.command_thread.started.connect(self.command_worker.run)

        self.command_thread.start()

    def _cleanup_command_thread(self) -> None:
        if self.command_thread:
            self.command_thread.quit()
            self.command_thread.wait()
            self.command_thread = None
            self.command_worker = None

    def _on_command_finished(self, description: str) -> None:
        self._cleanup_command_thread()
        # Our own command already accounts for what the watcher saw
        self._refresh_timer.stop()
        self.status_bar.showMessage(f"Done: {description}", 5000)
        self.refresh()

    def _on_command_error(self, description: str, message: str) -> None:
        self._cleanup_command_thread()
        self._refresh_timer.stop()
        self.status_bar.showMessage(f"Failed: {description}")
        QMessageBox.warning(self, "Command Failed", f"{description}\n\n{message}")
        # jj may have changed the repository before failing
        self.refresh()

    def _show_commit_menu(self, commit_id: str, pos: QPoint) -> None:
        """Per-commit edits that are not expressed as drags"""
        node = self.scene.commit_graph.get(CommitId(commit_id))
        if node is None:
            return
        commit = node.commit

        menu = QMenu(self)
        edit_action = menu.addAction("Edit (make working copy)")
        edit_action.triggered.connect(lambda: self._run_command(CheckoutChange(commit.commit_id)))
        describe_action = menu.addAction("Describe...")
        describe_action.triggered.connect(lambda: self._describe_commit(commit))
        menu.addSeparator()
        abandon_action = menu.addAction("Abandon...")
        abandon_action.triggered.connect(lambda: self._abandon_commit(commit))

        if self.executor.is_executing:
            for action in (edit_action, describe_action, abandon_action):
                action.setEnabled(False)
        menu.exec(pos)

    def _describe_commit(self, commit: Commit) -> None:
        message, ok = QInputDialog.getMultiLineText(
            self, "Describe Change", f"Description for {commit.change_id[:8]}:", commit.description
        )
        if ok and message.strip() and message != commit.description:
            self._run_command(DescribeChange(commit_id=commit.commit_id, message=message))

    def _abandon_commit(self, commit: Commit) -> None:
        result = QMessageBox.question(
            self,
            "Abandon Change",
            f"Abandon {commit.change_id[:8]} ({commit.summary})?\n\n"
            "Its children are rebased onto its parent. Use Undo to restore it.",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        if result == QMessageBox.StandardButton.Yes:
            self._run_command(AbandonChange(commit_id=commit.commit_id))

    def closeEvent(self, event: object) -> None:  # noqa: N802
        self.settings.set("ui.zoom", self.graph_view.zoom)
        try:
            self.settings.save()
        except OSError as e:
            print(f"⚠️  Could not save settings: {e}")
        self._refresh_timer.stop()
        if self.stats_worker is not None:
            self.stats_worker.cancel()
        for thread, _ in list(self._stats_threads):
            thread.quit()
            thread.wait()
        self._cleanup_command_thread()
        super().closeEvent(event)  # type: ignore[arg-type]

    def _on_commit_selected(self, commit_id: str) -> None:
        node = self.scene.commit_graph.get(CommitId(commit_id))
        if node is None:
            return
        self.diff_panel.show_commit(node.commit)
        stack = self.scene.stack_graph.stack_of(node.commit.commit_id)
        if stack is not None:
            position = stack.commits.index(node.commit.commit_id) + 1
            self.status_bar.showMessage(
                f"{node.commit.short_id}: {position} of {len(stack.commits)} in {stack.id}"
            )

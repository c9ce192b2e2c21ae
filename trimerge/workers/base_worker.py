"""
Background execution for merge jobs.

A merge job is a `BaseWorker` subclass with a `do_work` method. The
worker moves through PENDING -> RUNNING -> COMPLETED | FAILED |
CANCELLED and reports each transition on `signals.state_changed`.
A cancel request while running passes through CANCELLING first.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Any, Optional

from PyQt6.QtCore import QObject, QThread, Qt, pyqtSignal, pyqtSlot, QMutex, QMutexLocker


class WorkerState(Enum):
    """Lifecycle of a merge job."""
    PENDING = auto()
    RUNNING = auto()
    CANCELLING = auto()
    CANCELLED = auto()
    COMPLETED = auto()
    FAILED = auto()


class WorkerSignals(QObject):
    """Notifications a merge job sends to whoever started it."""
    progress = pyqtSignal(int, int, str)   # (step, steps, message)
    status = pyqtSignal(str)
    started = pyqtSignal()
    finished = pyqtSignal(object)          # job result
    error = pyqtSignal(str, str)           # (exception name, message)
    cancelled = pyqtSignal()
    state_changed = pyqtSignal(object)     # WorkerState


class CancelledException(Exception):
    """Raised inside `do_work` to abandon a cancelled job."""


class WorkerMeta(type(QObject), type(ABC)):
    pass


class BaseWorker(QObject, ABC, metaclass=WorkerMeta):
    """
    A merge job that can run on its own thread.

    `run()` may be called directly, or from a `WorkerThread`:

        worker = MergeFilesWorker(base, ours, theirs)
        worker.signals.finished.connect(show_result)
        thread = WorkerThread(worker)
        thread.start()
    """

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.signals = WorkerSignals()
        self._mutex = QMutex()
        self._state = WorkerState.PENDING
        self._cancel_requested = False
        self._result: Any = None
        self._error: Optional[tuple[str, str]] = None

    @property
    def state(self) -> WorkerState:
        with QMutexLocker(self._mutex):
            return self._state

    def _set_state(self, state: WorkerState) -> None:
        with QMutexLocker(self._mutex):
            self._state = state
        logging.debug(f"{type(self).__name__} - {state.name}")
        self.signals.state_changed.emit(state)

    @property
    def is_cancelled(self) -> bool:
        with QMutexLocker(self._mutex):
            return self._cancel_requested

    @property
    def result(self) -> Any:
        """What `do_work` returned, once COMPLETED."""
        return self._result

    @property
    def error(self) -> Optional[tuple[str, str]]:
        """(exception name, message), once FAILED."""
        return self._error

    def cancel(self) -> None:
        """Ask the job to stop. A result produced after this is thrown away."""
        with QMutexLocker(self._mutex):
            self._cancel_requested = True
            if self._state != WorkerState.RUNNING:
                return
            self._state = WorkerState.CANCELLING
        self.signals.state_changed.emit(WorkerState.CANCELLING)

    @pyqtSlot()
    def run(self) -> None:
        """Execute `do_work` and publish its outcome. Subclasses implement `do_work`."""
        with QMutexLocker(self._mutex):
            cancelled_early = self._cancel_requested
        if cancelled_early:
            self._finish_cancelled()
            return

        self._set_state(WorkerState.RUNNING)
        self.signals.started.emit()

        try:
            result = self.do_work()
        except CancelledException:
            self._finish_cancelled()
            return
        except Exception as e:
            name = type(e).__name__
            logging.error(f"{type(self).__name__} - Failed: {name}: {e}")
            self._error = (name, str(e))
            self._set_state(WorkerState.FAILED)
            self.signals.error.emit(name, str(e))
            return

        if self.is_cancelled:
            self._finish_cancelled()
            return

        self._result = result
        self._set_state(WorkerState.COMPLETED)
        self.signals.finished.emit(result)

    def _finish_cancelled(self) -> None:
        self._set_state(WorkerState.CANCELLED)
        self.signals.cancelled.emit()

    @abstractmethod
    def do_work(self) -> Any:
        """
        Do the job and return its result.

        Long jobs call `check_cancelled` between steps.
        """

    def report_progress(self, current: int, total: int, message: str = "") -> None:
        self.signals.progress.emit(current, total, message)

    def report_status(self, message: str) -> None:
        self.signals.status.emit(message)

    def check_cancelled(self) -> None:
        """Abandon the job if `cancel` has been called."""
        if self.is_cancelled:
            raise CancelledException("Merge cancelled")


class WorkerThread(QThread):
    """
    Hosts one worker on a dedicated QThread.

    The thread's event loop stops as soon as the worker reaches a
    terminal state, so `wait()` returns without a running main loop.
    """

    def __init__(self, worker: BaseWorker, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.worker = worker
        self.worker.moveToThread(self)

        self.started.connect(self.worker.run)
        direct = Qt.ConnectionType.DirectConnection
        self.worker.signals.finished.connect(self.quit, type=direct)
        self.worker.signals.error.connect(self.quit, type=direct)
        self.worker.signals.cancelled.connect(self.quit, type=direct)

    def cancel(self) -> None:
        self.worker.cancel()

    @property
    def result(self) -> Any:
        return self.worker.result

    @property
    def error(self) -> Optional[tuple[str, str]]:
        return self.worker.error

"""Cancellable, progress-reporting tasks.

A task runs once on a worker thread. Callers poll ``status``,
``finished_percentage`` and ``task_description`` (or register a status
listener) and may request cancellation at any time. Cancellation is
cooperative: the task checks its ``CancellationToken`` between units of
work and ends in ``TaskStatus.CANCELED`` without publishing results.

Subclasses implement ``process()`` and, if they publish anything, ``commit()``.
``run()`` owns the status transitions and turns exceptions into
``TaskStatus.ERROR`` plus a message. ``commit()`` runs only after the last
cancellation check; from then on ``cancel()`` is ignored and the task ends
in ``TaskStatus.FINISHED``, so a published result is never reported as
canceled.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


class TaskStatus(Enum):
    WAITING = "waiting"
    PROCESSING = "processing"
    FINISHED = "finished"
    CANCELED = "canceled"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.FINISHED, TaskStatus.CANCELED, TaskStatus.ERROR)


class CancellationToken:
    """Caller-settable cancellation flag shared with the worker."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def __bool__(self) -> bool:
        return self._event.is_set()


StatusListener = Callable[["AbstractTask", TaskStatus, TaskStatus], None]


class AbstractTask(ABC):
    """Base class of all background tasks.

    Parameters
    ----------
    cancel_token : CancellationToken, optional
        Token to observe; a private one is created if omitted
    """

    def __init__(self, cancel_token: Optional[CancellationToken] = None):
        self.cancel_token = cancel_token if cancel_token is not None else CancellationToken()
        self._status = TaskStatus.WAITING
        self._error_message: Optional[str] = None
        self._progress = 0.0
        self._description = ""
        self._listeners: List[StatusListener] = []
        self._lock = threading.Lock()
        self._commit_lock = threading.Lock()
        self._committing = False
        self.result: Any = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self._status.name}, progress={self._progress:.0%})"

    # ------------------------------------------------------------------
    # State polled by callers
    # ------------------------------------------------------------------

    @property
    def status(self) -> TaskStatus:
        return self._status

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def finished_percentage(self) -> float:
        """Fraction done in [0, 1]; never decreases."""
        return self._progress

    @property
    def task_description(self) -> str:
        return self._description

    def add_status_listener(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def remove_status_listener(self, listener: StatusListener) -> None:
        self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Used by subclasses
    # ------------------------------------------------------------------

    def set_progress(self, fraction: float) -> None:
        """Raise progress to ``fraction`` (clamped to [0, 1], never lowered)."""
        fraction = min(max(float(fraction), 0.0), 1.0)
        with self._lock:
            if fraction > self._progress:
                self._progress = fraction

    def set_description(self, description: str) -> None:
        self._description = description

    def set_status(self, status: TaskStatus) -> None:
        with self._lock:
            old = self._status
            if old == status or old.is_terminal:
                return
            self._status = status
        for listener in list(self._listeners):
            try:
                listener(self, old, status)
            except Exception:
                logger.exception(f"Status listener failed for {self}")

    def set_error(self, message: str) -> None:
        self._error_message = message
        self.set_status(TaskStatus.ERROR)

    def cancel(self) -> None:
        """Request cancellation; a waiting task is canceled right away.

        Ignored once the task has started publishing its result.
        """
        with self._commit_lock:
            if self._committing:
                logger.debug(f"Cancel of {self!r} ignored, result is being published")
                return
            self.cancel_token.cancel()
        if self._status == TaskStatus.WAITING:
            self.set_status(TaskStatus.CANCELED)

    def is_canceled(self) -> bool:
        return self.cancel_token.is_cancelled or self._status == TaskStatus.CANCELED

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    @abstractmethod
    def process(self) -> Any:
        """Do the work. Return None if cancellation was observed."""

    def commit(self, result: Any) -> None:
        """Publish ``result``. Called once, after the final cancellation check."""

    def run(self) -> None:
        """Execute the task once, recording its terminal status."""
        if self._status != TaskStatus.WAITING:
            return
        if self.is_canceled():
            self.set_status(TaskStatus.CANCELED)
            return

        self.set_status(TaskStatus.PROCESSING)
        start = time.perf_counter()
        try:
            result = self.process()
        except Exception as e:
            logger.exception(f"{self.task_description or type(self).__name__} failed")
            self.set_error(str(e) or type(e).__name__)
            return

        with self._commit_lock:
            canceled = self.is_canceled()
            if not canceled:
                self._committing = True
        if canceled:
            self.set_status(TaskStatus.CANCELED)
            logger.info(f"{type(self).__name__} canceled after {time.perf_counter() - start:.2f}s")
            return

        try:
            self.commit(result)
        except Exception as e:
            logger.exception(f"Publishing the result of {type(self).__name__} failed")
            self.set_error(str(e) or type(e).__name__)
            return

        self.result = result
        self.set_progress(1.0)
        self.set_status(TaskStatus.FINISHED)
        logger.info(f"{type(self).__name__} finished in {time.perf_counter() - start:.2f}s")

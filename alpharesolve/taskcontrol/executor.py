"""Run tasks on a worker thread pool and hand back a future-like handle.

Examples
--------
>>> with TaskExecutor(max_workers=2) as executor:
...     handle = executor.submit(task)
...     result = handle.result(timeout=60)
>>> result.status
<TaskStatus.FINISHED: 'finished'>
"""

import logging
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Any, Optional

from .task import AbstractTask, TaskStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskResult:
    """Terminal outcome of a task."""

    status: TaskStatus
    error_message: Optional[str] = None
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.status == TaskStatus.FINISHED


class TaskHandle:
    """Handle of a submitted task: cancel it, wait for it, get its result."""

    def __init__(self, task: AbstractTask, future: Future):
        self.task = task
        self._future = future

    def __repr__(self) -> str:
        return f"TaskHandle({self.task!r})"

    @property
    def status(self) -> TaskStatus:
        return self.task.status

    @property
    def progress(self) -> float:
        return self.task.finished_percentage

    @property
    def description(self) -> str:
        return self.task.task_description

    def cancel(self) -> None:
        """Request cooperative cancellation; never interrupts a row mid-way."""
        self.task.cancel()
        self._future.cancel()

    def done(self) -> bool:
        return self._future.done() or self.task.status.is_terminal

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the task ends. Returns False on timeout."""
        try:
            self._future.result(timeout=timeout)
        except CancelledError:
            # Never started; the task itself is already CANCELED
            pass
        except FutureTimeout:
            return False
        return True

    def result(self, timeout: Optional[float] = None) -> TaskResult:
        """Wait and return the outcome. Task failures surface as ERROR status.

        Raises
        ------
        TimeoutError
            If the task did not end within ``timeout`` seconds
        """
        if not self.wait(timeout):
            raise TimeoutError(f"{self.task!r} still running after {timeout}s")
        task = self.task
        value = task.result if task.status == TaskStatus.FINISHED else None
        return TaskResult(task.status, task.error_message, value)


class TaskExecutor:
    """Thread pool running ``AbstractTask`` instances.

    Parameters
    ----------
    max_workers : int, optional
        Pool size (default: ``concurrent.futures`` default)
    """

    def __init__(self, max_workers: Optional[int] = None):
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="alpharesolve")

    def __enter__(self) -> "TaskExecutor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown(wait=True)

    def submit(self, task: AbstractTask) -> TaskHandle:
        logger.debug(f"Submitting {task!r}")
        future = self._pool.submit(task.run)
        return TaskHandle(task, future)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)

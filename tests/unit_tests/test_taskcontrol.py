"""Tests for task status handling, cancellation and the executor."""

import threading

import pytest

from alpharesolve.taskcontrol import (
    AbstractTask,
    CancellationToken,
    TaskExecutor,
    TaskStatus,
)


class CountingTask(AbstractTask):
    """Processes ``n`` units, checking for cancellation before each."""

    def __init__(self, n=4, fail_at=None, cancel_token=None):
        super().__init__(cancel_token)
        self.n = n
        self.fail_at = fail_at
        self.processed = 0

    def process(self):
        for i in range(self.n):
            if self.is_canceled():
                return None
            if i == self.fail_at:
                raise RuntimeError(f"unit {i} failed")
            self.processed += 1
            self.set_progress((i + 1) / self.n)
        return self.processed


class BlockingTask(AbstractTask):
    """Waits until released, then ends cooperatively."""

    def __init__(self):
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def process(self):
        self.started.set()
        self.release.wait(timeout=10)
        if self.is_canceled():
            return None
        return "done"


class PublishingTask(CountingTask):
    """Records what it publishes; optionally cancels itself while doing so."""

    def __init__(self, cancel_in_commit=False, fail_in_commit=False):
        super().__init__()
        self.cancel_in_commit = cancel_in_commit
        self.fail_in_commit = fail_in_commit
        self.published = []

    def commit(self, result):
        if self.cancel_in_commit:
            self.cancel()
        if self.fail_in_commit:
            raise RuntimeError("publish failed")
        self.published.append(result)


class TestAbstractTask:
    """Test status transitions."""

    def test_finished(self):
        task = CountingTask()
        assert task.status == TaskStatus.WAITING
        task.run()

        assert task.status == TaskStatus.FINISHED
        assert task.result == 4
        assert task.finished_percentage == 1.0
        assert task.error_message is None

    def test_error(self):
        task = CountingTask(fail_at=2)
        task.run()

        assert task.status == TaskStatus.ERROR
        assert task.error_message == "unit 2 failed"
        assert task.result is None

    def test_cancel_before_run(self):
        task = CountingTask()
        task.cancel()
        assert task.status == TaskStatus.CANCELED

        task.run()
        assert task.status == TaskStatus.CANCELED
        assert task.processed == 0

    def test_shared_token(self):
        token = CancellationToken()
        task = CountingTask(cancel_token=token)
        token.cancel()
        task.run()
        assert task.status == TaskStatus.CANCELED
        assert bool(token)

    def test_runs_once(self):
        task = CountingTask()
        task.run()
        task.run()
        assert task.processed == 4

    def test_terminal_status_is_final(self):
        task = CountingTask()
        task.run()
        task.set_status(TaskStatus.PROCESSING)
        task.cancel()
        assert task.status == TaskStatus.FINISHED

    def test_commit_after_process(self):
        task = PublishingTask()
        task.run()
        assert task.published == [4]
        assert task.status == TaskStatus.FINISHED

    def test_cancel_during_commit_ignored(self):
        task = PublishingTask(cancel_in_commit=True)
        task.run()

        assert task.published == [4]
        assert task.status == TaskStatus.FINISHED
        assert not task.cancel_token.is_cancelled
        assert task.result == 4

    def test_no_commit_when_canceled(self):
        task = PublishingTask()
        task.add_status_listener(
            lambda t, old, new: t.cancel() if new == TaskStatus.PROCESSING else None
        )
        task.run()

        assert task.status == TaskStatus.CANCELED
        assert task.published == []
        assert task.result is None

    def test_commit_error(self):
        task = PublishingTask(fail_in_commit=True)
        task.run()

        assert task.status == TaskStatus.ERROR
        assert task.error_message == "publish failed"
        assert task.result is None

    def test_listeners(self):
        task = CountingTask()
        transitions = []
        task.add_status_listener(lambda t, old, new: transitions.append((old, new)))
        task.run()

        assert transitions == [
            (TaskStatus.WAITING, TaskStatus.PROCESSING),
            (TaskStatus.PROCESSING, TaskStatus.FINISHED),
        ]

    def test_failing_listener_ignored(self):
        task = CountingTask()

        def broken(t, old, new):
            raise ValueError("listener")

        task.add_status_listener(broken)
        task.run()
        assert task.status == TaskStatus.FINISHED

    def test_progress_monotonic_and_clamped(self):
        task = CountingTask()
        task.set_progress(0.6)
        task.set_progress(0.3)
        assert task.finished_percentage == 0.6
        task.set_progress(7.0)
        assert task.finished_percentage == 1.0
        task.set_progress(-1.0)
        assert task.finished_percentage == 1.0

    def test_description(self):
        task = CountingTask()
        task.set_description("Counting")
        assert task.task_description == "Counting"


class TestTaskExecutor:
    """Test running tasks on the thread pool."""

    def test_result(self):
        with TaskExecutor(max_workers=2) as executor:
            handle = executor.submit(CountingTask(n=10))
            result = handle.result(timeout=10)

        assert result.ok
        assert result.value == 10
        assert handle.done()
        assert handle.progress == 1.0

    def test_error_not_raised(self):
        with TaskExecutor(max_workers=1) as executor:
            result = executor.submit(CountingTask(fail_at=0)).result(timeout=10)

        assert result.status == TaskStatus.ERROR
        assert not result.ok
        assert result.value is None
        assert "unit 0 failed" in result.error_message

    def test_cancel_running_task(self):
        task = BlockingTask()
        with TaskExecutor(max_workers=1) as executor:
            handle = executor.submit(task)
            assert task.started.wait(timeout=10)
            assert handle.status == TaskStatus.PROCESSING

            handle.cancel()
            task.release.set()
            result = handle.result(timeout=10)

        assert result.status == TaskStatus.CANCELED
        assert result.value is None

    def test_cancel_queued_task(self):
        blocker = BlockingTask()
        queued = CountingTask()
        with TaskExecutor(max_workers=1) as executor:
            executor.submit(blocker)
            assert blocker.started.wait(timeout=10)
            handle = executor.submit(queued)
            handle.cancel()
            blocker.release.set()
            assert handle.wait(timeout=10)

        assert queued.status == TaskStatus.CANCELED
        assert queued.processed == 0

    def test_timeout(self):
        task = BlockingTask()
        with TaskExecutor(max_workers=1) as executor:
            handle = executor.submit(task)
            assert task.started.wait(timeout=10)
            assert not handle.wait(timeout=0.01)
            with pytest.raises(TimeoutError):
                handle.result(timeout=0.01)
            task.release.set()

"""Tests for the bounded thread pool executor used by crypto jobs."""

import threading

import pytest

from ecdhkit.config import reset_settings
from ecdhkit.errors import ThreadPoolExhaustedError
from ecdhkit.jobs.executors import (
    BoundedExecutor,
    get_default_executor,
    shutdown_default_executor,
)


class TestBoundedExecutor:
    """Test suite for BoundedExecutor."""

    def test_executor_accepts_tasks_within_limit(self) -> None:
        """Tasks within the limit run and return their results."""
        executor = BoundedExecutor(max_threads=2)

        def simple_task(x: int) -> int:
            return x * 2

        future1 = executor.submit(simple_task, 1)
        future2 = executor.submit(simple_task, 2)

        assert future1.result() == 2
        assert future2.result() == 4

        executor.shutdown()

    def test_executor_rejects_when_pool_exhausted(self) -> None:
        """A submission beyond the limit is rejected instead of queued."""
        executor = BoundedExecutor(max_threads=2)
        release = threading.Event()

        def blocking_task() -> int:
            release.wait(timeout=5)
            return 42

        future1 = executor.submit(blocking_task)
        future2 = executor.submit(blocking_task)

        with pytest.raises(ThreadPoolExhaustedError) as exc_info:
            executor.submit(blocking_task)

        assert exc_info.value.max_threads == 2
        assert exc_info.value.active_threads == 2
        assert exc_info.value.code == "ecdhkit:jobs/thread_pool_exhausted"

        release.set()
        assert future1.result(timeout=5) == 42
        assert future2.result(timeout=5) == 42
        executor.shutdown()

    def test_permits_released_after_completion(self) -> None:
        """Completed tasks free their slot, including failed ones."""
        executor = BoundedExecutor(max_threads=1)

        def failing_task() -> None:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            executor.submit(failing_task).result(timeout=5)

        assert executor.submit(lambda: "ok").result(timeout=5) == "ok"
        executor.shutdown()
        assert executor.active_threads == 0

    def test_invalid_max_threads(self) -> None:
        with pytest.raises(ValueError):
            BoundedExecutor(max_threads=0)

    def test_default_max_threads_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """ECDHKIT_MAX_THREADS sets the default pool size."""
        monkeypatch.setenv("ECDHKIT_MAX_THREADS", "3")
        reset_settings()

        with BoundedExecutor() as executor:
            assert executor.max_threads == 3

    def test_submit_after_shutdown_releases_permit(self) -> None:
        executor = BoundedExecutor(max_threads=1)
        executor.shutdown()

        with pytest.raises(RuntimeError):
            executor.submit(lambda: None)

        assert executor.active_threads == 0


class TestDefaultExecutor:
    """Tests for the shared default executor."""

    def test_default_executor_is_shared(self) -> None:
        assert get_default_executor() is get_default_executor()

    def test_shutdown_replaces_default(self) -> None:
        first = get_default_executor()
        shutdown_default_executor()

        assert get_default_executor() is not first

"""Bounded thread pool executor for asynchronous crypto jobs.

This module provides a bounded executor that limits the number of concurrent
threads running key generation and secret derivation. Submissions beyond the
limit are rejected instead of queued.

Example:
    >>> from ecdhkit.jobs.executors import BoundedExecutor
    >>> executor = BoundedExecutor(max_threads=4)
    >>> future = executor.submit(job.run)
"""

from __future__ import annotations

from concurrent.futures import Executor, Future, ThreadPoolExecutor
from threading import Lock, Semaphore
from typing import Callable, TypeVar

from ecdhkit.config import get_settings
from ecdhkit.errors import ThreadPoolExhaustedError
from ecdhkit.observability import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class BoundedExecutor(Executor):
    """Thread pool executor with bounded capacity.

    Wraps a ThreadPoolExecutor and uses a semaphore to limit the number of
    in-flight jobs. When the limit is reached, ``submit`` raises
    ThreadPoolExhaustedError instead of queuing indefinitely.

    Attributes:
        max_threads: Maximum number of concurrent jobs
    """

    def __init__(self, max_threads: int | None = None) -> None:
        """Initialize bounded executor.

        Args:
            max_threads: Maximum number of concurrent threads.
                Defaults to the ECDHKIT_MAX_THREADS setting.

        Raises:
            ValueError: If max_threads is less than 1
        """
        if max_threads is None:
            max_threads = get_settings().max_threads

        if max_threads < 1:
            raise ValueError(f"max_threads must be >= 1, got {max_threads}")

        self.max_threads = max_threads
        self._executor = ThreadPoolExecutor(
            max_workers=max_threads, thread_name_prefix="ecdhkit-job"
        )
        self._semaphore = Semaphore(max_threads)
        self._active = 0
        self._active_lock = Lock()

        logger.debug("ecdhkit.executor.created", max_threads=max_threads)

    @property
    def active_threads(self) -> int:
        with self._active_lock:
            return self._active

    def submit(self, fn: Callable[..., T], /, *args: object, **kwargs: object) -> Future[T]:
        """Submit a function to be executed in the thread pool.

        The permit taken here is released as soon as ``fn`` returns or raises,
        before the returned Future resolves, so a caller that has seen the
        result can submit again immediately.

        Raises:
            ThreadPoolExhaustedError: If every permit is in use.
        """
        if not self._semaphore.acquire(blocking=False):
            active_threads = self.active_threads
            logger.warning(
                "ecdhkit.executor.exhausted",
                max_threads=self.max_threads,
                active_threads=active_threads,
            )
            raise ThreadPoolExhaustedError(
                max_threads=self.max_threads,
                active_threads=active_threads,
            )

        with self._active_lock:
            self._active += 1

        def run_and_release() -> T:
            try:
                return fn(*args, **kwargs)
            finally:
                self._release()

        try:
            future = self._executor.submit(run_and_release)
        except RuntimeError:
            # Executor already shut down
            self._release()
            raise

        def release_if_cancelled(f: Future[T]) -> None:
            # Cancelled futures never ran, so run_and_release did not release
            if f.cancelled():
                self._release()

        future.add_done_callback(release_if_cancelled)
        return future

    def _release(self) -> None:
        with self._active_lock:
            self._active -= 1
        self._semaphore.release()

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        """Shutdown the executor and release resources."""
        self._executor.shutdown(wait=wait, cancel_futures=cancel_futures)
        logger.debug("ecdhkit.executor.shutdown", max_threads=self.max_threads)

    def __enter__(self) -> BoundedExecutor:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.shutdown(wait=True)


_default_executor: BoundedExecutor | None = None
_default_lock = Lock()


def get_default_executor() -> BoundedExecutor:
    """Shared executor for jobs scheduled without an explicit executor."""
    global _default_executor
    if _default_executor is None:
        with _default_lock:
            if _default_executor is None:
                _default_executor = BoundedExecutor()
    return _default_executor


def shutdown_default_executor(wait: bool = True) -> None:
    global _default_executor
    with _default_lock:
        executor, _default_executor = _default_executor, None
    if executor is not None:
        executor.shutdown(wait=wait)

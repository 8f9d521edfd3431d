# src/hugefib/forkjoin.py
"""
Fork/join execution on a bounded thread pool.

A parent forks child tasks, keeps working, then joins them. Joining a child
that no worker has picked up yet runs it on the joining thread, so a pool
with fewer threads than live tasks still always makes progress.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ForkJoinTask(Generic[T]):
    """One node of a recursion tree. Runs exactly once, on a worker or inline."""

    __slots__ = ("_args", "_claimed", "_done", "_error", "_fn", "_lock", "_result")

    def __init__(self, fn: Callable[..., T], args: tuple[Any, ...]):
        self._fn = fn
        self._args = args
        self._lock = threading.Lock()
        self._claimed = False
        self._done = threading.Event()
        self._result: T | None = None
        self._error: BaseException | None = None

    def _claim(self) -> bool:
        with self._lock:
            if self._claimed:
                return False
            self._claimed = True
            return True

    def _run(self) -> None:
        try:
            self._result = self._fn(*self._args)
        except Exception as e:  # re-raised in the joining thread
            self._error = e
        finally:
            self._args = ()
            self._done.set()

    def _run_if_unclaimed(self) -> None:
        if self._claim():
            self._run()

    def done(self) -> bool:
        return self._done.is_set()

    def join(self) -> T:
        """Wait for the result, computing it here if nobody has started it."""
        if self._claim():
            self._run()
        else:
            self._done.wait()
        if self._error is not None:
            raise self._error
        return self._result  # type: ignore[return-value]


class ForkJoinPool:
    """
    Worker pool for ForkJoinTask trees.

    parallelism=None uses os.cpu_count(). With parallelism 1 no threads are
    started and every forked task runs inline when joined.
    """

    def __init__(self, parallelism: int | None = None):
        if parallelism is None or parallelism <= 0:
            parallelism = os.cpu_count() or 1
        self.parallelism = int(parallelism)
        self._executor: ThreadPoolExecutor | None = None
        if self.parallelism >= 2:  # noqa: PLR2004
            self._executor = ThreadPoolExecutor(
                max_workers=self.parallelism,
                thread_name_prefix="hugefib-worker",
            )
        self._closed = False

    def fork(self, fn: Callable[..., T], *args: Any) -> ForkJoinTask[T]:
        if self._closed:
            raise RuntimeError("cannot fork on a pool that has been shut down")
        task: ForkJoinTask[T] = ForkJoinTask(fn, args)
        if self._executor is not None:
            self._executor.submit(task._run_if_unclaimed)
        return task

    def invoke(self, fn: Callable[..., T], *args: Any) -> T:
        """Run a top-level computation and return its result."""
        return self.fork(fn, *args).join()

    def shutdown(self, wait: bool = True) -> None:
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=wait)

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> ForkJoinPool:
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown(wait=True)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"ForkJoinPool(parallelism={self.parallelism}, {state})"

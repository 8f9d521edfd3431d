from __future__ import annotations

import atexit
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, TypeVar

from hugefib.forkjoin import ForkJoinPool, ForkJoinTask
from hugefib.utility import UserInputError

T = TypeVar("T")

DEFAULT_MUL_THRESHOLD = 200_000   # bits
DEFAULT_STR_THRESHOLD = 50_000    # bits
MIN_THRESHOLD = 8                 # below this the split recursions stop shrinking


@dataclass(frozen=True)
class ComputeCtx:
    # --- non-default fields FIRST ---
    pool: ForkJoinPool | None

    # --- thresholds, in bits ---
    mul_threshold: int = DEFAULT_MUL_THRESHOLD
    str_threshold: int = DEFAULT_STR_THRESHOLD

    def __post_init__(self) -> None:
        for name in ("mul_threshold", "str_threshold"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < MIN_THRESHOLD:
                raise UserInputError(f"{name} must be an integer >= {MIN_THRESHOLD}, got {value!r}.")

    @property
    def parallelism(self) -> int:
        return self.pool.parallelism if self.pool is not None else 1

    def fork(self, fn: Callable[..., T], *args: Any) -> ForkJoinTask[T]:
        """Spawn a child on the pool; without a pool the child runs when joined."""
        if self.pool is None:
            return ForkJoinTask(fn, args)
        return self.pool.fork(fn, *args)


@contextmanager
def open_ctx(
    workers: int | None = None,
    *,
    mul_threshold: int = DEFAULT_MUL_THRESHOLD,
    str_threshold: int = DEFAULT_STR_THRESHOLD,
) -> Iterator[ComputeCtx]:
    """Build a pool (hardware parallelism unless `workers` is given) and close it afterwards."""
    pool = ForkJoinPool(workers)
    try:
        yield ComputeCtx(pool, mul_threshold=mul_threshold, str_threshold=str_threshold)
    finally:
        pool.shutdown(wait=True)


def sequential_ctx(
    *,
    mul_threshold: int = DEFAULT_MUL_THRESHOLD,
    str_threshold: int = DEFAULT_STR_THRESHOLD,
) -> ComputeCtx:
    return ComputeCtx(None, mul_threshold=mul_threshold, str_threshold=str_threshold)


# --- Context management ---

_current_ctx: ContextVar[ComputeCtx | None] = ContextVar("hugefib_ctx", default=None)
_fallback_ctx: ComputeCtx | None = None
_fallback_lock = threading.Lock()


def current() -> ComputeCtx:
    """The activated context, else a shared one sized to the hardware."""
    global _fallback_ctx
    ctx = _current_ctx.get()
    if ctx is not None:
        return ctx
    with _fallback_lock:
        if _fallback_ctx is None:
            _fallback_ctx = ComputeCtx(ForkJoinPool())
        return _fallback_ctx


@atexit.register
def shutdown_default() -> None:
    """Close the shared fallback pool; the next current() builds a fresh one."""
    global _fallback_ctx
    with _fallback_lock:
        ctx, _fallback_ctx = _fallback_ctx, None
    if ctx is not None and ctx.pool is not None:
        ctx.pool.shutdown(wait=True)


@contextmanager
def activate(ctx: ComputeCtx) -> Iterator[ComputeCtx]:
    token = _current_ctx.set(ctx)
    try:
        yield ctx
    finally:
        _current_ctx.reset(token)

# src/hugefib/fibonacci.py
"""
Fast-doubling Fibonacci.

With (a, b) = (F(k), F(k+1)):
    F(2k)   = a * (2b - a)
    F(2k+1) = a^2 + b^2
Walking the bits of n from the top doubles k at every step and adds one on
set bits, so F(n) costs O(log n) big multiplications.
"""

from __future__ import annotations

from collections.abc import Callable

from hugefib.bigint import ONE, ZERO, BigInt
from hugefib.context import ComputeCtx
from hugefib.karatsuba import ParallelMultiplier
from hugefib.utility import require_non_negative

ProgressFn = Callable[[int, int], None]


def fib(n: int, ctx: ComputeCtx | None = None, *, progress: ProgressFn | None = None) -> BigInt:
    """
    Return F(n) with F(0) = 0 and F(1) = F(2) = 1.

    `progress(done, total)` is called after each of the n.bit_length()
    doubling steps.
    """
    if not isinstance(n, int) or isinstance(n, bool):
        raise TypeError(f"fib() index must be an int, got {type(n).__name__}")
    require_non_negative(n, "Fibonacci index")
    if n == 0:
        return ZERO
    if n <= 2:  # noqa: PLR2004
        return ONE

    mul = ParallelMultiplier(ctx)
    a, b = ZERO, ONE
    high_bit = n.bit_length() - 1
    total = high_bit + 1

    for i in range(high_bit, -1, -1):
        f2k = mul.multiply(a, b.shift_left(1).subtract(a))
        f2k1 = mul.square(a).add(mul.square(b))
        a, b = f2k, f2k1

        if (n >> i) & 1:
            a, b = b, a.add(b)

        if progress is not None:
            progress(total - i, total)

    return a

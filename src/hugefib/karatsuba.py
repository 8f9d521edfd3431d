# src/hugefib/karatsuba.py
"""
Karatsuba multiplication over a fork/join pool.

    x = xh * 2**h + xl,  y = yh * 2**h + yl
    z2 = xh * yh,  z0 = xl * yl,  z1 = (xh + xl) * (yh + yl)
    x * y = z2 * 2**(2h) + (z1 - z2 - z0) * 2**h + z0

z2 and z0 are forked; z1 runs on the forking thread, which then joins both.
Operands below the threshold, or a context without parallel workers, go
straight to the schoolbook product.
"""

from __future__ import annotations

from hugefib.bigint import WORD_BITS, BigInt
from hugefib.context import ComputeCtx, current


def split_point(n: int) -> int:
    """Largest multiple of the word width not above n/2, else n/2."""
    half = (n // 2) // WORD_BITS * WORD_BITS
    return half or n // 2


def _combine(z2: BigInt, z1: BigInt, z0: BigInt, half: int) -> BigInt:
    middle = z1.subtract(z2).subtract(z0)
    return z2.shift_left(2 * half).add(middle.shift_left(half)).add(z0)


class ParallelMultiplier:
    def __init__(self, ctx: ComputeCtx | None = None):
        self.ctx = ctx if ctx is not None else current()

    def _sequential(self, *operands: BigInt) -> bool:
        n = max(x.bit_length() for x in operands)
        return n < self.ctx.mul_threshold or self.ctx.parallelism < 2  # noqa: PLR2004

    def multiply(self, x: BigInt, y: BigInt) -> BigInt:
        if self._sequential(x, y):
            return x.multiply(y)

        half = split_point(max(x.bit_length(), y.bit_length()))
        x_hi, x_lo = x.split(half)
        y_hi, y_lo = y.split(half)

        z2_task = self.ctx.fork(self.multiply, x_hi, y_hi)
        z0_task = self.ctx.fork(self.multiply, x_lo, y_lo)
        z1 = self.multiply(x_hi.add(x_lo), y_hi.add(y_lo))

        return _combine(z2_task.join(), z1, z0_task.join(), half)

    def square(self, x: BigInt) -> BigInt:
        if self._sequential(x):
            return x.square()

        half = split_point(x.bit_length())
        hi, lo = x.split(half)

        z2_task = self.ctx.fork(self.square, hi)
        z0_task = self.ctx.fork(self.square, lo)
        z1 = self.square(hi.add(lo))

        return _combine(z2_task.join(), z1, z0_task.join(), half)


def multiply(x: BigInt, y: BigInt, ctx: ComputeCtx | None = None) -> BigInt:
    return ParallelMultiplier(ctx).multiply(x, y)


def square(x: BigInt, ctx: ComputeCtx | None = None) -> BigInt:
    return ParallelMultiplier(ctx).square(x)

# src/hugefib/stringify.py
"""
Divide-and-conquer decimal conversion.

Above the threshold a value is split by a power of ten into a high and a
low part holding about half the digits each. The high part is forked; the
low part is converted on the current thread and left-padded with zeros to
exactly `half` digits, since its leading zeros are real digits of the
result.
"""

from __future__ import annotations

import threading

from hugefib.bigint import BigInt
from hugefib.context import ComputeCtx, current
from hugefib.karatsuba import ParallelMultiplier
from hugefib.utility import estimate_dec_digits

# 10**k below this exponent is built directly instead of by squaring
_DIRECT_POW10 = 64


class DecimalStringifier:
    def __init__(self, ctx: ComputeCtx | None = None):
        self.ctx = ctx if ctx is not None else current()
        self._mul = ParallelMultiplier(self.ctx)
        self._powers: dict[int, BigInt] = {}
        self._lock = threading.Lock()

    def pow10(self, k: int) -> BigInt:
        """10**k, cached; large powers are squared with the parallel multiplier."""
        with self._lock:
            hit = self._powers.get(k)
        if hit is not None:
            return hit

        if k < _DIRECT_POW10:
            p = BigInt.pow10(k)
        else:
            root = self.pow10(k // 2)
            p = self._mul.square(root)
            if k & 1:
                p = p.multiply(BigInt.from_int(10))

        with self._lock:
            return self._powers.setdefault(k, p)

    def to_string(self, x: BigInt) -> str:
        if x.signum() < 0:
            return "-" + self._convert(x.negate())
        return self._convert(x)

    def _convert(self, x: BigInt) -> str:
        bits = x.bit_length()
        if bits < self.ctx.str_threshold:
            return x.to_decimal_sequential()

        half = estimate_dec_digits(bits) // 2
        if half == 0:
            return x.to_decimal_sequential()

        high, low = x.divmod_pow10(half, divisor=self.pow10(half))

        high_task = self.ctx.fork(self._convert, high)
        low_str = self._convert(low).rjust(half, "0")
        high_str = high_task.join()

        if high_str == "0":
            return low_str.lstrip("0") or "0"
        return high_str + low_str


def to_decimal_string(x: BigInt, ctx: ComputeCtx | None = None) -> str:
    """Decimal digits of x, no leading zeros ("0" for zero)."""
    return DecimalStringifier(ctx).to_string(x)

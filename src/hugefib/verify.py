# src/hugefib/verify.py
"""Independent cross-check of engine results against GMP (gmpy2)."""

from __future__ import annotations

import gmpy2

from hugefib.bigint import BigInt


def reference_fib(n: int) -> int:
    return int(gmpy2.fib(n))


def verify_fib(n: int, value: BigInt) -> bool:
    """True when value == F(n) as computed by GMP."""
    ref = reference_fib(n)
    if value.bit_length() != ref.bit_length():
        return False
    return int(value) == ref

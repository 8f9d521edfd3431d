# tests/test_stringify.py
from __future__ import annotations

import re

import pytest
import sympy

from conftest import SMALL_STR_THRESHOLD, random_int
from hugefib.bigint import BigInt
from hugefib.fibonacci import fib
from hugefib.stringify import DecimalStringifier, to_decimal_string
from hugefib.utility import estimate_dec_digits

B = BigInt.from_int
DIGITS_RE = re.compile(r"-?(0|[1-9][0-9]*)")

# bit sizes straddling SMALL_STR_THRESHOLD (128)
SIZES = [1, 4, 64, 127, 128, 129, 300, 1000, 3000, 8000, 12_000]


def _first_split(x: int) -> int:
    """Digits in the low part of the stringifier's first split."""
    return estimate_dec_digits(x.bit_length()) // 2


# ---------- round trip --------------------------------------------------------


@pytest.mark.parametrize("bits", SIZES)
def test_round_trip_across_threshold(rng, parallel_ctx, bits):
    for _ in range(3):
        v = random_int(rng, bits)
        s = to_decimal_string(B(v), parallel_ctx)
        assert DIGITS_RE.fullmatch(s)
        assert int(s) == v
        assert s == str(v)


def test_zero_and_small_values(parallel_ctx):
    assert to_decimal_string(BigInt.ZERO, parallel_ctx) == "0"
    assert to_decimal_string(BigInt.ONE, parallel_ctx) == "1"
    assert to_decimal_string(B(10**9), parallel_ctx) == "1000000000"


def test_negative_values_get_a_sign(parallel_ctx):
    v = -(3**500)
    assert to_decimal_string(B(v), parallel_ctx) == str(v)


# ---------- zero padding of the low half --------------------------------------


@pytest.mark.parametrize("k", [150, 600, 1200])
def test_low_half_leading_zeros_survive(parallel_ctx, k):
    v = 10**k + 1
    s = to_decimal_string(B(v), parallel_ctx)
    assert s == "1" + "0" * (k - 1) + "1"


def test_zero_led_low_half_at_first_split(parallel_ctx):
    high = 987654321987654321
    v = high * 10**400 + 42
    half = _first_split(v)
    assert half < 400  # the low part of the first split starts with zeros
    s = to_decimal_string(B(v), parallel_ctx)
    assert s == str(v)
    assert s[-half:] == str(v % 10**half).rjust(half, "0")
    assert s[-half:].startswith("0")


def test_exact_power_of_ten(parallel_ctx):
    assert to_decimal_string(B(10**999), parallel_ctx) == "1" + "0" * 999


# ---------- configuration independence ----------------------------------------


def test_single_worker_gives_identical_strings(rng, parallel_ctx, single_worker_ctx):
    for bits in (500, 5000):
        x = B(random_int(rng, bits))
        assert to_decimal_string(x, parallel_ctx) == to_decimal_string(x, single_worker_ctx)


def test_sequential_path_below_threshold(rng, seq_ctx):
    x = B(random_int(rng, SMALL_STR_THRESHOLD - 1))
    assert to_decimal_string(x, seq_ctx) == x.to_decimal_sequential()


def test_pow10_cache(parallel_ctx):
    s = DecimalStringifier(parallel_ctx)
    for k in (0, 1, 63, 64, 150, 301):
        assert int(s.pow10(k)) == 10**k
    assert s.pow10(301) is s.pow10(301)


def test_fibonacci_digits(parallel_ctx):
    n = 10_000
    assert to_decimal_string(fib(n, parallel_ctx), parallel_ctx) == str(sympy.fibonacci(n))

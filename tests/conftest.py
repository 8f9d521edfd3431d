# tests/conftest.py
"""
Shared fixtures: deterministic random operands and compute contexts with
small thresholds so the parallel paths run on modest sizes.

Run: pytest -v
"""

from __future__ import annotations

import random

import pytest

from hugefib.context import open_ctx, sequential_ctx

SMALL_MUL_THRESHOLD = 256
SMALL_STR_THRESHOLD = 128


@pytest.fixture
def rng():
    return random.Random(0xF1B0)


@pytest.fixture
def parallel_ctx():
    """Four workers, thresholds low enough for deep Karatsuba/stringify trees."""
    with open_ctx(4, mul_threshold=SMALL_MUL_THRESHOLD, str_threshold=SMALL_STR_THRESHOLD) as ctx:
        yield ctx


@pytest.fixture
def single_worker_ctx():
    """Pool of size 1: every threshold check takes the sequential path."""
    with open_ctx(1, mul_threshold=SMALL_MUL_THRESHOLD, str_threshold=SMALL_STR_THRESHOLD) as ctx:
        yield ctx


@pytest.fixture
def seq_ctx():
    return sequential_ctx(mul_threshold=SMALL_MUL_THRESHOLD, str_threshold=SMALL_STR_THRESHOLD)


def random_int(rng: random.Random, bits: int, *, signed: bool = False) -> int:
    """Random integer with exactly `bits` bits (0 for bits == 0)."""
    if bits <= 0:
        return 0
    v = rng.getrandbits(bits) | (1 << (bits - 1))
    if signed and rng.random() < 0.5:
        v = -v
    return v

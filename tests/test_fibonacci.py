# tests/test_fibonacci.py
from __future__ import annotations

import pytest
import sympy

from hugefib.bigint import BigInt
from hugefib.context import activate, current, sequential_ctx, shutdown_default
from hugefib.fibonacci import fib
from hugefib.utility import NegativeArgumentError, UserInputError

# ---------- helpers -----------------------------------------------------------


def _linear_fibs(limit: int) -> list[int]:
    out = [0, 1]
    while len(out) <= limit:
        out.append(out[-1] + out[-2])
    return out


KNOWN = [
    (0, 0),
    (1, 1),
    (2, 1),
    (3, 2),
    (10, 55),
    (50, 12586269025),
    (93, 12200160415121876738),
    (100, 354224848179261915075),
]


# ---------- values ------------------------------------------------------------


@pytest.mark.parametrize("n,expected", KNOWN, ids=[f"F{n}" for n, _ in KNOWN])
def test_known_values(n, expected):
    assert int(fib(n, sequential_ctx())) == expected


def test_matches_linear_recurrence_up_to_1000():
    ctx = sequential_ctx()
    for n, expected in enumerate(_linear_fibs(1000)):
        assert int(fib(n, ctx)) == expected, f"F({n})"


@pytest.mark.parametrize("n", [1000, 4321, 10_000, 12_345])
def test_parallel_engine_matches_sympy(parallel_ctx, n):
    assert int(fib(n, parallel_ctx)) == int(sympy.fibonacci(n))


@pytest.mark.parametrize("n", [777, 5000, 12_345])
def test_worker_count_does_not_change_the_answer(parallel_ctx, single_worker_ctx, n):
    assert fib(n, parallel_ctx) == fib(n, single_worker_ctx)


def test_returns_bigint_constants_for_base_cases():
    assert fib(0) is BigInt.ZERO
    assert fib(1) is BigInt.ONE
    assert fib(2) is BigInt.ONE


def test_uses_activated_context(parallel_ctx):
    with activate(parallel_ctx):
        assert int(fib(3000)) == int(sympy.fibonacci(3000))


def test_shared_default_context_is_shut_down_and_rebuilt():
    first = current()
    assert int(fib(500)) == int(sympy.fibonacci(500))
    shutdown_default()
    assert first.pool.closed
    second = current()
    assert second is not first
    assert not second.pool.closed
    assert int(fib(500)) == int(sympy.fibonacci(500))


# ---------- validation --------------------------------------------------------


@pytest.mark.parametrize("n", [-1, -2, -(2**63)])
def test_negative_index_is_an_input_error(n):
    with pytest.raises(NegativeArgumentError):
        fib(n)
    with pytest.raises(UserInputError):
        fib(n)


@pytest.mark.parametrize("n", [1.0, "10", True, None])
def test_non_integer_index_is_rejected(n):
    with pytest.raises(TypeError):
        fib(n)


# ---------- progress ----------------------------------------------------------


def test_progress_reports_every_doubling_step():
    seen = []
    value = fib(100, sequential_ctx(), progress=lambda d, t: seen.append((d, t)))
    assert int(value) == 354224848179261915075
    total = (100).bit_length()
    assert seen == [(i, total) for i in range(1, total + 1)]


def test_progress_not_called_for_base_cases():
    seen = []
    for n in (0, 1, 2):
        fib(n, progress=lambda d, t: seen.append(d))
    assert seen == []

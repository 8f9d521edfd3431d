from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

# Version
try:
    __version__ = _pkg_version("hugefib")
except PackageNotFoundError:
    __version__ = "0+unknown"

# Public API re-exports
from .bigint import ONE, ZERO, BigInt
from .context import ComputeCtx, activate, open_ctx, sequential_ctx
from .fibonacci import fib
from .forkjoin import ForkJoinPool
from .karatsuba import ParallelMultiplier
from .stringify import DecimalStringifier, to_decimal_string
from .utility import NegativeArgumentError, UserInputError

__all__ = [
    "ONE",
    "ZERO",
    "BigInt",
    "ComputeCtx",
    "DecimalStringifier",
    "ForkJoinPool",
    "NegativeArgumentError",
    "ParallelMultiplier",
    "UserInputError",
    "__version__",
    "activate",
    "fib",
    "open_ctx",
    "sequential_ctx",
    "to_decimal_string",
]

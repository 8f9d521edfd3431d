# -----------------------------------------------------------------------------
#  Utility functions
# -----------------------------------------------------------------------------

from __future__ import annotations

import os
import shutil


class UserInputError(Exception):
    pass


class NegativeArgumentError(UserInputError, ValueError):
    """Raised for a negative Fibonacci index or a negative shift count."""


def require_non_negative(value: int, what: str) -> None:
    if value < 0:
        raise NegativeArgumentError(f"{what} must be non-negative, got {value}.")


def estimate_dec_digits(bits: int) -> int:
    """Upper estimate of the decimal digit count of a value with `bits` bits."""
    if bits <= 0:
        return 1
    # 0.30103 ~ log10(2), rounded up so the estimate never falls short
    return (bits * 30103) // 100000 + 1


def get_terminal_width(default=80):
    """
    Return the terminal's character width if detected, else the default
    value (80 by default).
    """
    try:
        return shutil.get_terminal_size().columns
    except Exception:
        return default


def validate_output_setting(output_file: str | None) -> str | None:
    """
    Validate output setting.
    - None / "" => ok (no file is written)
    - "." / "./" / trailing "/" => ok (per-index directory mode)
    - path/to/file => must not be in forbidden base names or extensions
    Returns the (possibly normalized) output_file, or raises ValueError.
    """
    FORBIDDEN_FILENAMES = {
        ".gitignore",
        "LICENSE",
        "pyproject.toml",
        # Windows reserved device names (case-insensitive on Windows)
        "con", "prn", "aux", "nul",
        "com1", "com2", "com3", "com4", "com5", "com6", "com7", "com8", "com9",
        "lpt1", "lpt2", "lpt3", "lpt4", "lpt5", "lpt6", "lpt7", "lpt8", "lpt9",
    }

    FORBIDDEN_EXTENSIONS = {".py", ".md", ".toml"}

    if not output_file:
        return output_file

    if output_file in (".", "./") or output_file.endswith(("/", os.sep)):
        return output_file

    basename = os.path.basename(output_file)
    name_no_ext, ext = os.path.splitext(basename)
    ext = ext.lower()

    base_lower = basename.lower()
    name_lower = name_no_ext.lower()
    if base_lower in FORBIDDEN_FILENAMES or name_lower in FORBIDDEN_FILENAMES:
        raise ValueError(f"Forbidden output filename: {basename}")

    if ext in FORBIDDEN_EXTENSIONS:
        raise ValueError(f"Forbidden output file extension: {ext}")

    return output_file


def typename(v: object) -> str:
    return type(v).__name__


def flatten_dotted(d: dict, prefix: str = "") -> dict[str, object]:
    out: dict[str, object] = {}
    for k, v in (d or {}).items():
        key = f"{prefix}.{k}" if prefix else str(k)
        if isinstance(v, dict):
            out.update(flatten_dotted(v, key))
        else:
            out[key] = v
    return out


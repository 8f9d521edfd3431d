# src/hugefib/fmt.py
from __future__ import annotations

from colorama import Fore, Style


def abbr_digits(s: str, head: int = 10, tail: int = 10, ellipsis: str = "…") -> str:
    """Abbreviate a long digit string as first<head>…last<tail>."""
    sign = "-" if s.startswith("-") else ""
    body = s[1:] if sign else s
    if head + tail >= len(body):
        return s
    end = body[-tail:] if tail > 0 else ""
    return f"{sign}{body[:head]}{ellipsis}{end}"


def format_count(n: int) -> str:
    return f"{n:,}"


def format_duration(seconds: float) -> str:
    """ms if <1s; s with millis if <60s; else mm:ss.mmm (and hh:mm:ss.mmm if ≥1h)."""
    MAX_SECONDS = 60
    if seconds < 1:
        ms = round(seconds * 1000)
        return f"{ms} ms"
    if seconds < MAX_SECONDS:
        return f"{seconds:.3f} s"
    m, s = divmod(seconds, MAX_SECONDS)
    if m < MAX_SECONDS:
        return f"{int(m)}:{s:06.3f}"               # mm:ss.mmm
    h, m = divmod(int(m), MAX_SECONDS)
    return f"{h}:{m:02d}:{s:06.3f}"                # hh:mm:ss.mmm


def format_phase(label: str, seconds: float) -> str:
    """One colored '[debug]' timing line."""
    tm = f"{Style.DIM}[{format_duration(seconds):>10}]{Style.RESET_ALL}"
    return f"[debug] {tm} {Fore.CYAN}{label}{Style.RESET_ALL}"

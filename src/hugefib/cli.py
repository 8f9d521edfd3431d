# src/hugefib/cli.py

"""
HugeFib - Fibonacci numbers with millions of bits

Description:
    Computes F(n) with the fast-doubling recurrence on a parallel Karatsuba
    multiplier, reports the time taken and the size of the result, and
    optionally writes it as decimal text or two's-complement bytes.

usage: see hugefib -h
"""

from __future__ import annotations

import argparse
import faulthandler
import os
import sys
import textwrap
import threading
import traceback
from importlib.resources import files as pkg_files
from time import perf_counter

from colorama import Fore, Style
from colorama import init as colorama_init

from hugefib import __version__ as _ver
from hugefib import config as CONFIG
from hugefib.context import open_ctx
from hugefib.fibonacci import fib
from hugefib.fmt import abbr_digits, format_count, format_duration, format_phase
from hugefib.output_manager import ResultWriter
from hugefib.progress import Progress
from hugefib.runtime import APPLY, CFG, ensure_runtime_deps
from hugefib.runtime import reset as _rt_reset
from hugefib.stringify import to_decimal_string
from hugefib.utility import UserInputError, flatten_dotted, typename
from hugefib.workspace import ensure_workspace_seeded, seed_workspace, workspace_dir

COMMANDS = ("init", "where", "profiles")


def _install_loud_error_handlers(debug: bool) -> None:
    if not debug:
        return
    # Always show full Python tracebacks
    faulthandler.enable()

    def _excepthook(exc_type, exc, tb):
        sys.stderr.write("\n[UNCAUGHT EXCEPTION]\n")
        traceback.print_exception(exc_type, exc, tb, file=sys.stderr)
        sys.stderr.flush()
    sys.excepthook = _excepthook

    # Worker threads of the fork/join pool
    def _thread_excepthook(args):
        sys.stderr.write("\n[UNCAUGHT THREAD EXCEPTION]\n")
        traceback.print_exception(args.exc_type, args.exc_value, args.exc_traceback, file=sys.stderr)
        sys.stderr.flush()
    threading.excepthook = _thread_excepthook


def _print_user_error(msg: str) -> None:
    """Uniform, one-line friendly error."""
    prefix = f"{Fore.RED}Error:{Style.RESET_ALL}"
    if not msg.startswith("Error:"):
        msg = f"{prefix} {msg}"
    print(msg, file=sys.stderr)


def _debug(msg: str) -> None:
    print(f"[debug] {msg}", file=sys.stderr)


def _parse_index(text: str) -> int | None:
    """Parse '1000', '1_000_000' or '1,000,000'; None if not an integer."""
    s = text.strip().replace("_", "").replace(",", "")
    try:
        return int(s, 10)
    except ValueError:
        return None


def _resolve_inputs(items: list[str]) -> tuple[str | None, int | None]:
    """Return (profile_or_command, n) based on the first two positionals.

    Rules:
      - one item: integer -> n; else -> profile or command
      - two items: profile followed by an integer
    """
    if not items:
        return None, None
    if len(items) == 1:
        n = _parse_index(items[0])
        return (None, n) if n is not None else (items[0], None)

    n = _parse_index(items[1])
    if n is None:
        raise UserInputError(f"Invalid input: '{items[1]}' is not an integer index.")
    return items[0], n


def _select_profile_name(explicit: str | None) -> str:
    """
    Precedence:
      1) explicit profile positional
      2) last used (from workspace)
      3) 'default'
    """
    if explicit:
        return explicit
    last = CONFIG.read_current_profile()
    if last and CONFIG.has_profile(last):
        return last
    return "default"


# ---- argparse ----
def _build_parser() -> argparse.ArgumentParser:

    epilog = textwrap.dedent("""\
    commands:
      init
          Create the workspace and copy the packaged profiles if missing.

      init overwrite
          Meant for developers. Requires environment variable HUGEFIB_DEV=1.
          Replaces the workspace profiles with the packaged ones.

      profiles
          List the available profiles.

      where
          Show the workspace and package paths.
    """)

    p = argparse.ArgumentParser(
        prog="hugefib",
        description="HugeFib: F(n) for very large n",
        usage=(
            "hugefib [profile] N [--output OUTPUT] [--format {decimal,binary,none}]\n"
            "               [--workers K] [--mul-threshold BITS] [--str-threshold BITS]\n"
            "               [--verify] [--quiet] [--debug]\n"
            "       hugefib init | profiles | where\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )
    p.add_argument("items", nargs="*", metavar="[profile] N",
                   help="optional profile name followed by the Fibonacci index")
    p.add_argument("--output", default=None, help="Write the result to a file, or per-index files in a 'dir/'")
    p.add_argument("--format", default=None, choices=CONFIG.OUTPUT_FORMATS,
                   help="Result format for --output and the digit preview (default from profile)")
    p.add_argument("--workers", type=int, default=None, help="Worker-pool size (0 = detect)")
    p.add_argument("--mul-threshold", type=int, default=None,
                   help="Bit length below which products are schoolbook")
    p.add_argument("--str-threshold", type=int, default=None,
                   help="Bit length below which decimal conversion is sequential")
    p.add_argument("--verify", action="store_true", help="Cross-check the result against gmpy2.fib")
    p.add_argument("--quiet", action="store_true", help="Suppress progress and summary output")
    p.add_argument("--debug", action="store_true", help="Show per-phase timings and effective settings")
    p.add_argument("--version", action="version", version=f"%(prog)s {_ver}")

    return p


def main(argv=None) -> int:
    """Thin wrapper: catch friendly errors, hide tracebacks unless debug."""
    try:
        return _main_impl(argv)
    except UserInputError as e:
        _print_user_error(str(e))
        return 2
    except MemoryError:
        _print_user_error("out of memory: the result does not fit in available memory.")
        return 1
    except KeyboardInterrupt:
        print("Aborted by user.", file=sys.stderr)
        return 130
    except Exception as e:
        debug = ("--debug" in (argv if argv is not None else sys.argv))
        if debug:
            raise
        print(f"Unexpected error: {e.__class__.__name__}: {e}", file=sys.stderr)
        print("Run with --debug for a full traceback.", file=sys.stderr)
        return 1


def _run_command(cmd: str, items: list[str]) -> int:
    _TWO_ARGS = 2
    if cmd == "init":
        if len(items) == _TWO_ARGS and items[1] == "overwrite":
            if os.environ.get("HUGEFIB_DEV") != "1":
                print("Refusing to overwrite: set HUGEFIB_DEV=1 to enable developer overwrite.")
                return 2
            ws, copied = seed_workspace(overwrite=True)
            print(f"Workspace ready at: {ws} (overwrote existing files)")
        else:
            ws, copied = seed_workspace(overwrite=False)
            print(f"Workspace ready at: {ws}")
        print(f"Copied -> profiles: {copied}")
        return 0
    if cmd == "where":
        print(f"Workspace: {workspace_dir()}")
        print(f"Package:   {pkg_files('hugefib')}")
        return 0
    # profiles
    for name, desc in CONFIG.list_profiles_with_descriptions():
        print(f"  {Fore.YELLOW}{name:<16}{Style.RESET_ALL} {desc}")
    return 0


def _print_debug_settings(selected) -> None:
    _debug(f"active profile: {selected.name}")
    if selected._source:
        _debug(f"profile file: {selected._source}")
    _debug("profile keys (dotted → value/type):")
    flat = flatten_dotted(selected.as_dict())
    for k in sorted(flat.keys(), key=str.lower):
        v = CFG(k, None)
        print(f"        {k:.<40} {v!r} ({typename(v)})", file=sys.stderr)
    print(file=sys.stderr)


# ---- main ----
def _main_impl(argv=None) -> int:

    colorama_init(autoreset=True)

    parser = _build_parser()
    args = parser.parse_args(argv)
    rt = _rt_reset()

    _install_loud_error_handlers(args.debug)

    ensure_workspace_seeded()

    if args.items and args.items[0] in COMMANDS:
        return _run_command(args.items[0], args.items)

    profile, n = _resolve_inputs(args.items)

    if n is None:
        if profile is not None:
            raise UserInputError(f"Invalid input: '{profile}' is neither a command nor an integer index.")
        parser.print_usage(sys.stderr)
        return 2

    # Choose profile: explicit → last-used → default
    if profile and not CONFIG.has_profile(profile):
        names = ", ".join(name for name, _ in CONFIG.list_profiles_with_descriptions())
        raise UserInputError(f"Unknown profile: '{profile}'. Available profiles: {names}")
    profile_name = _select_profile_name(profile)
    if not CONFIG.has_profile(profile_name):
        profile_name = "default"
    selected = CONFIG.load_settings(profile_name)
    APPLY(selected)
    if profile:
        CONFIG.write_current_profile(profile)
    if args.debug:
        rt.debug = True
    if args.quiet:
        rt.progress = False

    if rt.debug:
        _print_debug_settings(selected)

    # Validate everything before the (possibly long) computation starts
    engine = CONFIG.ctx_settings(
        workers=args.workers,
        mul_threshold=args.mul_threshold,
        str_threshold=args.str_threshold,
    )
    fmt = CONFIG.output_format(args.format)
    target = args.output if args.output is not None else CFG("OUTPUT.OUTPUT_FILE", "")
    try:
        writer = ResultWriter(target, n, fmt)
    except ValueError as e:
        raise UserInputError(f"--output: {e}") from None

    verify = args.verify or bool(CFG("BEHAVIOUR.VERIFY", False))
    if verify and not ensure_runtime_deps(("gmpy2",), strict=True):
        return 1

    def say(msg: str = "") -> None:
        if not args.quiet:
            print(msg)

    status = 0
    with open_ctx(**engine) as ctx:
        if rt.debug:
            _debug(f"engine: workers={ctx.parallelism} "
                   f"mul_threshold={ctx.mul_threshold} str_threshold={ctx.str_threshold}")

        bar = Progress(max(1, n.bit_length()), enabled=rt.progress)
        t0 = perf_counter()
        value = fib(n, ctx, progress=bar.step)
        dt_fib = perf_counter() - t0
        bar.done()

        say(f"F({n}) calculated in {format_duration(dt_fib)}")
        say(f"Result length: {format_count(value.bit_length())} bits")
        if rt.debug:
            print(format_phase("fast doubling", dt_fib), file=sys.stderr)

        if verify:
            from hugefib.verify import verify_fib

            t0 = perf_counter()
            ok = verify_fib(n, value)
            if rt.debug:
                print(format_phase("gmpy2 cross-check", perf_counter() - t0), file=sys.stderr)
            if ok:
                say(f"Verified against gmpy2: {Fore.GREEN}OK{Style.RESET_ALL}")
            else:
                print(f"{Fore.RED}{Style.BRIGHT}Verification FAILED:{Style.RESET_ALL} "
                      f"F({n}) differs from gmpy2.fib({n})", file=sys.stderr)
                status = 1

        written = None
        if fmt == "decimal":
            t0 = perf_counter()
            digits = to_decimal_string(value, ctx)
            if rt.debug:
                print(format_phase("decimal conversion", perf_counter() - t0), file=sys.stderr)
            keep = max(1, int(CFG("BEHAVIOUR.MAX_PREVIEW_DIGITS", 20)) // 2)
            say(f"Decimal digits: {format_count(len(digits))}")
            say(f"Value: {abbr_digits(digits, head=keep, tail=keep)}")
            written = writer.write_text(digits)
        elif fmt == "binary":
            data = value.to_bytes()
            say(f"Byte length: {format_count(len(data))}")
            written = writer.write_bytes(data)

        if written:
            say(f"Written to: {written}")

    return status


if __name__ == "__main__":
    raise SystemExit(main())

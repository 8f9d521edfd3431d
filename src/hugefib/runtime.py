# runtime.py
from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field
from importlib.util import find_spec
from typing import TYPE_CHECKING, Any

from colorama import Fore, Style

if TYPE_CHECKING:
    from hugefib.config import Settings


@dataclass
class Runtime:
    profile_name: str = "default"
    settings: dict[str, Any] = field(default_factory=dict)
    debug: bool = False  # controls verbosity / tracebacks
    progress: bool = True  # progress bar during the doubling loop

    def apply(self, settings: Settings) -> None:
        """Adopt a loaded profile and sync the DEBUG / PROGRESS flags from it."""
        self.profile_name = settings.name or "default"
        self.settings = dict(settings.as_dict())

        for key, attr in (("BEHAVIOUR.DEBUG", "debug"), ("BEHAVIOUR.PROGRESS", "progress")):
            flag = self.get(key, None)
            if isinstance(flag, bool):
                setattr(self, attr, flag)

    def get(self, key: str, default: Any = None) -> Any:
        """Dotted lookup, e.g. 'ENGINE.MUL_THRESHOLD'."""
        cur: Any = self.settings
        for part in key.split("."):
            if not isinstance(cur, dict) or part not in cur:
                return default
            cur = cur[part]
        return cur


# --- Context management ---

_current_runtime: ContextVar[Runtime | None] = ContextVar("hugefib_runtime", default=None)


def current() -> Runtime:
    rt = _current_runtime.get()
    if rt is None:
        rt = Runtime()
        _current_runtime.set(rt)
    return rt


def reset() -> Runtime:
    """Install a fresh Runtime (new CLI invocation, tests)."""
    rt = Runtime()
    _current_runtime.set(rt)
    return rt


def APPLY(settings: Settings) -> None:
    current().apply(settings)


def CFG(key: str, default: Any = None) -> Any:
    return current().get(key, default)


# ---- Dependency check --------------------------------------------------------

def ensure_runtime_deps(required: tuple[str, ...] = ("gmpy2",), strict: bool = True) -> bool:
    """
    Verify optional runtime deps are importable without importing them.
    If strict=True, prints a friendly error and returns False when missing.
    """
    missing = [name for name in required if find_spec(name) is None]

    if not missing:
        return True

    msg = (
        f"{Fore.RED}{Style.BRIGHT}\nMissing dependencies:{Style.RESET_ALL} "
        + ", ".join(missing)
        + "\nInstall with: "
        + f"{Fore.YELLOW}pip install " + " ".join(missing) + f"{Style.RESET_ALL}"
    )
    print(msg)
    return not strict

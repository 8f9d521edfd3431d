from __future__ import annotations

import tomllib as toml
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from hugefib.context import DEFAULT_MUL_THRESHOLD, DEFAULT_STR_THRESHOLD, MIN_THRESHOLD
from hugefib.runtime import CFG
from hugefib.utility import UserInputError
from hugefib.workspace import ensure_workspace_seeded, workspace_dir

OUTPUT_FORMATS = ("decimal", "binary", "none")


@dataclass
class Settings:
    """
    Wrap the full TOML dict (without the [_PROFILE_] section).
    .as_dict() feeds runtime.apply().

      - name:        resolved profile name (FILE.stem if not provided in [_PROFILE_])
      - description: one-line description from [_PROFILE_] or "(no description)"
    """
    data: dict[str, Any]
    name: str
    description: str
    _source: Path | None = None

    def as_dict(self) -> dict[str, Any]:
        return self.data


# --- Paths -----------------------------------------------------------------

def _profiles_dir() -> Path:
    return workspace_dir() / "profiles"


def _profile_path(name: str) -> Path:
    return _profiles_dir() / f"{name}.toml"


# --- I/O -------------------------------------------------------------------


def _load_toml(path: Path) -> dict[str, object]:
    try:
        with path.open("rb") as f:
            return toml.load(f)
    except toml.TOMLDecodeError as e:
        lineno = getattr(e, "lineno", None)
        colno = getattr(e, "colno", None)
        msg = getattr(e, "msg", str(e))
        where = []
        if lineno is not None:
            where.append(f"line {lineno}")
        if colno is not None:
            where.append(f"column {colno}")
        loc = f" (at {', '.join(where)})" if where else ""
        # No traceback chaining
        raise UserInputError(f"reading {path.name}: {msg}{loc}.") from None


# --- Metadata handling -----------------------------------------------------


def _sanitize_oneline(s: str) -> str:
    return " ".join(str(s).split()) or "(no description)"


def _split_profile_data(raw: dict[str, Any], fallback_name: str) -> tuple[dict[str, Any], str, str]:
    """
    Extract [_PROFILE_] meta (name, description) and return:
      (settings_without_profile, resolved_name, resolved_description)
    """
    meta = raw.get("_PROFILE_") or {}
    data = {k: v for k, v in raw.items() if k != "_PROFILE_"}

    name = str(meta.get("name") or fallback_name)
    description = _sanitize_oneline(str(meta.get("description") or ""))

    return data, name, description


# --- Public API ------------------------------------------------------------


def list_profiles_with_descriptions() -> list[tuple[str, str]]:
    """
    Return [(name, description), ...] for all profiles.
    Profiles lacking [_PROFILE_] get "(no description)".
    """
    ensure_workspace_seeded()
    items: list[tuple[str, str]] = []
    for p in _profiles_dir().glob("*.toml"):
        try:
            raw = _load_toml(p)
        except UserInputError:
            # Best-effort listing; fall back to filename
            items.append((p.stem, "(unreadable)"))
            continue
        _, nm, desc = _split_profile_data(raw, p.stem)
        items.append((p.stem, desc if nm == p.stem else f"{nm}: {desc}"))
    return sorted(items, key=lambda t: t[0].lower())


def has_profile(name: str) -> bool:
    return _profile_path(name).exists()


def load_settings(name: str | None) -> Settings:
    """
    Load a profile by name (default 'default'), strip the [_PROFILE_] metadata
    and return Settings(data=..., name=..., description=..., _source=path).
    """
    if not name:
        name = "default"

    path = _profile_path(name)
    if not path.exists():
        raise UserInputError(f"Profile '{name}' not found at {path}")

    raw = _load_toml(path)
    data, resolved_name, description = _split_profile_data(raw, path.stem)

    for section in ("ENGINE", "OUTPUT", "BEHAVIOUR"):
        sect = data.get(section, {})
        if not isinstance(sect, dict):
            raise UserInputError(f"{path.name}: [{section}] must be a table.")
        data[section] = dict(sect)

    return Settings(
        data=data,
        name=resolved_name,
        description=description,
        _source=path,
    )


def _current_profile_path() -> Path:
    p = _profiles_dir()
    p.mkdir(parents=True, exist_ok=True)
    return p / ".current"


def read_current_profile() -> str | None:
    try:
        s = _current_profile_path().read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return s[:-5] if s.lower().endswith(".toml") else (s or None)


def write_current_profile(name: str) -> None:
    nm = (name or "").strip()
    if nm.lower().endswith(".toml"):
        nm = nm[:-5]
    _current_profile_path().write_text(nm, encoding="utf-8")


# --- Engine settings -------------------------------------------------------


def _as_int(key: str, value: Any, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise UserInputError(f"{key} must be an integer, got {value!r}.")
    if value < minimum:
        raise UserInputError(f"{key} must be >= {minimum}, got {value}.")
    return value


def ctx_settings(
    *,
    workers: int | None = None,
    mul_threshold: int | None = None,
    str_threshold: int | None = None,
) -> dict[str, Any]:
    """
    Keyword arguments for context.open_ctx(): explicit values win over the
    active profile's [ENGINE] section, which wins over the built-in defaults.
    WORKERS = 0 means "detect".
    """
    w = workers if workers is not None else CFG("ENGINE.WORKERS", 0)
    w = _as_int("ENGINE.WORKERS", w, 0)
    mt = mul_threshold if mul_threshold is not None else CFG("ENGINE.MUL_THRESHOLD", DEFAULT_MUL_THRESHOLD)
    st = str_threshold if str_threshold is not None else CFG("ENGINE.STR_THRESHOLD", DEFAULT_STR_THRESHOLD)
    return {
        "workers": w or None,
        "mul_threshold": _as_int("ENGINE.MUL_THRESHOLD", mt, MIN_THRESHOLD),
        "str_threshold": _as_int("ENGINE.STR_THRESHOLD", st, MIN_THRESHOLD),
    }


def output_format(explicit: str | None = None) -> str:
    fmt = explicit if explicit is not None else CFG("OUTPUT.FORMAT", "decimal")
    fmt = str(fmt).lower()
    if fmt not in OUTPUT_FORMATS:
        raise UserInputError(f"OUTPUT.FORMAT must be one of {', '.join(OUTPUT_FORMATS)}, got {fmt!r}.")
    return fmt

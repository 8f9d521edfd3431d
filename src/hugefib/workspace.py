from __future__ import annotations

import os
import shutil
from importlib.resources import as_file
from importlib.resources import files as pkg_files
from pathlib import Path

SUBDIRS = ("profiles", "results")


def workspace_dir() -> Path:
    env = os.environ.get("HUGEFIB_HOME")
    if env:
        return Path(env).expanduser().resolve()
    return (Path.home() / "Documents" / "HugeFib").resolve()


def _should_copy_file(p: Path) -> bool:
    if any(part == "__pycache__" for part in p.parts):
        return False
    if p.name.endswith("~") or p.name.startswith("."):
        return False
    return p.suffix.lower() == ".toml"


def _copy_tree(src: Path, dst: Path, *, overwrite: bool) -> int:
    count = 0
    if not src.exists():
        return 0
    for p in src.rglob("*"):
        if not p.is_file() or not _should_copy_file(p):
            continue
        target = dst / p.relative_to(src)
        target.parent.mkdir(parents=True, exist_ok=True)
        if overwrite or not target.exists():
            shutil.copy2(p, target)
            count += 1
    return count


def seed_workspace(*, overwrite: bool = False) -> tuple[Path, int]:
    """
    Create the workspace folders and copy the packaged profiles into it.

    overwrite=False → copy-if-missing (normal users)
    overwrite=True  → force replace (dev use, guarded in CLI)

    Returns: (workspace_path, profiles_copied)
    """
    root = workspace_dir()
    for sub in SUBDIRS:
        (root / sub).mkdir(parents=True, exist_ok=True)

    ref = pkg_files("hugefib") / "profiles"
    with as_file(ref) as real:
        copied = _copy_tree(Path(real), root / "profiles", overwrite=overwrite)
    return root, copied


def ensure_workspace_seeded() -> tuple[Path, bool]:
    root, copied = seed_workspace(overwrite=False)
    return root, copied > 0

# output_manager.py

import os

from hugefib.utility import validate_output_setting
from hugefib.workspace import workspace_dir

EXTENSIONS = {"decimal": ".txt", "binary": ".bin"}


def resolve_output_path(path: str, workspace_root: str) -> str:
    """
    Resolve user-provided output path.

    Rules:
    - '~' expanded to user home
    - Absolute paths unchanged
    - Relative paths are relative to workspace_root
    """
    if not path:
        raise ValueError("Output path is empty")

    path = os.path.expanduser(path)

    if os.path.isabs(path):
        return os.path.normpath(path)

    return os.path.normpath(os.path.join(workspace_root, path))


def _next_available_path(path: str) -> str:
    """
    If `path` does not exist, return it.
    Otherwise return path with _2, _3, ... inserted before the extension.
    """
    if not os.path.exists(path):
        return path

    base, ext = os.path.splitext(path)
    i = 2
    while True:
        candidate = f"{base}_{i}{ext}"
        if not os.path.exists(candidate):
            return candidate
        i += 1


class ResultWriter:
    """
    Persists a Fibonacci result as decimal text or raw bytes.

    Usage:
        # Directory mode (one file per index, never overwritten):
        w = ResultWriter(output_file="results/", n=1000, fmt="decimal")
        w.write_text(digits)     # -> <workspace>/results/F1000.txt

        # Single file (replaced on every run):
        w = ResultWriter(output_file="~/fib.bin", n=1000, fmt="binary")
        w.write_bytes(value.to_bytes())
    """

    def __init__(self, output_file: str | None, n: int, fmt: str = "decimal"):
        """
        Parameters:
            output_file:
                None or ""       => nothing is written
                "." or "./"      => per-index files in the workspace
                endswith "/"     => per-index files in the specified dir
                path/to/file.txt => this exact file
            n: the Fibonacci index, used for per-index filenames
            fmt: "decimal" or "binary"; anything else writes nothing
        """
        self.output_file = validate_output_setting(output_file) or ""
        self.n = n
        self.fmt = fmt
        self.path: str | None = None

        if not self.output_file or fmt not in EXTENSIONS:
            return

        workspace = str(workspace_dir())
        if self.output_file in (".", "./") or self.output_file.endswith(("/", os.sep)):
            directory = resolve_output_path(self.output_file, workspace)
            os.makedirs(directory, exist_ok=True)
            self.path = _next_available_path(os.path.join(directory, f"F{n}{EXTENSIONS[fmt]}"))
        else:
            path = resolve_output_path(self.output_file, workspace)
            parent = os.path.dirname(path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            self.path = path

    @property
    def enabled(self) -> bool:
        return self.path is not None

    def write_text(self, digits: str) -> str | None:
        if self.path is None:
            return None
        with open(self.path, "w", encoding="utf-8") as fh:
            fh.write(digits)
            fh.write("\n")
        return self.path

    def write_bytes(self, data: bytes) -> str | None:
        if self.path is None:
            return None
        with open(self.path, "wb") as fh:
            fh.write(data)
        return self.path

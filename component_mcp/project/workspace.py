"""Workspace boundary enforcement.

Every path the server reads or writes on behalf of a caller (local item
files, component targets, the working directory itself) is passed through
a :class:`WorkspaceGuard`.  The boundary is fixed when the guard is built
and never changes for the life of the process.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from pathlib import Path

from component_mcp.errors import PathOutsideWorkspace
from component_mcp.utils import validate_working_directory

WORKSPACE_CONVENTION = Path("/workspace")


class WorkspaceGuard:
    """Resolves caller-supplied paths and rejects anything outside ``root``."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).expanduser().resolve()

    def __repr__(self) -> str:
        return f"WorkspaceGuard(root={str(self.root)!r})"

    def resolve(self, path: str | Path, base: str | Path | None = None) -> Path:
        """Return the absolute, symlink-free form of *path*.

        Relative paths are taken from *base* (default: the root).  A
        leading ``~/`` means "relative to the workspace root", never the
        user's home directory.

        Raises:
            PathOutsideWorkspace: for empty paths, NUL bytes, ``..``
                segments, or anything that lands outside the root.
        """
        raw = str(path) if path is not None else ""
        if not raw:
            raise PathOutsideWorkspace(raw, "Invalid path: path must be a non-empty string")
        if "\0" in raw:
            raise PathOutsideWorkspace(raw.replace("\0", "\\0"), "Invalid path: null bytes not allowed")

        if raw.startswith("~/"):
            raw = raw[2:]
            base = self.root
        if any(part == ".." for part in Path(raw).parts):
            raise PathOutsideWorkspace(raw, "Dangerous path pattern detected")

        candidate = Path(raw)
        if not candidate.is_absolute():
            anchor = Path(base) if base is not None else self.root
            candidate = anchor / candidate
        resolved = candidate.resolve()

        if resolved != self.root and self.root not in resolved.parents:
            raise PathOutsideWorkspace(str(path), "Path outside workspace not allowed")
        return resolved


def default_workspace_root(
    workspace_dir: str | Path | None = None,
    convention: Path | None = WORKSPACE_CONVENTION,
    exists: Callable[[Path], bool] = Path.is_dir,
) -> Path:
    """The boundary used when none is given explicitly on the command line."""
    if convention is not None and exists(convention):
        return convention
    if workspace_dir:
        return Path(workspace_dir)
    return Path.cwd()


def resolve_workspace_cwd(
    requested: str | None,
    guard: WorkspaceGuard,
    env: Mapping[str, str] | None = None,
    convention: Path | None = WORKSPACE_CONVENTION,
    exists: Callable[[Path], bool] = Path.is_dir,
) -> Path:
    """Pick the working directory for a tool call.

    Priority: the ``/workspace`` convention directory if it exists, then
    ``WORKSPACE_DIR`` from *env*, then the caller's *requested* value, then
    the guard root.  The winner is always confined to the guard.
    """
    env = os.environ if env is None else env
    if convention is not None and exists(convention):
        chosen: str | Path = convention
    elif env.get("WORKSPACE_DIR"):
        chosen = env["WORKSPACE_DIR"]
    elif requested:
        chosen = requested
    else:
        chosen = guard.root

    resolved = guard.resolve(chosen)
    return validate_working_directory(resolved)

"""The project configuration descriptor (``components.json``).

:class:`RawConfig` mirrors the file on disk.  :class:`ProjectConfig` adds
``resolved_paths``: absolute directories computed from the aliases and the
project's ``tsconfig.json`` / ``jsconfig.json`` ``paths``.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from component_mcp.errors import SchemaViolation
from component_mcp.project.info import get_tailwind_version, get_ts_config_paths, load_ts_config
from component_mcp.utils import save_json

CONFIG_FILE = "components.json"
SCHEMA_URL = "https://ui.shadcn.com/schema.json"

DEFAULT_STYLE = "new-york"
DEFAULT_COMPONENTS = "@/components"
DEFAULT_UTILS = "@/lib/utils"
DEFAULT_TAILWIND_CSS = "app/globals.css"
DEFAULT_TAILWIND_CONFIG = "tailwind.config.js"
DEFAULT_TAILWIND_BASE_COLOR = "slate"

PACKAGE_SCAN_DEPTH = 3
_PACKAGE_SCAN_IGNORED = frozenset({"node_modules", ".git", "dist", "build", ".next", "public"})


class _DescriptorModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TailwindSettings(_DescriptorModel):
    config: str = ""
    css: str
    base_color: str = Field(alias="baseColor")
    css_variables: bool = Field(default=True, alias="cssVariables")
    prefix: str = ""


class Aliases(_DescriptorModel):
    components: str
    utils: str
    ui: str | None = None
    lib: str | None = None
    hooks: str | None = None


class RawConfig(_DescriptorModel):
    """``components.json`` exactly as stored."""

    schema_url: str | None = Field(default=None, alias="$schema")
    style: str
    rsc: bool = False
    tsx: bool = True
    tailwind: TailwindSettings
    aliases: Aliases
    icon_library: str | None = Field(default=None, alias="iconLibrary")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ResolvedPaths(_DescriptorModel):
    cwd: Path
    tailwind_config: Path | None = None
    tailwind_css: Path
    utils: Path
    components: Path
    ui: Path
    lib: Path
    hooks: Path

    def for_alias(self, alias: str) -> Path | None:
        return getattr(self, alias, None) if alias in ("components", "utils", "ui", "lib", "hooks") else None


class ProjectConfig(RawConfig):
    resolved_paths: ResolvedPaths

    @property
    def cwd(self) -> Path:
        return self.resolved_paths.cwd

    def raw(self) -> RawConfig:
        return RawConfig.model_validate(self.model_dump(exclude={"resolved_paths"}))


# ---------------------------------------------------------------------------
# Loading and writing
# ---------------------------------------------------------------------------


def load_raw_config(cwd: str | Path) -> RawConfig | None:
    """Read ``components.json`` from *cwd*; ``None`` when the file does not exist.

    Raises:
        SchemaViolation: when the file exists but is malformed.
    """
    path = Path(cwd) / CONFIG_FILE
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SchemaViolation(CONFIG_FILE, [{"field": "(root)", "message": f"invalid JSON: {exc}"}]) from exc
    try:
        return RawConfig.model_validate(data)
    except ValidationError as exc:
        raise SchemaViolation.from_validation_error(f"{CONFIG_FILE} at {cwd}", exc) from exc


async def write_config(cwd: str | Path, config: RawConfig) -> Path:
    target = Path(cwd) / CONFIG_FILE
    await save_json(config.to_json(), target)
    return target


def resolve_import(alias: str, cwd: Path) -> Path | None:
    """Resolve an import specifier such as ``@/components`` through tsconfig ``paths``."""
    ts_config = load_ts_config(cwd) or {}
    base_url = ts_config.get("compilerOptions", {}).get("baseUrl", ".")
    for pattern, targets in get_ts_config_paths(cwd).items():
        if not targets:
            continue
        if pattern.endswith("*"):
            prefix = pattern[:-1]
            if not alias.startswith(prefix):
                continue
            target = targets[0].replace("*", alias[len(prefix):])
        elif alias == pattern:
            target = targets[0]
        else:
            continue
        return Path(os.path.normpath(cwd / base_url / target))
    return None


def _resolve_or_strip(alias: str, cwd: Path) -> Path:
    resolved = resolve_import(alias, cwd)
    if resolved is not None:
        return resolved
    # No matching path mapping: treat the alias body as project-relative.
    _, _, remainder = alias.partition("/")
    return Path(os.path.normpath(cwd / (remainder or alias)))


def resolve_config_paths(cwd: str | Path, config: RawConfig) -> ProjectConfig:
    root = Path(cwd).resolve()
    utils = _resolve_or_strip(config.aliases.utils, root)
    components = _resolve_or_strip(config.aliases.components, root)
    resolved = ResolvedPaths(
        cwd=root,
        tailwind_config=(root / config.tailwind.config) if config.tailwind.config else None,
        tailwind_css=root / config.tailwind.css,
        utils=utils,
        components=components,
        ui=_resolve_or_strip(config.aliases.ui, root) if config.aliases.ui else components / "ui",
        lib=_resolve_or_strip(config.aliases.lib, root) if config.aliases.lib else utils.parent,
        hooks=_resolve_or_strip(config.aliases.hooks, root) if config.aliases.hooks else components.parent / "hooks",
    )
    return ProjectConfig(**config.model_dump(), resolved_paths=resolved)


def get_config(cwd: str | Path) -> ProjectConfig | None:
    raw = load_raw_config(cwd)
    if raw is None:
        return None
    return resolve_config_paths(cwd, raw)


def target_style(config: RawConfig, cwd: str | Path) -> str:
    """Catalog style to fetch from: v4 projects use the ``new-york-v4`` tree."""
    if get_tailwind_version(cwd) == "v4":
        return "new-york-v4"
    return config.style


# ---------------------------------------------------------------------------
# Monorepo support
# ---------------------------------------------------------------------------


def find_common_root(a: str | Path, b: str | Path) -> Path:
    parts_a, parts_b = Path(a).parts, Path(b).parts
    common: list[str] = []
    for left, right in zip(parts_a, parts_b):
        if left != right:
            break
        common.append(left)
    return Path(*common) if common else Path("/")


def _package_dirs(root: Path, depth: int = 0):
    if depth > PACKAGE_SCAN_DEPTH:
        return
    try:
        entries = sorted(root.iterdir())
    except OSError:
        return
    for entry in entries:
        if entry.is_dir() and entry.name not in _PACKAGE_SCAN_IGNORED:
            if (entry / "package.json").is_file():
                yield entry
            yield from _package_dirs(entry, depth + 1)


def find_package_root(cwd: str | Path, resolved_path: str | Path) -> Path | None:
    """The nested package (below the common root) that contains *resolved_path*."""
    common = find_common_root(cwd, resolved_path)
    target = Path(resolved_path)
    matches = [pkg for pkg in _package_dirs(common) if pkg == target or pkg in target.parents]
    if not matches:
        return None
    return max(matches, key=lambda pkg: len(pkg.parts))


def get_workspace_config(config: ProjectConfig) -> dict[str, ProjectConfig] | None:
    """Per-alias configs for monorepos; ``None`` when a package lacks ``components.json``."""
    resolved: dict[str, ProjectConfig] = {}
    for alias in ("components", "utils", "ui", "lib", "hooks"):
        path = config.resolved_paths.for_alias(alias)
        package_root = find_package_root(config.cwd, path) if path else None
        if package_root is None or package_root == config.cwd:
            resolved[alias] = config
            continue
        other = get_config(package_root)
        if other is None:
            return None
        resolved[alias] = other
    return resolved

"""Write catalog item files into the project."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from component_mcp.project.config import ProjectConfig
from component_mcp.project.workspace import WorkspaceGuard
from component_mcp.registry.models import KIND_ALIAS_MAP, ItemKind, RegistryItemFile
from component_mcp.utils import read_text, write_file

logger = logging.getLogger(__name__)

# registry/new-york/ui/button.tsx -> button.tsx
_REGISTRY_PREFIX_RE = re.compile(r"^(?:registry/)?[^/]+/(?:ui|lib|hooks|blocks|components|examples)/")
_IMPORT_RE = re.compile(r"""(["'])@/([^"'\n]+)\1""")
_USE_CLIENT_RE = re.compile(r"""^\s*["']use client["'];?[ \t]*\r?\n?""")

_REGISTRY_SPECIFIER_RE = re.compile(r"^registry/[^/]+/(ui|lib|hooks|components|blocks)(/.*)?$")


@dataclass
class FileChanges:
    created: list[Path] = field(default_factory=list)
    modified: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Target resolution
# ---------------------------------------------------------------------------


def target_directory(kind: ItemKind, config: ProjectConfig) -> Path:
    alias = KIND_ALIAS_MAP.get(kind)
    if alias is None:
        return config.cwd
    return config.resolved_paths.for_alias(alias) or config.cwd


def relative_target(file: RegistryItemFile) -> str:
    """Path of *file* below its target directory."""
    path = file.path.replace("\\", "/")
    stripped = _REGISTRY_PREFIX_RE.sub("", path, count=1)
    if file.type in (ItemKind.BLOCK, ItemKind.COMPONENT) or stripped == path:
        return PurePosixPath(path).name
    return stripped


def resolve_file_target(file: RegistryItemFile, config: ProjectConfig, guard: WorkspaceGuard) -> Path:
    """Absolute destination for *file*, confined by *guard*.

    ``file``/``page`` kinds and any file with an explicit ``target`` are
    placed relative to the project root.

    Raises:
        PathOutsideWorkspace: when the destination escapes the boundary.
    """
    if file.target:
        target = file.target
        if target.startswith("~/"):
            target = target[2:]
        return guard.resolve(target, base=config.cwd)
    base = target_directory(file.type, config)
    return guard.resolve(relative_target(file), base=base)


# ---------------------------------------------------------------------------
# Content transforms
# ---------------------------------------------------------------------------


def _alias_for(kind: str, config: ProjectConfig) -> str:
    aliases = config.aliases
    if kind == "ui":
        return aliases.ui or f"{aliases.components}/ui"
    if kind == "lib":
        return aliases.lib or aliases.utils.rsplit("/", 1)[0]
    if kind == "hooks":
        return aliases.hooks or aliases.components.rsplit("/", 1)[0] + "/hooks"
    return aliases.components


def rewrite_import(specifier: str, config: ProjectConfig) -> str:
    """Map an ``@/``-relative specifier (without the ``@/``) onto the project aliases."""
    match = _REGISTRY_SPECIFIER_RE.match(specifier)
    if match:
        kind, rest = match.group(1), match.group(2) or ""
        if kind == "lib" and rest == "/utils":
            return config.aliases.utils
        if kind == "blocks":
            kind = "components"
        return _alias_for(kind, config) + rest

    if specifier == "lib/utils":
        return config.aliases.utils
    for prefix, kind in (("components/ui", "ui"), ("components", "components"), ("hooks", "hooks"), ("lib", "lib")):
        if specifier == prefix or specifier.startswith(prefix + "/"):
            return _alias_for(kind, config) + specifier[len(prefix):]

    prefix = config.aliases.components.split("/", 1)[0]
    return f"{prefix}/{specifier}"


def transform_content(content: str, config: ProjectConfig) -> str:
    """Rewrite ``@/`` imports and drop ``"use client"`` for non-RSC projects."""
    content = _IMPORT_RE.sub(lambda m: f"{m.group(1)}{rewrite_import(m.group(2), config)}{m.group(1)}", content)
    if not config.rsc:
        content = _USE_CLIENT_RE.sub("", content, count=1).lstrip("\n")
    return content


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


async def update_files(
    files: list[RegistryItemFile],
    config: ProjectConfig,
    overwrite: bool = False,
    guard: WorkspaceGuard | None = None,
) -> FileChanges:
    """Write *files* to their targets.

    Existing targets are skipped unless *overwrite* is set, in which case
    they are rewritten and reported as modified.
    """
    guard = guard or WorkspaceGuard(config.cwd)
    changes = FileChanges()
    for file in files:
        if not file.content:
            continue
        target = resolve_file_target(file, config, guard)
        existing = await asyncio.to_thread(read_text, target)
        if existing is not None and not overwrite:
            logger.debug("Skipping existing file %s", target)
            changes.skipped.append(target)
            continue
        await asyncio.to_thread(write_file, target, transform_content(file.content, config))
        if existing is None:
            changes.created.append(target)
        else:
            changes.modified.append(target)
    return changes

"""Add catalog components to a configured project.

Single-package projects get one merged tree applied in one pass.  In a
monorepo whose ``ui`` alias points into another package (with its own
``components.json``), items are applied one by one so each lands in the
package it belongs to.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel

from component_mcp.project.config import ProjectConfig, find_common_root, get_workspace_config, target_style
from component_mcp.project.info import get_tailwind_version
from component_mcp.project.mutator import MutationOptions, MutationResult, ProjectMutator
from component_mcp.registry.merge import merge_items
from component_mcp.registry.models import KIND_ALIAS_MAP, ItemKind, RegistryItem
from component_mcp.registry.resolver import INDEX_ITEM, DependencyResolver
from component_mcp.server.progress import report

if TYPE_CHECKING:
    from component_mcp.server.progress import ProgressReporter

logger = logging.getLogger(__name__)


class AddOptions(BaseModel):
    overwrite: bool = False
    is_new_project: bool = False
    flag: Literal["force", "legacy-peer-deps"] | None = None


@dataclass
class AddOutcome:
    """Paths are relative to the project (or, in a monorepo, the common root)."""

    files_created: list[str] = field(default_factory=list)
    files_modified: list[str] = field(default_factory=list)
    files_skipped: list[str] = field(default_factory=list)
    dependencies_installed: list[str] = field(default_factory=list)

    def record(self, result: MutationResult, root: Path) -> None:
        def rel(paths: list[Path]) -> list[str]:
            return [Path(os.path.relpath(p, root)).as_posix() for p in paths]

        for path in rel(result.config_modified) + rel(result.files.modified):
            if path not in self.files_modified:
                self.files_modified.append(path)
        self.files_created.extend(rel(result.files.created))
        self.files_skipped.extend(rel(result.files.skipped))
        for dep in result.dependencies_installed:
            if dep not in self.dependencies_installed:
                self.dependencies_installed.append(dep)


def should_overwrite_css_vars(components: list[str], items: list[RegistryItem]) -> bool:
    """Explicitly requested themes and styles replace existing variables."""
    requested = set(components)
    return any(item.type in (ItemKind.THEME, ItemKind.STYLE) for item in items if item.name in requested)


def _mutation_options(components: list[str], items: list[RegistryItem], options: AddOptions) -> MutationOptions:
    return MutationOptions(
        overwrite=options.overwrite,
        overwrite_css_vars=should_overwrite_css_vars(components, items),
        is_new_project=options.is_new_project,
        init_index=INDEX_ITEM in components,
        flag=f"--{options.flag}" if options.flag else None,
    )


async def add_components(
    components: list[str],
    config: ProjectConfig,
    resolver: DependencyResolver,
    mutator: ProjectMutator,
    options: AddOptions | None = None,
    progress: ProgressReporter | None = None,
) -> AddOutcome:
    """Resolve *components* and apply them to the project described by *config*.

    Raises:
        EmptyComponentList: when *components* is empty.
        ComponentMcpError: resolution or mutation failures.
    """
    options = options or AddOptions()
    workspace = get_workspace_config(config)
    if workspace and workspace["ui"].cwd != config.cwd:
        return await add_workspace_components(components, config, workspace, resolver, mutator, options, progress)
    return await add_project_components(components, config, resolver, mutator, options, progress)


async def add_project_components(
    components: list[str],
    config: ProjectConfig,
    resolver: DependencyResolver,
    mutator: ProjectMutator,
    options: AddOptions,
    progress: ProgressReporter | None = None,
) -> AddOutcome:
    await report(progress, "Checking registry")
    tree = await resolver.resolve(
        components,
        config,
        style=target_style(config, config.cwd),
        tailwind_version=get_tailwind_version(config.cwd),
    )
    result = await mutator.apply(tree, config, _mutation_options(components, tree.items, options), progress)

    outcome = AddOutcome()
    outcome.record(result, config.cwd)
    return outcome


async def add_workspace_components(
    components: list[str],
    config: ProjectConfig,
    workspace: dict[str, ProjectConfig],
    resolver: DependencyResolver,
    mutator: ProjectMutator,
    options: AddOptions,
    progress: ProgressReporter | None = None,
) -> AddOutcome:
    await report(progress, "Checking registry")
    tree = await resolver.resolve(
        components,
        config,
        style=target_style(config, config.cwd),
        tailwind_version=get_tailwind_version(config.cwd),
    )

    parents: dict[str, RegistryItem] = {}
    for item in tree.items:
        for dependency in item.registry_dependencies:
            parents.setdefault(dependency, item)

    ui_config = workspace["ui"]
    outcome = AddOutcome()
    for item in tree.items:
        if item.unresolved or KIND_ALIAS_MAP.get(item.type) is None:
            continue
        parent = parents.get(item.name)
        is_ui = item.type is ItemKind.UI or (parent is not None and parent.type is ItemKind.UI)
        target = ui_config if is_ui else config

        await report(progress, f"Installing {item.name} into {target.cwd}")
        workspace_root = find_common_root(config.cwd, target.resolved_paths.ui)
        result = await mutator.apply(
            merge_items([item]),
            target,
            _mutation_options(components, [item], options),
            progress,
        )
        outcome.record(result, workspace_root)

    outcome.files_created.sort()
    outcome.files_modified.sort()
    outcome.files_skipped.sort()
    return outcome

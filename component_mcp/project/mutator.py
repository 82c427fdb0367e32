"""Apply a resolved catalog tree to a project.

The five updates always run in the same order and one at a time:
Tailwind config, CSS variables, raw CSS, dependencies, files.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from component_mcp.project.config import ProjectConfig
from component_mcp.project.info import get_tailwind_version
from component_mcp.project.updaters.css import update_css
from component_mcp.project.updaters.css_vars import update_css_vars
from component_mcp.project.updaters.dependencies import Installer, update_dependencies
from component_mcp.project.updaters.files import FileChanges, update_files
from component_mcp.project.updaters.tailwind_config import update_tailwind_config
from component_mcp.project.workspace import WorkspaceGuard
from component_mcp.registry.models import ResolvedTree
from component_mcp.server.progress import report
from component_mcp.templates import TemplateRenderer

if TYPE_CHECKING:
    from component_mcp.server.progress import ProgressReporter

logger = logging.getLogger(__name__)


@dataclass
class MutationOptions:
    overwrite: bool = False
    overwrite_css_vars: bool = False
    is_new_project: bool = False
    init_index: bool = False
    flag: str | None = None


@dataclass
class MutationResult:
    files: FileChanges = field(default_factory=FileChanges)
    # tailwind config / stylesheet paths touched by steps 1-3
    config_modified: list[Path] = field(default_factory=list)
    dependencies_installed: list[str] = field(default_factory=list)


class ProjectMutator:
    """Runs the update pipeline for one project.

    Attributes:
        guard: Boundary every written file is checked against.
        installer: Package-manager runner; defaults to the allow-listed
            subprocess wrapper.
        renderer: Template renderer for new Tailwind config files.
    """

    def __init__(
        self,
        guard: WorkspaceGuard,
        installer: Installer | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.guard = guard
        self.installer = installer
        self.renderer = renderer or TemplateRenderer()

    async def apply(
        self,
        tree: ResolvedTree,
        config: ProjectConfig,
        options: MutationOptions | None = None,
        progress: ProgressReporter | None = None,
    ) -> MutationResult:
        options = options or MutationOptions()
        result = MutationResult()
        tailwind_version = get_tailwind_version(config.cwd)
        tailwind_fragment = tree.tailwind.get("config") if tree.tailwind else None

        await report(progress, "Updating Tailwind configuration")
        path = await update_tailwind_config(tailwind_fragment, config, tailwind_version, self.renderer)
        if path is not None:
            result.config_modified.append(path)

        await report(progress, "Updating CSS variables")
        path = await update_css_vars(
            tree.css_vars,
            config,
            tailwind_version,
            tailwind_config=tailwind_fragment,
            overwrite=options.overwrite_css_vars,
            cleanup_default_next_styles=options.is_new_project,
            init_index=options.init_index,
        )
        if path is not None and path not in result.config_modified:
            result.config_modified.append(path)

        await report(progress, "Updating CSS")
        path = await update_css(tree.css, config)
        if path is not None and path not in result.config_modified:
            result.config_modified.append(path)

        if tree.dependencies or tree.dev_dependencies:
            await report(progress, "Installing dependencies")
        result.dependencies_installed = await update_dependencies(
            tree.dependencies,
            tree.dev_dependencies,
            config,
            flags=[options.flag] if options.flag else None,
            installer=self.installer,
        )

        await report(progress, "Writing files")
        result.files = await update_files(tree.files, config, overwrite=options.overwrite, guard=self.guard)

        if tree.docs:
            logger.info(tree.docs)
        return result

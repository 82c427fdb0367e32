"""Checks that run before a project is initialised."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from component_mcp.errors import (
    ConfigAlreadyExists,
    ImportAliasMissing,
    MissingProjectOrEmptyDirectory,
    StyleFrameworkNotConfigured,
)
from component_mcp.project.config import CONFIG_FILE
from component_mcp.project.info import ProjectInfo, get_project_info
from component_mcp.server.progress import report

if TYPE_CHECKING:
    from component_mcp.server.progress import ProgressReporter

logger = logging.getLogger(__name__)


def missing_tailwind_signal(info: ProjectInfo) -> str | None:
    """What is missing from the project's Tailwind setup, or ``None`` if complete."""
    if info.tailwind_version is None:
        return "tailwindcss dependency"
    if info.tailwind_version == "v3":
        if not info.tailwind_config_file:
            return "tailwind config file"
        if not info.tailwind_css_file:
            return "tailwind stylesheet"
    if info.tailwind_version == "v4" and not info.tailwind_css_file:
        return "tailwind stylesheet"
    return None


async def preflight_init(
    cwd: str | Path,
    force: bool = False,
    progress: ProgressReporter | None = None,
) -> ProjectInfo:
    """Validate *cwd* for initialisation and return its :class:`ProjectInfo`.

    Raises:
        MissingProjectOrEmptyDirectory: no directory or no ``package.json``.
        ConfigAlreadyExists: ``components.json`` present and *force* unset.
        StyleFrameworkNotConfigured: Tailwind missing or half configured.
        ImportAliasMissing: no path alias in tsconfig/jsconfig.
    """
    root = Path(cwd)
    if not root.is_dir() or not (root / "package.json").is_file():
        raise MissingProjectOrEmptyDirectory(str(root))

    await report(progress, "Preflight checks")
    if (root / CONFIG_FILE).exists() and not force:
        raise ConfigAlreadyExists(str(root))

    info = get_project_info(root)
    if info is None:
        raise MissingProjectOrEmptyDirectory(str(root))
    await report(progress, f"Verifying framework. Found {info.framework.label}.")

    missing = missing_tailwind_signal(info)
    if missing is not None:
        raise StyleFrameworkNotConfigured(str(root), missing, info.framework.tailwind or None)

    await report(progress, "Validating import alias")
    if not info.alias_prefix:
        raise ImportAliasMissing(str(root), info.framework.installation or None)

    logger.debug("Preflight passed for %s (%s, tailwind %s)", root, info.framework.name, info.tailwind_version)
    return info

"""Install npm dependencies declared by catalog items."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Awaitable, Callable

from component_mcp.project.config import ProjectConfig
from component_mcp.project.info import get_package_info, get_package_manager, is_react_19_with_day_picker_8
from component_mcp.utils import run_allowed_command, validate_package_name

logger = logging.getLogger(__name__)

# (command, args, cwd) -> stdout
Installer = Callable[[str, list[str], Path], Awaitable[str]]

FORCE_FLAGS = ("--force",)
_FLAG_SUPPORTING_MANAGERS = ("npm", "pnpm")


def _dedupe(packages: list[str] | None) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for package in packages or []:
        package = package.strip()
        if package and package not in seen:
            seen.add(package)
            out.append(package)
    return out


def build_install_commands(
    package_manager: str,
    dependencies: list[str],
    dev_dependencies: list[str],
    flags: list[str] | None = None,
) -> list[tuple[str, list[str]]]:
    """The ``(command, args)`` pairs that install the given packages.

    ``package_manager`` may also be ``"expo"``, which installs through
    ``npx expo install`` so versions match the Expo SDK.
    """
    flags = list(flags or [])
    commands: list[tuple[str, list[str]]] = []

    if package_manager == "expo":
        if dependencies:
            commands.append(("npx", ["expo", "install", *dependencies]))
        if dev_dependencies:
            commands.append(("npx", ["expo", "install", "-D", *dev_dependencies]))
        return commands

    if package_manager == "deno":
        if dependencies:
            commands.append(("deno", ["add", *(f"npm:{d}" for d in dependencies)]))
        if dev_dependencies:
            commands.append(("deno", ["add", "-D", *(f"npm:{d}" for d in dev_dependencies)]))
        return commands

    if package_manager in ("yarn", "bun"):
        if dependencies:
            commands.append((package_manager, ["add", *dependencies]))
        if dev_dependencies:
            commands.append((package_manager, ["add", "-D", *dev_dependencies]))
        return commands

    base = ["install", "--legacy-peer-deps"] if package_manager == "npm" else ["install"]
    flags = [flag for flag in flags if flag not in base]
    if dependencies:
        commands.append((package_manager, [*base, *flags, *dependencies]))
    if dev_dependencies:
        commands.append((package_manager, [*base, *flags, "-D", *dev_dependencies]))
    return commands


async def update_dependencies(
    dependencies: list[str] | None,
    dev_dependencies: list[str] | None,
    config: ProjectConfig,
    flags: list[str] | None = None,
    installer: Installer | None = None,
) -> list[str]:
    """Install runtime and dev dependencies with the project's package manager.

    Installer flags are only used for projects on React 19 with
    ``react-day-picker`` 8, and only with npm or pnpm.  Such projects get
    the caller's *flags*, or ``--force`` when none were given; every other
    install runs without flags.

    Returns:
        Every package spec that was installed, runtime ones first.

    Raises:
        CommandExecutionFailed: when a package name is invalid or the
            package manager exits non-zero.
    """
    deps = [validate_package_name(d) for d in _dedupe(dependencies)]
    dev_deps = [validate_package_name(d) for d in _dedupe(dev_dependencies)]
    if not deps and not dev_deps:
        return []

    cwd = config.cwd
    project_deps = (get_package_info(cwd) or {}).get("dependencies", {})
    if "expo" in project_deps:
        package_manager = "expo"
    else:
        package_manager = get_package_manager(cwd)

    install_flags: list[str] = []
    if package_manager in _FLAG_SUPPORTING_MANAGERS and is_react_19_with_day_picker_8(cwd):
        install_flags = list(flags) if flags else list(FORCE_FLAGS)
        logger.info("React 19 with react-day-picker 8 detected, installing with %s", " ".join(install_flags))

    run = installer or _default_installer
    for command, args in build_install_commands(package_manager, deps, dev_deps, install_flags):
        logger.info("Installing dependencies: %s %s", command, " ".join(args))
        await run(command, args, cwd)
    return deps + dev_deps


async def _default_installer(command: str, args: list[str], cwd: Path) -> str:
    return await run_allowed_command(command, args, cwd)

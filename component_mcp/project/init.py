"""Initialise a project: write ``components.json`` and install the base style."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from component_mcp.project.add import AddOptions, add_components
from component_mcp.project.config import (
    DEFAULT_COMPONENTS,
    DEFAULT_TAILWIND_BASE_COLOR,
    DEFAULT_TAILWIND_CONFIG,
    DEFAULT_TAILWIND_CSS,
    DEFAULT_UTILS,
    SCHEMA_URL,
    Aliases,
    ProjectConfig,
    RawConfig,
    TailwindSettings,
    load_raw_config,
    resolve_config_paths,
    write_config,
)
from component_mcp.project.info import ProjectInfo, get_project_info, get_tailwind_version
from component_mcp.project.mutator import ProjectMutator
from component_mcp.project.preflight import preflight_init
from component_mcp.project.updaters.tailwind_config import update_tailwind_content
from component_mcp.registry.resolver import INDEX_ITEM, DependencyResolver
from component_mcp.registry.themes import BASE_COLORS
from component_mcp.server.progress import report

if TYPE_CHECKING:
    from component_mcp.server.progress import ProgressReporter

logger = logging.getLogger(__name__)

TEMPLATES = ("next", "next-monorepo")
SRC_CONTENT_GLOB = "./src/**/*.{js,ts,jsx,tsx,mdx}"


class InitOptions(BaseModel):
    """Options accepted by :func:`run_init` (and the ``execute_init`` tool)."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    style: Literal["new-york", "default", "none"] = "new-york"
    base_color: str = Field(default=DEFAULT_TAILWIND_BASE_COLOR)
    src_dir: bool = False
    css_variables: bool = True
    force: bool = False
    template: str | None = None
    flag: Literal["force", "legacy-peer-deps"] | None = None
    components: list[str] = Field(default_factory=list)
    is_new_project: bool = False
    skip_preflight: bool = False

    @field_validator("base_color")
    @classmethod
    def _check_base_color(cls, value: str) -> str:
        names = [color["name"] for color in BASE_COLORS]
        if value not in names:
            raise ValueError(f"Invalid base color. Please use '{', '.join(names)}'")
        return value

    @field_validator("template")
    @classmethod
    def _check_template(cls, value: str | None) -> str | None:
        if value is not None and value not in TEMPLATES:
            raise ValueError("Invalid template. Please use 'next' or 'next-monorepo'.")
        return value


def build_raw_config(info: ProjectInfo, options: InitOptions) -> RawConfig:
    """A fresh descriptor derived from what was detected in the project."""
    prefix = info.alias_prefix
    components = f"{prefix}/components" if prefix else DEFAULT_COMPONENTS
    utils = f"{prefix}/lib/utils" if prefix else DEFAULT_UTILS
    return RawConfig(
        schema_url=SCHEMA_URL,
        style=options.style,
        rsc=info.is_rsc,
        tsx=info.is_tsx,
        tailwind=TailwindSettings(
            config=info.tailwind_config_file or ("" if info.tailwind_version == "v4" else DEFAULT_TAILWIND_CONFIG),
            css=info.tailwind_css_file or DEFAULT_TAILWIND_CSS,
            base_color=options.base_color,
            css_variables=options.css_variables,
            prefix="",
        ),
        aliases=Aliases(
            components=components,
            utils=utils,
            ui=f"{components}/ui",
            lib=re.sub(r"/utils$", "", utils),
            hooks=re.sub(r"/components$", "/hooks", components),
        ),
    )


def reuse_raw_config(existing: RawConfig, options: InitOptions) -> RawConfig:
    """Keep an existing descriptor, applying the requested style and colours."""
    tailwind = existing.tailwind.model_copy(
        update={"base_color": options.base_color, "css_variables": options.css_variables}
    )
    return existing.model_copy(update={"style": options.style, "tailwind": tailwind})


async def run_init(
    cwd: str | Path,
    options: InitOptions,
    resolver: DependencyResolver,
    mutator: ProjectMutator,
    progress: ProgressReporter | None = None,
) -> ProjectConfig:
    """Write ``components.json`` for *cwd* and install the base style.

    Raises:
        MissingProjectOrEmptyDirectory, ConfigAlreadyExists,
        StyleFrameworkNotConfigured, ImportAliasMissing: from the
            preflight checks (skipped with ``skip_preflight``).
        ComponentMcpError: from resolving or applying the base style.
    """
    root = Path(cwd)
    if options.skip_preflight:
        info = get_project_info(root) or ProjectInfo(cwd=root)
    else:
        info = await preflight_init(root, force=options.force, progress=progress)

    existing = load_raw_config(root)
    raw = reuse_raw_config(existing, options) if existing is not None else build_raw_config(info, options)

    await report(progress, "Writing components.json")
    await write_config(root, raw)
    config = resolve_config_paths(root, raw)

    components = ([] if options.style == "none" else [INDEX_ITEM]) + list(options.components)
    if components:
        await add_components(
            components,
            config,
            resolver,
            mutator,
            AddOptions(
                overwrite=True,
                is_new_project=options.is_new_project or info.framework.name == "next-app",
                flag=options.flag,
            ),
            progress,
        )

    if options.is_new_project and options.src_dir:
        await update_tailwind_content([SRC_CONTENT_GLOB], config, get_tailwind_version(root))

    logger.info("Initialised %s with style %s", root, options.style)
    return config

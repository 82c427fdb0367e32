"""End-to-end ``add`` command used by the ``add_item`` and ``execute_add`` tools."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from component_mcp.errors import DeprecatedComponentRequested, EmptyComponentList, MissingProjectOrEmptyDirectory
from component_mcp.project.add import AddOptions, add_components
from component_mcp.project.config import get_config
from component_mcp.project.info import get_project_info
from component_mcp.project.init import InitOptions, run_init
from component_mcp.project.mutator import ProjectMutator
from component_mcp.registry.resolver import DependencyResolver
from component_mcp.server.progress import report

if TYPE_CHECKING:
    from component_mcp.server.progress import ProgressReporter

logger = logging.getLogger(__name__)

DEPRECATED_COMPONENTS: list[dict[str, str]] = [
    {
        "name": "toast",
        "deprecated_by": "sonner",
        "message": "The toast component is deprecated. Use the sonner component instead.",
    },
    {
        "name": "toaster",
        "deprecated_by": "sonner",
        "message": "The toaster component is deprecated. Use the sonner component instead.",
    },
]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class AddRequest(_CamelModel):
    components: list[str]
    overwrite: bool = False
    src_dir: bool = False
    css_variables: bool = True
    init_options: InitOptions | None = None


class AddResult(_CamelModel):
    success: bool
    message: str
    components_added: list[str] = Field(default_factory=list)
    files_created: list[str] = Field(default_factory=list)
    files_modified: list[str] = Field(default_factory=list)
    files_skipped: list[str] = Field(default_factory=list)
    dependencies_installed: list[str] = Field(default_factory=list)

    def structured(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def check_deprecated(components: list[str], tailwind_version: str | None) -> None:
    """Reject deprecated components on Tailwind v4 projects.

    Raises:
        DeprecatedComponentRequested: naming the replacement for each one.
    """
    if tailwind_version != "v4":
        return
    found = [entry for entry in DEPRECATED_COMPONENTS if entry["name"] in components]
    if found:
        raise DeprecatedComponentRequested(
            [entry["name"] for entry in found],
            [entry["message"] for entry in found],
        )


async def execute_add_command(
    cwd: str | Path,
    request: AddRequest,
    resolver: DependencyResolver,
    mutator: ProjectMutator,
    progress: ProgressReporter | None = None,
) -> AddResult:
    """Add ``request.components`` to the project at *cwd*.

    A project without ``components.json`` is initialised first.

    Raises:
        EmptyComponentList: before anything is fetched.
        DeprecatedComponentRequested: before anything is written.
        MissingProjectOrEmptyDirectory: when *cwd* holds no project.
    """
    root = Path(cwd)
    components = list(request.components)
    if not components:
        raise EmptyComponentList()

    await report(progress, "Getting project information")
    info = get_project_info(root)
    check_deprecated(components, info.tailwind_version if info else None)

    config = get_config(root)
    if config is None:
        if info is None:
            raise MissingProjectOrEmptyDirectory(str(root))
        await report(progress, "No components.json found, initialising the project")
        init_options = request.init_options or InitOptions(
            src_dir=request.src_dir,
            css_variables=request.css_variables,
        )
        config = await run_init(root, init_options, resolver, mutator, progress)

    await report(progress, f"Adding components: {', '.join(components)}")
    flag = request.init_options.flag if request.init_options else None
    outcome = await add_components(
        components,
        config,
        resolver,
        mutator,
        AddOptions(overwrite=request.overwrite, flag=flag),
        progress,
    )

    return AddResult(
        success=True,
        message=f"Successfully added components {', '.join(components)} to your project at {root}",
        components_added=components,
        files_created=outcome.files_created,
        files_modified=outcome.files_modified,
        files_skipped=outcome.files_skipped,
        dependencies_installed=outcome.dependencies_installed,
    )

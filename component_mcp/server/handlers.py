"""Tool handlers.

Each handler validates its arguments, runs the operation and returns an
MCP ``CallToolResult``.  Errors never escape: :func:`dispatch` turns every
failure into an ``isError`` result so one bad request cannot take the
server down.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
from mcp.types import CallToolResult, EmbeddedResource, TextContent, TextResourceContents
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from component_mcp.config import ServerConfig
from component_mcp.errors import ComponentMcpError, SchemaViolation, error_payload
from component_mcp.project.commands import AddRequest, execute_add_command
from component_mcp.project.config import CONFIG_FILE
from component_mcp.project.init import InitOptions, run_init
from component_mcp.project.mutator import ProjectMutator
from component_mcp.project.updaters.dependencies import Installer
from component_mcp.project.workspace import WORKSPACE_CONVENTION, WorkspaceGuard, resolve_workspace_cwd
from component_mcp.registry.cache import RegistryCache
from component_mcp.registry.client import CatalogClient
from component_mcp.registry.models import ItemKind
from component_mcp.registry.resolver import DependencyResolver
from component_mcp.server.limiter import OperationLimiter
from component_mcp.server.progress import ProgressReporter
from component_mcp.templates import TemplateRenderer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


@dataclass
class ServerContext:
    """Everything a handler needs, built once per server process."""

    config: ServerConfig
    guard: WorkspaceGuard
    client: CatalogClient
    resolver: DependencyResolver
    mutator: ProjectMutator
    limiter: OperationLimiter
    renderer: TemplateRenderer = field(default_factory=TemplateRenderer)
    convention: Path | None = WORKSPACE_CONVENTION
    env: Mapping[str, str] | None = None

    @classmethod
    def create(
        cls,
        config: ServerConfig,
        workspace_root: str | Path,
        transport: httpx.AsyncBaseTransport | None = None,
        installer: Installer | None = None,
        convention: Path | None = WORKSPACE_CONVENTION,
        env: Mapping[str, str] | None = None,
    ) -> "ServerContext":
        guard = WorkspaceGuard(workspace_root)
        renderer = TemplateRenderer()
        client = CatalogClient(
            config.registry_url,
            cache=RegistryCache(),
            policy=config.url_policy,
            timeout=config.http.timeout,
            max_response_bytes=config.http.max_response_bytes,
            guard=guard,
            proxy=config.http.proxy,
            transport=transport,
        )
        return cls(
            config=config,
            guard=guard,
            client=client,
            resolver=DependencyResolver(client),
            mutator=ProjectMutator(guard, installer=installer, renderer=renderer),
            limiter=OperationLimiter(config.max_concurrent_operations),
            renderer=renderer,
            convention=convention,
            env=env,
        )

    def working_directory(self, requested: str | None) -> Path:
        return resolve_workspace_cwd(requested, self.guard, env=self.env, convention=self.convention)


# ---------------------------------------------------------------------------
# Argument models
# ---------------------------------------------------------------------------


class _Args(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="ignore")


class GetItemArgs(_Args):
    name: str


class ExecuteInitArgs(_Args):
    cwd: str | None = None
    style: str = "new-york"
    base_color: str = "slate"
    src_dir: bool = False
    css_variables: bool = True
    force: bool = False
    template: str | None = None


class _AddArgs(_Args):
    cwd: str | None = None
    overwrite: bool = False
    src_dir: bool = False
    css_variables: bool = True
    init_options: dict[str, Any] | None = None


class AddItemArgs(_AddArgs):
    name: str


class ExecuteAddArgs(_AddArgs):
    components: list[str] = Field(default_factory=list)


def _parse(model: type[BaseModel], tool: str, arguments: dict[str, Any] | None) -> Any:
    try:
        return model.model_validate(arguments or {})
    except ValidationError as exc:
        raise SchemaViolation.from_validation_error(f"{tool} arguments", exc) from exc


def _init_options(raw: dict[str, Any] | None, **overrides: Any) -> InitOptions | None:
    if raw is None and not overrides:
        return None
    try:
        return InitOptions.model_validate({**(raw or {}), **overrides})
    except ValidationError as exc:
        raise SchemaViolation.from_validation_error("initOptions", exc) from exc


# ---------------------------------------------------------------------------
# Result helpers
# ---------------------------------------------------------------------------


def text_result(text: str, structured: dict[str, Any] | None = None) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=text)], structuredContent=structured)


def error_result(text: str, structured: dict[str, Any] | None = None) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=text)], structuredContent=structured, isError=True)


def file_resource(path: Path, label: str, description: str) -> EmbeddedResource:
    return EmbeddedResource(
        type="resource",
        resource=TextResourceContents(
            uri=path.resolve().as_uri(),
            mimeType="text/plain",
            text=label,
            description=description,
        ),
    )


def describe_error(prefix: str, error: Exception) -> str:
    message = error.message if isinstance(error, ComponentMcpError) else str(error)
    text = f"{prefix}{message}"
    if isinstance(error, SchemaViolation):
        text += "\n" + error.breakdown()
    return text


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

Handler = Callable[[ServerContext, dict[str, Any], ProgressReporter], Awaitable[CallToolResult]]


async def handle_get_items(ctx: ServerContext, arguments: dict[str, Any], progress: ProgressReporter) -> CallToolResult:
    items = await ctx.client.fetch_index(use_cache=False)
    text = ctx.renderer.render("items_list.md.j2", {"items": items})
    return text_result(text.strip())


async def handle_get_item(ctx: ServerContext, arguments: dict[str, Any], progress: ProgressReporter) -> CallToolResult:
    args = _parse(GetItemArgs, "get_item", arguments)
    item = await ctx.client.fetch_item(args.name, ctx.config.style)
    payload = item.model_dump(by_alias=True, exclude_none=True, mode="json")
    return text_result(json.dumps(payload, indent=2), structured=payload)


async def handle_get_init_instructions(
    ctx: ServerContext, arguments: dict[str, Any], progress: ProgressReporter
) -> CallToolResult:
    items = await ctx.client.fetch_index()
    style_item = next((item for item in items if item.type is ItemKind.STYLE), None)
    rules_item = next((item for item in items if item.type is ItemKind.FILE and item.name == "rules"), None)
    text = ctx.renderer.render(
        "init_instructions.md.j2",
        {
            "style_item": style_item,
            "rules_item": rules_item,
            "style": ctx.config.style,
            "registry_url": ctx.config.registry_url,
        },
    )
    return text_result(text.strip())


async def handle_execute_init(
    ctx: ServerContext, arguments: dict[str, Any], progress: ProgressReporter
) -> CallToolResult:
    args = _parse(ExecuteInitArgs, "execute_init", arguments)
    options = _init_options(
        None,
        style=args.style,
        base_color=args.base_color,
        src_dir=args.src_dir,
        css_variables=args.css_variables,
        force=args.force,
        template=args.template,
    )
    async with ctx.limiter.slot():
        cwd = ctx.working_directory(args.cwd)
        config = await run_init(cwd, options, ctx.resolver, ctx.mutator, progress)

    config_file = cwd / CONFIG_FILE
    message = f"Project initialized successfully. Configuration written to {CONFIG_FILE}."
    await progress.succeed(message)
    return CallToolResult(
        content=[
            TextContent(type="text", text=message),
            file_resource(config_file, CONFIG_FILE, "Project configuration file."),
        ],
        structuredContent={
            "success": True,
            "message": message,
            "configFile": str(config_file),
            "config": config.raw().to_json(),
        },
    )


async def _run_add(
    ctx: ServerContext, args: _AddArgs, components: list[str], progress: ProgressReporter
) -> CallToolResult:
    request = AddRequest(
        components=components,
        overwrite=args.overwrite,
        src_dir=args.src_dir,
        css_variables=args.css_variables,
        init_options=_init_options(args.init_options) if args.init_options is not None else None,
    )
    async with ctx.limiter.slot():
        cwd = ctx.working_directory(args.cwd)
        result = await execute_add_command(cwd, request, ctx.resolver, ctx.mutator, progress)

    await progress.succeed(result.message)
    content: list[TextContent | EmbeddedResource] = [TextContent(type="text", text=result.message)]
    content += [file_resource(cwd / f, f, "New file added to the project.") for f in result.files_created]
    content += [file_resource(cwd / f, f, "Existing file modified.") for f in result.files_modified]
    return CallToolResult(content=content, structuredContent=result.structured())


async def handle_add_item(ctx: ServerContext, arguments: dict[str, Any], progress: ProgressReporter) -> CallToolResult:
    args = _parse(AddItemArgs, "add_item", arguments)
    return await _run_add(ctx, args, [args.name], progress)


async def handle_execute_add(
    ctx: ServerContext, arguments: dict[str, Any], progress: ProgressReporter
) -> CallToolResult:
    args = _parse(ExecuteAddArgs, "execute_add", arguments)
    return await _run_add(ctx, args, args.components, progress)


HANDLERS: dict[str, Handler] = {
    "get_items": handle_get_items,
    "get_item": handle_get_item,
    "get_init_instructions": handle_get_init_instructions,
    "execute_init": handle_execute_init,
    "add_item": handle_add_item,
    "execute_add": handle_execute_add,
}


def _error_prefix(name: str, arguments: dict[str, Any]) -> str:
    if name == "add_item":
        return f"Failed to add {arguments.get('name', 'item')}: "
    if name == "execute_add":
        return "Failed to add components: "
    if name == "execute_init":
        return "Failed to initialize project: "
    if name == "get_item":
        return f"Failed to get item {arguments.get('name', '')}: "
    if name == "get_items":
        return "Failed to list registry items: "
    return "Failed to get init instructions: "


async def dispatch(
    ctx: ServerContext,
    name: str,
    arguments: dict[str, Any] | None,
    session: Any | None = None,
) -> CallToolResult:
    """Run tool *name*; every failure becomes an ``isError`` result."""
    arguments = arguments or {}
    handler = HANDLERS.get(name)
    if handler is None:
        return error_result(f"Unknown tool: {name}")

    progress = ProgressReporter(name, session=session)
    try:
        return await handler(ctx, arguments, progress)
    except ComponentMcpError as exc:
        logger.warning("%s failed: %s", name, exc.message)
        return error_result(describe_error(_error_prefix(name, arguments), exc), structured=error_payload(exc))
    except Exception as exc:
        logger.exception("Unexpected error in %s", name)
        return error_result(describe_error(_error_prefix(name, arguments), exc))

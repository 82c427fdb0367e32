"""component-mcp server entry point.

Serves the catalog tools over stdio.  stdout carries the JSON-RPC stream,
so all logging and console output goes to stderr.

Usage::

    component-mcp --workspace /workspace
    python -m component_mcp --registry-url http://localhost:3333/r
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, Tool
from rich.logging import RichHandler

from component_mcp import __version__
from component_mcp.config import ServerConfig
from component_mcp.project.workspace import default_workspace_root
from component_mcp.server.handlers import ServerContext, dispatch
from component_mcp.server.tools import get_all_tools
from component_mcp.utils import console, print_error, print_summary_table

logger = logging.getLogger("component_mcp")

SERVER_NAME = "component-mcp"


def configure_logging(level: str = "INFO") -> None:
    """Route ``logging`` to stderr through Rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def build_server(ctx: ServerContext) -> Server:
    """Create the MCP ``Server`` and register the tool handlers on it."""
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return get_all_tools()

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> CallToolResult:
        session = server.request_context.session
        return await dispatch(ctx, name, arguments, session=session)

    return server


async def serve(ctx: ServerContext) -> None:
    """Run until stdin closes or SIGINT / SIGTERM arrives."""
    server = build_server(ctx)
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            logger.debug("Signal handlers unavailable on this platform")

    async with stdio_server() as (read_stream, write_stream):
        logger.info("stdio transport established, serving %s", ctx.config.registry_url)
        run_task = asyncio.create_task(
            server.run(read_stream, write_stream, server.create_initialization_options())
        )
        stop_task = asyncio.create_task(stop.wait())
        done, pending = await asyncio.wait({run_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        if run_task in done:
            run_task.result()
        else:
            logger.info("Shutdown signal received, stopping server")


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``component-mcp``."""
    import argparse

    parser = argparse.ArgumentParser(
        description="MCP server for adding catalog UI components to web projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  component-mcp --workspace /workspace\n"
            "  component-mcp --registry-url http://localhost:3333/r --style new-york\n"
        ),
    )
    parser.add_argument(
        "--workspace", "-w",
        default=None,
        help="Workspace boundary (default: /workspace if present, else WORKSPACE_DIR, else the current directory)",
    )
    parser.add_argument(
        "--registry-url",
        default=None,
        help="Override REGISTRY_URL",
    )
    parser.add_argument(
        "--style",
        default=None,
        help="Override STYLE",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Load settings from a JSON file written by ServerConfig.save()",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    config = ServerConfig.load(Path(args.config)) if args.config else ServerConfig.from_env()
    overrides: dict[str, Any] = {}
    if args.registry_url:
        overrides["registry_url"] = args.registry_url
    if args.style:
        overrides["style"] = args.style
    if overrides:
        config = ServerConfig.model_validate({**config.model_dump(), **overrides})

    workspace = Path(args.workspace) if args.workspace else default_workspace_root(config.workspace_dir)
    if not workspace.is_dir():
        print_error(f"Error: workspace directory not found: {workspace}")
        sys.exit(1)

    print_summary_table(
        {
            "Registry": config.registry_url,
            "Style": config.style,
            "Workspace": str(workspace.resolve()),
            "Max concurrent operations": str(config.max_concurrent_operations),
        },
        title=f"{SERVER_NAME} {__version__}",
    )

    ctx = ServerContext.create(config, workspace)
    asyncio.run(serve(ctx))


if __name__ == "__main__":
    main()

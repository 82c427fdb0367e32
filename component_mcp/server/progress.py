"""Progress reporting for long-running tool calls.

Status lines go to the shared stderr console.  When the tool call came in
over an MCP session, each line is also forwarded to the client as a log
notification so it can show progress while the call is still running.
"""

from __future__ import annotations

import logging
from typing import Any

from component_mcp.utils import console

logger = logging.getLogger(__name__)

_STYLES = {
    "info": "cyan",
    "success": "green",
    "warning": "yellow",
    "error": "red",
}
_MCP_LEVELS = {
    "info": "info",
    "success": "notice",
    "warning": "warning",
    "error": "error",
}


class ProgressReporter:
    """Emit named progress steps for one operation.

    Args:
        operation: Short label shown before each message, e.g. ``"add"``.
        session: Optional MCP ``ServerSession``; when given, messages are
            sent with ``send_log_message``.
        quiet: Suppress console output (notifications are still sent).
    """

    def __init__(self, operation: str, session: Any | None = None, quiet: bool = False) -> None:
        self.operation = operation
        self.session = session
        self.quiet = quiet
        self.messages: list[tuple[str, str]] = []

    async def _emit(self, level: str, message: str) -> None:
        self.messages.append((level, message))
        logger.debug("[%s] %s", self.operation, message)
        if not self.quiet:
            style = _STYLES[level]
            console.print(f"[{style}]\\[{self.operation}][/{style}] {message}")
        if self.session is not None:
            await self.session.send_log_message(
                level=_MCP_LEVELS[level],
                data={"operation": self.operation, "text": message},
                logger="component_mcp",
            )

    async def step(self, message: str) -> None:
        await self._emit("info", message)

    async def succeed(self, message: str) -> None:
        await self._emit("success", message)

    async def warn(self, message: str) -> None:
        await self._emit("warning", message)

    async def fail(self, message: str) -> None:
        await self._emit("error", message)


async def report(progress: ProgressReporter | None, message: str) -> None:
    """``progress.step(message)`` when a reporter is present."""
    if progress is not None:
        await progress.step(message)

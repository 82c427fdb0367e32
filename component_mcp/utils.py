"""Shared utility functions for component-mcp.

Provides async command execution (plus an allow-listed wrapper for
package-manager invocations), JSON I/O, file-system helpers and Rich-based
console output.  The console writes to stderr because stdout carries the
MCP JSON-RPC stream.
"""

from __future__ import annotations

import asyncio
import json
import os
import re
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from component_mcp.errors import CommandExecutionFailed, PathOutsideWorkspace

console = Console(stderr=True)

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: float = 120,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously without a shell.

    Args:
        cmd: Program followed by its arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  A timeout is reported as
        return code ``-1``.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=str(cwd) if cwd else None,
        env=merged_env,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"Command timed out after {timeout}s: {' '.join(cmd)}")

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# Allow-listed execution
# ---------------------------------------------------------------------------

ALLOWED_COMMANDS = ("npm", "pnpm", "yarn", "npx", "git", "node", "deno", "bun")

# Seconds.
COMMAND_TIMEOUTS: dict[str, int] = {
    "npm": 600,
    "pnpm": 600,
    "yarn": 600,
    "npx": 300,
    "git": 60,
    "node": 300,
    "deno": 300,
    "bun": 300,
}
DEFAULT_COMMAND_TIMEOUT = 180

ALLOWED_NPX_PACKAGES = ("expo",)

ALLOWED_FLAGS = frozenset(
    {
        "--force",
        "--legacy-peer-deps",
        "--silent",
        "--save-dev",
        "-D",
        "--dev",
        "--production",
        "--no-save",
        "--exact",
        "--save-exact",
        "--dry-run",
        "--verbose",
        "-v",
        "--version",
        "--help",
        "-h",
        "--yes",
        "--no",
        "--quiet",
        "-q",
        "-m",
        "-A",
    }
)
_ALLOWED_FLAG_PATTERNS = (re.compile(r"^--use-[a-z]+$"),)

_FORBIDDEN_ARG_PATTERNS = (
    re.compile(r"[;&|`$()]"),
    re.compile(r"[\n\r]"),
    re.compile(r"\x00"),
    re.compile(r"\.\."),
)
MAX_ARG_LENGTH = 1000

_PACKAGE_NAME_RE = re.compile(r"^(@[a-z0-9\-_]+/)?[a-z0-9\-_.]+(@[a-z0-9\-_.^~<>=*]+)?$")
MAX_PACKAGE_NAME_LENGTH = 214

FORBIDDEN_WORKING_DIRECTORIES = ("/etc", "/proc", "/sys", "/dev", "/boot", "/root/.ssh")
FORBIDDEN_HOME_SUBDIRECTORIES = (".ssh", ".aws", ".config")


def validate_package_name(name: str) -> str:
    """Validate an npm package spec such as ``@radix-ui/react-slot@1.0.2``.

    Deno's ``npm:`` prefix is accepted and checked on the remainder.
    """
    bare = name[4:] if name.startswith("npm:") else name
    if not bare or len(bare) > MAX_PACKAGE_NAME_LENGTH:
        raise CommandExecutionFailed(f"Invalid package name length: {name}", command=name)
    if not _PACKAGE_NAME_RE.match(bare.lower()):
        raise CommandExecutionFailed(f"Invalid package name: {name}", command=name)
    return name


def _validate_flag(flag: str) -> None:
    if flag in ALLOWED_FLAGS or flag.split("=", 1)[0] in ALLOWED_FLAGS:
        return
    if any(pattern.match(flag) for pattern in _ALLOWED_FLAG_PATTERNS):
        return
    raise CommandExecutionFailed(f"Flag not allowed: {flag}. Use only approved flags.", command=flag)


def validate_command_args(command: str, args: list[str]) -> list[str]:
    """Check *command* and *args* against the allow-lists.

    Raises:
        CommandExecutionFailed: on the first rejected element.
    """
    if command not in ALLOWED_COMMANDS:
        raise CommandExecutionFailed(
            f"Command not allowed: {command}. Allowed commands: {', '.join(ALLOWED_COMMANDS)}",
            command=command,
        )
    for index, arg in enumerate(args):
        for pattern in _FORBIDDEN_ARG_PATTERNS:
            if pattern.search(arg):
                raise CommandExecutionFailed(
                    f"Dangerous pattern in argument {index}: {arg!r}", command=command
                )
        if len(arg) > MAX_ARG_LENGTH:
            raise CommandExecutionFailed(
                f"Argument {index} too long: {len(arg)} characters", command=command
            )
        if arg.startswith("-"):
            _validate_flag(arg)
        if command == "npx" and index == 0 and arg.split("@", 1)[0] not in ALLOWED_NPX_PACKAGES:
            raise CommandExecutionFailed(f"NPX package not allowed: {arg}", command=command)
    return list(args)


def validate_working_directory(cwd: str | Path) -> Path:
    """Reject system and credential directories as command working directories."""
    raw = str(cwd)
    if "\0" in raw:
        raise PathOutsideWorkspace(raw, "Working directory contains null bytes")
    resolved = Path(raw).expanduser().resolve()
    home = Path.home().resolve()
    forbidden = [Path(p) for p in FORBIDDEN_WORKING_DIRECTORIES]
    forbidden += [home / sub for sub in FORBIDDEN_HOME_SUBDIRECTORIES]
    for blocked in forbidden:
        if resolved == blocked or blocked in resolved.parents:
            raise PathOutsideWorkspace(str(resolved), "Access to system directory not allowed")
    return resolved


async def run_allowed_command(
    command: str,
    args: list[str],
    cwd: str | Path,
    timeout: float | None = None,
    env: dict[str, str] | None = None,
) -> str:
    """Run an allow-listed command and return its stdout.

    Raises:
        CommandExecutionFailed: if validation fails, the process exits
            non-zero, or the timeout elapses.
    """
    validated = validate_command_args(command, args)
    workdir = validate_working_directory(cwd)
    limit = timeout if timeout is not None else COMMAND_TIMEOUTS.get(command, DEFAULT_COMMAND_TIMEOUT)
    printable = " ".join([command, *validated])

    try:
        returncode, stdout, stderr = await run_command([command, *validated], cwd=workdir, timeout=limit, env=env)
    except OSError as exc:
        raise CommandExecutionFailed(f"Failed to start {command}: {exc}", command=printable) from exc

    if returncode == -1 and "timed out" in stderr:
        raise CommandExecutionFailed(
            f"Command timed out after {limit}s: {printable}", command=printable, returncode=-1, stderr=stderr
        )
    if returncode != 0:
        raise CommandExecutionFailed(
            f"Command failed with exit code {returncode}: {printable}",
            command=printable,
            returncode=returncode,
            stderr=stderr,
        )
    return stdout


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


async def save_json(data: dict[str, Any] | list[Any], path: str | Path) -> None:
    """Save data as pretty-printed JSON with a trailing newline.

    Parent directories are created automatically and the write runs in a
    worker thread.
    """
    file_path = Path(path)
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    await asyncio.to_thread(write_file, file_path, content)


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist."""
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path.resolve()


def write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parents and write *content*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def read_text(path: Path) -> str | None:
    """Return the file's text, or ``None`` when it does not exist."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")

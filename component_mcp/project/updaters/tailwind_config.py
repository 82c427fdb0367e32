"""Merge catalog ``tailwind.config`` fragments into a v3 project's config file."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from component_mcp.project.config import ProjectConfig
from component_mcp.project.js_object import RawExpression, load_config_object, replace_config_object
from component_mcp.templates import TemplateRenderer
from component_mcp.utils import read_text, write_file

DEFAULT_CONTENT_GLOBS = [
    "./pages/**/*.{ts,tsx}",
    "./components/**/*.{ts,tsx}",
    "./app/**/*.{ts,tsx}",
    "./src/**/*.{ts,tsx}",
]


def _as_js(value: Any) -> Any:
    """Catalog fragments carry ``require(...)`` calls as strings; turn them into expressions."""
    if isinstance(value, str) and value.strip().startswith("require("):
        return RawExpression(value.strip())
    if isinstance(value, list):
        return [_as_js(v) for v in value]
    if isinstance(value, dict):
        return {k: _as_js(v) for k, v in value.items()}
    return value


def _list_key(value: Any) -> Any:
    if isinstance(value, RawExpression):
        return ("raw", " ".join(value.text.split()))
    if isinstance(value, (dict, list)):
        return ("json", repr(value))
    return ("scalar", value)


def merge_config(existing: dict[Any, Any], fragment: dict[str, Any]) -> dict[Any, Any]:
    """Objects recurse, lists are unioned (``plugins``, ``content``, ``darkMode``), scalars are replaced."""
    out = dict(existing)
    for key, value in fragment.items():
        value = _as_js(value)
        current = out.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            out[key] = merge_config(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            seen = {_list_key(v) for v in current}
            merged = list(current)
            for v in value:
                if _list_key(v) not in seen:
                    seen.add(_list_key(v))
                    merged.append(v)
            out[key] = merged
        elif isinstance(current, list) and not isinstance(value, list):
            if _list_key(value) not in {_list_key(v) for v in current}:
                out[key] = [*current, value]
        else:
            out[key] = value
    return out


def _render_new_config(path: Path, content: list[str], renderer: TemplateRenderer) -> str:
    template = "tailwind.config.ts.j2" if path.suffix in (".ts", ".mts", ".cts") else "tailwind.config.js.j2"
    return renderer.render(template, {"content": content})


async def update_tailwind_config(
    fragment: dict[str, Any] | None,
    config: ProjectConfig,
    tailwind_version: str | None,
    renderer: TemplateRenderer | None = None,
) -> Path | None:
    """Merge *fragment* into the project's Tailwind config.

    Only v3 projects have a JS config; v4 projects are left alone here
    (their plugins are handled by the stylesheet updater).  A missing
    config file is created from a template first.

    Returns:
        The config path when the file changed, otherwise ``None``.
    """
    if not fragment or tailwind_version == "v4":
        return None
    path = config.resolved_paths.tailwind_config
    if path is None:
        return None

    original = await asyncio.to_thread(read_text, path)
    source = original
    if source is None:
        source = _render_new_config(path, DEFAULT_CONTENT_GLOBS, renderer or TemplateRenderer())

    merged = merge_config(load_config_object(source), fragment)
    updated = replace_config_object(source, merged)
    if updated == original:
        return None
    await asyncio.to_thread(write_file, path, updated)
    return path


async def update_tailwind_content(
    content: list[str],
    config: ProjectConfig,
    tailwind_version: str | None = "v3",
) -> Path | None:
    """Add globs to the ``content`` list of a v3 config."""
    return await update_tailwind_config({"content": content}, config, tailwind_version)

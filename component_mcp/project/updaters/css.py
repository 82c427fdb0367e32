"""Merge free-form CSS rules from catalog items into the project's stylesheet."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from component_mcp.project.config import ProjectConfig
from component_mcp.project.stylesheet import merge_tree, parse
from component_mcp.utils import read_text, write_file


async def update_css(css: dict[str, Any] | None, config: ProjectConfig) -> Path | None:
    """Apply a css tree such as ``{"@layer base": {"h1": {"font-size": "2rem"}}}``.

    Existing rules with the same selector are merged, never duplicated.
    Returns the stylesheet path when its content changed.
    """
    if not css:
        return None
    path = config.resolved_paths.tailwind_css
    original = await asyncio.to_thread(read_text, path)
    sheet = parse(original or "")
    if not merge_tree(sheet.nodes, css):
        return None
    rendered = sheet.render()
    if rendered == original:
        return None
    await asyncio.to_thread(write_file, path, rendered)
    return path

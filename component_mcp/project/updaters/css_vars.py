"""Write theme CSS variables into the project's stylesheet.

Tailwind v3 keeps variables inside ``@layer base`` as bare HSL channels.
Tailwind v4 keeps them at the top level, wrapped in a colour function,
and maps them to utilities through ``@theme inline``.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Any

from component_mcp.project.config import ProjectConfig
from component_mcp.project.js_object import RawExpression
from component_mcp.project.stylesheet import Block, Statement, Stylesheet, parse
from component_mcp.utils import read_text, write_file

_BARE_HSL_RE = re.compile(r"^\d+(\.\d+)?\s+\d+(\.\d+)?%\s+\d+(\.\d+)?%(\s*/\s*[\d.]+%?)?$")
_NON_COLOR_VARS = frozenset({"radius"})
_DARK_VARIANT = "@custom-variant dark (&:is(.dark *))"


def _selector_for(group: str) -> str:
    return ":root" if group in ("light", "theme") else f".{group}"


def _wrap_v4(value: str) -> str:
    value = value.strip()
    if _BARE_HSL_RE.match(value):
        return f"hsl({value})"
    return value


def _plugin_names(tailwind_config: dict[str, Any] | None) -> list[str]:
    names: list[str] = []
    for plugin in (tailwind_config or {}).get("plugins", []) or []:
        text = plugin.text if isinstance(plugin, RawExpression) else str(plugin)
        module = RawExpression(text).required_module
        if module:
            names.append(module)
    return names


def _cleanup_default_next_styles(sheet: Stylesheet) -> bool:
    """Drop the starter ``body`` / ``:root`` colours and dark-mode media query."""
    changed = False
    for node in list(sheet.nodes):
        if isinstance(node, Block) and node.selector.replace(" ", "") == "@media(prefers-color-scheme:dark)":
            sheet.nodes.remove(node)
            changed = True
    body = sheet.find("body")
    if body is not None:
        for prop in ("color", "background", "font-family"):
            changed |= body.remove(prop)
        if not body.children:
            sheet.nodes.remove(body)
    root = sheet.find(":root")
    if root is not None:
        for prop in ("--background", "--foreground"):
            changed |= root.remove(prop)
        if not root.children:
            sheet.nodes.remove(root)
    return changed


def _apply_v3(
    sheet: Stylesheet, css_vars: dict[str, dict[str, str]], overwrite: bool, init_index: bool
) -> bool:
    changed = False
    layer = sheet.find("@layer base")
    if layer is None:
        layer = Block("@layer base")
        sheet.nodes.append(layer)
        changed = True
    for group, variables in css_vars.items():
        if not variables:
            continue
        block = layer.ensure(_selector_for(group))
        for name, value in variables.items():
            changed |= block.set(f"--{name}", value, overwrite=overwrite)

    if init_index:
        changed |= _ensure_base_rules(layer, "border-border")
    return changed


def _ensure_base_rules(layer: Block, border_apply: str) -> bool:
    changed = False
    star = layer.ensure("*")
    if not any(isinstance(n, Statement) and n.text.startswith("@apply") for n in star.children):
        star.children.append(Statement(f"@apply {border_apply}"))
        changed = True
    body = layer.ensure("body")
    if not any(isinstance(n, Statement) and n.text.startswith("@apply") for n in body.children):
        body.children.append(Statement("@apply bg-background text-foreground"))
        changed = True
    return changed


def _apply_v4(
    sheet: Stylesheet,
    css_vars: dict[str, dict[str, str]],
    overwrite: bool,
    init_index: bool,
    plugins: list[str],
) -> bool:
    changed = False

    for plugin in plugins:
        statement = f'@plugin "{plugin}"'
        if not sheet.has_statement(statement):
            sheet.insert_after_imports(Statement(statement))
            changed = True

    if css_vars.get("dark") and not sheet.has_statement(_DARK_VARIANT):
        sheet.insert_after_imports(Statement(_DARK_VARIANT))
        changed = True

    color_names: list[str] = []
    for group, variables in css_vars.items():
        if group == "theme" or not variables:
            continue
        block = sheet.find(_selector_for(group))
        if block is None:
            block = Block(_selector_for(group))
            sheet.nodes.append(block)
        for name, value in variables.items():
            changed |= block.set(f"--{name}", _wrap_v4(value), overwrite=overwrite)
            if name not in _NON_COLOR_VARS and name not in color_names:
                color_names.append(name)

    theme_vars = css_vars.get("theme", {})
    if color_names or theme_vars:
        theme = sheet.find("@theme inline")
        if theme is None:
            theme = Block("@theme inline")
            sheet.nodes.append(theme)
            changed = True
        for name in color_names:
            changed |= theme.set(f"--color-{name}", f"var(--{name})", overwrite=False)
        has_radius = any("radius" in (vars_ or {}) for vars_ in css_vars.values())
        if has_radius:
            for prop, value in (
                ("--radius-sm", "calc(var(--radius) - 4px)"),
                ("--radius-md", "calc(var(--radius) - 2px)"),
                ("--radius-lg", "var(--radius)"),
                ("--radius-xl", "calc(var(--radius) + 4px)"),
            ):
                changed |= theme.set(prop, value, overwrite=False)
        for name, value in theme_vars.items():
            changed |= theme.set(f"--{name}", value, overwrite=overwrite)

    if init_index:
        layer = sheet.find("@layer base")
        if layer is None:
            layer = Block("@layer base")
            sheet.nodes.append(layer)
            changed = True
        changed |= _ensure_base_rules(layer, "border-border outline-ring/50")
    return changed


async def update_css_vars(
    css_vars: dict[str, dict[str, str]] | None,
    config: ProjectConfig,
    tailwind_version: str | None,
    tailwind_config: dict[str, Any] | None = None,
    overwrite: bool = False,
    cleanup_default_next_styles: bool = False,
    init_index: bool = False,
) -> Path | None:
    """Update the stylesheet; returns its path when the content changed.

    With *overwrite* false, existing variables keep their values and only
    missing ones are added.
    """
    if not config.tailwind.css_variables:
        return None
    plugins = _plugin_names(tailwind_config) if tailwind_version == "v4" else []
    if not css_vars and not plugins and not init_index and not cleanup_default_next_styles:
        return None

    path = config.resolved_paths.tailwind_css
    original = await asyncio.to_thread(read_text, path)
    sheet = parse(original or "")

    changed = False
    if cleanup_default_next_styles:
        changed |= _cleanup_default_next_styles(sheet)
    if tailwind_version == "v4":
        changed |= _apply_v4(sheet, css_vars or {}, overwrite, init_index, plugins)
    else:
        changed |= _apply_v3(sheet, css_vars or {}, overwrite, init_index)

    rendered = sheet.render()
    if not changed or rendered == original:
        return None
    await asyncio.to_thread(write_file, path, rendered)
    return path

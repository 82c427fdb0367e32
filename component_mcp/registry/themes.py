"""Synthetic theme items built from base colour documents."""

from __future__ import annotations

from typing import Any

from component_mcp.registry.models import BaseColor, ItemKind, ItemTailwind, RegistryItem

BASE_COLORS: list[dict[str, str]] = [
    {"name": "neutral", "label": "Neutral"},
    {"name": "gray", "label": "Gray"},
    {"name": "zinc", "label": "Zinc"},
    {"name": "stone", "label": "Stone"},
    {"name": "slate", "label": "Slate"},
]


def build_tailwind_theme_colors_from_css_vars(css_vars: dict[str, str]) -> dict[str, Any]:
    """Map ``--primary`` / ``--primary-foreground`` style variables to Tailwind colours.

    ``{"primary": ..., "primary-foreground": ...}`` becomes
    ``{"primary": {"DEFAULT": "hsl(var(--primary))", "foreground": "hsl(var(--primary-foreground))"}}``.
    """
    result: dict[str, Any] = {}
    for key in css_vars:
        color, _, sub = key.partition("-")
        if not sub:
            if isinstance(result.get(color), dict):
                result[color]["DEFAULT"] = f"hsl(var(--{key}))"
            else:
                result[color] = f"hsl(var(--{key}))"
            continue
        if not isinstance(result.get(color), dict):
            result[color] = {"DEFAULT": f"hsl(var(--{color}))"}
        result[color][sub] = f"hsl(var(--{key}))"

    # A DEFAULT that only exists because of a sub-key is dropped.
    for color, value in result.items():
        if isinstance(value, dict) and color not in css_vars and value.get("DEFAULT") == f"hsl(var(--{color}))":
            del value["DEFAULT"]
    return result


def build_theme_item(
    name: str,
    base_color: BaseColor,
    css_variables: bool = True,
    tailwind_version: str | None = "v3",
) -> RegistryItem:
    """Build the ``registry:theme`` item prepended when ``index`` is resolved."""
    extend: dict[str, Any] = {
        "borderRadius": {
            "lg": "var(--radius)",
            "md": "calc(var(--radius) - 2px)",
            "sm": "calc(var(--radius) - 4px)",
        },
        "colors": {},
    }
    css_vars: dict[str, dict[str, str]] = {"theme": {}, "light": {"radius": "0.5rem"}, "dark": {}}

    if css_variables:
        extend["colors"] = build_tailwind_theme_colors_from_css_vars(base_color.css_vars.get("dark", {}))
        css_vars = {
            "theme": {**base_color.css_vars.get("theme", {}), **css_vars["theme"]},
            "light": {**base_color.css_vars.get("light", {}), **css_vars["light"]},
            "dark": {**base_color.css_vars.get("dark", {}), **css_vars["dark"]},
        }
        if tailwind_version == "v4" and base_color.css_vars_v4:
            v4 = base_color.css_vars_v4
            css_vars = {
                "theme": {**v4.get("theme", {}), **css_vars["theme"]},
                "light": {"radius": "0.625rem", **v4.get("light", {})},
                "dark": {**v4.get("dark", {})},
            }

    return RegistryItem(
        name=name,
        type=ItemKind.THEME,
        tailwind=ItemTailwind(config={"theme": {"extend": extend}}),
        css_vars=css_vars,
    )

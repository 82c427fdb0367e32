"""Tool definitions for the component-mcp server."""

from __future__ import annotations

from typing import Any

from mcp.types import Tool

from component_mcp.registry.themes import BASE_COLORS

STYLE_CHOICES = ["new-york", "default", "none"]
FLAG_CHOICES = ["force", "legacy-peer-deps"]

_INIT_OPTIONS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "description": "Options used when the project has no components.json yet and has to be initialised first.",
    "properties": {
        "style": {"type": "string", "enum": STYLE_CHOICES},
        "baseColor": {"type": "string", "enum": [c["name"] for c in BASE_COLORS]},
        "force": {"type": "boolean"},
        "flag": {
            "type": "string",
            "enum": FLAG_CHOICES,
            "description": "Package manager flag, used only when React 19 with react-day-picker 8 is detected.",
        },
    },
}

_ADD_FLAGS: dict[str, Any] = {
    "cwd": {
        "type": "string",
        "description": "Project directory. Ignored when the server enforces a workspace directory.",
    },
    "overwrite": {
        "type": "boolean",
        "description": "Whether to overwrite existing files. Defaults to false.",
    },
    "srcDir": {
        "type": "boolean",
        "description": "Whether to use the src directory structure. Defaults to false.",
    },
    "cssVariables": {
        "type": "boolean",
        "description": "Whether to use CSS variables for theming. Defaults to true.",
    },
    "initOptions": _INIT_OPTIONS_SCHEMA,
}


def get_all_tools() -> list[Tool]:
    """Every tool the server exposes, in display order."""
    return [
        Tool(
            name="get_init_instructions",
            description="Get instructions on how to initialize a new project using a registry style project structure.",
            inputSchema={"type": "object", "properties": {}, "required": []},
        ),
        Tool(
            name="execute_init",
            description=(
                "Execute the full init workflow - this actually initializes the project "
                "and creates a components.json file."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "cwd": {
                        "type": "string",
                        "description": "The working directory path where the project should be initialized.",
                    },
                    "style": {
                        "type": "string",
                        "enum": STYLE_CHOICES,
                        "default": "new-york",
                        "description": "The style to use for the project.",
                    },
                    "baseColor": {
                        "type": "string",
                        "default": "slate",
                        "description": "The base color to use for the project.",
                    },
                    "srcDir": {
                        "type": "boolean",
                        "description": "Whether to use the src directory structure. Defaults to false.",
                    },
                    "cssVariables": {
                        "type": "boolean",
                        "description": "Whether to use CSS variables for theming. Defaults to true.",
                    },
                    "force": {
                        "type": "boolean",
                        "description": "Whether to overwrite an existing components.json. Defaults to false.",
                    },
                    "template": {
                        "type": "string",
                        "description": "The template to use for the project. Can be 'next' or 'next-monorepo'.",
                    },
                },
                "required": [],
            },
        ),
        Tool(
            name="get_items",
            description="List all the available items in the registry",
            inputSchema={"type": "object", "properties": {}, "required": []},
        ),
        Tool(
            name="get_item",
            description="Get an item from the registry",
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "The name of the item to get from the registry."},
                },
                "required": ["name"],
            },
        ),
        Tool(
            name="add_item",
            description="Add an item from the registry to the user's project",
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "The name of the item to add to the project."},
                    **_ADD_FLAGS,
                },
                "required": ["name"],
            },
        ),
        Tool(
            name="execute_add",
            description=(
                "Execute the full add component workflow - this actually adds the component "
                "to the user's project instead of just providing instructions"
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "components": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Array of component names to add to the project.",
                    },
                    **_ADD_FLAGS,
                },
                "required": ["components"],
            },
        ),
    ]


def get_tool_names() -> list[str]:
    return [tool.name for tool in get_all_tools()]

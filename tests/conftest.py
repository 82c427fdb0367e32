"""Shared pytest fixtures for the component-mcp test suite.

Provides reusable fixtures for:
- A fake component catalog served through ``httpx.MockTransport``
- Sample Next.js projects on Tailwind v3 and v4
- A configured project with ``components.json``
- Catalog client, resolver, mutator and server context wired to the fakes
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from component_mcp.config import ServerConfig
from component_mcp.project.config import get_config
from component_mcp.project.mutator import ProjectMutator
from component_mcp.project.workspace import WorkspaceGuard
from component_mcp.registry.client import CatalogClient
from component_mcp.registry.resolver import DependencyResolver
from component_mcp.server.handlers import ServerContext

REGISTRY_URL = "http://localhost:3333/r"


# ---------------------------------------------------------------------------
# Catalog documents
# ---------------------------------------------------------------------------

BUTTON_SOURCE = """\
import * as React from "react"
import { Slot } from "@radix-ui/react-slot"

import { cn } from "@/lib/utils"

export function Button({ className, ...props }) {
  return <button className={cn("inline-flex", className)} {...props} />
}
"""

INPUT_SOURCE = """\
import * as React from "react"

import { cn } from "@/registry/new-york/lib/utils"

export function Input({ className, ...props }) {
  return <input className={cn("flex h-9", className)} {...props} />
}
"""

TOAST_SOURCE = """\
"use client"

import * as React from "react"
"""

UTILS_SOURCE = """\
import { clsx, type ClassValue } from "clsx"
import { twMerge } from "tailwind-merge"

export function cn(...inputs: ClassValue[]) {
  return twMerge(clsx(inputs))
}
"""


def _item(name: str, kind: str, **extra: Any) -> dict[str, Any]:
    return {"name": name, "type": f"registry:{kind}", **extra}


def _catalog() -> dict[str, Any]:
    button = _item(
        "button",
        "ui",
        dependencies=["@radix-ui/react-slot"],
        files=[{"path": "registry/new-york/ui/button.tsx", "content": BUTTON_SOURCE, "type": "registry:ui"}],
    )
    input_ = _item(
        "input",
        "ui",
        files=[{"path": "registry/new-york/ui/input.tsx", "content": INPUT_SOURCE, "type": "registry:ui"}],
    )
    toast = _item(
        "toast",
        "ui",
        files=[{"path": "registry/new-york/ui/toast.tsx", "content": TOAST_SOURCE, "type": "registry:ui"}],
    )
    index_style = _item(
        "index",
        "style",
        dependencies=["tailwindcss-animate", "class-variance-authority", "lucide-react"],
        registryDependencies=["utils"],
        tailwind={"config": {"plugins": ['require("tailwindcss-animate")']}},
        cssVars={},
        files=[],
    )
    utils = _item(
        "utils",
        "lib",
        dependencies=["clsx", "tailwind-merge"],
        files=[{"path": "registry/new-york/lib/utils.ts", "content": UTILS_SOURCE, "type": "registry:lib"}],
    )
    slate = {
        "inlineColors": {"light": {"background": "white"}, "dark": {"background": "slate-950"}},
        "cssVars": {
            "light": {"background": "0 0% 100%", "foreground": "222.2 84% 4.9%", "primary": "222.2 47.4% 11.2%"},
            "dark": {"background": "222.2 84% 4.9%", "foreground": "210 40% 98%", "primary": "210 40% 98%"},
        },
        "cssVarsV4": {
            "light": {"background": "oklch(1 0 0)", "foreground": "oklch(0.129 0.042 264.695)"},
            "dark": {"background": "oklch(0.129 0.042 264.695)", "foreground": "oklch(0.984 0.003 247.858)"},
        },
        "inlineColorsTemplate": "",
        "cssVarsTemplate": "",
    }
    index = [
        {"name": "index", "type": "registry:style"},
        {"name": "utils", "type": "registry:lib"},
        {"name": "button", "type": "registry:ui", "description": "Displays a button."},
        {"name": "input", "type": "registry:ui", "description": "Displays a form input field."},
        {"name": "toast", "type": "registry:ui"},
        {"name": "rules", "type": "registry:file"},
    ]

    docs: dict[str, Any] = {"index.json": index, "colors/slate.json": slate}
    for style in ("new-york", "new-york-v4"):
        for item in (button, input_, toast, index_style, utils):
            docs[f"styles/{style}/{item['name']}.json"] = copy.deepcopy(item)
    return docs


@pytest.fixture
def catalog_docs() -> dict[str, Any]:
    """Mutable mapping of catalog path (relative to the registry URL) to JSON document."""
    return _catalog()


class FakeCatalog:
    """Serves ``catalog_docs`` and records every requested path."""

    def __init__(self, docs: dict[str, Any]) -> None:
        self.docs = docs
        self.requests: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        prefix = "/r/"
        key = path[len(prefix):] if path.startswith(prefix) else path.lstrip("/")
        self.requests.append(key)
        if key not in self.docs:
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json=self.docs[key])

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_catalog(catalog_docs: dict[str, Any]) -> FakeCatalog:
    return FakeCatalog(catalog_docs)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


TSCONFIG = json.dumps(
    {"compilerOptions": {"baseUrl": ".", "paths": {"@/*": ["./*"]}}},
    indent=2,
)

TAILWIND_V3_CONFIG = """\
import type { Config } from "tailwindcss"

const config: Config = {
  content: ["./app/**/*.{ts,tsx}"],
  theme: {
    extend: {},
  },
  plugins: [],
}

export default config
"""


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def next_project(workspace_root: Path) -> Path:
    """A Next.js app-router project on Tailwind v3 without ``components.json``."""
    project = workspace_root / "web"
    package = {
        "name": "web",
        "dependencies": {"next": "14.2.3", "react": "18.3.1"},
        "devDependencies": {"tailwindcss": "^3.4.1", "typescript": "^5"},
    }
    _write(project / "package.json", json.dumps(package, indent=2))
    _write(project / "tsconfig.json", TSCONFIG)
    _write(project / "next.config.mjs", "export default {}\n")
    _write(project / "tailwind.config.ts", TAILWIND_V3_CONFIG)
    _write(project / "app" / "globals.css", "@tailwind base;\n@tailwind components;\n@tailwind utilities;\n")
    _write(project / "app" / "page.tsx", "export default function Page() { return null }\n")
    return project


@pytest.fixture
def v4_project(workspace_root: Path) -> Path:
    """A Next.js project on Tailwind v4 with ``components.json``."""
    project = workspace_root / "web4"
    package = {
        "name": "web4",
        "dependencies": {"next": "15.0.0", "react": "19.0.0"},
        "devDependencies": {"tailwindcss": "^4.0.0", "@tailwindcss/postcss": "^4.0.0"},
    }
    _write(project / "package.json", json.dumps(package, indent=2))
    _write(project / "tsconfig.json", TSCONFIG)
    _write(project / "next.config.ts", "export default {}\n")
    _write(project / "app" / "globals.css", '@import "tailwindcss";\n')
    _write(project / "components.json", json.dumps(_components_json(tailwind_config=""), indent=2))
    return project


def _components_json(tailwind_config: str = "tailwind.config.ts") -> dict[str, Any]:
    return {
        "$schema": "https://ui.shadcn.com/schema.json",
        "style": "new-york",
        "rsc": True,
        "tsx": True,
        "tailwind": {
            "config": tailwind_config,
            "css": "app/globals.css",
            "baseColor": "slate",
            "cssVariables": True,
            "prefix": "",
        },
        "aliases": {
            "components": "@/components",
            "utils": "@/lib/utils",
            "ui": "@/components/ui",
            "lib": "@/lib",
            "hooks": "@/hooks",
        },
    }


@pytest.fixture
def components_json() -> dict[str, Any]:
    return _components_json()


@pytest.fixture
def configured_project(next_project: Path, components_json: dict[str, Any]) -> Path:
    """``next_project`` with a ``components.json`` already in place."""
    _write(next_project / "components.json", json.dumps(components_json, indent=2))
    return next_project


@pytest.fixture
def project_config(configured_project: Path):
    return get_config(configured_project)


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


@pytest.fixture
def guard(workspace_root: Path) -> WorkspaceGuard:
    return WorkspaceGuard(workspace_root)


@pytest.fixture
def catalog_client(fake_catalog: FakeCatalog, guard: WorkspaceGuard) -> CatalogClient:
    return CatalogClient(REGISTRY_URL, guard=guard, transport=fake_catalog.transport)


@pytest.fixture
def resolver(catalog_client: CatalogClient) -> DependencyResolver:
    return DependencyResolver(catalog_client)


@pytest.fixture
def fake_installer() -> AsyncMock:
    """Stands in for the package manager; records ``(command, args, cwd)`` calls."""
    return AsyncMock(return_value="")


@pytest.fixture
def mutator(guard: WorkspaceGuard, fake_installer: AsyncMock) -> ProjectMutator:
    return ProjectMutator(guard, installer=fake_installer)


@pytest.fixture
def server_config() -> ServerConfig:
    return ServerConfig(registry_url=REGISTRY_URL, style="new-york", max_concurrent_operations=5)


@pytest.fixture
def server_context(
    server_config: ServerConfig,
    workspace_root: Path,
    fake_catalog: FakeCatalog,
    fake_installer: AsyncMock,
) -> ServerContext:
    """Server context with no ``/workspace`` convention and an empty environment."""
    return ServerContext.create(
        server_config,
        workspace_root,
        transport=fake_catalog.transport,
        installer=fake_installer,
        convention=None,
        env={},
    )

"""Unit tests for DependencyResolver (component_mcp.registry.resolver).

Tests cover:
- Transitive registryDependencies, ordering and deduplication
- Cycles
- The synthetic theme item for ``index``
- Partial and total fetch failures
- Local file and URL references
- Rejection of disallowed hosts and out-of-workspace paths before any fetch
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from component_mcp.errors import (
    EmptyComponentList,
    InvalidReference,
    NotFound,
    PathOutsideWorkspace,
    UntrustedResponse,
)
from component_mcp.registry.models import ItemKind
from component_mcp.registry.resolver import DependencyResolver


def _add(catalog_docs: dict, name: str, deps: list[str] | None = None, kind: str = "ui") -> None:
    catalog_docs[f"styles/new-york/{name}.json"] = {
        "name": name,
        "type": f"registry:{kind}",
        "registryDependencies": deps or [],
        "files": [{"path": f"registry/new-york/{kind}/{name}.tsx", "content": name, "type": f"registry:{kind}"}],
    }


class TestResolve:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_single_item(self, resolver: DependencyResolver, project_config):
        tree = await resolver.resolve(["button"], project_config)
        assert tree.names == ["button"]
        assert tree.dependencies == ["@radix-ui/react-slot"]
        assert [f.path for f in tree.files] == ["registry/new-york/ui/button.tsx"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_transitive_dependencies(self, resolver: DependencyResolver, project_config, catalog_docs):
        _add(catalog_docs, "dialog", ["button", "overlay"])
        _add(catalog_docs, "overlay", ["portal"])
        _add(catalog_docs, "portal")
        tree = await resolver.resolve(["dialog"], project_config)
        assert tree.names == ["dialog", "button", "overlay", "portal"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_duplicates_collapse(self, resolver: DependencyResolver, project_config, catalog_docs):
        _add(catalog_docs, "form", ["button", "input"])
        tree = await resolver.resolve(["button", "form", "button"], project_config)
        assert tree.names.count("button") == 1
        assert set(tree.names) == {"button", "form", "input"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cycle_terminates(self, resolver: DependencyResolver, project_config, catalog_docs):
        _add(catalog_docs, "a", ["b"])
        _add(catalog_docs, "b", ["a"])
        tree = await resolver.resolve(["a"], project_config)
        assert tree.names == ["a", "b"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_self_dependency(self, resolver: DependencyResolver, project_config, catalog_docs):
        _add(catalog_docs, "loop", ["loop"])
        tree = await resolver.resolve(["loop"], project_config)
        assert tree.names == ["loop"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_each_item_fetched_once(self, resolver: DependencyResolver, project_config, catalog_docs, fake_catalog):
        _add(catalog_docs, "form", ["button"])
        await resolver.resolve(["button", "form"], project_config)
        assert fake_catalog.requests.count("styles/new-york/button.json") == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_explicit_style(self, resolver: DependencyResolver, project_config, fake_catalog):
        await resolver.resolve(["button"], project_config, style="new-york-v4")
        assert "styles/new-york-v4/button.json" in fake_catalog.requests

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_list(self, resolver: DependencyResolver, project_config, fake_catalog):
        with pytest.raises(EmptyComponentList):
            await resolver.resolve([], project_config)
        assert fake_catalog.requests == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invalid_name(self, resolver: DependencyResolver, project_config):
        with pytest.raises(InvalidReference):
            await resolver.resolve(["../../etc/passwd"], project_config)


class TestIndexTheme:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_theme_is_first(self, resolver: DependencyResolver, project_config):
        tree = await resolver.resolve(["button", "index"], project_config, tailwind_version="v3")
        assert tree.items[0].type is ItemKind.THEME
        assert tree.items[0].name == "slate"
        assert tree.names[1] == "index"
        assert "utils" in tree.names

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_theme_contributions_merged(self, resolver: DependencyResolver, project_config):
        tree = await resolver.resolve(["index"], project_config, tailwind_version="v3")
        assert tree.css_vars["light"]["background"] == "0 0% 100%"
        assert tree.css_vars["light"]["radius"] == "0.5rem"
        config = tree.tailwind["config"]
        assert config["plugins"] == ['require("tailwindcss-animate")']
        assert config["theme"]["extend"]["colors"]["primary"] == "hsl(var(--primary))"
        assert "clsx" in tree.dependencies

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_v4_tokens(self, resolver: DependencyResolver, project_config):
        tree = await resolver.resolve(["index"], project_config, tailwind_version="v4")
        assert tree.css_vars["light"]["background"] == "oklch(1 0 0)"
        assert tree.css_vars["light"]["radius"] == "0.625rem"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_theme_without_index(self, resolver: DependencyResolver, project_config):
        tree = await resolver.resolve(["button"], project_config)
        assert all(item.type is not ItemKind.THEME for item in tree.items)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_base_color_skips_theme(self, resolver: DependencyResolver, project_config, catalog_docs):
        del catalog_docs["colors/slate.json"]
        tree = await resolver.resolve(["index"], project_config)
        assert tree.names[0] == "index"


class TestFailures:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_partial_failure_keeps_placeholder(self, resolver: DependencyResolver, project_config):
        tree = await resolver.resolve(["button", "ghost"], project_config)
        assert tree.names == ["button", "ghost"]
        [ghost] = tree.unresolved
        assert ghost.name == "ghost"
        assert "not listed in the catalog index" in ghost.error

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_dependency_keeps_parent(self, resolver: DependencyResolver, project_config, catalog_docs):
        _add(catalog_docs, "card", ["ghost"])
        tree = await resolver.resolve(["card"], project_config)
        assert tree.names == ["card", "ghost"]
        assert [f.path for f in tree.files] == ["registry/new-york/ui/card.tsx"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_total_failure_raises_first_error(self, resolver: DependencyResolver, project_config):
        with pytest.raises(NotFound):
            await resolver.resolve(["ghost"], project_config)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_index_unavailable_is_tolerated(self, resolver: DependencyResolver, project_config, catalog_docs):
        del catalog_docs["index.json"]
        tree = await resolver.resolve(["button"], project_config)
        assert tree.names == ["button"]


class TestDirectReferences:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_url_reference(self, resolver: DependencyResolver, project_config):
        tree = await resolver.resolve(["http://localhost:3333/r/styles/new-york/input.json"], project_config)
        assert tree.names == ["input"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_local_file_dependencies_resolved_by_name(
        self, resolver: DependencyResolver, project_config, workspace_root: Path
    ):
        local = workspace_root / "custom.json"
        local.write_text(
            json.dumps({"name": "custom", "type": "registry:block", "registryDependencies": ["button"]}),
            encoding="utf-8",
        )
        tree = await resolver.resolve(["custom.json"], project_config)
        assert tree.names == ["custom", "button"]


class TestReferenceValidation:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_disallowed_host_raises_before_fetch(
        self, resolver: DependencyResolver, project_config, fake_catalog
    ):
        with pytest.raises(UntrustedResponse, match="evil.example.com"):
            await resolver.resolve(["https://evil.example.com/x.json", "button"], project_config)
        assert fake_catalog.requests == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_parent_traversal_raises_before_fetch(
        self, resolver: DependencyResolver, project_config, fake_catalog
    ):
        with pytest.raises(PathOutsideWorkspace, match="Dangerous path pattern"):
            await resolver.resolve(["../../../etc/x.json", "button"], project_config)
        assert fake_catalog.requests == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_absolute_path_outside_workspace(
        self, resolver: DependencyResolver, project_config, tmp_path: Path, fake_catalog
    ):
        outside = tmp_path / "elsewhere.json"
        with pytest.raises(PathOutsideWorkspace):
            await resolver.resolve([str(outside)], project_config)
        assert fake_catalog.requests == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_disallowed_host_in_dependencies_raises(
        self, resolver: DependencyResolver, project_config, catalog_docs
    ):
        _add(catalog_docs, "widget", ["https://evil.example.com/payload.json"])
        with pytest.raises(UntrustedResponse):
            await resolver.resolve(["widget"], project_config)

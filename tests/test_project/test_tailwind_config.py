"""Unit tests for the Tailwind config updater (component_mcp.project.updaters.tailwind_config)."""

from __future__ import annotations

from pathlib import Path

import pytest

from component_mcp.project.js_object import RawExpression, load_config_object
from component_mcp.project.updaters.tailwind_config import merge_config, update_tailwind_config, update_tailwind_content

FRAGMENT = {
    "theme": {"extend": {"colors": {"border": "hsl(var(--border))"}, "borderRadius": {"lg": "var(--radius)"}}},
    "plugins": ['require("tailwindcss-animate")'],
}


class TestMergeConfig:
    @pytest.mark.unit
    def test_objects_recurse_and_lists_union(self):
        existing = {"content": ["./app/**/*.tsx"], "plugins": [RawExpression('require("tailwindcss-animate")')]}
        merged = merge_config(
            existing,
            {
                "content": ["./app/**/*.tsx", "./src/**/*.tsx"],
                "plugins": ['require("tailwindcss-animate")', 'require("@tailwindcss/typography")'],
            },
        )
        assert merged["content"] == ["./app/**/*.tsx", "./src/**/*.tsx"]
        assert [p.required_module for p in merged["plugins"]] == ["tailwindcss-animate", "@tailwindcss/typography"]

    @pytest.mark.unit
    def test_require_strings_become_expressions(self):
        merged = merge_config({}, {"plugins": ['require("x")']})
        assert merged["plugins"] == [RawExpression('require("x")')]

    @pytest.mark.unit
    def test_scalar_added_to_list(self):
        assert merge_config({"darkMode": ["class"]}, {"darkMode": "media"}) == {"darkMode": ["class", "media"]}
        assert merge_config({"darkMode": ["class"]}, {"darkMode": "class"}) == {"darkMode": ["class"]}

    @pytest.mark.unit
    def test_scalars_replaced(self):
        assert merge_config({"prefix": "tw-"}, {"prefix": ""}) == {"prefix": ""}


class TestUpdateTailwindConfig:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_merges_into_existing_file(self, project_config):
        path = await update_tailwind_config(FRAGMENT, project_config, "v3")
        assert path == project_config.resolved_paths.tailwind_config
        source = path.read_text(encoding="utf-8")
        assert source.startswith('import type { Config } from "tailwindcss"')
        assert source.rstrip().endswith("export default config")
        value = load_config_object(source)
        assert value["theme"]["extend"]["colors"]["border"] == "hsl(var(--border))"
        assert value["plugins"] == [RawExpression('require("tailwindcss-animate")')]
        assert value["content"] == ["./app/**/*.{ts,tsx}"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_idempotent(self, project_config):
        await update_tailwind_config(FRAGMENT, project_config, "v3")
        assert await update_tailwind_config(FRAGMENT, project_config, "v3") is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_creates_missing_file(self, project_config, configured_project: Path):
        (configured_project / "tailwind.config.ts").unlink()
        path = await update_tailwind_config(FRAGMENT, project_config, "v3")
        source = path.read_text(encoding="utf-8")
        assert "satisfies Config" in source
        value = load_config_object(source)
        assert value["darkMode"] == ["class"]
        assert "./components/**/*.{ts,tsx}" in value["content"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_v4_and_empty_fragment_skipped(self, project_config):
        assert await update_tailwind_config(FRAGMENT, project_config, "v4") is None
        assert await update_tailwind_config({}, project_config, "v3") is None
        assert await update_tailwind_config(None, project_config, "v3") is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_config_path(self, v4_project: Path):
        from component_mcp.project.config import get_config

        config = get_config(v4_project)
        assert config.resolved_paths.tailwind_config is None
        assert await update_tailwind_config(FRAGMENT, config, "v3") is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_content_globs(self, project_config):
        path = await update_tailwind_content(["./src/**/*.{js,ts,jsx,tsx,mdx}"], project_config)
        value = load_config_object(path.read_text(encoding="utf-8"))
        assert value["content"] == ["./app/**/*.{ts,tsx}", "./src/**/*.{js,ts,jsx,tsx,mdx}"]

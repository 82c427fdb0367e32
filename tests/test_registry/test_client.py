"""Unit tests for CatalogClient (component_mcp.registry.client).

Tests cover:
- build_url (relative paths, absolute URLs, chat URLs, rejected paths)
- check_reference validation without fetching
- fetch_item by name, URL and local file
- HTTP error mapping (401, 403, 404, 5xx, transport errors)
- fetch_index / fetch_base_color
- Response caching
"""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from component_mcp.errors import (
    CatalogFetchError,
    Forbidden,
    NotFound,
    PathOutsideWorkspace,
    SchemaViolation,
    Unauthorized,
    UntrustedResponse,
)
from component_mcp.project.workspace import WorkspaceGuard
from component_mcp.registry.client import CatalogClient
from component_mcp.registry.models import ItemKind

REGISTRY_URL = "http://localhost:3333/r"


def _client_returning(response: httpx.Response) -> CatalogClient:
    return CatalogClient(REGISTRY_URL, transport=httpx.MockTransport(lambda request: response))


class TestBuildUrl:
    @pytest.mark.unit
    def test_relative_path(self):
        client = CatalogClient(REGISTRY_URL)
        assert client.build_url("styles/new-york/button.json") == f"{REGISTRY_URL}/styles/new-york/button.json"

    @pytest.mark.unit
    def test_leading_slash_is_ignored(self):
        client = CatalogClient(REGISTRY_URL + "/")
        assert client.build_url("/index.json") == f"{REGISTRY_URL}/index.json"

    @pytest.mark.unit
    def test_absolute_url(self):
        client = CatalogClient(REGISTRY_URL)
        url = "https://ui.shadcn.com/r/styles/new-york/button.json"
        assert client.build_url(url) == url

    @pytest.mark.unit
    def test_chat_url_gets_json_suffix(self):
        client = CatalogClient(REGISTRY_URL)
        assert client.build_url("http://localhost:3333/chat/b/abc123") == "http://localhost:3333/chat/b/abc123/json"

    @pytest.mark.unit
    @pytest.mark.parametrize("path", ["../secrets.json", "styles/\0.json", "a" * 501])
    def test_bad_relative_paths(self, path: str):
        with pytest.raises(UntrustedResponse):
            CatalogClient(REGISTRY_URL).build_url(path)

    @pytest.mark.unit
    def test_untrusted_absolute_url(self):
        with pytest.raises(UntrustedResponse):
            CatalogClient(REGISTRY_URL).build_url("https://evil.example.com/r/button.json")


class TestCheckReference:
    @pytest.mark.unit
    def test_valid_references(self, tmp_path: Path):
        client = CatalogClient(REGISTRY_URL, guard=WorkspaceGuard(tmp_path))
        client.check_reference("button", "new-york")
        client.check_reference(f"{REGISTRY_URL}/styles/new-york/input.json", "new-york")
        client.check_reference("items/custom.json", "new-york")

    @pytest.mark.unit
    def test_disallowed_host(self):
        with pytest.raises(UntrustedResponse, match="evil.example.com"):
            CatalogClient(REGISTRY_URL).check_reference("https://evil.example.com/x.json", "new-york")

    @pytest.mark.unit
    def test_local_file_outside_workspace(self, tmp_path: Path):
        client = CatalogClient(REGISTRY_URL, guard=WorkspaceGuard(tmp_path / "ws"))
        with pytest.raises(PathOutsideWorkspace):
            client.check_reference(str(tmp_path / "x.json"), "new-york")

    @pytest.mark.unit
    def test_local_file_without_workspace(self):
        with pytest.raises(PathOutsideWorkspace):
            CatalogClient(REGISTRY_URL).check_reference("custom.json", "new-york")


class TestFetchItem:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_by_name(self, catalog_client: CatalogClient, fake_catalog):
        item = await catalog_client.fetch_item("button", "new-york")
        assert item.name == "button"
        assert item.type is ItemKind.UI
        assert item.dependencies == ["@radix-ui/react-slot"]
        assert fake_catalog.requests == ["styles/new-york/button.json"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_by_url(self, catalog_client: CatalogClient):
        item = await catalog_client.fetch_item(f"{REGISTRY_URL}/styles/new-york/input.json", "ignored")
        assert item.name == "input"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cached(self, catalog_client: CatalogClient, fake_catalog):
        await catalog_client.fetch_item("button", "new-york")
        await catalog_client.fetch_item("button", "new-york")
        assert fake_catalog.requests.count("styles/new-york/button.json") == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_item(self, catalog_client: CatalogClient):
        with pytest.raises(NotFound):
            await catalog_client.fetch_item("does-not-exist", "new-york")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_malformed_item(self, catalog_client: CatalogClient, catalog_docs):
        catalog_docs["styles/new-york/broken.json"] = {"name": "broken", "type": "registry:unknown"}
        with pytest.raises(SchemaViolation) as exc_info:
            await catalog_client.fetch_item("broken", "new-york")
        assert any(v["field"] == "type" for v in exc_info.value.violations)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_local_file(self, catalog_client: CatalogClient, workspace_root: Path):
        path = workspace_root / "items" / "custom.json"
        path.parent.mkdir()
        path.write_text(json.dumps({"name": "custom", "type": "registry:lib"}), encoding="utf-8")
        item = await catalog_client.fetch_item("items/custom.json", "new-york")
        assert item.name == "custom"
        assert item.type is ItemKind.LIB

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_local_file_outside_workspace(self, catalog_client: CatalogClient, tmp_path: Path):
        outside = tmp_path / "outside.json"
        outside.write_text("{}", encoding="utf-8")
        with pytest.raises(PathOutsideWorkspace):
            await catalog_client.fetch_item(str(outside), "new-york")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_local_file_missing(self, catalog_client: CatalogClient):
        with pytest.raises(CatalogFetchError, match="not found"):
            await catalog_client.fetch_item("items/missing.json", "new-york")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_local_file_invalid_json(self, catalog_client: CatalogClient, workspace_root: Path):
        (workspace_root / "bad.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(SchemaViolation, match="invalid JSON"):
            await catalog_client.fetch_item("bad.json", "new-york")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_local_file_needs_guard(self):
        client = CatalogClient(REGISTRY_URL)
        with pytest.raises(PathOutsideWorkspace):
            await client.fetch_item("items/custom.json", "new-york")


class TestErrorMapping:
    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status, error", [(401, Unauthorized), (403, Forbidden), (404, NotFound)])
    async def test_status_codes(self, status: int, error: type):
        client = _client_returning(httpx.Response(status))
        with pytest.raises(error):
            await client.fetch_item("button", "new-york")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_server_error_uses_body_message(self):
        client = _client_returning(httpx.Response(500, json={"error": "catalog offline"}))
        with pytest.raises(CatalogFetchError, match="catalog offline") as exc_info:
            await client.fetch_item("button", "new-york")
        assert exc_info.value.status_code == 500

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = CatalogClient(REGISTRY_URL, transport=httpx.MockTransport(handler))
        with pytest.raises(CatalogFetchError, match="connection refused"):
            await client.fetch_item("button", "new-york")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        client = CatalogClient(REGISTRY_URL, timeout=1.5, transport=httpx.MockTransport(handler))
        with pytest.raises(CatalogFetchError, match="timed out after 1.5s"):
            await client.fetch_item("button", "new-york")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_fetch_is_retried(self):
        responses = [httpx.Response(500), httpx.Response(200, json={"name": "button", "type": "registry:ui"})]
        client = CatalogClient(REGISTRY_URL, transport=httpx.MockTransport(lambda request: responses.pop(0)))
        with pytest.raises(CatalogFetchError):
            await client.fetch_item("button", "new-york")
        item = await client.fetch_item("button", "new-york")
        assert item.name == "button"


class TestIndexAndColors:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fetch_index(self, catalog_client: CatalogClient):
        entries = await catalog_client.fetch_index()
        names = [entry.name for entry in entries]
        assert names[:3] == ["index", "utils", "button"]
        assert entries[2].description == "Displays a button."

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_index_must_be_a_list(self, catalog_client: CatalogClient, catalog_docs):
        catalog_docs["index.json"] = {"items": []}
        with pytest.raises(SchemaViolation):
            await catalog_client.fetch_index(use_cache=False)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fetch_base_color(self, catalog_client: CatalogClient):
        color = await catalog_client.fetch_base_color("slate")
        assert color.css_vars["light"]["background"] == "0 0% 100%"
        assert color.css_vars_v4 is not None
        assert color.css_vars_v4["light"]["background"] == "oklch(1 0 0)"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fetch_registry_preserves_order(self, catalog_client: CatalogClient):
        docs = await catalog_client.fetch_registry(["styles/new-york/input.json", "styles/new-york/button.json"])
        assert [doc["name"] for doc in docs] == ["input", "button"]


class TestGuardInteraction:
    @pytest.mark.unit
    def test_guard_is_optional(self):
        client = CatalogClient(REGISTRY_URL)
        assert client.guard is None

    @pytest.mark.unit
    def test_guard_is_kept(self, tmp_path: Path):
        guard = WorkspaceGuard(tmp_path)
        assert CatalogClient(REGISTRY_URL, guard=guard).guard is guard

"""Async client for the component catalog.

Wraps the catalog's static JSON layout (``index.json``,
``styles/<style>/<name>.json``, ``colors/<name>.json``) with URL policy
checks, response validation and an injected :class:`RegistryCache`.

Typical usage::

    client = CatalogClient("https://ui.shadcn.com/r", cache=RegistryCache())
    item = await client.fetch_item("button", style="new-york")
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import httpx

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
from component_mcp.registry.cache import RegistryCache
from component_mcp.registry.models import BaseColor, IndexEntry, RegistryItem, parse_index
from component_mcp.registry.names import ReferenceKind, classify_reference, is_url, validate_component_name
from component_mcp.registry.security import (
    DEFAULT_MAX_RESPONSE_BYTES,
    UrlPolicy,
    read_error_message,
    read_json_response,
    validate_registry_url,
)

logger = logging.getLogger(__name__)

MAX_RELATIVE_PATH_LENGTH = 500
_V0_CHAT_RE = re.compile(r"/chat/b/")


class CatalogClient:
    """Async client for a component catalog served over HTTP.

    A fresh ``httpx.AsyncClient`` is opened per batch of requests; pass
    *transport* to route requests somewhere other than the network (tests
    use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        registry_url: str,
        cache: RegistryCache | None = None,
        policy: UrlPolicy | None = None,
        timeout: float = 30.0,
        max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
        guard: WorkspaceGuard | None = None,
        proxy: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.registry_url = registry_url.rstrip("/")
        self.cache = cache if cache is not None else RegistryCache()
        self.policy = policy or UrlPolicy()
        self.timeout = timeout
        self.max_response_bytes = max_response_bytes
        self.guard = guard
        self.proxy = proxy
        self._transport = transport

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        kwargs: dict[str, Any] = {
            "timeout": httpx.Timeout(self.timeout, connect=10.0),
            "follow_redirects": False,
            "headers": {"Accept": "application/json", "User-Agent": "component-mcp"},
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        elif self.proxy:
            kwargs["proxy"] = self.proxy
        return httpx.AsyncClient(**kwargs)

    def _item_path(self, reference: str, kind: ReferenceKind, style: str) -> str:
        if kind is ReferenceKind.URL:
            return reference
        validate_component_name(style)
        return f"styles/{style}/{reference}.json"

    def _local_path(self, reference: str) -> Path:
        if self.guard is None:
            raise PathOutsideWorkspace(reference, "Local registry files require a workspace")
        path = self.guard.resolve(reference)
        if path.suffix != ".json":
            raise PathOutsideWorkspace(reference, "Only JSON files are allowed")
        return path

    def build_url(self, path: str) -> str:
        """Turn a catalog-relative path or absolute URL into a checked URL."""
        if is_url(path):
            url = validate_registry_url(path, self.policy)
            parts = urlsplit(url)
            if _V0_CHAT_RE.search(parts.path) and not parts.path.endswith("/json"):
                parts = parts._replace(path=f"{parts.path}/json")
            return urlunsplit(parts)

        if ".." in path or "\0" in path or len(path) > MAX_RELATIVE_PATH_LENGTH:
            raise UntrustedResponse(f"Invalid registry path: {path}", url=path)
        return validate_registry_url(f"{self.registry_url}/{path.lstrip('/')}", self.policy)

    async def _get(self, client: httpx.AsyncClient, url: str) -> Any:
        try:
            response = await client.get(url)
        except httpx.TimeoutException as exc:
            raise CatalogFetchError(f"Request to {url} timed out after {self.timeout}s.", url=url) from exc
        except httpx.HTTPError as exc:
            raise CatalogFetchError(f"Failed to fetch from {url}.\n{exc}", url=url) from exc

        if response.status_code == 401:
            raise Unauthorized(url)
        if response.status_code == 403:
            raise Forbidden(url)
        if response.status_code == 404:
            raise NotFound(url)
        if not response.is_success:
            raise CatalogFetchError(
                f"Failed to fetch from {url}.\n{read_error_message(response)}",
                url=url,
                status_code=response.status_code,
            )
        return read_json_response(response, url=url, max_bytes=self.max_response_bytes)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch_json(self, url: str, use_cache: bool = True) -> Any:
        """Fetch one already-built URL, going through the cache by default."""

        async def _fetch() -> Any:
            logger.debug("GET %s", url)
            async with self._client() as client:
                return await self._get(client, url)

        if not use_cache:
            return await _fetch()
        return await self.cache.get_or_fetch(url, _fetch)

    async def fetch_registry(self, paths: list[str], use_cache: bool = True) -> list[Any]:
        """Fetch several catalog documents concurrently, preserving order."""
        urls = [self.build_url(path) for path in paths]
        return list(await asyncio.gather(*(self.fetch_json(url, use_cache=use_cache) for url in urls)))

    async def fetch_index(self, use_cache: bool = True) -> list[IndexEntry]:
        [data] = await self.fetch_registry(["index.json"], use_cache=use_cache)
        return parse_index(data)

    def check_reference(self, reference: str, style: str) -> None:
        """Validate *reference* the way :meth:`fetch_item` would, without fetching.

        Raises:
            InvalidReference: for a malformed name or style.
            UntrustedResponse: for a URL that fails the URL policy.
            PathOutsideWorkspace: for a local file outside the workspace.
        """
        kind = classify_reference(reference)
        if kind is ReferenceKind.LOCAL_FILE:
            self._local_path(reference)
        else:
            self.build_url(self._item_path(reference, kind, style))

    async def fetch_item(self, reference: str, style: str) -> RegistryItem:
        """Fetch one item by catalog name, URL or local file path."""
        kind = classify_reference(reference)
        if kind is ReferenceKind.LOCAL_FILE:
            return await self.read_local_item(reference)
        [data] = await self.fetch_registry([self._item_path(reference, kind, style)])
        return RegistryItem.parse(data, source=f"registry item '{reference}'")

    async def read_local_item(self, reference: str) -> RegistryItem:
        """Read an item document from a ``.json`` file inside the workspace."""
        path = self._local_path(reference)
        raw = await asyncio.to_thread(_read_bytes, path, self.max_response_bytes)
        if b"\0" in raw:
            raise UntrustedResponse("File content contains null bytes", url=str(path))
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise SchemaViolation(
                f"local registry file '{reference}'", [{"field": "(root)", "message": f"invalid JSON: {exc}"}]
            ) from exc
        return RegistryItem.parse(data, source=f"local registry file '{reference}'")

    async def fetch_base_color(self, name: str) -> BaseColor:
        validate_component_name(name)
        [data] = await self.fetch_registry([f"colors/{name}.json"])
        return BaseColor.parse(data, source=f"base color '{name}'")


def _read_bytes(path: Path, limit: int) -> bytes:
    try:
        size = path.stat().st_size
    except FileNotFoundError as exc:
        raise CatalogFetchError(f"Local registry file not found: {path}", url=str(path)) from exc
    if size > limit:
        raise UntrustedResponse(f"File content too large: {size} bytes (max: {limit})", url=str(path))
    return path.read_bytes()

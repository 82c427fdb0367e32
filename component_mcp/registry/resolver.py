"""Registry dependency resolution.

:class:`DependencyResolver` turns a list of references into the transitive
closure of catalog items, ordered and deduplicated, and hands the result to
the merge engine.  Items are discovered level by level from an explicit
worklist; every level is fetched concurrently, and a visited set keyed by
reference guarantees termination on cyclic ``registryDependencies``.

References are validated before anything is fetched, so a disallowed host
or a path outside the workspace fails the whole request.  Only fetch
failures degrade into unresolved placeholder items.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import TYPE_CHECKING

from component_mcp.errors import ComponentMcpError, EmptyComponentList
from component_mcp.registry.client import CatalogClient
from component_mcp.registry.merge import merge_items
from component_mcp.registry.models import IndexEntry, RegistryItem, ResolvedTree
from component_mcp.registry.names import ReferenceKind, classify_reference, is_local_file, is_url
from component_mcp.registry.themes import build_theme_item

if TYPE_CHECKING:
    from component_mcp.project.config import ProjectConfig

logger = logging.getLogger(__name__)

INDEX_ITEM = "index"


class DependencyResolver:
    """Resolve references against a :class:`CatalogClient`."""

    def __init__(self, client: CatalogClient) -> None:
        self.client = client

    async def resolve(
        self,
        references: list[str],
        config: "ProjectConfig",
        style: str | None = None,
        tailwind_version: str | None = None,
    ) -> ResolvedTree:
        """Resolve *references* into a merged :class:`ResolvedTree`.

        Args:
            references: Catalog names, item URLs or local ``.json`` paths.
            config: The project's configuration descriptor (style, base
                colour and css-variables setting are read from it).
            style: Catalog style to fetch names from; defaults to
                ``config.style``.
            tailwind_version: ``"v3"`` / ``"v4"``; selects the v4 token set
                for the synthetic theme item.

        Raises:
            EmptyComponentList: when *references* is empty.
            InvalidReference: when a reference fails classification.
            UntrustedResponse: when a URL reference fails the URL policy.
            PathOutsideWorkspace: when a local file reference escapes the
                workspace.
            ComponentMcpError: the first fetch failure, when no item at all
                could be resolved.
        """
        if not references:
            raise EmptyComponentList()

        classified = [(ref, classify_reference(ref)) for ref in references]
        style = style or config.style

        direct = _unique(ref for ref, kind in classified if kind is not ReferenceKind.CATALOG_NAME)
        names = _unique(ref for ref, kind in classified if kind is ReferenceKind.CATALOG_NAME)
        if INDEX_ITEM in names:
            names.remove(INDEX_ITEM)
            names.insert(0, INDEX_ITEM)

        for ref in [*direct, *names]:
            self.client.check_reference(ref, style)

        failures: dict[str, ComponentMcpError] = {}
        visited: set[str] = set(direct)

        *direct_items, index = await asyncio.gather(
            *(self._fetch_or_placeholder(ref, style, failures) for ref in direct),
            self._fetch_index_or_none(),
        )
        items: list[RegistryItem] = list(direct_items)

        pending: deque[str] = deque()
        for item in direct_items:
            pending.extend(item.registry_dependencies)
        items.extend(await self._drain(pending, visited, style, failures))

        pending.extend(names)
        items.extend(await self._drain(pending, visited, style, failures))

        if index is not None:
            _annotate_unlisted(items, index)

        if INDEX_ITEM in names and config.tailwind.base_color:
            theme = await self._theme_item(config, tailwind_version)
            if theme is not None:
                items.insert(0, theme)

        items = sorted(items, key=lambda item: not item.is_theme)
        items = _dedupe_by_name(items)

        if items and all(item.unresolved for item in items):
            first = next(iter(failures.values()), None)
            if first is not None:
                raise first
            raise ComponentMcpError("None of the requested items could be resolved.")

        for item in items:
            if item.unresolved:
                logger.warning("Unresolved item %s: %s", item.name, item.error)

        return merge_items(items)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _drain(
        self,
        pending: deque[str],
        visited: set[str],
        style: str,
        failures: dict[str, ComponentMcpError],
    ) -> list[RegistryItem]:
        """Fetch everything reachable from *pending*, one concurrent level at a time."""
        found: list[RegistryItem] = []
        while pending:
            level: list[str] = []
            while pending:
                ref = pending.popleft()
                if ref in visited:
                    continue
                visited.add(ref)
                level.append(ref)
            if not level:
                break
            for ref in level:
                self.client.check_reference(ref, style)
            fetched = await asyncio.gather(
                *(self._fetch_or_placeholder(ref, style, failures) for ref in level)
            )
            for item in fetched:
                found.append(item)
                pending.extend(item.registry_dependencies)
        return found

    async def _fetch_or_placeholder(
        self, reference: str, style: str, failures: dict[str, ComponentMcpError]
    ) -> RegistryItem:
        try:
            return await self.client.fetch_item(reference, style)
        except ComponentMcpError as exc:
            failures.setdefault(reference, exc)
            return RegistryItem.placeholder(reference, exc.message)

    async def _fetch_index_or_none(self) -> list[IndexEntry] | None:
        try:
            return await self.client.fetch_index(use_cache=True)
        except ComponentMcpError as exc:
            logger.warning("Catalog index unavailable: %s", exc.message)
            return None

    async def _theme_item(self, config: "ProjectConfig", tailwind_version: str | None) -> RegistryItem | None:
        base_color_name = config.tailwind.base_color
        try:
            base_color = await self.client.fetch_base_color(base_color_name)
        except ComponentMcpError as exc:
            logger.warning("Base color %s unavailable: %s", base_color_name, exc.message)
            return None
        return build_theme_item(
            base_color_name,
            base_color,
            css_variables=config.tailwind.css_variables,
            tailwind_version=tailwind_version,
        )


def _unique(refs) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for ref in refs:
        if ref not in seen:
            seen.add(ref)
            out.append(ref)
    return out


def _dedupe_by_name(items: list[RegistryItem]) -> list[RegistryItem]:
    seen: set[str] = set()
    out: list[RegistryItem] = []
    for item in items:
        if item.name in seen:
            continue
        seen.add(item.name)
        out.append(item)
    return out


def _annotate_unlisted(items: list[RegistryItem], index: list[IndexEntry]) -> None:
    listed = {entry.name for entry in index}
    for item in items:
        if not item.unresolved or item.name in listed:
            continue
        if not is_url(item.name) and not is_local_file(item.name):
            item.error = f"{item.error} (not listed in the catalog index)"

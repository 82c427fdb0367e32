"""Pydantic models for catalog documents.

Catalog JSON uses camelCase keys; the models expose snake_case attributes
and accept either spelling on input (``populate_by_name``).  Serialise
with ``model_dump(by_alias=True)`` to get the wire format back.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from component_mcp.errors import SchemaViolation


class ItemKind(str, Enum):
    STYLE = "registry:style"
    THEME = "registry:theme"
    BLOCK = "registry:block"
    COMPONENT = "registry:component"
    UI = "registry:ui"
    LIB = "registry:lib"
    HOOK = "registry:hook"
    FILE = "registry:file"
    PAGE = "registry:page"
    EXAMPLE = "registry:example"
    INTERNAL = "registry:internal"


# Item kinds whose files land under an alias root.
KIND_ALIAS_MAP: dict[ItemKind, str] = {
    ItemKind.UI: "ui",
    ItemKind.LIB: "lib",
    ItemKind.HOOK: "hooks",
    ItemKind.BLOCK: "components",
    ItemKind.COMPONENT: "components",
}


class _CatalogModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RegistryItemFile(_CatalogModel):
    """One file shipped by a catalog item."""

    path: str
    content: str = Field(default="")
    type: ItemKind
    target: str | None = Field(default=None)


class ItemTailwind(_CatalogModel):
    config: dict[str, Any] = Field(default_factory=dict)


class RegistryItem(_CatalogModel):
    """A catalog item, or an unresolved placeholder standing in for one."""

    name: str
    type: ItemKind
    title: str | None = None
    description: str | None = None
    author: str | None = None
    files: list[RegistryItemFile] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    dev_dependencies: list[str] = Field(default_factory=list, alias="devDependencies")
    registry_dependencies: list[str] = Field(default_factory=list, alias="registryDependencies")
    tailwind: ItemTailwind | None = None
    css_vars: dict[str, dict[str, str]] | None = Field(default=None, alias="cssVars")
    css: dict[str, Any] | None = None
    docs: str | None = None
    categories: list[str] = Field(default_factory=list)
    meta: dict[str, Any] | None = None

    unresolved: bool = Field(default=False, exclude=True)
    error: str | None = Field(default=None, exclude=True)

    @classmethod
    def placeholder(cls, name: str, reason: str) -> "RegistryItem":
        """An empty item marking a reference that could not be fetched."""
        return cls(name=name, type=ItemKind.COMPONENT, unresolved=True, error=reason)

    @classmethod
    def parse(cls, data: Any, source: str = "registry item") -> "RegistryItem":
        """Validate *data*, converting pydantic errors to :class:`SchemaViolation`."""
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise SchemaViolation.from_validation_error(source, exc) from exc

    @property
    def is_theme(self) -> bool:
        return self.type is ItemKind.THEME


class IndexEntry(_CatalogModel):
    """Summary of an item as listed in ``index.json``."""

    name: str
    type: ItemKind
    description: str | None = None
    dependencies: list[str] = Field(default_factory=list)
    registry_dependencies: list[str] = Field(default_factory=list, alias="registryDependencies")
    files: list[Any] = Field(default_factory=list)


def parse_index(data: Any) -> list[IndexEntry]:
    if not isinstance(data, list):
        raise SchemaViolation("registry index", [{"field": "(root)", "message": "expected a list"}])
    entries: list[IndexEntry] = []
    for position, raw in enumerate(data):
        try:
            entries.append(IndexEntry.model_validate(raw))
        except ValidationError as exc:
            violation = SchemaViolation.from_validation_error(f"registry index entry {position}", exc)
            raise violation from exc
    return entries


class BaseColor(_CatalogModel):
    """A ``colors/<name>.json`` document."""

    inline_colors: dict[str, dict[str, str]] = Field(default_factory=dict, alias="inlineColors")
    css_vars: dict[str, dict[str, str]] = Field(default_factory=dict, alias="cssVars")
    css_vars_v4: dict[str, dict[str, str]] | None = Field(default=None, alias="cssVarsV4")
    inline_colors_template: str = Field(default="", alias="inlineColorsTemplate")
    css_vars_template: str = Field(default="", alias="cssVarsTemplate")

    @classmethod
    def parse(cls, data: Any, source: str = "base color") -> "BaseColor":
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise SchemaViolation.from_validation_error(source, exc) from exc


class ResolvedTree(_CatalogModel):
    """Ordered, deduplicated items plus their merged contributions."""

    items: list[RegistryItem] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    dev_dependencies: list[str] = Field(default_factory=list, alias="devDependencies")
    files: list[RegistryItemFile] = Field(default_factory=list)
    tailwind: dict[str, Any] = Field(default_factory=dict)
    css_vars: dict[str, dict[str, str]] = Field(default_factory=dict, alias="cssVars")
    css: dict[str, Any] = Field(default_factory=dict)
    docs: str = ""

    @property
    def unresolved(self) -> list[RegistryItem]:
        return [item for item in self.items if item.unresolved]

    @property
    def names(self) -> list[str]:
        return [item.name for item in self.items]

"""Deterministic merge of resolved items into one tree."""

from __future__ import annotations

import copy
from typing import Any

from component_mcp.registry.models import RegistryItem, RegistryItemFile, ResolvedTree


def deep_merge(a: dict[str, Any], b: dict[str, Any]) -> dict[str, Any]:
    """Right-biased recursive merge: objects recurse, everything else (lists included) is replaced."""
    out = dict(a)
    for key, value in b.items():
        if key in out and isinstance(out[key], dict) and isinstance(value, dict):
            out[key] = deep_merge(out[key], value)
        else:
            out[key] = copy.deepcopy(value)
    return out


def _package_name(spec: str) -> str:
    """``@scope/pkg@1.2`` -> ``@scope/pkg``; ``pkg@^2`` -> ``pkg``."""
    body = spec[4:] if spec.startswith("npm:") else spec
    head, sep, _ = body[1:].partition("@")
    return (body[0] + head) if sep else body


def union_packages(*groups: list[str]) -> list[str]:
    """Concatenate package specs, keeping the first spec seen per package name."""
    seen: set[str] = set()
    out: list[str] = []
    for group in groups:
        for spec in group:
            name = _package_name(spec)
            if name in seen:
                continue
            seen.add(name)
            out.append(spec)
    return out


def dedupe_files(files: list[RegistryItemFile]) -> list[RegistryItemFile]:
    """Keep one file per target; the last writer wins but the first position is kept."""
    positions: dict[str, int] = {}
    out: list[RegistryItemFile] = []
    for file in files:
        key = file.target or file.path
        if key in positions:
            out[positions[key]] = file
        else:
            positions[key] = len(out)
            out.append(file)
    return out


def merge_items(items: list[RegistryItem]) -> ResolvedTree:
    """Fold *items* left to right into a :class:`ResolvedTree`."""
    tailwind: dict[str, Any] = {}
    css_vars: dict[str, Any] = {}
    css: dict[str, Any] = {}
    docs: list[str] = []
    files: list[RegistryItemFile] = []

    for item in items:
        if item.tailwind is not None:
            tailwind = deep_merge(tailwind, {"config": item.tailwind.config})
        if item.css_vars:
            css_vars = deep_merge(css_vars, item.css_vars)
        if item.css:
            css = deep_merge(css, item.css)
        if item.docs:
            docs.append(item.docs)
        files.extend(item.files)

    return ResolvedTree(
        items=list(items),
        dependencies=union_packages(*(item.dependencies for item in items)),
        dev_dependencies=union_packages(*(item.dev_dependencies for item in items)),
        files=dedupe_files(files),
        tailwind=tailwind,
        css_vars=css_vars,
        css=css,
        docs="\n".join(docs),
    )

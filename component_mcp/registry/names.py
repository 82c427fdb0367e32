"""Classification and validation of item references.

A reference handed to the resolver is exactly one of: an absolute
``http``/``https`` URL, a path to a local ``.json`` item file, or a catalog
name such as ``button`` or ``blocks/login-01``.
"""

from __future__ import annotations

import re
from enum import Enum
from urllib.parse import urlsplit

from component_mcp.errors import InvalidReference

MAX_NAME_LENGTH = 200

_NAME_RE = re.compile(r"^[a-zA-Z0-9\-_/.@]+$")
_DANGEROUS_NAME_PATTERNS = (
    (re.compile(r"\.\."), "parent directory reference"),
    (re.compile(r"//"), "empty path segment"),
    (re.compile(r"^\."), "leading dot"),
    (re.compile(r"/$"), "trailing slash"),
    (re.compile(r"\x00"), "null byte"),
)


class ReferenceKind(str, Enum):
    LOCAL_FILE = "local-file"
    URL = "url"
    CATALOG_NAME = "catalog-name"


def is_url(reference: str) -> bool:
    """True for absolute ``http``/``https`` URLs that carry a host."""
    try:
        parts = urlsplit(reference)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def is_local_file(reference: str) -> bool:
    return reference.endswith(".json") and not is_url(reference)


def validate_component_name(name: str) -> str:
    """Validate a catalog item (or style) name.

    Raises:
        InvalidReference: when the name is empty, too long, contains an
            illegal character or a dangerous pattern.
    """
    if not name or not isinstance(name, str):
        raise InvalidReference(str(name), "name must be a non-empty string")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidReference(name[:40] + "...", f"name longer than {MAX_NAME_LENGTH} characters")
    for pattern, label in _DANGEROUS_NAME_PATTERNS:
        if pattern.search(name):
            raise InvalidReference(name, f"dangerous pattern in name ({label})")
    if not _NAME_RE.match(name):
        raise InvalidReference(name, "name contains illegal characters")
    return name


def classify_reference(reference: str) -> ReferenceKind:
    """Return the kind of *reference*, validating catalog names on the way."""
    if is_url(reference):
        return ReferenceKind.URL
    if is_local_file(reference):
        if "\0" in reference:
            raise InvalidReference(reference, "null byte in path")
        return ReferenceKind.LOCAL_FILE
    validate_component_name(reference)
    return ReferenceKind.CATALOG_NAME

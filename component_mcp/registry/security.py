"""Outbound URL and inbound response checks for catalog traffic.

Every catalog request goes through :func:`validate_registry_url` before it
is dispatched, and every response body goes through
:func:`read_json_response` before it is parsed.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import parse_qsl, urlsplit

import httpx
from pydantic import BaseModel, Field

from component_mcp.errors import UntrustedResponse

MAX_URL_LENGTH = 2048
DEFAULT_MAX_RESPONSE_BYTES = 10 * 1024 * 1024
ERROR_BODY_MAX_BYTES = 1024

_ALLOWED_SCHEMES = ("http", "https")
_QUERY_FORBIDDEN_CHARS = set("<>\"'&")


class UrlPolicy(BaseModel):
    """Allow-lists applied to every registry URL."""

    allowed_hosts: list[str] = Field(
        default_factory=lambda: ["ui.shadcn.com", "localhost", "host.docker.internal", "127.0.0.1"]
    )
    https_required_hosts: list[str] = Field(default_factory=lambda: ["ui.shadcn.com"])
    allowed_ports: list[int] = Field(default_factory=lambda: [80, 443, 3000, 3333, 8080, 8443])
    forbidden_path_prefixes: list[str] = Field(
        default_factory=lambda: ["/admin", "/.env", "/config", "/system", "/private"]
    )
    max_query_key_length: int = Field(default=100, ge=1)
    max_query_value_length: int = Field(default=1000, ge=1)


DEFAULT_POLICY = UrlPolicy()


def validate_registry_url(url: str, policy: UrlPolicy | None = None) -> str:
    """Check *url* against *policy* and return it normalised.

    Raises:
        UntrustedResponse: if any rule is violated.
    """
    policy = policy or DEFAULT_POLICY

    if not url or not isinstance(url, str):
        raise UntrustedResponse("Registry URL must be a non-empty string", url=str(url))
    if len(url) > MAX_URL_LENGTH:
        raise UntrustedResponse(
            f"Registry URL too long: {len(url)} characters (max: {MAX_URL_LENGTH})", url=url[:80]
        )
    if any(ch in url for ch in ("\0", "\n", "\r")):
        raise UntrustedResponse("Registry URL contains invalid characters", url=url)

    parts = urlsplit(url)
    if parts.scheme not in _ALLOWED_SCHEMES:
        raise UntrustedResponse(
            f"Protocol not allowed: {parts.scheme or '(none)'}. Allowed: {', '.join(_ALLOWED_SCHEMES)}",
            url=url,
        )

    host = (parts.hostname or "").lower()
    if host not in policy.allowed_hosts:
        raise UntrustedResponse(
            f"Registry host not allowed: {host or '(none)'}. Allowed: {', '.join(policy.allowed_hosts)}",
            url=url,
        )
    if host in policy.https_required_hosts and parts.scheme != "https":
        raise UntrustedResponse(f"HTTPS required for external registry: {host}", url=url)

    try:
        port = parts.port
    except ValueError:
        raise UntrustedResponse(f"Invalid port number in URL: {url}", url=url)
    if port is not None and port not in policy.allowed_ports:
        raise UntrustedResponse(
            f"Port not allowed: {port}. Allowed ports: {', '.join(str(p) for p in policy.allowed_ports)}",
            url=url,
        )

    path = parts.path or "/"
    for forbidden in policy.forbidden_path_prefixes:
        if path.startswith(forbidden):
            raise UntrustedResponse(f"Access to path not allowed: {path}", url=url)

    if parts.query:
        for key, value in parse_qsl(parts.query, keep_blank_values=True):
            if len(key) > policy.max_query_key_length or len(value) > policy.max_query_value_length:
                raise UntrustedResponse("Query parameter too long", url=url)
            if _QUERY_FORBIDDEN_CHARS & set(key) or _QUERY_FORBIDDEN_CHARS & set(value):
                raise UntrustedResponse("Invalid characters in query parameters", url=url)

    return parts.geturl()


def read_json_response(
    response: httpx.Response,
    url: str = "",
    max_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
    expected_content_type: str = "application/json",
) -> Any:
    """Validate a successful response and decode its JSON body.

    The declared ``Content-Length`` and the actual body are both checked
    against *max_bytes* before any parsing happens.
    """
    content_type = response.headers.get("content-type", "")
    if expected_content_type not in content_type.lower():
        raise UntrustedResponse(f"Unexpected content type: {content_type or '(none)'}", url=url)

    declared = response.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise UntrustedResponse(f"Response too large: {declared} bytes (max: {max_bytes})", url=url)

    body = response.content
    if len(body) > max_bytes:
        raise UntrustedResponse(f"JSON response too large: {len(body)} bytes (max: {max_bytes})", url=url)
    if b"\0" in body:
        raise UntrustedResponse("JSON response contains null bytes", url=url)

    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise UntrustedResponse(f"Invalid JSON response: {exc}", url=url) from exc


def read_error_message(response: httpx.Response) -> str:
    """Best-effort extraction of an ``{"error": ...}`` message from a failed response."""
    fallback = response.reason_phrase or f"HTTP {response.status_code}"
    body = response.content[:ERROR_BODY_MAX_BYTES]
    try:
        data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return fallback
    if isinstance(data, dict) and isinstance(data.get("error"), str):
        return data["error"]
    return fallback

"""component-mcp server configuration.

Centralised, typed configuration for the MCP server. All settings use
Pydantic v2 models so they can be validated at construction time and
serialised to/from JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from component_mcp.errors import ComponentMcpError
from component_mcp.registry.names import validate_component_name
from component_mcp.registry.security import UrlPolicy, validate_registry_url
from component_mcp.utils import ensure_dir, print_warning

DEFAULT_REGISTRY_URL = "http://host.docker.internal:3333/r"
DEFAULT_STYLE = "new-york"


class HttpConfig(BaseModel):
    """Timeouts and size caps for catalog requests."""

    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    max_response_bytes: int = Field(default=10 * 1024 * 1024, ge=1024)
    proxy: str | None = Field(default=None, description="Outbound proxy URL, if any")


class ServerConfig(BaseModel):
    """Global component-mcp configuration.

    Instances are created once by the CLI entry point (usually through
    :meth:`from_env`) and passed to every tool handler.
    """

    registry_url: str = Field(default=DEFAULT_REGISTRY_URL)
    style: str = Field(default=DEFAULT_STYLE)
    workspace_dir: Path | None = Field(default=None)
    max_concurrent_operations: int = Field(default=5, ge=1)
    http: HttpConfig = Field(default_factory=HttpConfig)
    url_policy: UrlPolicy = Field(default_factory=UrlPolicy)

    @field_validator("registry_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("style")
    @classmethod
    def _check_style(cls, value: str) -> str:
        try:
            validate_component_name(value)
        except ComponentMcpError as exc:
            raise ValueError(exc.message) from exc
        return value

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file."""
        target = Path(path)
        ensure_dir(target.parent)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "ServerConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "ServerConfig":
        """Build a ``ServerConfig`` from environment variables.

        Recognised variables (all optional):
            REGISTRY_URL, STYLE, WORKSPACE_DIR, MCP_MAX_CONCURRENT_OPERATIONS,
            REGISTRY_TIMEOUT, REGISTRY_MAX_RESPONSE_BYTES, https_proxy.

        An untrusted ``REGISTRY_URL`` falls back to the default registry with
        a warning instead of failing start-up.
        """
        env = os.environ if environ is None else environ
        policy = UrlPolicy()

        registry_url = env.get("REGISTRY_URL") or DEFAULT_REGISTRY_URL
        try:
            validate_registry_url(registry_url, policy)
        except ComponentMcpError as exc:
            print_warning(f"Invalid REGISTRY_URL ({exc.message}); using {DEFAULT_REGISTRY_URL}")
            registry_url = DEFAULT_REGISTRY_URL

        style = env.get("STYLE") or DEFAULT_STYLE
        try:
            validate_component_name(style)
        except ComponentMcpError as exc:
            print_warning(f"Invalid STYLE ({exc.message}); using {DEFAULT_STYLE}")
            style = DEFAULT_STYLE

        http_kwargs: dict[str, Any] = {}
        if env.get("REGISTRY_TIMEOUT"):
            http_kwargs["timeout"] = float(env["REGISTRY_TIMEOUT"])
        if env.get("REGISTRY_MAX_RESPONSE_BYTES"):
            http_kwargs["max_response_bytes"] = int(env["REGISTRY_MAX_RESPONSE_BYTES"])
        proxy = env.get("https_proxy") or env.get("HTTPS_PROXY")
        if proxy:
            http_kwargs["proxy"] = proxy

        kwargs: dict[str, Any] = {}
        if env.get("MCP_MAX_CONCURRENT_OPERATIONS"):
            kwargs["max_concurrent_operations"] = int(env["MCP_MAX_CONCURRENT_OPERATIONS"])
        if env.get("WORKSPACE_DIR"):
            kwargs["workspace_dir"] = Path(env["WORKSPACE_DIR"])

        return cls(
            registry_url=registry_url,
            style=style,
            http=HttpConfig(**http_kwargs),
            url_policy=policy,
            **kwargs,
        )

"""Exception hierarchy for component-mcp.

Every failure that can reach a tool boundary is a ``ComponentMcpError``
subclass.  The tool handlers turn these into ``isError`` responses; nothing
in the package calls ``sys.exit`` on an application error.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError


class ComponentMcpError(Exception):
    """Base class for all errors raised by component-mcp."""

    #: Stable machine-readable kind, surfaced in structured error content.
    kind: str = "error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class InvalidReference(ComponentMcpError):
    """Raised when an item reference is neither a URL, a JSON file, nor a valid name."""

    kind = "invalid_reference"

    def __init__(self, reference: str, reason: str) -> None:
        self.reference = reference
        self.reason = reason
        super().__init__(f"Invalid reference '{reference}': {reason}")


class SchemaViolation(ComponentMcpError):
    """Raised when a document or tool input does not match its declared shape.

    ``violations`` holds one ``{"field": ..., "message": ...}`` entry per
    offending field so callers can show a field-by-field breakdown.
    """

    kind = "schema_violation"

    def __init__(self, entity: str, violations: list[dict[str, str]]) -> None:
        self.entity = entity
        self.violations = violations
        details = ", ".join(f"{v['field']}: {v['message']}" for v in violations)
        super().__init__(f"Validation failed for {entity}: {details}")

    @classmethod
    def from_validation_error(cls, entity: str, error: ValidationError) -> "SchemaViolation":
        violations: list[dict[str, str]] = []
        for item in error.errors():
            location = ".".join(str(part) for part in item.get("loc", ())) or "(root)"
            violations.append({"field": location, "message": item.get("msg", "invalid")})
        return cls(entity, violations)

    def breakdown(self) -> str:
        """Return the violations as a bulleted list."""
        return "\n".join(f"- {v['field']}: {v['message']}" for v in self.violations)


class PathOutsideWorkspace(ComponentMcpError):
    """Raised when a path or working directory escapes the workspace boundary."""

    kind = "path_outside_workspace"

    def __init__(self, path: str, reason: str = "path outside workspace not allowed") -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


# ---------------------------------------------------------------------------
# Catalog access
# ---------------------------------------------------------------------------


class UntrustedResponse(ComponentMcpError):
    """Raised for disallowed URLs and for responses that must not be parsed."""

    kind = "untrusted_response"

    def __init__(self, message: str, url: str = "") -> None:
        self.url = url
        super().__init__(message)


class CatalogFetchError(ComponentMcpError):
    """Raised when a catalog document cannot be fetched."""

    kind = "catalog_fetch_error"

    def __init__(self, message: str, url: str = "", status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class NotFound(CatalogFetchError):
    kind = "not_found"

    def __init__(self, url: str) -> None:
        super().__init__(
            f"The component at {url} was not found.\n"
            "It may not exist at the registry. Please make sure it is a valid component.",
            url=url,
            status_code=404,
        )


class Unauthorized(CatalogFetchError):
    kind = "unauthorized"

    def __init__(self, url: str) -> None:
        super().__init__(
            f"You are not authorized to access the component at {url}.\n"
            "If this is a remote registry, you may need to authenticate.",
            url=url,
            status_code=401,
        )


class Forbidden(CatalogFetchError):
    kind = "forbidden"

    def __init__(self, url: str) -> None:
        super().__init__(
            f"You do not have access to the component at {url}.\n"
            "If this is a remote registry, you may need to authenticate or a token.",
            url=url,
            status_code=403,
        )


# ---------------------------------------------------------------------------
# Project state
# ---------------------------------------------------------------------------


class EmptyComponentList(ComponentMcpError):
    kind = "empty_component_list"

    def __init__(self) -> None:
        super().__init__("No components specified to add.")


class MissingProjectOrEmptyDirectory(ComponentMcpError):
    kind = "missing_project"

    def __init__(self, cwd: str) -> None:
        self.cwd = cwd
        super().__init__(
            f"No package.json found at {cwd}. "
            "The directory is missing or does not contain a project."
        )


class ConfigAlreadyExists(ComponentMcpError):
    kind = "config_already_exists"

    def __init__(self, cwd: str) -> None:
        self.cwd = cwd
        super().__init__(
            f'A "components.json" file already exists at {cwd}. '
            'To start over, remove the "components.json" file or pass force=true.'
        )


class StyleFrameworkNotConfigured(ComponentMcpError):
    """Raised when Tailwind CSS is missing or only partially configured."""

    kind = "style_framework_not_configured"

    def __init__(self, cwd: str, missing: str, help_url: str | None = None) -> None:
        self.cwd = cwd
        self.missing = missing
        self.help_url = help_url
        message = (
            f"No Tailwind CSS configuration found at {cwd} (missing: {missing}). "
            "Install Tailwind CSS then try again."
        )
        if help_url:
            message += f" Visit {help_url} to get started."
        super().__init__(message)


class ImportAliasMissing(ComponentMcpError):
    kind = "import_alias_missing"

    def __init__(self, cwd: str, help_url: str | None = None) -> None:
        self.cwd = cwd
        self.help_url = help_url
        message = f"No import alias found in the tsconfig.json or jsconfig.json file at {cwd}."
        if help_url:
            message += f" Visit {help_url} to learn how to set an import alias."
        super().__init__(message)


class DeprecatedComponentRequested(ComponentMcpError):
    kind = "deprecated_component"

    def __init__(self, names: list[str], messages: list[str]) -> None:
        self.names = names
        super().__init__(f"Deprecated components found: {', '.join(messages)}")


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class TooManyConcurrentOperations(ComponentMcpError):
    kind = "too_many_concurrent_operations"

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(
            f"Too many concurrent operations (limit: {limit}). Try again once a running operation finishes."
        )


class CommandExecutionFailed(ComponentMcpError):
    """Raised when a package-manager (or other allow-listed) command fails."""

    kind = "command_execution_failed"

    def __init__(self, message: str, command: str = "", returncode: int | None = None, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


def error_payload(error: ComponentMcpError) -> dict[str, Any]:
    """Structured representation of an error for tool responses."""
    payload: dict[str, Any] = {"kind": error.kind, "message": error.message}
    if isinstance(error, SchemaViolation):
        payload["violations"] = error.violations
    return payload

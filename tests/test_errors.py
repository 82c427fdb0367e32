"""Unit tests for the exception hierarchy (component_mcp.errors)."""

from __future__ import annotations

import pytest
from pydantic import BaseModel, ValidationError

from component_mcp.errors import (
    CatalogFetchError,
    ComponentMcpError,
    DeprecatedComponentRequested,
    InvalidReference,
    NotFound,
    SchemaViolation,
    StyleFrameworkNotConfigured,
    TooManyConcurrentOperations,
    error_payload,
)


class _Sample(BaseModel):
    name: str
    count: int


def _validation_error() -> ValidationError:
    try:
        _Sample.model_validate({"count": "many"})
    except ValidationError as exc:
        return exc
    raise AssertionError("expected a ValidationError")


class TestSchemaViolation:
    @pytest.mark.unit
    def test_from_validation_error_lists_fields(self):
        error = SchemaViolation.from_validation_error("sample", _validation_error())
        fields = [v["field"] for v in error.violations]
        assert "name" in fields
        assert "count" in fields
        assert error.message.startswith("Validation failed for sample:")

    @pytest.mark.unit
    def test_breakdown_is_bulleted(self):
        error = SchemaViolation("thing", [{"field": "a", "message": "required"}])
        assert error.breakdown() == "- a: required"

    @pytest.mark.unit
    def test_payload_includes_violations(self):
        error = SchemaViolation("thing", [{"field": "a", "message": "required"}])
        payload = error_payload(error)
        assert payload["kind"] == "schema_violation"
        assert payload["violations"] == [{"field": "a", "message": "required"}]


class TestMessages:
    @pytest.mark.unit
    def test_all_errors_share_base(self):
        assert issubclass(NotFound, CatalogFetchError)
        assert issubclass(CatalogFetchError, ComponentMcpError)

    @pytest.mark.unit
    def test_not_found_carries_status(self):
        error = NotFound("http://localhost:3333/r/styles/new-york/nope.json")
        assert error.status_code == 404
        assert "was not found" in error.message

    @pytest.mark.unit
    def test_invalid_reference(self):
        error = InvalidReference("../x", "dangerous pattern")
        assert error.message == "Invalid reference '../x': dangerous pattern"

    @pytest.mark.unit
    def test_style_framework_help_url(self):
        error = StyleFrameworkNotConfigured("/w/app", "tailwindcss dependency", "https://tailwindcss.com/docs")
        assert "tailwindcss dependency" in error.message
        assert "https://tailwindcss.com/docs" in error.message

    @pytest.mark.unit
    def test_deprecated_lists_messages(self):
        error = DeprecatedComponentRequested(["toast"], ["Use the sonner component instead."])
        assert error.names == ["toast"]
        assert "sonner" in error.message

    @pytest.mark.unit
    def test_too_many_operations(self):
        error = TooManyConcurrentOperations(5)
        assert error.limit == 5
        assert error_payload(error) == {"kind": "too_many_concurrent_operations", "message": error.message}

"""Unit tests for reference classification (component_mcp.registry.names)."""

from __future__ import annotations

import pytest

from component_mcp.errors import InvalidReference
from component_mcp.registry.names import (
    MAX_NAME_LENGTH,
    ReferenceKind,
    classify_reference,
    is_local_file,
    is_url,
    validate_component_name,
)


class TestClassifyReference:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "reference, expected",
        [
            ("button", ReferenceKind.CATALOG_NAME),
            ("blocks/login-01", ReferenceKind.CATALOG_NAME),
            ("@acme/button", ReferenceKind.CATALOG_NAME),
            ("http://localhost:3333/r/styles/new-york/button.json", ReferenceKind.URL),
            ("https://ui.shadcn.com/r/button.json", ReferenceKind.URL),
            ("./items/custom.json", ReferenceKind.LOCAL_FILE),
            ("custom.json", ReferenceKind.LOCAL_FILE),
        ],
    )
    def test_kinds(self, reference: str, expected: ReferenceKind):
        assert classify_reference(reference) is expected

    @pytest.mark.unit
    def test_url_without_host_is_not_url(self):
        assert not is_url("http:///button.json")
        assert is_local_file("http:///button.json")

    @pytest.mark.unit
    def test_invalid_name_raises(self):
        with pytest.raises(InvalidReference):
            classify_reference("../secrets")


class TestValidateComponentName:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "name",
        ["", "../etc", "a//b", ".hidden", "trailing/", "has space", "semi;colon", "x" * (MAX_NAME_LENGTH + 1)],
    )
    def test_rejected(self, name: str):
        with pytest.raises(InvalidReference):
            validate_component_name(name)

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["button", "new-york-v4", "blocks/sidebar-07", "chart_area@2"])
    def test_accepted(self, name: str):
        assert validate_component_name(name) == name

    @pytest.mark.unit
    def test_reason_names_the_pattern(self):
        with pytest.raises(InvalidReference) as exc_info:
            validate_component_name("a/../b")
        assert "parent directory reference" in exc_info.value.reason

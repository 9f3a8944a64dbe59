"""
Tests for the capability registry and built-in capability definitions.

Run with: pytest tests/test_registry.py -v
"""

import pytest

from commands.capabilities import DEFAULT_CAPABILITIES, build_default_registry
from commands.registry import (
    CONTEXT_FIELDS,
    CapabilityDefinitionError,
    CapabilityRegistry,
    DuplicateCapabilityError,
)
from schemas.capability import Capability, ParameterSpec


def _capability(cap_id="demo", function_name=None, **kwargs):
    return Capability(
        id=cap_id,
        function_name=function_name or f"run_{cap_id}",
        description="demo capability",
        **kwargs,
    )


class TestDefaultRegistry:

    def test_registration_order(self, registry):
        ids = [c.id for c in registry.list_capabilities()]
        assert ids == ["test", "flashcard", "course_search", "career_path"]

    def test_ids_are_unique(self, registry):
        ids = [c.id for c in registry.list_capabilities()]
        assert len(ids) == len(set(ids))

    def test_required_context_names_snapshot_fields(self, registry):
        for capability in registry.list_capabilities():
            assert set(capability.required_context) <= CONTEXT_FIELDS

    def test_note_capabilities_require_references(self, registry):
        assert registry.get("flashcard").required_context == ["references"]
        assert registry.get("test").reference_kind == "note"
        assert registry.get("course_search").required_context == []

    def test_default_registry_is_sealed(self, registry):
        assert registry.sealed
        with pytest.raises(CapabilityDefinitionError):
            registry.register(_capability())

    def test_each_build_is_independent(self):
        assert build_default_registry() is not build_default_registry()


class TestRegister:

    def test_duplicate_id_rejected(self):
        reg = CapabilityRegistry()
        reg.register(_capability("a"))
        with pytest.raises(DuplicateCapabilityError):
            reg.register(_capability("a", function_name="other"))

    def test_duplicate_function_name_rejected(self):
        reg = CapabilityRegistry()
        reg.register(_capability("a", function_name="shared"))
        with pytest.raises(DuplicateCapabilityError):
            reg.register(_capability("b", function_name="shared"))

    def test_unknown_context_field_rejected(self):
        reg = CapabilityRegistry()
        with pytest.raises(CapabilityDefinitionError, match="mentions"):
            reg.register(_capability(required_context=["mentions"]))

    def test_duplicate_parameter_names_rejected(self):
        reg = CapabilityRegistry()
        params = [ParameterSpec(name="x"), ParameterSpec(name="x")]
        with pytest.raises(CapabilityDefinitionError):
            reg.register(_capability(parameters=params))

    def test_failed_registration_leaves_registry_unchanged(self):
        reg = CapabilityRegistry()
        reg.register(_capability("a"))
        with pytest.raises(DuplicateCapabilityError):
            reg.register(_capability("a"))
        assert len(reg) == 1


class TestLookup:

    def test_get_schema(self, registry):
        names = [p.name for p in registry.get_schema("course_search")]
        assert names == ["query", "school", "department"]

    def test_get_schema_unknown_id(self, registry):
        with pytest.raises(KeyError):
            registry.get_schema("nope")

    def test_get_by_function_name(self, registry):
        assert registry.get_by_function_name("generate_flashcard").id == "flashcard"
        assert registry.get_by_function_name("missing") is None

    def test_contains(self, registry):
        assert "career_path" in registry
        assert "none" not in registry


class TestToolManifest:

    def test_manifest_matches_registry(self, registry):
        manifest = registry.tool_manifest()
        assert [t["function"]["name"] for t in manifest] == [c.function_name for c in DEFAULT_CAPABILITIES]
        assert all(t["type"] == "function" for t in manifest)

    def test_json_schema_lists_required(self, registry):
        schema = registry.get("career_path").json_schema()
        assert schema["type"] == "object"
        assert schema["required"] == ["role", "company"]
        assert set(schema["properties"]) == {"role", "company", "seniority", "major"}

    def test_catalogue_entry_uses_camel_case(self, registry):
        entry = registry.get("test").catalogue_entry()
        assert entry["requiredContext"] == ["references"]
        assert "quiz" in entry["keywords"]

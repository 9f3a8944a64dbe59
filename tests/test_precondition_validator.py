"""
Tests for the final precondition gate.

Run with: pytest tests/test_precondition_validator.py -v
"""

from schemas.intent import IntentResult
from services.precondition_validator import validate_preconditions


class TestValidatePreconditions:

    def test_none_passes_through(self, registry, make_snapshot):
        result = IntentResult.none("nothing")
        assert validate_preconditions(result, make_snapshot(), registry) is result

    def test_satisfied_result_unchanged(self, registry, make_snapshot):
        snapshot = make_snapshot(references=[{"id": "1", "display_name": "N"}])
        result = IntentResult(intent="flashcard", confidence=90, parameters={"noteId": "1"})
        assert validate_preconditions(result, snapshot, registry) == result

    def test_missing_reference_overrides_to_none(self, registry, make_snapshot):
        result = IntentResult(intent="test", confidence=99, parameters={"noteId": "1"})
        validated = validate_preconditions(result, make_snapshot(), registry)
        assert validated.intent == "none"
        assert "note must be referenced" in validated.reasoning

    def test_unknown_capability(self, registry, make_snapshot):
        result = IntentResult(intent="summarize", parameters={})
        assert validate_preconditions(result, make_snapshot(), registry).intent == "none"

    def test_missing_required_parameter(self, registry, make_snapshot):
        result = IntentResult(intent="career_path", parameters={"role": "SWE"})
        validated = validate_preconditions(result, make_snapshot(), registry)
        assert validated.intent == "none"
        assert "company" in validated.reasoning

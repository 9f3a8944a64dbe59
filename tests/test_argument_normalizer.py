"""
Tests for per-capability argument normalization.

Run with: pytest tests/test_argument_normalizer.py -v
"""

from services.argument_normalizer import normalize_arguments

CHAPTER_3 = {"id": "42", "display_name": "Chapter 3"}


class TestReferenceCapabilities:

    def test_missing_note_id_filled_from_mention(self, registry, make_snapshot):
        snapshot = make_snapshot(references=[CHAPTER_3])
        params, reason = normalize_arguments(registry.get("flashcard"), {}, snapshot, "turn it into flashcards")
        assert reason == "ok"
        assert params == {"noteId": "42", "noteName": "Chapter 3"}

    def test_note_id_not_in_context_is_replaced(self, registry, make_snapshot):
        snapshot = make_snapshot(references=[CHAPTER_3])
        params, _ = normalize_arguments(registry.get("test"), {"noteId": "999"}, snapshot, "quiz me")
        assert params["noteId"] == "42"

    def test_model_can_pick_among_mentions(self, registry, make_snapshot):
        snapshot = make_snapshot(references=[CHAPTER_3, {"id": "43", "display_name": "Chapter 4"}])
        params, _ = normalize_arguments(registry.get("test"), {"noteId": "43"}, snapshot, "quiz on chapter 4")
        assert params == {"noteId": "43", "noteName": "Chapter 4"}

    def test_open_note_used_when_nothing_mentioned(self, registry, make_snapshot):
        snapshot = make_snapshot(current_view="notes", selected_items={"notes": ["7"]})
        params, _ = normalize_arguments(
            registry.get("test"), {"noteName": "Made Up"}, snapshot, "make a test from this"
        )
        # 이름을 모르는 참조에서는 noteName을 추측하지 않음
        assert params == {"noteId": "7"}

    def test_no_reference_rejects(self, registry, make_snapshot):
        params, reason = normalize_arguments(registry.get("flashcard"), {"noteId": "42"}, make_snapshot(), "x")
        assert params is None
        assert "note" in reason


class TestSearchCapabilities:

    def test_strings_trimmed_and_blank_dropped(self, registry, make_snapshot):
        params, _ = normalize_arguments(
            registry.get("course_search"),
            {"query": "  CS courses ", "school": "  ", "department": " CS"},
            make_snapshot(),
            "CS courses",
        )
        assert params == {"query": "CS courses", "department": "CS"}

    def test_query_defaults_to_message(self, registry, make_snapshot):
        params, _ = normalize_arguments(registry.get("course_search"), {}, make_snapshot(), " courses for AI ")
        assert params == {"query": "courses for AI"}

    def test_undeclared_arguments_dropped(self, registry, make_snapshot):
        params, _ = normalize_arguments(
            registry.get("course_search"), {"query": "x", "confidence": 0.9}, make_snapshot(), "x"
        )
        assert params == {"query": "x"}

    def test_missing_required_argument_rejects(self, registry, make_snapshot):
        params, reason = normalize_arguments(
            registry.get("career_path"), {"role": "ML engineer"}, make_snapshot(), "ML engineer"
        )
        assert params is None
        assert "company" in reason

    def test_wrong_type_for_required_argument_rejects(self, registry, make_snapshot):
        params, _ = normalize_arguments(
            registry.get("career_path"), {"role": "SWE", "company": ["Google"]}, make_snapshot(), "SWE"
        )
        assert params is None

"""
Tests for context snapshot construction and reference resolution.

Run with: pytest tests/test_context_builder.py -v
"""

import pytest
from pydantic import ValidationError

from schemas.context import UNRESOLVED_NAME, PageContext, Reference
from schemas.usage import UsageSnapshot
from services.context_builder import build_context


def _lookup(user_id):
    return UsageSnapshot(plan_name="pro", tokens_used=10, monthly_limit=100, remaining=90)


def _broken_lookup(user_id):
    raise ConnectionError("profile service down")


class TestBuildContext:

    def test_profile_is_copied_into_snapshot(self):
        snapshot = build_context("u1", profile_lookup=_lookup)
        assert snapshot.user.plan_name == "pro"
        assert snapshot.user.remaining == 90
        assert not snapshot.user.degraded

    def test_profile_failure_degrades_instead_of_failing(self):
        snapshot = build_context("u1", references=[{"id": "n1"}], profile_lookup=_broken_lookup)
        assert snapshot.user.degraded
        assert snapshot.user.user_id == "u1"
        assert snapshot.references[0].id == "n1"

    def test_missing_lookup_degrades(self):
        assert build_context("u1").user.degraded

    def test_references_keep_caller_order(self):
        refs = [{"id": "b", "display_name": "B"}, Reference(id="a", display_name="A")]
        snapshot = build_context("u1", references=refs, profile_lookup=_lookup)
        assert [r.id for r in snapshot.references] == ["b", "a"]

    @pytest.mark.parametrize("user_id", ["", "   "])
    def test_blank_user_id_rejected(self, user_id):
        with pytest.raises(ValueError):
            build_context(user_id)

    @pytest.mark.parametrize("ref_id", ["", "   "])
    def test_reference_without_id_rejected(self, ref_id):
        with pytest.raises(ValidationError):
            build_context("u1", references=[{"id": ref_id, "display_name": "x"}])

    def test_reference_id_is_trimmed_and_null_name_is_placeholder(self):
        snapshot = build_context("u1", references=[{"id": " n1 ", "display_name": None}], profile_lookup=_lookup)
        assert snapshot.references[0].id == "n1"
        assert snapshot.references[0].display_name == UNRESOLVED_NAME
        assert snapshot.references[0].resolved_name is None

    def test_snapshot_is_immutable(self):
        snapshot = build_context("u1", profile_lookup=_lookup)
        with pytest.raises(ValidationError):
            snapshot.page = PageContext(current_view="notes")


class TestReferenceResolution:

    def test_explicit_reference_wins_over_open_note(self, make_snapshot):
        snapshot = make_snapshot(
            references=[{"id": "42", "display_name": "Chapter 3"}],
            current_view="notes",
            selected_items={"notes": ["7"]},
        )
        assert snapshot.reference_for("note").id == "42"

    def test_open_note_counts_as_reference(self, make_snapshot):
        snapshot = make_snapshot(current_view="notes", selected_items={"notes": ["7"]})
        ref = snapshot.reference_for("note")
        assert ref.id == "7"
        assert ref.display_name == UNRESOLVED_NAME
        assert ref.resolved_name is None

    def test_selection_on_other_view_does_not_count(self, make_snapshot):
        snapshot = make_snapshot(current_view="tests", selected_items={"notes": ["7"]})
        assert snapshot.reference_for("note") is None
        assert not snapshot.has_context("references", "note")

    def test_notes_view_without_selection_does_not_count(self, make_snapshot):
        snapshot = make_snapshot(current_view="notes")
        assert not snapshot.has_context("references", "note")

    def test_page_and_user_context(self, make_snapshot):
        assert make_snapshot(current_view="career").has_context("page")
        assert not make_snapshot().has_context("page")
        assert not make_snapshot(degraded=True).has_context("user")
        assert not make_snapshot().has_context("unknown_field")

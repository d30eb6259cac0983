"""Tests for the pydantic schemas of oracle output."""

import pytest
from pydantic import ValidationError

from commit_journal.oracle import CommitAnalysisPayload, JourneyPayload, SynthesisPayload
from commit_journal.oracle.schemas import DEFAULT_DESCRIPTION, DEFAULT_SUMMARY


class TestJourneyPayload:
    def test_camel_case_keys(self):
        payload = JourneyPayload.model_validate(
            {
                "description": "router",
                "isHotspot": True,
                "evolutionaryLessons": ["a", "b"],
                "reinforcement": None,
            }
        )
        assert payload.is_hotspot is True
        assert payload.evolutionary_lessons == ["a", "b"]

    def test_snake_case_keys(self):
        payload = JourneyPayload.model_validate({"is_hotspot": False, "evolutionary_lessons": None})
        assert payload.is_hotspot is False
        assert payload.evolutionary_lessons == []

    def test_defaults(self):
        payload = JourneyPayload.model_validate({"description": "  "})
        assert payload.description == DEFAULT_DESCRIPTION
        assert payload.is_hotspot is False
        assert payload.reinforcement is None

    def test_wrong_types_rejected(self):
        with pytest.raises(ValidationError):
            JourneyPayload.model_validate({"evolutionaryLessons": "not a list"})


class TestSynthesisPayload:
    def test_full_payload(self):
        payload = SynthesisPayload.model_validate(
            {
                "summary": "grew up",
                "architecturalLessons": [
                    {"title": "t", "lesson": "l", "impact": "Critical", "affectedFiles": ["x.py"]}
                ],
                "namedPieces": [{"name": "Core", "description": "d", "files": None}],
            }
        )
        lesson = payload.architectural_lessons[0]
        assert lesson.impact == "high"
        assert lesson.affected_files == ["x.py"]
        assert payload.named_pieces[0].files == []

    def test_empty_object_uses_defaults(self):
        payload = SynthesisPayload.model_validate({})
        assert payload.summary == DEFAULT_SUMMARY
        assert payload.named_pieces == []
        assert payload.architectural_lessons == []

    def test_unknown_impact_becomes_medium(self):
        payload = SynthesisPayload.model_validate(
            {"architectural_lessons": [{"title": "t", "impact": "galactic"}]}
        )
        assert payload.architectural_lessons[0].impact == "medium"


class TestCommitAnalysisPayload:
    def test_camel_case_keys(self):
        payload = CommitAnalysisPayload.model_validate(
            {
                "aiSummary": "Adds caching",
                "keyDecisions": ["cache per key"],
                "architecturalCallouts": [
                    {"type": "Design Decision", "title": "Cache", "description": "d"}
                ],
            }
        )
        assert payload.summary == "Adds caching"
        assert payload.key_decisions == ["cache per key"]
        assert payload.architectural_callouts[0].type == "design-decision"

    def test_loose_shapes_tolerated(self):
        payload = CommitAnalysisPayload.model_validate(
            {
                "summary": None,
                "key_decisions": "just one",
                "architectural_callouts": ["not an object", {"title": "t"}],
            }
        )
        assert payload.summary == ""
        assert payload.key_decisions == []
        assert [(c.type, c.title) for c in payload.architectural_callouts] == [("learning", "t")]

    def test_non_string_decisions_kept_as_text(self):
        payload = CommitAnalysisPayload.model_validate({"keyDecisions": [{"what": "x"}, "", "y"]})
        assert payload.key_decisions == ['{"what": "x"}', "y"]

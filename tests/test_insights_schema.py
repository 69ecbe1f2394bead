"""
Tests for the extracted insights schema.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from meeting_intel.schemas.insights import (
    ExtractedActionItem,
    ExtractedDecision,
    MeetingInsights,
    normalize_topic_name,
    parse_due_date,
)
from meeting_intel.schemas.records import ActionItemPriority


# ============== Tests ==============

class TestNormalizeTopicName:
    """Tests for normalize_topic_name."""

    def test_lowercases_and_collapses(self):
        assert normalize_topic_name("  Pricing   STRATEGY \n") == "pricing strategy"

    def test_blank(self):
        assert normalize_topic_name("   ") == ""


class TestParseDueDate:
    """Tests for parse_due_date."""

    def test_iso_date(self):
        assert parse_due_date("2025-03-01") == date(2025, 3, 1)

    def test_iso_datetime(self):
        assert parse_due_date("2025-03-01T17:00:00Z") == date(2025, 3, 1)

    @pytest.mark.parametrize("value", [None, "", "null", "None", "TBD", "n/a", "next week", 42, True])
    def test_anything_else_is_none(self, value):
        assert parse_due_date(value) is None


class TestExtractedActionItem:
    """Tests for ExtractedActionItem coercion."""

    def test_known_priority_any_case(self):
        item = ExtractedActionItem(description="Do it", priority=" High ")

        assert item.priority == ActionItemPriority.HIGH

    def test_unknown_priority_becomes_medium(self):
        item = ExtractedActionItem(description="Do it", priority="urgent")

        assert item.priority == ActionItemPriority.MEDIUM

    def test_missing_priority_is_medium(self):
        assert ExtractedActionItem(description="Do it").priority == ActionItemPriority.MEDIUM

    def test_bad_due_date_is_dropped(self):
        item = ExtractedActionItem(description="Do it", due_date="sometime soon")

        assert item.due_date is None

    def test_description_is_stripped(self):
        assert ExtractedActionItem(description="  Follow up  ").description == "Follow up"


class TestExtractedDecision:
    """Tests for ExtractedDecision coercion."""

    def test_blank_context_is_none(self):
        decision = ExtractedDecision(decision_text="Go", context="   ")

        assert decision.context is None

    def test_tags_are_trimmed(self):
        decision = ExtractedDecision(decision_text="Go", tags=[" launch ", "", 3, "q1"])

        assert decision.tags == ["launch", "q1"]

    def test_null_tags(self):
        assert ExtractedDecision(decision_text="Go", tags=None).tags == []

    def test_tags_must_be_a_list(self):
        with pytest.raises(ValidationError):
            ExtractedDecision(decision_text="Go", tags="launch")


class TestMeetingInsights:
    """Tests for MeetingInsights."""

    def test_defaults_are_empty(self):
        insights = MeetingInsights()

        assert insights.action_items == []
        assert insights.decisions == []
        assert insights.topics == []

    def test_camel_case_action_items(self):
        insights = MeetingInsights.model_validate({"actionItems": [{"description": "Send notes"}]})

        assert insights.action_items[0].description == "Send notes"

    def test_snake_case_action_items(self):
        insights = MeetingInsights.model_validate({"action_items": [{"description": "Send notes"}]})

        assert len(insights.action_items) == 1

    def test_null_lists_are_empty(self):
        insights = MeetingInsights.model_validate({"action_items": None, "decisions": None, "topics": None})

        assert insights.action_items == []
        assert insights.decisions == []
        assert insights.topics == []

    def test_decision_text_alias(self):
        insights = MeetingInsights.model_validate({"decisions": [{"text": "Adopt the new CRM"}]})

        assert insights.decisions[0].decision_text == "Adopt the new CRM"

    def test_blank_entries_are_dropped(self):
        insights = MeetingInsights.model_validate(
            {
                "action_items": [{"description": "  "}, {"description": "Real task"}],
                "decisions": [{"decision_text": ""}, {"decision_text": "Real decision"}],
                "topics": ["", "  ", "hiring"],
            }
        )

        assert [i.description for i in insights.action_items] == ["Real task"]
        assert [d.decision_text for d in insights.decisions] == ["Real decision"]
        assert insights.topics == ["hiring"]

    def test_topics_must_be_a_list(self):
        with pytest.raises(ValidationError):
            MeetingInsights.model_validate({"topics": "pricing"})

"""Tests for lenient decoding of language model replies (no external APIs required)."""

from __future__ import annotations

from datetime import date

from voice_pipeline.llm.parsing import (
    extract_json,
    parse_category,
    parse_intent,
    parse_priority,
    parse_processed_reminder,
    parse_string_array,
)
from voice_pipeline.models import (
    IntentAction,
    ReminderCategory,
    ReminderPriority,
    TimeReferenceKind,
)


class TestExtractJson:
    """Cutting the JSON payload out of surrounding prose."""

    def test_object_inside_prose(self) -> None:
        text = 'Sure! Here it is:\n{"action": "get_schedule"}\nLet me know.'
        assert extract_json(text) == '{"action": "get_schedule"}'

    def test_array_of_objects_keeps_outer_brackets(self) -> None:
        text = 'Result: [{"a": 1}, {"b": 2}] done'
        assert extract_json(text) == '[{"a": 1}, {"b": 2}]'

    def test_object_containing_array(self) -> None:
        text = '```json\n{"items": ["x", "y"]}\n```'
        assert extract_json(text) == '{"items": ["x", "y"]}'

    def test_no_brackets_returns_text_unchanged(self) -> None:
        assert extract_json("no json here") == "no json here"

    def test_unclosed_bracket_returns_text_unchanged(self) -> None:
        assert extract_json('{"action": ') == '{"action": '


class TestParseIntent:
    """Intent replies degrade to ``unknown`` rather than raising."""

    def test_well_formed_intent(self) -> None:
        reply = (
            '{"action": "query_client_history", "entity_type": "client", '
            '"entity_name": "Maria", "time_reference": {"type": "last_session"}}'
        )
        intent = parse_intent(reply)
        assert intent.action is IntentAction.QUERY_CLIENT_HISTORY
        assert intent.entity_type == "client"
        assert intent.entity_name == "Maria"
        assert intent.entity_id is None
        assert intent.time_reference is not None
        assert intent.time_reference.kind is TimeReferenceKind.LAST_SESSION

    def test_malformed_json_is_unknown(self) -> None:
        intent = parse_intent("I think you want your schedule {action: schedule")
        assert intent.action is IntentAction.UNKNOWN
        assert intent.entity_name is None
        assert intent.time_reference is None

    def test_plain_prose_is_unknown(self) -> None:
        assert parse_intent("I'm not sure what you mean.").action is IntentAction.UNKNOWN

    def test_json_array_is_unknown(self) -> None:
        assert parse_intent('["get_schedule"]').action is IntentAction.UNKNOWN

    def test_unrecognised_action_is_unknown(self) -> None:
        intent = parse_intent('{"action": "book_flight", "entity_name": "Paris"}')
        assert intent.action is IntentAction.UNKNOWN
        assert intent.entity_name == "Paris"

    def test_action_is_case_insensitive(self) -> None:
        assert parse_intent('{"action": " GET_SCHEDULE "}').action is IntentAction.GET_SCHEDULE

    def test_blank_entity_fields_become_none(self) -> None:
        intent = parse_intent('{"action": "search_clients", "entity_name": "  ", "entity_type": null}')
        assert intent.entity_name is None
        assert intent.entity_type is None

    def test_specific_date_is_decoded(self) -> None:
        intent = parse_intent('{"action": "get_schedule", "time_reference": {"type": "specific", "date": "2025-03-20"}}')
        assert intent.time_reference is not None
        assert intent.time_reference.kind is TimeReferenceKind.SPECIFIC
        assert intent.time_reference.date == date(2025, 3, 20)

    def test_range_is_decoded(self) -> None:
        intent = parse_intent(
            '{"action": "get_schedule", "time_reference": '
            '{"type": "range", "start_date": "2025-03-17", "end_date": "2025-03-19"}}'
        )
        reference = intent.time_reference
        assert reference is not None
        assert reference.start_date == date(2025, 3, 17)
        assert reference.end_date == date(2025, 3, 19)

    def test_invalid_time_reference_is_dropped(self) -> None:
        """A specific reference without its date keeps the action but loses the time."""
        intent = parse_intent('{"action": "get_schedule", "time_reference": {"type": "specific"}}')
        assert intent.action is IntentAction.GET_SCHEDULE
        assert intent.time_reference is None

    def test_reversed_range_is_dropped(self) -> None:
        intent = parse_intent(
            '{"action": "get_schedule", "time_reference": '
            '{"type": "range", "start_date": "2025-03-20", "end_date": "2025-03-17"}}'
        )
        assert intent.time_reference is None

    def test_unknown_time_type_is_dropped(self) -> None:
        intent = parse_intent('{"action": "get_schedule", "time_reference": {"type": "yesterday"}}')
        assert intent.time_reference is None


class TestParseProcessedReminder:
    """Reminder analysis falls back to an empty, medium-priority result."""

    def test_full_analysis(self) -> None:
        reply = """Here is the analysis:
        {
          "extracted_follow_ups": ["Call psychiatrist", "Send worksheet"],
          "suggested_category": "homework",
          "suggested_priority": "high",
          "key_entities": ["psychiatrist"],
          "action_items": ["call"]
        }"""
        processed = parse_processed_reminder(reply)
        assert processed.follow_ups == ["Call psychiatrist", "Send worksheet"]
        assert processed.category is ReminderCategory.HOMEWORK
        assert processed.priority is ReminderPriority.HIGH
        assert processed.key_entities == ["psychiatrist"]

    def test_malformed_reply_uses_defaults(self) -> None:
        processed = parse_processed_reminder("Sorry, I can't help with that.")
        assert processed.follow_ups == []
        assert processed.category is ReminderCategory.SESSION_FOLLOW_UP
        assert processed.priority is ReminderPriority.MEDIUM

    def test_unknown_labels_use_defaults(self) -> None:
        processed = parse_processed_reminder(
            '{"extracted_follow_ups": [], "suggested_category": "misc", "suggested_priority": "asap"}'
        )
        assert processed.category is ReminderCategory.SESSION_FOLLOW_UP
        assert processed.priority is ReminderPriority.MEDIUM

    def test_wrong_field_type_uses_defaults(self) -> None:
        processed = parse_processed_reminder('{"extracted_follow_ups": "call them"}')
        assert processed.follow_ups == []

    def test_array_reply_uses_defaults(self) -> None:
        assert parse_processed_reminder('["a", "b"]').follow_ups == []


class TestSingleValueReplies:
    def test_string_array(self) -> None:
        assert parse_string_array('Follow-ups: ["Call GP", " ", 3, "Email school"]') == ["Call GP", "Email school"]

    def test_string_array_not_json(self) -> None:
        assert parse_string_array("None needed.") == []

    def test_string_array_object_reply(self) -> None:
        assert parse_string_array('{"items": ["x"]}') == []

    def test_category_with_punctuation(self) -> None:
        assert parse_category(' "Risk_Flag". ') is ReminderCategory.RISK_FLAG

    def test_category_unknown_defaults(self) -> None:
        assert parse_category("paperwork") is ReminderCategory.SESSION_FOLLOW_UP

    def test_priority(self) -> None:
        assert parse_priority("CRITICAL\n") is ReminderPriority.CRITICAL

    def test_priority_unknown_defaults(self) -> None:
        assert parse_priority("It is quite urgent") is ReminderPriority.MEDIUM

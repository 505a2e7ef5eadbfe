"""Lenient decoding of language model replies.

Model replies are not trusted to be pure JSON: the structured payload is cut
out of the surrounding prose before decoding, and every decode failure falls
back to a safe default instead of raising.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from voice_pipeline.models import (
    DetectedIntent,
    IntentAction,
    ProcessedReminder,
    ReminderCategory,
    ReminderPriority,
    TimeReference,
)

logger = logging.getLogger(__name__)

_CLOSERS = {"{": "}", "[": "]"}


def extract_json(text: str) -> str:
    """Return the substring from the first ``{``/``[`` to its last closer.

    Whichever opening bracket appears first decides the closer, so an array of
    objects keeps its outer brackets. Text without a bracket pair is returned
    unchanged.
    """
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return text
    start = min(starts)
    end = text.rfind(_CLOSERS[text[start]])
    if end < start:
        return text
    return text[start : end + 1]


def _decode(text: str) -> Any:
    return json.loads(extract_json(text))


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_intent(text: str) -> DetectedIntent:
    """Decode an intent reply; anything unusable becomes ``unknown``."""
    try:
        payload = _decode(text)
    except json.JSONDecodeError:
        logger.warning("Intent reply was not JSON, treating as unknown: %.200s", text)
        return DetectedIntent()
    if not isinstance(payload, dict):
        logger.warning("Intent reply was not a JSON object, treating as unknown")
        return DetectedIntent()

    raw_action = str(payload.get("action", "")).strip().lower()
    try:
        action = IntentAction(raw_action)
    except ValueError:
        logger.warning("Unknown intent action %r", raw_action)
        action = IntentAction.UNKNOWN

    time_reference = None
    raw_time = payload.get("time_reference")
    if isinstance(raw_time, dict):
        try:
            time_reference = TimeReference.model_validate(raw_time)
        except ValidationError as exc:
            logger.warning("Dropping invalid time reference %s: %s", raw_time, exc.errors()[0]["msg"])

    return DetectedIntent(
        action=action,
        entity_type=_optional_str(payload.get("entity_type")),
        entity_id=_optional_str(payload.get("entity_id")),
        entity_name=_optional_str(payload.get("entity_name")),
        time_reference=time_reference,
    )


def parse_processed_reminder(text: str) -> ProcessedReminder:
    """Decode a reminder analysis; falls back to an empty follow-up analysis."""
    try:
        payload = _decode(text)
        if not isinstance(payload, dict):
            raise ValueError("expected a JSON object")
        return ProcessedReminder.model_validate(payload)
    except (ValueError, ValidationError) as exc:
        # json.JSONDecodeError and pydantic's ValidationError are both ValueErrors.
        logger.warning("Could not decode reminder analysis, using defaults: %s", exc)
        return ProcessedReminder()


def parse_string_array(text: str) -> list[str]:
    try:
        payload = _decode(text)
    except json.JSONDecodeError:
        logger.warning("Expected a JSON array of strings: %.200s", text)
        return []
    if not isinstance(payload, list):
        logger.warning("Expected a JSON array, got %s", type(payload).__name__)
        return []
    return [item.strip() for item in payload if isinstance(item, str) and item.strip()]


def _single_word(text: str) -> str:
    return text.strip().strip("\"'`.").strip().lower()


def parse_category(text: str) -> ReminderCategory:
    word = _single_word(text)
    try:
        return ReminderCategory(word)
    except ValueError:
        logger.warning("Unrecognised category %r, defaulting to session_follow_up", word)
        return ReminderCategory.SESSION_FOLLOW_UP


def parse_priority(text: str) -> ReminderPriority:
    word = _single_word(text)
    try:
        return ReminderPriority(word)
    except ValueError:
        logger.warning("Unrecognised priority %r, defaulting to medium", word)
        return ReminderPriority.MEDIUM

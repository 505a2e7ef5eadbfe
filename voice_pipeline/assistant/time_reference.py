"""Deterministic time-reference rules applied after intent classification."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta

from voice_pipeline.models import TimeReference, TimeReferenceKind

# Checked in order; the first match wins ("tomorrow" before "today").
_KEYWORD_PATTERNS: list[tuple[re.Pattern[str], TimeReferenceKind]] = [
    (re.compile(r"\btomorrow\b", re.IGNORECASE), TimeReferenceKind.TOMORROW),
    (re.compile(r"\btoday\b", re.IGNORECASE), TimeReferenceKind.TODAY),
    (re.compile(r"\bnext\s+week\b", re.IGNORECASE), TimeReferenceKind.NEXT_WEEK),
    (re.compile(r"\bthis\s+week\b", re.IGNORECASE), TimeReferenceKind.THIS_WEEK),
]


def infer_time_reference(text: str) -> TimeReference | None:
    """Infer a time reference from keywords in the raw utterance.

    Args:
        text: The user's utterance.

    Returns:
        A dateless TimeReference for the first keyword found, or None.
    """
    for pattern, kind in _KEYWORD_PATTERNS:
        if pattern.search(text):
            return TimeReference(kind=kind)
    return None


def _start_of_day(day: date, now: datetime) -> datetime:
    return datetime.combine(day, time.min, tzinfo=now.tzinfo)


def start_of_week(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def schedule_window(reference: TimeReference | None, now: datetime) -> tuple[datetime, datetime]:
    """Half-open ``[start, end)`` window a schedule query covers.

    ``now`` must be timezone-aware; the window is expressed in its zone.
    Relative, last-session and missing references fall back to today.
    """
    today = now.date()
    kind = reference.kind if reference else None

    if kind is TimeReferenceKind.TOMORROW:
        start_day, days = today + timedelta(days=1), 1
    elif kind is TimeReferenceKind.THIS_WEEK:
        start_day, days = start_of_week(today), 7
    elif kind is TimeReferenceKind.NEXT_WEEK:
        start_day, days = start_of_week(today) + timedelta(days=7), 7
    elif kind is TimeReferenceKind.SPECIFIC and reference and reference.date:
        start_day, days = reference.date, 1
    elif kind is TimeReferenceKind.RANGE and reference and reference.start_date and reference.end_date:
        # Range end dates are inclusive.
        start_day = reference.start_date
        days = (reference.end_date - reference.start_date).days + 1
    else:
        start_day, days = today, 1

    start = _start_of_day(start_day, now)
    return start, _start_of_day(start_day + timedelta(days=days), now)

"""End-of-day summary assembly."""

from __future__ import annotations

import logging
from datetime import datetime

from voice_pipeline.data.facade import DataFacade
from voice_pipeline.data.records import Session, SessionStatus
from voice_pipeline.dictation.store import LocalReminderStore
from voice_pipeline.errors import DataFacadeError
from voice_pipeline.llm.gateway import LanguageModelGateway
from voice_pipeline.models import local_now

logger = logging.getLogger(__name__)


def _held_today(session: Session, now: datetime) -> bool:
    # Sessions without a status count as held once their start time has passed.
    if session.status not in (SessionStatus.COMPLETED, None):
        return False
    return session.scheduled_at.astimezone(now.tzinfo).date() == now.date() and session.scheduled_at <= now


async def build_daily_summary(
    gateway: LanguageModelGateway,
    store: LocalReminderStore,
    facade: DataFacade,
    now: datetime | None = None,
) -> str:
    """Summarize today's reminders and completed sessions.

    Sessions are best-effort: if the backend is unreachable the summary is
    built from reminders alone. Language model errors propagate.
    """
    now = now or local_now()
    today = now.date()
    reminders = store.for_day(today)

    try:
        sessions = await facade.list_sessions()
    except DataFacadeError as exc:
        logger.warning("Sessions unavailable for daily summary: %s", exc.description)
        sessions = []
    completed = sorted((s for s in sessions if _held_today(s, now)), key=lambda s: s.scheduled_at)
    logger.info("Daily summary: %d reminders, %d sessions", len(reminders), len(completed))
    return await gateway.summarize_day(reminders, completed)

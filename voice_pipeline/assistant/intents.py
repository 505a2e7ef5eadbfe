"""Intent execution against the practice data façade.

Each action maps to one fetch; the outcome is one of a small closed set of
result shapes so reply generation can match on it exhaustively.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from voice_pipeline.assistant.time_reference import schedule_window
from voice_pipeline.data.facade import DataFacade
from voice_pipeline.data.records import Client, Session, SessionNote, SessionPrep
from voice_pipeline.errors import DataFacadeError
from voice_pipeline.models import (
    DetectedIntent,
    IntentAction,
    ReminderStatus,
    VoiceReminder,
    local_now,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoData:
    reason: str = "No data found"


@dataclass(frozen=True)
class NextAppointment:
    session: Session


@dataclass(frozen=True)
class Schedule:
    start: datetime
    end: datetime
    sessions: list[Session] = field(default_factory=list)


@dataclass(frozen=True)
class ClientHistory:
    client: Client
    notes: list[SessionNote] = field(default_factory=list)


@dataclass(frozen=True)
class PreviousSession:
    client: Client
    note: SessionNote


@dataclass(frozen=True)
class SessionPrepFound:
    client: Client
    session: Session
    prep: SessionPrep


@dataclass(frozen=True)
class ClientMatches:
    query: str
    clients: list[Client] = field(default_factory=list)


@dataclass(frozen=True)
class ClientFound:
    client: Client


@dataclass(frozen=True)
class ReminderCreated:
    reminder: VoiceReminder


IntentResult = (
    NoData
    | NextAppointment
    | Schedule
    | ClientHistory
    | PreviousSession
    | SessionPrepFound
    | ClientMatches
    | ClientFound
    | ReminderCreated
)


def _when(moment: datetime) -> str:
    return moment.strftime("%A %d %B at %H:%M")


def _snippet(note: SessionNote) -> str:
    return (note.content or "")[:100]


def describe_result(result: IntentResult) -> str:
    """Render an intent result as plain text for the reply prompt."""
    match result:
        case NoData(reason=reason):
            return reason
        case NextAppointment(session=session):
            return (
                f"Appointment: {session.title} on {_when(session.scheduled_at)} "
                f"for {session.duration_minutes} minutes"
            )
        case Schedule(sessions=[]):
            return "No appointments scheduled in this period"
        case Schedule(sessions=sessions):
            return "\n".join(f"{s.title} at {_when(s.scheduled_at)}" for s in sessions)
        case ClientHistory(client=client, notes=[]):
            return f"No session notes found for {client.name}"
        case ClientHistory(client=client, notes=notes):
            snippets = "\n---\n".join(_snippet(n) for n in notes[:3] if n.content)
            return f"Session notes for {client.name} ({len(notes)} total):\n{snippets}"
        case PreviousSession(client=client, note=note):
            return (
                f"Previous session with {client.name} on {note.session_date.strftime('%A %d %B')}:\n"
                f"{_snippet(note)}"
            )
        case SessionPrepFound(client=client, session=session, prep=prep):
            focus = prep.focus or "Session prep available"
            suggestions = "".join(f"\n- {s}" for s in prep.suggestions)
            return f"Prep for {client.name} on {_when(session.scheduled_at)}: {focus}{suggestions}"
        case ClientMatches(query=query, clients=[]):
            return f"No clients match '{query}'"
        case ClientMatches(clients=clients):
            return ", ".join(c.name for c in clients)
        case ClientFound(client=client):
            return f"Client: {client.name}, Status: {client.status or 'unknown'}"
        case ReminderCreated(reminder=reminder):
            return f"Reminder created: {reminder.transcription}"


def _name_matches(name: str, query: str) -> bool:
    return query.casefold() in name.casefold()


class IntentExecutor:
    """Runs a detected intent through the fixed action-to-fetch mapping."""

    def __init__(self, facade: DataFacade, clock: Callable[[], datetime] = local_now) -> None:
        self._facade = facade
        self._clock = clock

    async def execute(self, intent: DetectedIntent, utterance: str = "") -> IntentResult:
        """Fetch the data an intent asks for.

        Unknown actions, missing entities, unmatched names and façade errors
        all yield ``NoData``; this method never raises for those.
        """
        try:
            return await self._dispatch(intent, utterance)
        except DataFacadeError as exc:
            logger.warning("Data lookup for %s failed: %s", intent.action.value, exc.description)
            return NoData(f"Could not retrieve data: {exc.description}")

    async def _dispatch(self, intent: DetectedIntent, utterance: str) -> IntentResult:
        action = intent.action
        name = intent.entity_name

        if action is IntentAction.QUERY_NEXT_APPOINTMENT:
            return await self._next_appointment()
        if action in (IntentAction.GET_SCHEDULE, IntentAction.GET_DAILY_SUMMARY):
            return await self._schedule(intent)
        if action is IntentAction.CREATE_REMINDER:
            return await self._create_reminder(name or utterance)
        if not action.requires_entity or not name:
            return NoData()

        if action is IntentAction.SEARCH_CLIENTS:
            clients = await self._facade.list_clients()
            return ClientMatches(query=name, clients=[c for c in clients if _name_matches(c.name, name)])

        client = await self._find_client(name)
        if client is None:
            return NoData(f"No client found matching '{name}'")

        if action is IntentAction.GET_CLIENT_INFO:
            return ClientFound(client=client)
        if action is IntentAction.QUERY_CLIENT_HISTORY:
            notes = await self._facade.list_notes_for_client(client.id, limit=10)
            return ClientHistory(client=client, notes=notes)
        if action is IntentAction.QUERY_PREVIOUS_SESSION:
            notes = await self._facade.list_notes_for_client(client.id)
            if not notes:
                return NoData(f"No previous sessions found for {client.name}")
            latest = max(notes, key=lambda n: n.session_date)
            return PreviousSession(client=client, note=latest)
        if action is IntentAction.QUERY_SESSION_PREP:
            return await self._session_prep(client)

        logger.warning("No handler for intent action %s", action.value)
        return NoData()

    async def _find_client(self, name: str) -> Client | None:
        clients = await self._facade.list_clients()
        return next((c for c in clients if _name_matches(c.name, name)), None)

    async def _upcoming(self) -> list[Session]:
        now = self._clock()
        sessions = await self._facade.list_sessions()
        return sorted((s for s in sessions if s.scheduled_at > now), key=lambda s: s.scheduled_at)

    async def _next_appointment(self) -> IntentResult:
        upcoming = await self._upcoming()
        if not upcoming:
            return NoData("No upcoming appointments")
        return NextAppointment(session=upcoming[0])

    async def _schedule(self, intent: DetectedIntent) -> IntentResult:
        start, end = schedule_window(intent.time_reference, self._clock())
        sessions = await self._facade.list_sessions()
        in_window = sorted(
            (s for s in sessions if start <= s.scheduled_at < end), key=lambda s: s.scheduled_at
        )
        return Schedule(start=start, end=end, sessions=in_window)

    async def _session_prep(self, client: Client) -> IntentResult:
        upcoming = [s for s in await self._upcoming() if s.client_id == client.id]
        if not upcoming:
            return NoData(f"No upcoming session for {client.name}")
        session = upcoming[0]
        prep = await self._facade.next_session_prep(session.id, client.id)
        if prep is None:
            return NoData(f"No session prep available for {client.name}")
        return SessionPrepFound(client=client, session=session, prep=prep)

    async def _create_reminder(self, text: str) -> IntentResult:
        text = text.strip()
        if not text:
            return NoData("Nothing to remind about")
        reminder = VoiceReminder(transcription=text, status=ReminderStatus.TRANSCRIBED)
        created = await self._facade.create_reminder_record(reminder)
        return ReminderCreated(reminder=created)

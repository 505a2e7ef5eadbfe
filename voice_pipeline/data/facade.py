"""Interface of the practice data store used by the assistant."""

from __future__ import annotations

from typing import Protocol

from voice_pipeline.data.records import Client, Session, SessionNote, SessionPrep
from voice_pipeline.errors import DataServiceUnavailable
from voice_pipeline.models import VoiceReminder


class DataFacade(Protocol):
    """Fetch/create façade over the remote calendar and client backend.

    Every method either returns typed records or raises a
    ``DataFacadeError`` subclass (``NotFound``, ``DataServiceUnavailable``,
    ``DataNetworkFailure``).
    """

    async def list_clients(self) -> list[Client]: ...

    async def list_sessions(self) -> list[Session]: ...

    async def list_notes_for_client(self, client_id: str, limit: int = 10) -> list[SessionNote]: ...

    async def next_session_prep(self, session_id: str, client_id: str) -> SessionPrep | None: ...

    async def generate_session_prep(self, session_id: str) -> SessionPrep: ...

    async def create_reminder_record(self, reminder: VoiceReminder) -> VoiceReminder: ...


class UnconfiguredDataFacade:
    """Stand-in used when no backend is configured; every call fails cleanly."""

    def _fail(self) -> DataServiceUnavailable:
        return DataServiceUnavailable("Practice data service is not configured")

    async def list_clients(self) -> list[Client]:
        raise self._fail()

    async def list_sessions(self) -> list[Session]:
        raise self._fail()

    async def list_notes_for_client(self, client_id: str, limit: int = 10) -> list[SessionNote]:
        raise self._fail()

    async def next_session_prep(self, session_id: str, client_id: str) -> SessionPrep | None:
        raise self._fail()

    async def generate_session_prep(self, session_id: str) -> SessionPrep:
        raise self._fail()

    async def create_reminder_record(self, reminder: VoiceReminder) -> VoiceReminder:
        raise self._fail()

"""Supabase-backed implementation of the practice data façade."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar, cast

import httpx
from postgrest.exceptions import APIError
from supabase import Client as SupabaseClient
from supabase import create_client

from voice_pipeline.config import Settings
from voice_pipeline.data.records import Client, Session, SessionNote, SessionPrep
from voice_pipeline.errors import DataNetworkFailure, DataServiceUnavailable, NotFound
from voice_pipeline.models import VoiceReminder

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_supabase_client(settings: Settings) -> SupabaseClient:
    """Create and return a Supabase client from settings."""
    return create_client(settings.supabase_url, settings.supabase_key)


class SupabaseDataFacade:
    """Reads clients, sessions, notes and preps from Supabase tables.

    The supabase client is synchronous, so each query runs in a worker
    thread to keep the event loop responsive.
    """

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    async def _run(self, label: str, query: Callable[[], T]) -> T:
        try:
            return await asyncio.to_thread(query)
        except APIError as exc:
            logger.warning("Supabase %s failed: %s", label, exc.message)
            if str(exc.code) == "PGRST116":
                raise NotFound(f"{label}: no matching record") from exc
            raise DataServiceUnavailable(f"Practice data service error: {exc.message}") from exc
        except httpx.HTTPError as exc:
            logger.warning("Supabase %s network error: %s", label, exc)
            raise DataNetworkFailure(f"Network error: {exc}") from exc

    def _rows(self, result: Any) -> list[dict[str, Any]]:
        # Supabase .data is typed as JSON (broad union); cast to concrete type.
        return cast(list[dict[str, Any]], result.data or [])

    async def list_clients(self) -> list[Client]:
        result = await self._run(
            "list clients",
            lambda: self._client.table("clients").select("*").order("name").execute(),
        )
        return [Client.model_validate(row) for row in self._rows(result)]

    async def list_sessions(self) -> list[Session]:
        result = await self._run(
            "list sessions",
            lambda: self._client.table("sessions").select("*").order("scheduled_at").execute(),
        )
        return [Session.model_validate(row) for row in self._rows(result)]

    async def list_notes_for_client(self, client_id: str, limit: int = 10) -> list[SessionNote]:
        result = await self._run(
            "list notes",
            lambda: self._client.table("session_notes")
            .select("*")
            .eq("client_id", client_id)
            .order("session_date", desc=True)
            .limit(limit)
            .execute(),
        )
        return [SessionNote.model_validate(row) for row in self._rows(result)]

    async def next_session_prep(self, session_id: str, client_id: str) -> SessionPrep | None:
        result = await self._run(
            "session prep",
            lambda: self._client.table("session_preps")
            .select("*")
            .eq("session_id", session_id)
            .eq("client_id", client_id)
            .order("created_at", desc=True)
            .limit(1)
            .execute(),
        )
        rows = self._rows(result)
        return SessionPrep.model_validate(rows[0]) if rows else None

    async def generate_session_prep(self, session_id: str) -> SessionPrep:
        result = await self._run(
            "generate session prep",
            lambda: self._client.rpc("generate_session_prep", {"session_id": session_id}).execute(),
        )
        rows = self._rows(result) if isinstance(result.data, list) else [cast(dict[str, Any], result.data)]
        if not rows or not rows[0]:
            raise NotFound(f"No session prep generated for session {session_id}")
        return SessionPrep.model_validate(rows[0])

    async def create_reminder_record(self, reminder: VoiceReminder) -> VoiceReminder:
        payload = reminder.model_dump(mode="json")
        result = await self._run(
            "create reminder",
            lambda: self._client.table("voice_reminders").insert(payload).execute(),
        )
        rows = self._rows(result)
        return VoiceReminder.model_validate(rows[0]) if rows else reminder

"""Shared fixtures: no test touches the network, a microphone or a speaker."""

from __future__ import annotations

from datetime import timedelta

import pytest

from voice_pipeline.config import Settings
from voice_pipeline.credentials import InMemoryCredentialStore
from voice_pipeline.data.records import Client, Session, SessionNote, SessionPrep

from fakes import NOW, FakeFacade


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(  # type: ignore[call-arg]
        _env_file=None,
        anthropic_api_key="",
        openai_api_key="",
        elevenlabs_api_key="",
        recordings_dir=str(tmp_path / "recordings"),
        reminders_file=str(tmp_path / "reminders.json"),
        level_interval_seconds=0.01,
    )


@pytest.fixture
def credentials() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def practice() -> FakeFacade:
    maria = Client(id="c1", name="Maria Lopez", status="active", risk_level="moderate")
    james = Client(id="c2", name="James Park", status="active")
    sessions = [
        Session(id="s-past", client_id="c1", client_name="Maria Lopez", scheduled_at=NOW - timedelta(hours=2)),
        Session(id="s-today", client_id="c2", client_name="James Park", scheduled_at=NOW + timedelta(hours=3)),
        Session(id="s-tomorrow", client_id="c1", client_name="Maria Lopez", scheduled_at=NOW + timedelta(days=1)),
        Session(id="s-next-week", client_id="c2", client_name="James Park", scheduled_at=NOW + timedelta(days=7)),
    ]
    notes = [
        SessionNote(id="n1", client_id="c1", content="Discussed sleep hygiene.", session_date=NOW - timedelta(days=14)),
        SessionNote(id="n2", client_id="c1", content="Reviewed anxiety log.", session_date=NOW - timedelta(days=7)),
    ]
    preps = [SessionPrep(id="p1", session_id="s-tomorrow", client_id="c1", focus="Follow up on anxiety log")]
    return FakeFacade(clients=[maria, james], sessions=sessions, notes=notes, preps=preps)

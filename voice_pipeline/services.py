"""Wiring of the pipeline components from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from voice_pipeline.assistant.controller import AssistantController
from voice_pipeline.assistant.intents import IntentExecutor
from voice_pipeline.capture.audio_session import AudioSession
from voice_pipeline.capture.recognizer import WhisperEngine
from voice_pipeline.capture.recorder import AudioRecorder
from voice_pipeline.capture.speech import SpeechCapture
from voice_pipeline.config import Settings
from voice_pipeline.credentials import CredentialStore, InMemoryCredentialStore
from voice_pipeline.data.facade import DataFacade, UnconfiguredDataFacade
from voice_pipeline.data.supabase_facade import SupabaseDataFacade, get_supabase_client
from voice_pipeline.dictation.controller import DictationController
from voice_pipeline.dictation.store import LocalReminderStore
from voice_pipeline.llm.gateway import LanguageModelGateway
from voice_pipeline.synthesis.gateway import SpeechSynthesisGateway

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Every long-lived component, sharing one audio session."""

    settings: Settings
    credentials: CredentialStore
    facade: DataFacade
    audio_session: AudioSession
    recorder: AudioRecorder
    capture: SpeechCapture
    language_model: LanguageModelGateway
    synthesis: SpeechSynthesisGateway
    store: LocalReminderStore
    dictation: DictationController
    assistant: AssistantController


def build_facade(settings: Settings) -> DataFacade:
    if settings.supabase_url and settings.supabase_key:
        return SupabaseDataFacade(get_supabase_client(settings))
    logger.warning("SUPABASE_URL/SUPABASE_KEY not set; assistant data lookups will return no data")
    return UnconfiguredDataFacade()


def build_services(
    settings: Settings,
    credentials: CredentialStore | None = None,
    facade: DataFacade | None = None,
) -> Services:
    credentials = credentials or InMemoryCredentialStore.from_settings(settings)
    facade = facade or build_facade(settings)

    audio_session = AudioSession()
    recorder = AudioRecorder(audio_session, settings)
    capture = SpeechCapture(audio_session, lambda: WhisperEngine.from_settings(settings), settings)
    language_model = LanguageModelGateway.from_settings(credentials, settings)
    synthesis = SpeechSynthesisGateway(credentials, settings)
    store = LocalReminderStore(Path(settings.reminders_file))

    dictation = DictationController(recorder, capture, language_model, store)
    assistant = AssistantController(
        language_model,
        synthesis,
        capture,
        IntentExecutor(facade),
        barge_in_enabled=settings.barge_in_enabled,
        conversation_mode_enabled=settings.conversation_mode_enabled,
    )
    return Services(
        settings=settings,
        credentials=credentials,
        facade=facade,
        audio_session=audio_session,
        recorder=recorder,
        capture=capture,
        language_model=language_model,
        synthesis=synthesis,
        store=store,
        dictation=dictation,
        assistant=assistant,
    )

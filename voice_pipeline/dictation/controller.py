"""Dictation session: one recording turned into at most one saved reminder."""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path
from typing import Protocol

from voice_pipeline.capture.recorder import AudioRecorder
from voice_pipeline.capture.speech import SpeechCapture
from voice_pipeline.data.records import Client, Session
from voice_pipeline.dictation.store import LocalReminderStore
from voice_pipeline.errors import InvalidTransition
from voice_pipeline.events import Publisher
from voice_pipeline.models import (
    ProcessedReminder,
    ReminderCategory,
    ReminderPriority,
    ReminderStatus,
    VoiceReminder,
    local_now,
)

logger = logging.getLogger(__name__)


class DictationState(StrEnum):
    IDLE = "idle"
    RECORDING = "recording"
    REVIEWING = "reviewing"
    PROCESSED_SAVED = "processed_saved"
    PLAIN_SAVED = "plain_saved"
    DISCARDED = "discarded"

    @property
    def is_terminal(self) -> bool:
        return self in (DictationState.PROCESSED_SAVED, DictationState.PLAIN_SAVED, DictationState.DISCARDED)


class ReminderProcessor(Protocol):
    async def process_reminder(self, transcription: str, client: Client | None = None) -> ProcessedReminder: ...


class DictationController(Publisher):
    """Owns the dictation lifecycle from idle through recording and review to saved or discarded.

    Published state: ``state`` and ``reminder`` (the reminder under review).
    """

    source_name = "dictation"

    def __init__(
        self,
        recorder: AudioRecorder,
        capture: SpeechCapture,
        processor: ReminderProcessor,
        store: LocalReminderStore,
    ) -> None:
        super().__init__()
        self._recorder = recorder
        self._capture = capture
        self._processor = processor
        self._store = store
        self.state = DictationState.IDLE
        self.reminder: VoiceReminder | None = None
        self.client: Client | None = None
        self.session: Session | None = None

    def _require(self, operation: str, *allowed: DictationState) -> None:
        if self.state not in allowed:
            raise InvalidTransition(f"Cannot {operation} while {self.state.value}")

    def _enter(self, state: DictationState) -> None:
        logger.info("Dictation %s -> %s", self.state.value, state.value)
        self.state = state
        self.publish("state", state)

    def _set_reminder(self, reminder: VoiceReminder | None) -> None:
        self.reminder = reminder
        self.publish("reminder", reminder)

    # -- Context -------------------------------------------------------------

    def set_context(self, client: Client | None = None, session: Session | None = None) -> None:
        """Link the next reminder to a client and/or session."""
        self.client = client
        self.session = session

    def clear_context(self) -> None:
        self.client = None
        self.session = None

    # -- Transitions -----------------------------------------------------------

    async def start(self) -> None:
        """Start the recorder and speech capture together, or neither."""
        self._require("start recording", DictationState.IDLE)
        recorder_started = False
        try:
            hint = self.client.name if self.client else None
            await self._recorder.start_recording(name_hint=hint)
            recorder_started = True
            await self._capture.start_recording()
        except Exception:
            logger.warning("Dictation start failed, rolling back")
            self._capture.cancel_recording()
            if recorder_started:
                self._recorder.cancel_recording()
            raise
        self._enter(DictationState.RECORDING)

    async def stop(self) -> VoiceReminder | None:
        """Stop both sources; returns the reminder to review, if any."""
        self._require("stop recording", DictationState.RECORDING)
        audio_path = self._recorder.stop_recording()
        text = (await self._capture.finish_recording()).strip()

        if not text:
            logger.info("Empty dictation discarded")
            if audio_path is not None:
                self._recorder.delete_recording(audio_path)
            self._enter(DictationState.IDLE)
            return None

        reminder = VoiceReminder(
            transcription=text,
            client_id=self.client.id if self.client else (self.session.client_id if self.session else None),
            client_name=(self.client.name or None) if self.client else None,
            session_id=self.session.id if self.session else None,
            audio_path=str(audio_path) if audio_path else None,
        )
        self._set_reminder(reminder)
        self._enter(DictationState.REVIEWING)
        return reminder

    def _reviewed(self) -> VoiceReminder:
        if self.reminder is None:
            raise InvalidTransition("No reminder is under review")
        return self.reminder

    async def process_and_save(
        self,
        priority_override: ReminderPriority | None = None,
        category_override: ReminderCategory | None = None,
    ) -> VoiceReminder:
        """Run AI analysis, then save; on failure the reminder stays in review unchanged."""
        self._require("process the reminder", DictationState.REVIEWING)
        draft = self._reviewed()
        processed = await self._processor.process_reminder(draft.transcription, self.client)

        reminder = draft.model_copy(
            update={
                "follow_ups": processed.follow_ups,
                "category": category_override or processed.category,
                "priority": priority_override or processed.priority,
                "is_processed_by_ai": True,
                "processed_at": local_now(),
                "status": ReminderStatus.READY,
            }
        )
        self._store.append(reminder)
        self._set_reminder(reminder)
        self._enter(DictationState.PROCESSED_SAVED)
        return reminder

    async def save_without_processing(
        self,
        priority_override: ReminderPriority | None = None,
        category_override: ReminderCategory | None = None,
    ) -> VoiceReminder:
        self._require("save the reminder", DictationState.REVIEWING)
        draft = self._reviewed()
        reminder = draft.model_copy(
            update={
                "category": category_override or draft.category,
                "priority": priority_override or draft.priority,
                "status": ReminderStatus.TRANSCRIBED,
            }
        )
        self._store.append(reminder)
        self._set_reminder(reminder)
        self._enter(DictationState.PLAIN_SAVED)
        return reminder

    def cancel(self) -> None:
        """Stop everything, delete the take and drop the unsaved reminder."""
        self._require(
            "cancel", DictationState.IDLE, DictationState.RECORDING, DictationState.REVIEWING
        )
        self._capture.cancel_recording()
        self._recorder.cancel_recording()
        self._discard_artifact()
        self._set_reminder(None)
        self._enter(DictationState.DISCARDED)

    def reset(self) -> None:
        """Return to idle from review or a finished session."""
        if self.state is not DictationState.REVIEWING and not self.state.is_terminal:
            raise InvalidTransition(f"Cannot reset while {self.state.value}")
        if self.state is DictationState.REVIEWING:
            self._discard_artifact()
        self._set_reminder(None)
        self._enter(DictationState.IDLE)

    def _discard_artifact(self) -> None:
        if self.reminder is not None and self.reminder.audio_path:
            self._recorder.delete_recording(Path(self.reminder.audio_path))

    def todays_reminders(self) -> list[VoiceReminder]:
        return self._store.for_day(local_now().date())

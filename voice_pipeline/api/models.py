"""Pydantic request/response schemas for the voice pipeline API."""

from __future__ import annotations

from pydantic import BaseModel

from voice_pipeline.dictation.controller import DictationState
from voice_pipeline.models import (
    ConversationContext,
    ConversationMessage,
    ReminderCategory,
    ReminderPriority,
    VoiceReminder,
)


class MessageRequest(BaseModel):
    """Request body for the /api/assistant/messages endpoint."""

    text: str


class AssistantReply(BaseModel):
    """The assistant's reply, or null when the input was blank."""

    reply: ConversationMessage | None = None


class ConversationResponse(BaseModel):
    id: str
    is_active: bool
    messages: list[ConversationMessage]
    context: ConversationContext
    is_listening: bool = False
    is_speaking: bool = False


class SummaryResponse(BaseModel):
    summary: str


class DictationStatus(BaseModel):
    """Current dictation state and the reminder under review, if any."""

    state: DictationState
    reminder: VoiceReminder | None = None
    partial_transcript: str = ""


class SaveRequest(BaseModel):
    """Optional manual overrides applied when a reminder is saved."""

    priority: ReminderPriority | None = None
    category: ReminderCategory | None = None


class DictationContextRequest(BaseModel):
    client_id: str | None = None
    client_name: str | None = None
    session_id: str | None = None


class RecordingInfo(BaseModel):
    name: str
    path: str
    size_bytes: int


class VoiceSelection(BaseModel):
    voice_id: str


class SpeakRequest(BaseModel):
    text: str

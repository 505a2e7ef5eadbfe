"""Data models for dictated reminders, intents and conversations."""

from __future__ import annotations

import datetime as dt
import uuid
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def local_now() -> datetime:
    """Timezone-aware "now" in the device's local zone."""
    return datetime.now().astimezone()


def new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Voice reminders
# ---------------------------------------------------------------------------


class ReminderCategory(StrEnum):
    SESSION_FOLLOW_UP = "session_follow_up"
    CLINICAL_NOTE = "clinical_note"
    HOMEWORK = "homework"
    RISK_FLAG = "risk_flag"
    ADMINISTRATIVE = "administrative"
    PERSONAL = "personal"
    URGENT = "urgent"


class ReminderPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def sort_order(self) -> int:
        return {"critical": 0, "high": 1, "medium": 2, "low": 3}[self.value]


class ReminderStatus(StrEnum):
    RECORDED = "recorded"
    TRANSCRIBED = "transcribed"
    PROCESSING = "processing"
    READY = "ready"
    NOTIFIED = "notified"
    DISMISSED = "dismissed"
    COMPLETED = "completed"
    ADDED_TO_PREP = "added_to_prep"


class VoiceReminder(BaseModel):
    """A dictated reminder.

    ``id`` and ``created_at`` are fixed at creation; everything else is
    filled in by AI processing or a manual save.
    """

    id: str = Field(default_factory=new_id, frozen=True)
    created_at: datetime = Field(default_factory=local_now, frozen=True)
    transcription: str
    client_id: str | None = None
    session_id: str | None = None
    client_name: str | None = None
    audio_path: str | None = None
    is_processed_by_ai: bool = False
    follow_ups: list[str] = Field(default_factory=list)
    category: ReminderCategory | None = None
    priority: ReminderPriority = ReminderPriority.MEDIUM
    status: ReminderStatus = ReminderStatus.RECORDED
    processed_at: datetime | None = None
    scheduled_for: datetime | None = None

    model_config = ConfigDict(validate_assignment=True)


class ProcessedReminder(BaseModel):
    """Decoded AI analysis of a reminder; copied into a VoiceReminder."""

    follow_ups: list[str] = Field(default_factory=list, alias="extracted_follow_ups")
    category: ReminderCategory = Field(
        default=ReminderCategory.SESSION_FOLLOW_UP, alias="suggested_category"
    )
    priority: ReminderPriority = Field(default=ReminderPriority.MEDIUM, alias="suggested_priority")
    key_entities: list[str] = Field(default_factory=list)
    action_items: list[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("category", mode="before")
    @classmethod
    def _known_category(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in ReminderCategory._value2member_map_:
            return value.strip().lower()
        return ReminderCategory.SESSION_FOLLOW_UP

    @field_validator("priority", mode="before")
    @classmethod
    def _known_priority(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in ReminderPriority._value2member_map_:
            return value.strip().lower()
        return ReminderPriority.MEDIUM


# ---------------------------------------------------------------------------
# Intents
# ---------------------------------------------------------------------------


class IntentAction(StrEnum):
    QUERY_NEXT_APPOINTMENT = "query_next_appointment"
    QUERY_CLIENT_HISTORY = "query_client_history"
    QUERY_PREVIOUS_SESSION = "query_previous_session"
    QUERY_SESSION_PREP = "query_session_prep"
    CREATE_REMINDER = "create_reminder"
    SEARCH_CLIENTS = "search_clients"
    GET_SCHEDULE = "get_schedule"
    GET_DAILY_SUMMARY = "get_daily_summary"
    GET_CLIENT_INFO = "get_client_info"
    UNKNOWN = "unknown"

    @property
    def requires_entity(self) -> bool:
        return self in (
            IntentAction.SEARCH_CLIENTS,
            IntentAction.QUERY_CLIENT_HISTORY,
            IntentAction.QUERY_PREVIOUS_SESSION,
            IntentAction.QUERY_SESSION_PREP,
            IntentAction.GET_CLIENT_INFO,
        )


class TimeReferenceKind(StrEnum):
    TODAY = "today"
    TOMORROW = "tomorrow"
    THIS_WEEK = "this_week"
    NEXT_WEEK = "next_week"
    SPECIFIC = "specific"
    RANGE = "range"
    RELATIVE = "relative"
    LAST_SESSION = "last_session"


class TimeReference(BaseModel):
    """When an utterance refers to. Dates are only carried by their tag."""

    kind: TimeReferenceKind = Field(alias="type")
    date: dt.date | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @model_validator(mode="after")
    def _check_dates(self) -> TimeReference:
        if self.kind is TimeReferenceKind.SPECIFIC:
            if self.date is None:
                raise ValueError("a specific time reference needs a date")
            if self.start_date or self.end_date:
                raise ValueError("a specific time reference carries a single date")
        elif self.kind is TimeReferenceKind.RANGE:
            if self.start_date is None or self.end_date is None:
                raise ValueError("a range time reference needs start_date and end_date")
            if self.start_date > self.end_date:
                raise ValueError("start_date must not be after end_date")
            if self.date is not None:
                raise ValueError("a range time reference carries no single date")
        elif self.date or self.start_date or self.end_date:
            raise ValueError(f"a {self.kind.value} time reference carries no dates")
        return self


class DetectedIntent(BaseModel):
    action: IntentAction = IntentAction.UNKNOWN
    entity_type: str | None = None
    entity_id: str | None = None
    entity_name: str | None = None
    time_reference: TimeReference | None = None


# ---------------------------------------------------------------------------
# Conversations
# ---------------------------------------------------------------------------


class MessageRole(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ConversationMessage(BaseModel):
    id: str = Field(default_factory=new_id)
    role: MessageRole
    content: str
    intent: DetectedIntent | None = None
    timestamp: datetime = Field(default_factory=local_now)


class ConversationContext(BaseModel):
    """State carried between turns to bias intent classification."""

    last_intent: IntentAction | None = None
    current_client_name: str | None = None
    current_client_id: str | None = None


class Conversation(BaseModel):
    id: str = Field(default_factory=new_id)
    messages: list[ConversationMessage] = Field(default_factory=list)
    context: ConversationContext = Field(default_factory=ConversationContext)
    started_at: datetime = Field(default_factory=local_now)
    ended_at: datetime | None = None
    is_active: bool = True

    def add_message(self, message: ConversationMessage) -> None:
        self.messages.append(message)

    def end(self) -> None:
        self.ended_at = local_now()
        self.is_active = False

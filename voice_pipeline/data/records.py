"""Typed records returned by the practice data façade."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import StrEnum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field


def _assume_local(value: datetime) -> datetime:
    # Naive timestamps from the backend are wall-clock local time.
    return value if value.tzinfo else value.astimezone()


LocalDateTime = Annotated[datetime, AfterValidator(_assume_local)]


class RiskLevel(StrEnum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


class SessionStatus(StrEnum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


class Client(BaseModel):
    id: str
    name: str
    status: str | None = None
    risk_level: RiskLevel | None = None
    clinical_considerations: list[str] = Field(default_factory=list)


class Session(BaseModel):
    """A scheduled therapy session (calendar appointment)."""

    id: str
    client_id: str | None = None
    client_name: str | None = None
    scheduled_at: LocalDateTime
    duration_minutes: int = 50
    status: SessionStatus | None = None

    @property
    def title(self) -> str:
        return self.client_name or "Session"

    @property
    def end_time(self) -> datetime:
        return self.scheduled_at + timedelta(minutes=self.duration_minutes)


class SessionNote(BaseModel):
    id: str
    client_id: str
    session_id: str | None = None
    content: str | None = None
    session_date: LocalDateTime
    risk_level: RiskLevel | None = None


class SessionPrep(BaseModel):
    id: str
    session_id: str
    client_id: str
    focus: str | None = None
    suggestions: list[str] = Field(default_factory=list)

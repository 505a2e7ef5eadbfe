"""Reminder endpoints: read back locally saved voice reminders."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from voice_pipeline.api.dependencies import get_services
from voice_pipeline.models import ReminderStatus, VoiceReminder, local_now
from voice_pipeline.services import Services

router = APIRouter(prefix="/api/reminders", tags=["reminders"])


@router.get("", response_model=list[VoiceReminder])
async def list_reminders(
    today: bool = Query(False, description="Only reminders created today"),
    status: ReminderStatus | None = None,
    services: Services = Depends(get_services),
) -> list[VoiceReminder]:
    """List saved reminders, most urgent first."""
    reminders = services.store.for_day(local_now().date()) if today else services.store.load()
    if status is not None:
        reminders = [r for r in reminders if r.status is status]
    return sorted(reminders, key=lambda r: (r.priority.sort_order, r.created_at))


@router.get("/{reminder_id}", response_model=VoiceReminder)
async def get_reminder(reminder_id: str, services: Services = Depends(get_services)) -> VoiceReminder:
    reminder = services.store.get(reminder_id)
    if reminder is None:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return reminder

"""Dictation endpoints: drive one record, review and save session."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from voice_pipeline.api.dependencies import get_services
from voice_pipeline.api.models import DictationContextRequest, DictationStatus, RecordingInfo, SaveRequest
from voice_pipeline.data.records import Client
from voice_pipeline.errors import NotFound
from voice_pipeline.services import Services

router = APIRouter(prefix="/api/dictation", tags=["dictation"])


def _status(services: Services) -> DictationStatus:
    dictation = services.dictation
    return DictationStatus(
        state=dictation.state,
        reminder=dictation.reminder,
        partial_transcript=services.capture.partial_transcript,
    )


@router.get("", response_model=DictationStatus)
async def get_status(services: Services = Depends(get_services)) -> DictationStatus:
    return _status(services)


@router.put("/context", response_model=DictationStatus)
async def set_context(
    request: DictationContextRequest, services: Services = Depends(get_services)
) -> DictationStatus:
    """Link the next dictation to a client and/or a scheduled session.

    A session id is resolved against the practice data so the reminder
    carries the session's real client.
    """
    session = None
    if request.session_id:
        sessions = await services.facade.list_sessions()
        session = next((s for s in sessions if s.id == request.session_id), None)
        if session is None:
            raise NotFound(f"Session {request.session_id} not found")
    client = Client(id=request.client_id, name=request.client_name or "") if request.client_id else None
    services.dictation.set_context(client=client, session=session)
    return _status(services)


@router.post("/start", response_model=DictationStatus)
async def start(services: Services = Depends(get_services)) -> DictationStatus:
    await services.dictation.start()
    return _status(services)


@router.post("/stop", response_model=DictationStatus)
async def stop(services: Services = Depends(get_services)) -> DictationStatus:
    await services.dictation.stop()
    return _status(services)


@router.post("/process", response_model=DictationStatus)
async def process_and_save(
    request: SaveRequest | None = None, services: Services = Depends(get_services)
) -> DictationStatus:
    overrides = request or SaveRequest()
    await services.dictation.process_and_save(
        priority_override=overrides.priority, category_override=overrides.category
    )
    return _status(services)


@router.post("/save", response_model=DictationStatus)
async def save_without_processing(
    request: SaveRequest | None = None, services: Services = Depends(get_services)
) -> DictationStatus:
    overrides = request or SaveRequest()
    await services.dictation.save_without_processing(
        priority_override=overrides.priority, category_override=overrides.category
    )
    return _status(services)


@router.post("/cancel", response_model=DictationStatus)
async def cancel(services: Services = Depends(get_services)) -> DictationStatus:
    services.dictation.cancel()
    return _status(services)


@router.post("/reset", response_model=DictationStatus)
async def reset(services: Services = Depends(get_services)) -> DictationStatus:
    services.dictation.reset()
    return _status(services)


@router.get("/recordings", response_model=list[RecordingInfo])
async def list_recordings(services: Services = Depends(get_services)) -> list[RecordingInfo]:
    return [
        RecordingInfo(name=path.name, path=str(path), size_bytes=path.stat().st_size)
        for path in services.recorder.list_recordings()
    ]

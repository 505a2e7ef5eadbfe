"""Voice endpoints: hosted voice selection and spoken output."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from voice_pipeline.api.dependencies import get_services
from voice_pipeline.api.models import SpeakRequest, VoiceSelection
from voice_pipeline.services import Services
from voice_pipeline.synthesis.elevenlabs import Voice

router = APIRouter(prefix="/api/voices", tags=["voices"])


@router.get("", response_model=list[Voice])
async def list_voices(services: Services = Depends(get_services)) -> list[Voice]:
    """Fetch available hosted voices (501 when no ElevenLabs key is set)."""
    return await services.synthesis.list_voices()


@router.get("/selected", response_model=VoiceSelection)
async def get_selected_voice(services: Services = Depends(get_services)) -> VoiceSelection:
    return VoiceSelection(voice_id=services.synthesis.voice_id)


@router.put("/selected", response_model=VoiceSelection)
async def select_voice(request: VoiceSelection, services: Services = Depends(get_services)) -> VoiceSelection:
    services.synthesis.voice_id = request.voice_id
    return VoiceSelection(voice_id=services.synthesis.voice_id)


@router.post("/speak", status_code=204)
async def speak(request: SpeakRequest, services: Services = Depends(get_services)) -> None:
    await services.synthesis.speak(request.text)

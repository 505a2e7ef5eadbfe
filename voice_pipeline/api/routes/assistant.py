"""Assistant endpoints: typed and spoken turns, conversation, daily summary."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from voice_pipeline.api.dependencies import get_services
from voice_pipeline.api.models import AssistantReply, ConversationResponse, MessageRequest, SummaryResponse
from voice_pipeline.services import Services
from voice_pipeline.summary import build_daily_summary

router = APIRouter(prefix="/api/assistant", tags=["assistant"])


def _conversation(services: Services) -> ConversationResponse:
    assistant = services.assistant
    conversation = assistant.conversation
    return ConversationResponse(
        id=conversation.id,
        is_active=conversation.is_active,
        messages=conversation.messages,
        context=conversation.context,
        is_listening=assistant.is_listening,
        is_speaking=assistant.is_speaking,
    )


@router.post("/messages", response_model=AssistantReply)
async def submit_message(request: MessageRequest, services: Services = Depends(get_services)) -> AssistantReply:
    """Run one assistant turn for typed input.

    Failures inside the turn come back as an apologetic reply, not an error
    status. Blank input returns a null reply.
    """
    reply = await services.assistant.submit(request.text)
    return AssistantReply(reply=reply)


@router.get("/conversation", response_model=ConversationResponse)
async def get_conversation(services: Services = Depends(get_services)) -> ConversationResponse:
    return _conversation(services)


@router.delete("/conversation", response_model=ConversationResponse)
async def clear_conversation(services: Services = Depends(get_services)) -> ConversationResponse:
    services.assistant.clear()
    return _conversation(services)


@router.post("/listen/start", response_model=ConversationResponse)
async def start_listening(services: Services = Depends(get_services)) -> ConversationResponse:
    await services.assistant.start_listening()
    return _conversation(services)


@router.post("/listen/stop", response_model=AssistantReply)
async def stop_listening(services: Services = Depends(get_services)) -> AssistantReply:
    reply = await services.assistant.stop_listening_and_submit()
    return AssistantReply(reply=reply)


@router.post("/speech/stop", status_code=204)
async def stop_speaking(services: Services = Depends(get_services)) -> None:
    services.assistant.stop_speaking()


@router.post("/summary", response_model=SummaryResponse)
async def daily_summary(services: Services = Depends(get_services)) -> SummaryResponse:
    summary = await build_daily_summary(services.language_model, services.store, services.facade)
    return SummaryResponse(summary=summary)

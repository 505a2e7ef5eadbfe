"""Conversational assistant: one open-ended, multi-turn voice dialogue."""

from __future__ import annotations

import logging

from voice_pipeline.assistant.intents import (
    ClientFound,
    ClientHistory,
    IntentExecutor,
    IntentResult,
    PreviousSession,
    SessionPrepFound,
)
from voice_pipeline.assistant.time_reference import infer_time_reference
from voice_pipeline.capture.speech import SpeechCapture
from voice_pipeline.errors import VoicePipelineError
from voice_pipeline.events import Publisher, StateChange
from voice_pipeline.llm.gateway import LanguageModelGateway
from voice_pipeline.models import (
    Conversation,
    ConversationContext,
    ConversationMessage,
    DetectedIntent,
    MessageRole,
)
from voice_pipeline.synthesis.gateway import SpeechSynthesisGateway

logger = logging.getLogger(__name__)

ERROR_REPLY = "I'm sorry, I encountered an error: {description}"


class AssistantController(Publisher):
    """Accepts typed or spoken input and answers it out loud.

    Each turn: classify the intent, fill in a time reference from keywords
    when the model gave none, fetch the data, generate a reply, record it
    and speak it. Any failure becomes a spoken apology so the conversation
    always gets an answer.

    Published state: ``messages`` (the latest appended message),
    ``is_processing``, ``is_listening``, ``is_speaking`` and ``error``.
    """

    source_name = "assistant"

    def __init__(
        self,
        gateway: LanguageModelGateway,
        synthesis: SpeechSynthesisGateway,
        capture: SpeechCapture,
        executor: IntentExecutor,
        barge_in_enabled: bool = False,
        conversation_mode_enabled: bool = False,
    ) -> None:
        super().__init__()
        self._gateway = gateway
        self._synthesis = synthesis
        self._capture = capture
        self._executor = executor
        self.barge_in_enabled = barge_in_enabled
        self.conversation_mode_enabled = conversation_mode_enabled

        self.conversation = Conversation()
        self.is_processing = False
        self.is_listening = False
        self.is_speaking = False
        self.error: str | None = None

        capture.subscribe(self._mirror)
        synthesis.subscribe(self._mirror)

    @property
    def context(self) -> ConversationContext:
        return self.conversation.context

    @property
    def messages(self) -> list[ConversationMessage]:
        return self.conversation.messages

    def _mirror(self, change: StateChange) -> None:
        if change.name == "is_recording":
            self.is_listening = bool(change.value)
            self.publish("is_listening", self.is_listening)
        elif change.name == "speaking":
            self.is_speaking = bool(change.value)
            self.publish("is_speaking", self.is_speaking)

    def _append(self, message: ConversationMessage) -> None:
        self.conversation.add_message(message)
        self.publish("messages", message)

    def _set_processing(self, value: bool) -> None:
        self.is_processing = value
        self.publish("is_processing", value)

    # -- Turns ---------------------------------------------------------------

    async def submit(self, text: str) -> ConversationMessage | None:
        """Run one turn for ``text``; whitespace-only input is ignored."""
        text = text.strip()
        if not text:
            return None
        self._append(ConversationMessage(role=MessageRole.USER, content=text))

        self._set_processing(True)
        try:
            reply = await self._answer(text)
        except Exception as exc:
            # The turn must still end with a spoken reply.
            description = exc.description if isinstance(exc, VoicePipelineError) else (str(exc) or type(exc).__name__)
            logger.warning("Assistant turn failed: %s", description)
            reply = ConversationMessage(
                role=MessageRole.ASSISTANT, content=ERROR_REPLY.format(description=description)
            )
            self._append(reply)
            self._set_processing(False)
            await self._speak(reply.content)
            return reply
        self._set_processing(False)

        await self._speak(reply.content)
        if self.conversation_mode_enabled and self._capture.is_authorized:
            await self.start_listening()
        return reply

    async def _answer(self, text: str) -> ConversationMessage:
        intent = await self._gateway.classify_intent(text, self.context)
        if intent.time_reference is None:
            inferred = infer_time_reference(text)
            if inferred is not None:
                intent = intent.model_copy(update={"time_reference": inferred})

        result = await self._executor.execute(intent, utterance=text)
        reply_text = await self._gateway.generate_response(intent, result, self.context)

        reply = ConversationMessage(role=MessageRole.ASSISTANT, content=reply_text, intent=intent)
        self._append(reply)
        self._update_context(intent, result)
        return reply

    def _update_context(self, intent: DetectedIntent, result: IntentResult) -> None:
        context = self.context
        context.last_intent = intent.action
        if intent.entity_name:
            context.current_client_name = intent.entity_name
        match result:
            case (
                ClientFound(client=client)
                | ClientHistory(client=client)
                | PreviousSession(client=client)
                | SessionPrepFound(client=client)
            ):
                context.current_client_name = client.name
                context.current_client_id = client.id
            case _:
                pass

    async def _speak(self, text: str) -> None:
        try:
            await self._synthesis.speak(text)
        except Exception:
            # Playback is best-effort; the reply is already in the transcript.
            logger.exception("Could not speak assistant reply")

    # -- Spoken input ----------------------------------------------------------

    async def start_listening(self) -> None:
        self.error = None
        if self.barge_in_enabled:
            self.stop_speaking()
        try:
            await self._capture.start_recording()
        except VoicePipelineError as exc:
            logger.warning("Could not start listening: %s", exc.description)
            self.error = exc.description
            self.publish("error", self.error)

    async def stop_listening_and_submit(self) -> ConversationMessage | None:
        text = await self._capture.finish_recording()
        return await self.submit(text)

    def stop_speaking(self) -> None:
        self._synthesis.stop()

    def clear(self) -> None:
        """Start a fresh conversation with an empty context."""
        if self.conversation.is_active:
            self.conversation.end()
        self.conversation = Conversation()
        self.publish("conversation", self.conversation)

    # -- Quick commands --------------------------------------------------------

    async def ask_next_appointment(self) -> ConversationMessage | None:
        return await self.submit("When is my next appointment?")

    async def ask_today_schedule(self) -> ConversationMessage | None:
        return await self.submit("What's on my schedule today?")

    async def ask_about_client(self, name: str) -> ConversationMessage | None:
        return await self.submit(f"Tell me about {name}")

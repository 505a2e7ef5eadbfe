"""Language model gateway: prompt operations over an ordered provider chain."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from voice_pipeline.assistant.intents import IntentResult, describe_result
from voice_pipeline.config import FallbackPolicy, Settings
from voice_pipeline.credentials import CredentialStore
from voice_pipeline.data.records import Client, RiskLevel, Session
from voice_pipeline.errors import NoCredential, VoicePipelineError
from voice_pipeline.events import Publisher
from voice_pipeline.llm import parsing, prompts
from voice_pipeline.llm.providers import AnthropicProvider, LanguageModelProvider, OpenAIProvider
from voice_pipeline.models import (
    ConversationContext,
    DetectedIntent,
    ProcessedReminder,
    ReminderCategory,
    ReminderPriority,
    VoiceReminder,
)

logger = logging.getLogger(__name__)


class LanguageModelGateway(Publisher):
    """Sends prompts to the first configured provider, falling back once.

    Published state: ``current_provider`` (name of the provider handling the
    latest attempt) and ``is_processing``.
    """

    source_name = "language_model"

    def __init__(
        self,
        providers: Sequence[LanguageModelProvider],
        policy: FallbackPolicy | None = None,
    ) -> None:
        super().__init__()
        self._providers = list(providers)
        self._policy = policy or FallbackPolicy()
        self._in_flight = 0
        self.current_provider: str | None = None

    @classmethod
    def from_settings(cls, credentials: CredentialStore, settings: Settings) -> LanguageModelGateway:
        return cls([AnthropicProvider(credentials, settings), OpenAIProvider(credentials, settings)])

    @property
    def is_processing(self) -> bool:
        return self._in_flight > 0

    @property
    def configured(self) -> bool:
        return any(p.configured for p in self._providers)

    @contextmanager
    def _processing(self) -> Iterator[None]:
        self._in_flight += 1
        if self._in_flight == 1:
            self.publish("is_processing", True)
        try:
            yield
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self.publish("is_processing", False)

    async def send_prompt(self, prompt: str, system: str) -> str:
        """Send one prompt, trying configured providers in declared order.

        Raises:
            NoCredential: No provider has a credential.
            VoicePipelineError: The last provider error once every allowed
                attempt has failed.
        """
        candidates = [p for p in self._providers if p.configured]
        if not candidates:
            raise NoCredential("No API key configured. Add a Claude or OpenAI key in Settings.")

        last_error: VoicePipelineError | None = None
        with self._processing():
            for provider in candidates[: self._policy.max_attempts]:
                self.current_provider = provider.name
                self.publish("current_provider", provider.name)
                try:
                    return await provider.complete(system, prompt)
                except VoicePipelineError as exc:
                    logger.warning("%s request failed: %s", provider.name, exc.description)
                    last_error = exc
        if last_error is None:
            raise ValueError("Fallback policy made no attempts")
        raise last_error

    # -- Operations ---------------------------------------------------------

    async def classify_intent(
        self, text: str, context: ConversationContext | None = None
    ) -> DetectedIntent:
        reply = await self.send_prompt(prompts.intent_prompt(text, context), prompts.INTENT_SYSTEM_PROMPT)
        return parsing.parse_intent(reply)

    async def generate_response(
        self,
        intent: DetectedIntent,
        result: IntentResult,
        context: ConversationContext | None = None,
    ) -> str:
        prompt = prompts.response_prompt(intent, describe_result(result), context)
        reply = await self.send_prompt(prompt, prompts.RESPONSE_SYSTEM_PROMPT)
        return reply.strip()

    async def process_reminder(self, transcription: str, client: Client | None = None) -> ProcessedReminder:
        reply = await self.send_prompt(
            prompts.reminder_prompt(transcription, client), prompts.REMINDER_SYSTEM_PROMPT
        )
        return parsing.parse_processed_reminder(reply)

    async def extract_follow_ups(self, note: str) -> list[str]:
        reply = await self.send_prompt(prompts.follow_ups_prompt(note), prompts.FOLLOW_UPS_SYSTEM_PROMPT)
        return parsing.parse_string_array(reply)

    async def categorize(self, note: str) -> ReminderCategory:
        reply = await self.send_prompt(prompts.category_prompt(note), prompts.CATEGORY_SYSTEM_PROMPT)
        return parsing.parse_category(reply)

    async def assess_priority(self, note: str, client_risk_level: RiskLevel | None = None) -> ReminderPriority:
        reply = await self.send_prompt(
            prompts.priority_prompt(note, client_risk_level), prompts.PRIORITY_SYSTEM_PROMPT
        )
        return parsing.parse_priority(reply)

    async def summarize_day(self, reminders: Sequence[VoiceReminder], sessions: Sequence[Session]) -> str:
        reply = await self.send_prompt(
            prompts.summary_prompt(reminders, sessions), prompts.SUMMARY_SYSTEM_PROMPT
        )
        return reply.strip()

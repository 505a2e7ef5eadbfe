"""Hosted language model providers behind one abstract contract.

Each provider sends a single system string and a single user string and
returns one text blob. SDK-level retries are disabled: the gateway's
fallback policy is the only retry in the pipeline.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

import anthropic
import openai
from anthropic import AsyncAnthropic
from anthropic.types import TextBlock
from openai import AsyncOpenAI

from voice_pipeline.config import Settings
from voice_pipeline.credentials import ANTHROPIC_API_KEY, OPENAI_API_KEY, CredentialStore
from voice_pipeline.errors import (
    InvalidResponse,
    NetworkFailure,
    NoCredential,
    RateLimited,
    ServiceUnavailable,
    VoicePipelineError,
)

logger = logging.getLogger(__name__)

# 529 is Anthropic's "overloaded" status.
_UNAVAILABLE_STATUSES = {503, 529}


class LanguageModelProvider(Protocol):
    name: str

    @property
    def configured(self) -> bool: ...

    async def complete(self, system: str, prompt: str) -> str: ...


def _map_status(provider: str, status: int, message: str) -> VoicePipelineError:
    if status == 429:
        return RateLimited()
    if status in _UNAVAILABLE_STATUSES:
        return ServiceUnavailable(f"{provider} service temporarily unavailable")
    return InvalidResponse(f"{provider} returned HTTP {status}: {message}")


class AnthropicProvider:
    """Claude via the Anthropic Messages API (primary)."""

    name = "claude"

    def __init__(
        self,
        credentials: CredentialStore,
        settings: Settings,
        client_factory: Callable[[str], AsyncAnthropic] | None = None,
    ) -> None:
        self._credentials = credentials
        self._model = settings.anthropic_model
        self._max_tokens = settings.llm_max_tokens
        self._client_factory = client_factory or (
            lambda key: AsyncAnthropic(
                api_key=key, max_retries=0, timeout=settings.llm_timeout_seconds
            )
        )

    @property
    def configured(self) -> bool:
        return bool(self._credentials.get(ANTHROPIC_API_KEY))

    async def complete(self, system: str, prompt: str) -> str:
        key = self._credentials.get(ANTHROPIC_API_KEY)
        if not key:
            raise NoCredential("No Claude API key configured")
        client = self._client_factory(key)
        logger.debug("Claude request: model=%s, prompt_chars=%d", self._model, len(prompt))
        try:
            response = await client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIConnectionError as exc:
            raise NetworkFailure(f"Network error: {exc}") from exc
        except anthropic.APIStatusError as exc:
            raise _map_status("Claude", exc.status_code, exc.message) from exc
        except anthropic.APIError as exc:
            raise InvalidResponse(f"Claude request failed: {exc}") from exc

        if not response.content:
            raise InvalidResponse("Claude returned no content")
        # We always request plain text so the first block should be a TextBlock.
        block = response.content[0]
        if not isinstance(block, TextBlock):
            raise InvalidResponse(f"Expected TextBlock from Claude, got {type(block).__name__}")
        return block.text


class OpenAIProvider:
    """GPT via the OpenAI Chat Completions API (secondary)."""

    name = "openai"

    def __init__(
        self,
        credentials: CredentialStore,
        settings: Settings,
        client_factory: Callable[[str], AsyncOpenAI] | None = None,
    ) -> None:
        self._credentials = credentials
        self._model = settings.openai_model
        self._max_tokens = settings.llm_max_tokens
        self._client_factory = client_factory or (
            lambda key: AsyncOpenAI(api_key=key, max_retries=0, timeout=settings.llm_timeout_seconds)
        )

    @property
    def configured(self) -> bool:
        return bool(self._credentials.get(OPENAI_API_KEY))

    async def complete(self, system: str, prompt: str) -> str:
        key = self._credentials.get(OPENAI_API_KEY)
        if not key:
            raise NoCredential("No OpenAI API key configured")
        client = self._client_factory(key)
        logger.debug("OpenAI request: model=%s, prompt_chars=%d", self._model, len(prompt))
        try:
            response = await client.chat.completions.create(
                model=self._model,
                max_tokens=self._max_tokens,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
            )
        except openai.APIConnectionError as exc:
            raise NetworkFailure(f"Network error: {exc}") from exc
        except openai.APIStatusError as exc:
            raise _map_status("OpenAI", exc.status_code, exc.message) from exc
        except openai.APIError as exc:
            raise InvalidResponse(f"OpenAI request failed: {exc}") from exc

        if not response.choices:
            raise InvalidResponse("OpenAI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise InvalidResponse("OpenAI returned an empty message")
        return content

"""ElevenLabs text-to-speech HTTP client."""

from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel, ValidationError

from voice_pipeline.errors import (
    InvalidResponse,
    NetworkFailure,
    NoCredential,
    RateLimited,
    ServiceUnavailable,
    VoicePipelineError,
)

logger = logging.getLogger(__name__)

VOICE_SETTINGS = {"stability": 0.5, "similarity_boost": 0.75}


class Voice(BaseModel):
    voice_id: str
    name: str
    category: str | None = None
    preview_url: str | None = None


class _VoicesResponse(BaseModel):
    voices: list[Voice]


def _error_for(response: httpx.Response) -> VoicePipelineError:
    status = response.status_code
    if status == 429:
        return RateLimited()
    if status == 401:
        return NoCredential("ElevenLabs rejected the API key")
    if status == 503:
        return ServiceUnavailable("ElevenLabs service temporarily unavailable")
    return InvalidResponse(f"ElevenLabs returned HTTP {status}")


class ElevenLabsClient:
    """Synthesizes raw PCM and lists voices.

    Audio is requested as ``pcm_<rate>``: 16-bit little-endian mono samples
    that can be handed to the player without decoding.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.elevenlabs.io/v1",
        model_id: str = "eleven_monolingual_v1",
        sample_rate: int = 22050,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model_id = model_id
        self.sample_rate = sample_rate
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers={"xi-api-key": self._api_key},
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        async with self._client() as client:
            try:
                response = await client.request(method, path, **kwargs)
            except httpx.TransportError as exc:
                raise NetworkFailure(f"Network error: {exc}") from exc
            except httpx.HTTPError as exc:
                raise InvalidResponse(f"Could not read the ElevenLabs response: {exc}") from exc
        if response.status_code != 200:
            logger.warning("ElevenLabs %s %s -> %d", method, path, response.status_code)
            raise _error_for(response)
        return response

    async def synthesize(self, text: str, voice_id: str) -> bytes:
        """Return raw PCM audio for ``text`` spoken by ``voice_id``."""
        response = await self._request(
            "POST",
            f"/text-to-speech/{voice_id}",
            params={"output_format": f"pcm_{self.sample_rate}"},
            json={"text": text, "model_id": self._model_id, "voice_settings": VOICE_SETTINGS},
        )
        if not response.content:
            raise InvalidResponse("ElevenLabs returned no audio")
        return response.content

    async def list_voices(self) -> list[Voice]:
        response = await self._request("GET", "/voices")
        try:
            return _VoicesResponse.model_validate_json(response.content).voices
        except ValidationError as exc:
            raise InvalidResponse("Could not decode the ElevenLabs voice list") from exc

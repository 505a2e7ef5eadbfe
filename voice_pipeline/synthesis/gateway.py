"""Speech synthesis gateway: hosted voice first, on-device voice as fallback."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from voice_pipeline.config import Settings
from voice_pipeline.credentials import ELEVENLABS_API_KEY, ELEVENLABS_VOICE_ID, CredentialStore
from voice_pipeline.errors import NoCredential, VoicePipelineError
from voice_pipeline.events import Publisher
from voice_pipeline.synthesis.elevenlabs import ElevenLabsClient, Voice
from voice_pipeline.synthesis.player import PcmPlayer
from voice_pipeline.synthesis.system_voice import SystemVoice

logger = logging.getLogger(__name__)


class AudioPlayer(Protocol):
    async def play(self, pcm: bytes, sample_rate: int) -> None: ...

    def stop(self) -> None: ...


class OnDeviceVoice(Protocol):
    async def speak(self, text: str) -> None: ...

    def stop(self) -> None: ...


class SpeechSynthesisGateway(Publisher):
    """Speaks text, never surfacing a hosted-voice failure to the caller.

    Published state: ``speaking`` and ``available_voices``.
    """

    source_name = "speech_synthesis"

    def __init__(
        self,
        credentials: CredentialStore,
        settings: Settings,
        player: AudioPlayer | None = None,
        system_voice: OnDeviceVoice | None = None,
        client_factory: Callable[[str], ElevenLabsClient] | None = None,
    ) -> None:
        super().__init__()
        self._credentials = credentials
        self._default_voice_id = settings.elevenlabs_voice_id
        self._player = player or PcmPlayer()
        self._system_voice = system_voice or SystemVoice(
            language=settings.system_voice_language, rate=settings.system_voice_rate
        )
        self._client_factory = client_factory or (
            lambda key: ElevenLabsClient(
                api_key=key,
                base_url=settings.elevenlabs_base_url,
                model_id=settings.elevenlabs_model,
                sample_rate=settings.elevenlabs_sample_rate,
            )
        )
        # Bumped by every speak() and stop(); a stale value means "interrupted".
        self._utterance = 0
        self.speaking = False
        self.available_voices: list[Voice] = []

    @property
    def configured(self) -> bool:
        return bool(self._credentials.get(ELEVENLABS_API_KEY))

    @property
    def voice_id(self) -> str:
        return self._credentials.get(ELEVENLABS_VOICE_ID) or self._default_voice_id

    @voice_id.setter
    def voice_id(self, value: str) -> None:
        self._credentials.set(ELEVENLABS_VOICE_ID, value)

    def _client(self) -> ElevenLabsClient:
        key = self._credentials.get(ELEVENLABS_API_KEY)
        if not key:
            raise NoCredential("No ElevenLabs API key configured")
        return self._client_factory(key)

    def _set_speaking(self, value: bool) -> None:
        if self.speaking != value:
            self.speaking = value
            self.publish("speaking", value)

    async def speak(self, text: str) -> None:
        """Speak ``text``; hosted-voice errors fall back to the system voice."""
        text = text.strip()
        if not text:
            return
        if self.speaking:
            self.stop()
        self._utterance += 1
        utterance = self._utterance
        self._set_speaking(True)
        try:
            if self.configured:
                try:
                    await self._speak_hosted(text)
                    return
                except VoicePipelineError as exc:
                    logger.warning("Hosted voice failed, using system voice: %s", exc.description)
                except Exception:
                    logger.warning("Hosted voice failed, using system voice", exc_info=True)
                if utterance != self._utterance:
                    return
            await self._system_voice.speak(text)
        finally:
            if utterance == self._utterance:
                self._set_speaking(False)

    async def _speak_hosted(self, text: str) -> None:
        client = self._client()
        utterance = self._utterance
        audio = await client.synthesize(text, self.voice_id)
        if utterance != self._utterance:
            return
        await self._player.play(audio, client.sample_rate)

    def stop(self) -> None:
        """Halt whichever voice is active; safe when nothing is playing."""
        self._utterance += 1
        self._player.stop()
        self._system_voice.stop()
        self._set_speaking(False)

    async def list_voices(self) -> list[Voice]:
        """Fetch and cache the hosted voices; errors propagate untouched."""
        voices = await self._client().list_voices()
        self.available_voices = voices
        self.publish("available_voices", voices)
        return voices

"""On-device speech synthesis used when the hosted voice is unavailable."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

import pyttsx3

logger = logging.getLogger(__name__)


class SystemVoice:
    """pyttsx3 voice with a fixed language and speaking rate.

    The engine blocks until the utterance is spoken, so it runs in a worker
    thread; ``stop()`` may be called from the event loop meanwhile.
    """

    def __init__(self, language: str = "en-US", rate: int = 175) -> None:
        self.language = language
        self.rate = rate
        self._engine: Any = None
        self._lock = threading.Lock()

    async def speak(self, text: str) -> None:
        await asyncio.to_thread(self._speak_blocking, text)

    def _speak_blocking(self, text: str) -> None:
        engine = pyttsx3.init()
        engine.setProperty("rate", self.rate)
        voice_id = self._matching_voice(engine)
        if voice_id:
            engine.setProperty("voice", voice_id)
        with self._lock:
            self._engine = engine
        try:
            engine.say(text)
            engine.runAndWait()
        finally:
            with self._lock:
                self._engine = None

    def _matching_voice(self, engine: Any) -> str | None:
        wanted = self.language.lower().replace("-", "_")
        short = wanted.split("_")[0]
        fallback = None
        for voice in engine.getProperty("voices") or []:
            languages = [
                (lang.decode(errors="ignore") if isinstance(lang, bytes) else str(lang)).lower().replace("-", "_")
                for lang in getattr(voice, "languages", []) or []
            ]
            if any(wanted in lang for lang in languages):
                return voice.id
            if fallback is None and any(lang.lstrip("\x05").startswith(short) for lang in languages):
                fallback = voice.id
        return fallback

    def stop(self) -> None:
        with self._lock:
            engine = self._engine
        if engine is not None:
            engine.stop()

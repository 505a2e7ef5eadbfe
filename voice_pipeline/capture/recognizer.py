"""On-device speech recognition engine."""

from __future__ import annotations

import logging
from typing import Protocol

import numpy as np
from faster_whisper import WhisperModel

from voice_pipeline.config import Settings

logger = logging.getLogger(__name__)


class RecognitionEngine(Protocol):
    def transcribe(self, audio: np.ndarray) -> str:
        """Transcribe mono float32 audio at the capture sample rate."""
        ...


class WhisperEngine:
    """faster-whisper model transcribing whole utterances.

    Each call re-transcribes everything captured so far; successive calls
    yield progressively longer hypotheses, which become partial transcripts.
    """

    def __init__(
        self,
        model: str = "small.en",
        device: str = "cpu",
        compute_type: str = "int8",
        language: str = "en",
    ) -> None:
        self._model = WhisperModel(model, device=device, compute_type=compute_type)
        self._language = language

    @classmethod
    def from_settings(cls, settings: Settings) -> WhisperEngine:
        return cls(
            model=settings.whisper_model,
            device=settings.whisper_device,
            compute_type=settings.whisper_compute_type,
        )

    def transcribe(self, audio: np.ndarray) -> str:
        segments, _info = self._model.transcribe(
            audio.astype(np.float32, copy=False),
            language=self._language,
            word_timestamps=False,
            vad_filter=True,
        )
        return stitch(seg.text for seg in segments)


def stitch(pieces) -> str:
    """Join segment texts into one transcript with single spacing."""
    return " ".join(text.strip() for text in pieces if text and text.strip())

"""Raw PCM playback through the default output device."""

from __future__ import annotations

import asyncio
import logging

import numpy as np

from voice_pipeline.capture.devices import Output
from voice_pipeline.errors import DecodeFailure, Unavailable

logger = logging.getLogger(__name__)

POLL_SECONDS = 0.1


class PcmPlayer:
    """Plays 16-bit mono PCM and waits for it to finish.

    Completion is polled every 0.1 s so ``stop()`` from another task ends
    ``play()`` promptly.
    """

    def __init__(self, output: Output | None = None) -> None:
        self._output = output or Output()
        self._stopped = False
        self._started = False

    async def play(self, pcm: bytes, sample_rate: int) -> None:
        if len(pcm) % 2:
            raise DecodeFailure(f"PCM audio has an odd byte count ({len(pcm)})")
        samples = np.frombuffer(pcm, dtype=np.int16)
        if samples.size == 0:
            return
        self._stopped = False
        try:
            self._output.play(samples, sample_rate)
        except OSError as exc:
            raise Unavailable(f"Audio output unavailable: {exc}") from exc
        self._started = True
        logger.debug("Playing %d samples at %d Hz", samples.size, sample_rate)
        while not self._stopped and self._output.active():
            await asyncio.sleep(POLL_SECONDS)

    def stop(self) -> None:
        self._stopped = True
        if self._started:
            self._output.stop()

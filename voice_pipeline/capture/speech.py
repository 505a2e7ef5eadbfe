"""Live speech capture: microphone buffers to a partial transcript and level."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import numpy as np

from voice_pipeline.capture import devices
from voice_pipeline.capture.audio_session import AudioSession
from voice_pipeline.capture.levels import amplitude_level
from voice_pipeline.capture.recognizer import RecognitionEngine
from voice_pipeline.config import Settings
from voice_pipeline.errors import PermissionDenied, Unavailable
from voice_pipeline.events import Publisher

logger = logging.getLogger(__name__)

SESSION_OWNER = "speech_capture"

StreamFactory = Callable[..., Any]


def probe_microphone(sample_rate_hz: int) -> bool:
    return devices.input_available(sample_rate_hz, dtype="float32")


class SpeechCapture(Publisher):
    """Turns microphone input into a live transcript and an audio level.

    Audio arrives on the PortAudio thread and is redispatched onto the event
    loop before any state is touched. Recognition runs in a worker thread,
    one request at a time; results from a recording that has since stopped
    are dropped using a generation counter.

    Published state: ``is_authorized``, ``is_recording``, ``audio_level``,
    ``partial_transcript``, ``final_transcript`` and ``error``.
    """

    source_name = "speech_capture"

    def __init__(
        self,
        session: AudioSession,
        engine_factory: Callable[[], RecognitionEngine],
        settings: Settings,
        stream_factory: StreamFactory | None = None,
        probe: Callable[[int], bool] | None = None,
    ) -> None:
        super().__init__()
        self._session = session
        self._engine_factory = engine_factory
        self._engine: RecognitionEngine | None = None
        self._sample_rate = settings.sample_rate_hz
        self._stride_samples = max(1, int(settings.recognizer_stride_seconds * settings.sample_rate_hz))
        self._max_samples = int(settings.max_utterance_seconds * settings.sample_rate_hz)
        self._stream_factory = stream_factory or devices.open_input_stream
        self._probe = probe or probe_microphone

        self._authorized: bool | None = None
        self._stream: Any = None
        self._recording = False
        self._generation = 0
        self._buffers: list[np.ndarray] = []
        self._sample_count = 0
        self._recognized_samples = 0
        self._recognition: asyncio.Task[None] | None = None
        self._background: set[asyncio.Task[Any]] = set()

        self.partial_transcript = ""
        self.final_transcript: str | None = None
        self.audio_level = 0.0
        self.error: str | None = None

    # -- State -----------------------------------------------------------------

    @property
    def is_authorized(self) -> bool:
        return bool(self._authorized)

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def transcript(self) -> str:
        """Final transcript when available, otherwise the latest partial."""
        return self.final_transcript if self.final_transcript is not None else self.partial_transcript

    def _set(self, name: str, value: Any) -> None:
        setattr(self, name, value)
        self.publish(name, value)

    # -- Permission ------------------------------------------------------------

    async def authorize(self) -> bool:
        """Probe the default microphone once and cache the answer."""
        if self._authorized is None:
            self._authorized = await asyncio.to_thread(self._probe, self._sample_rate)
            self.publish("is_authorized", self._authorized)
        return self._authorized

    # -- Recording -------------------------------------------------------------

    async def start_recording(self) -> None:
        """Begin capturing; raises PermissionDenied or Unavailable."""
        if self._recording:
            self.stop_recording()
        if not await self.authorize():
            raise PermissionDenied()

        if self._engine is None:
            try:
                self._engine = await asyncio.to_thread(self._engine_factory)
            except Exception as exc:
                # Model download/load failures surface as many exception types.
                logger.exception("Speech recognizer failed to load")
                raise Unavailable() from exc

        self._generation += 1
        self._buffers = []
        self._sample_count = 0
        self._recognized_samples = 0
        self._recognition = None
        self._set("error", None)
        self._set("partial_transcript", "")
        self._set("final_transcript", None)

        loop = asyncio.get_running_loop()
        generation = self._generation

        def _callback(indata, _frames, _time, status) -> None:
            if status:
                logger.debug("Input stream status: %s", status)
            loop.call_soon_threadsafe(self._on_buffer, generation, indata[:, 0].copy())

        try:
            stream = self._stream_factory(
                samplerate=self._sample_rate,
                channels=1,
                dtype="float32",
                callback=_callback,
            )
        except (OSError, ValueError) as exc:
            logger.warning("Could not open input stream: %s", exc)
            raise Unavailable() from exc

        self._stream = stream
        self._session.claim(SESSION_OWNER)
        self._recording = True
        self.publish("is_recording", True)
        logger.info("Speech capture started (generation %d)", generation)

    def _on_buffer(self, generation: int, samples: np.ndarray) -> None:
        if generation != self._generation or self._stream is None:
            return
        self._buffers.append(samples)
        self._sample_count += samples.size
        self._set("audio_level", amplitude_level(samples))

        if self._max_samples and self._sample_count >= self._max_samples:
            # Recognizer completion: the utterance hit its length limit.
            logger.info("Maximum utterance length reached, finishing capture")
            self._spawn(self.finish_recording())
            return

        due = self._sample_count - self._recognized_samples >= self._stride_samples
        if due and self._recognition is None:
            self._recognized_samples = self._sample_count
            self._recognition = self._spawn(self._recognize(generation, self._collected()))

    def _collected(self) -> np.ndarray:
        if not self._buffers:
            return np.zeros(0, dtype=np.float32)
        return np.concatenate(self._buffers)

    def _spawn(self, coro) -> asyncio.Task[Any]:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _recognize(self, generation: int, audio: np.ndarray) -> None:
        try:
            text = await asyncio.to_thread(self._transcribe, audio)
        except Exception as exc:
            if generation == self._generation and self._recording:
                logger.exception("Speech recognition failed, stopping capture")
                self._set("error", str(exc) or type(exc).__name__)
                self.stop_recording()
            return
        finally:
            if generation == self._generation:
                self._recognition = None

        if generation != self._generation or self._stream is None:
            logger.debug("Dropping stale recognition result")
            return
        self._set("partial_transcript", text)

    def _transcribe(self, audio: np.ndarray) -> str:
        if self._engine is None:
            raise Unavailable("Speech recognizer is not loaded")
        return self._engine.transcribe(audio)

    async def finish_recording(self) -> str:
        """Stop the microphone, transcribe everything captured, then finalize.

        The input stream is torn down before the last recognition runs. If
        the recording is stopped or restarted meanwhile, that result is
        dropped and the earlier finalization stands.
        """
        if not self._recording:
            return self.transcript
        generation = self._generation
        audio = self._collected()
        self._close_stream()

        if audio.size and self._engine is not None:
            try:
                text = await asyncio.to_thread(self._transcribe, audio)
            except Exception as exc:
                logger.exception("Final speech recognition failed")
                if generation == self._generation:
                    self._set("error", str(exc) or type(exc).__name__)
            else:
                if generation == self._generation and self._recording and text:
                    self._set("partial_transcript", text)

        if generation == self._generation:
            self.stop_recording()
        return self.transcript

    def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            devices.close_stream(stream)
        self._session.release(SESSION_OWNER)

    def stop_recording(self) -> None:
        """Tear down the tap and finalize the transcript; safe to repeat."""
        if not self._recording:
            return
        self._close_stream()
        self._generation += 1
        self._recording = False
        self._recognition = None
        self._buffers = []
        if self.final_transcript is None:
            self._set("final_transcript", self.partial_transcript)
        self._set("audio_level", 0.0)
        self.publish("is_recording", False)
        logger.info("Speech capture stopped (%d chars)", len(self.transcript))

    def cancel_recording(self) -> None:
        """Stop and forget both the partial and the final transcript."""
        self.stop_recording()
        self._set("partial_transcript", "")
        self._set("final_transcript", None)

"""Durable WAV recording of dictation audio with its own telemetry."""

from __future__ import annotations

import asyncio
import logging
import re
import time
import uuid
import wave
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from voice_pipeline.capture import devices
from voice_pipeline.capture.audio_session import AudioSession
from voice_pipeline.capture.levels import db_to_level, rms_db
from voice_pipeline.config import Settings
from voice_pipeline.errors import PermissionDenied, RecordingFailed
from voice_pipeline.events import Publisher
from voice_pipeline.models import local_now

logger = logging.getLogger(__name__)

SESSION_OWNER = "audio_recorder"


def _slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def recording_filename(now: datetime, name_hint: str | None = None) -> str:
    """``[hint_]YYYY-MM-DD_HH-MM-SS_<8 hex>.wav``"""
    stem = f"{now.strftime('%Y-%m-%d_%H-%M-%S')}_{uuid.uuid4().hex[:8]}"
    slug = _slugify(name_hint) if name_hint else ""
    return f"{slug}_{stem}.wav" if slug else f"{stem}.wav"


def probe_microphone(sample_rate_hz: int) -> bool:
    return devices.input_available(sample_rate_hz, dtype="int16")


class AudioRecorder(Publisher):
    """Writes raw 16-bit mono input to a WAV file.

    Telemetry (``duration`` and ``level``) is sampled by a task on a fixed
    interval, independent of speech capture's per-buffer level. The stream
    callback writes frames on the audio thread and hands the buffer level
    to the event loop.
    """

    source_name = "audio_recorder"

    def __init__(
        self,
        session: AudioSession,
        settings: Settings,
        recordings_dir: Path | None = None,
        stream_factory: Callable[..., Any] | None = None,
        probe: Callable[[int], bool] | None = None,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        super().__init__()
        self._session = session
        self.recordings_dir = Path(recordings_dir or settings.recordings_dir)
        self._sample_rate = settings.sample_rate_hz
        self._interval = settings.level_interval_seconds
        self._stream_factory = stream_factory or devices.open_input_stream
        self._probe = probe or probe_microphone
        self._clock = clock

        self._stream: Any = None
        self._writer: wave.Wave_write | None = None
        self._telemetry: asyncio.Task[None] | None = None
        self._started_at = 0.0
        self._buffer_level = 0.0

        self.current_path: Path | None = None
        self.duration = 0.0
        self.level = 0.0

    @property
    def is_recording(self) -> bool:
        return self._stream is not None

    @property
    def formatted_duration(self) -> str:
        minutes, seconds = divmod(int(self.duration), 60)
        return f"{minutes}:{seconds:02d}"

    async def start_recording(self, name_hint: str | None = None) -> Path:
        """Start writing a new artifact and return its path.

        Raises:
            PermissionDenied: The microphone cannot be opened.
            RecordingFailed: The file or the input stream refused to start.
        """
        if self.is_recording:
            self.stop_recording()

        if not await asyncio.to_thread(self._probe, self._sample_rate):
            logger.warning("Microphone access denied")
            raise PermissionDenied()

        path = self.recordings_dir / recording_filename(self._clock(), name_hint)
        try:
            self.recordings_dir.mkdir(parents=True, exist_ok=True)
            writer = wave.open(str(path), "wb")
            writer.setnchannels(1)
            writer.setsampwidth(2)
            writer.setframerate(self._sample_rate)
        except OSError as exc:
            logger.error("Could not create recording %s: %s", path, exc)
            raise RecordingFailed() from exc

        loop = asyncio.get_running_loop()

        def _callback(indata, _frames, _time, status) -> None:
            if status:
                logger.debug("Recorder stream status: %s", status)
            writer.writeframes(indata.tobytes())
            loop.call_soon_threadsafe(self._set_buffer_level, db_to_level(rms_db(indata)))

        try:
            stream = self._stream_factory(
                samplerate=self._sample_rate,
                channels=1,
                dtype="int16",
                callback=_callback,
            )
        except (OSError, ValueError) as exc:
            logger.error("Recorder stream failed to start: %s", exc)
            writer.close()
            path.unlink(missing_ok=True)
            raise RecordingFailed() from exc

        self._stream = stream
        self._writer = writer
        self.current_path = path
        self._buffer_level = 0.0
        self._started_at = time.monotonic()
        self._session.claim(SESSION_OWNER)
        self._telemetry = asyncio.create_task(self._sample_telemetry())
        self.publish("is_recording", True)
        logger.info("Recording started: %s", path.name)
        return path

    def _set_buffer_level(self, level: float) -> None:
        if self.is_recording:
            self._buffer_level = level

    async def _sample_telemetry(self) -> None:
        while self.is_recording:
            self.duration = time.monotonic() - self._started_at
            self.level = self._buffer_level
            self.publish("duration", self.duration)
            self.publish("level", self.level)
            await asyncio.sleep(self._interval)

    def stop_recording(self) -> Path | None:
        """Stop and return the artifact, or None when nothing was recording."""
        if not self.is_recording:
            return None
        stream, self._stream = self._stream, None
        devices.close_stream(stream)
        if self._writer is not None:
            self._writer.close()
            self._writer = None
        if self._telemetry is not None:
            self._telemetry.cancel()
            self._telemetry = None
        self._session.release(SESSION_OWNER)

        path, self.current_path = self.current_path, None
        self.duration = 0.0
        self.level = 0.0
        self.publish("duration", 0.0)
        self.publish("level", 0.0)
        self.publish("is_recording", False)
        logger.info("Recording stopped: %s", path.name if path else None)
        return path

    def cancel_recording(self) -> None:
        """Stop and delete the artifact of the current take."""
        path = self.stop_recording()
        if path is not None:
            self.delete_recording(path)

    def delete_recording(self, path: str | Path) -> None:
        try:
            Path(path).unlink(missing_ok=True)
            logger.info("Deleted recording %s", Path(path).name)
        except OSError as exc:
            logger.warning("Could not delete recording %s: %s", path, exc)

    def list_recordings(self) -> list[Path]:
        """Recorded artifacts, newest first."""
        if not self.recordings_dir.is_dir():
            return []
        return sorted(self.recordings_dir.glob("*.wav"), key=lambda p: p.stat().st_mtime, reverse=True)

    def cleanup_old_recordings(self, older_than_days: int) -> int:
        """Delete artifacts last modified before the cutoff; returns the count."""
        cutoff = (local_now() - timedelta(days=older_than_days)).timestamp()
        deleted = 0
        for path in self.list_recordings():
            if path == self.current_path:
                continue
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    deleted += 1
            except OSError as exc:
                logger.warning("Could not remove old recording %s: %s", path, exc)
        if deleted:
            logger.info("Removed %d recordings older than %d days", deleted, older_than_days)
        return deleted

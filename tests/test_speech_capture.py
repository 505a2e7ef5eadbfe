"""Tests for live speech capture, level metering and the shared audio session."""

from __future__ import annotations

import asyncio
import threading

import numpy as np
import pytest

from voice_pipeline.capture.audio_session import AudioSession
from voice_pipeline.capture.levels import SILENCE_DB, amplitude_level, db_to_level, rms_db
from voice_pipeline.capture.recognizer import stitch
from voice_pipeline.capture.speech import SpeechCapture
from voice_pipeline.errors import PermissionDenied, Unavailable

from fakes import FakeEngine, FakeStream


class GatedEngine:
    """Recognizer that blocks until the test opens the gate."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.entered = threading.Event()
        self.gate = threading.Event()

    def transcribe(self, audio) -> str:
        self.entered.set()
        self.gate.wait(timeout=5)
        return self.text


def _capture(settings, engine=None, session: AudioSession | None = None, **kwargs) -> SpeechCapture:
    engine = engine or FakeEngine(["hello"])
    kwargs.setdefault("stream_factory", FakeStream)
    kwargs.setdefault("probe", lambda rate: True)
    return SpeechCapture(session or AudioSession(), lambda: engine, settings, **kwargs)


def _speech(seconds: float, settings, amplitude: float = 0.05) -> np.ndarray:
    return np.full((int(seconds * settings.sample_rate_hz), 1), amplitude, dtype=np.float32)


async def _drain(capture: SpeechCapture) -> None:
    while capture._background:
        await asyncio.gather(*list(capture._background))


class TestAuthorization:
    async def test_probe_runs_once(self, settings) -> None:
        probes = []
        capture = _capture(settings, probe=lambda rate: probes.append(rate) or True)
        changes = []
        capture.subscribe(changes.append)

        assert await capture.authorize()
        assert await capture.authorize()

        assert probes == [settings.sample_rate_hz]
        assert [c.name for c in changes] == ["is_authorized"]
        assert capture.is_authorized

    async def test_denied_start(self, settings) -> None:
        capture = _capture(settings, probe=lambda rate: False)
        with pytest.raises(PermissionDenied):
            await capture.start_recording()
        assert not capture.is_recording


class TestStartFailures:
    async def test_engine_load_failure_is_unavailable(self, settings) -> None:
        def load():
            raise RuntimeError("model download failed")

        capture = SpeechCapture(AudioSession(), load, settings, stream_factory=FakeStream, probe=lambda rate: True)
        with pytest.raises(Unavailable):
            await capture.start_recording()
        assert not capture.is_recording

    async def test_stream_failure_is_unavailable(self, settings) -> None:
        def broken(**kwargs):
            raise OSError("no input device")

        session = AudioSession()
        capture = _capture(settings, session=session, stream_factory=broken)
        with pytest.raises(Unavailable):
            await capture.start_recording()
        assert not session.active
        assert not capture.is_recording

    def test_transcribe_before_engine_load_is_unavailable(self, settings) -> None:
        capture = _capture(settings)
        with pytest.raises(Unavailable):
            capture._transcribe(np.zeros(1600, dtype=np.float32))


class TestRecognition:
    async def test_partial_transcript_after_stride(self, settings) -> None:
        capture = _capture(settings, FakeEngine(["hello there"]))
        await capture.start_recording()

        FakeStream.instances[-1].push(_speech(1.0, settings))
        await asyncio.sleep(0)
        await _drain(capture)

        assert capture.partial_transcript == "hello there"
        assert capture.audio_level == pytest.approx(0.5)
        capture.stop_recording()

    async def test_short_audio_waits_for_stride(self, settings) -> None:
        engine = FakeEngine(["hello"])
        capture = _capture(settings, engine)
        await capture.start_recording()

        FakeStream.instances[-1].push(_speech(0.1, settings))
        await asyncio.sleep(0)
        await _drain(capture)

        assert engine.calls == 0
        capture.stop_recording()

    async def test_recognition_error_stops_capture(self, settings) -> None:
        session = AudioSession()
        capture = _capture(settings, FakeEngine(error=RuntimeError("model crashed")), session=session)
        await capture.start_recording()

        FakeStream.instances[-1].push(_speech(1.0, settings))
        await asyncio.sleep(0)
        await _drain(capture)

        assert not capture.is_recording
        assert capture.error == "model crashed"
        assert not session.active
        assert FakeStream.instances[-1].closed

    async def test_stale_result_is_dropped(self, settings) -> None:
        engine = GatedEngine("late words")
        capture = _capture(settings, engine)
        await capture.start_recording()

        FakeStream.instances[-1].push(_speech(1.0, settings))
        await asyncio.sleep(0)
        await asyncio.to_thread(engine.entered.wait, 5)
        capture.stop_recording()
        engine.gate.set()
        await _drain(capture)

        assert capture.partial_transcript == ""
        assert capture.final_transcript == ""

    async def test_buffers_from_previous_take_are_ignored(self, settings) -> None:
        capture = _capture(settings)
        await capture.start_recording()
        old_stream = FakeStream.instances[-1]
        capture.stop_recording()
        await capture.start_recording()

        old_stream.push(_speech(1.0, settings))
        await asyncio.sleep(0)

        assert capture.audio_level == 0.0
        capture.stop_recording()


class TestStopping:
    async def test_stop_is_idempotent(self, settings) -> None:
        capture = _capture(settings)
        changes = []
        capture.subscribe(changes.append)
        await capture.start_recording()

        capture.stop_recording()
        capture.stop_recording()

        assert [c.value for c in changes if c.name == "is_recording"] == [True, False]
        assert [c.value for c in changes if c.name == "final_transcript"] == [None, ""]
        assert capture.audio_level == 0.0

    async def test_partial_becomes_final(self, settings) -> None:
        capture = _capture(settings, FakeEngine(["remind me to call"]))
        await capture.start_recording()
        FakeStream.instances[-1].push(_speech(1.0, settings))
        await asyncio.sleep(0)
        await _drain(capture)

        capture.stop_recording()

        assert capture.final_transcript == "remind me to call"
        assert capture.transcript == "remind me to call"

    async def test_finish_transcribes_everything(self, settings) -> None:
        engine = FakeEngine(["full sentence"])
        capture = _capture(settings, engine)
        await capture.start_recording()
        stream = FakeStream.instances[-1]
        stream.push(_speech(0.2, settings))
        await asyncio.sleep(0)

        text = await capture.finish_recording()

        assert text == "full sentence"
        assert capture.final_transcript == "full sentence"
        assert stream.closed
        assert not capture.is_recording
        assert engine.calls == 1

    async def test_finish_without_audio(self, settings) -> None:
        engine = FakeEngine(["ignored"])
        capture = _capture(settings, engine)
        await capture.start_recording()

        assert await capture.finish_recording() == ""
        assert engine.calls == 0

    async def test_finish_when_idle_returns_last_transcript(self, settings) -> None:
        capture = _capture(settings)
        assert await capture.finish_recording() == ""

    async def test_max_utterance_finishes_capture(self, settings) -> None:
        short = settings.model_copy(update={"max_utterance_seconds": 0.1})
        capture = _capture(short, FakeEngine(["that is all"]))
        await capture.start_recording()

        FakeStream.instances[-1].push(_speech(0.1, short))
        await asyncio.sleep(0)
        await _drain(capture)

        assert not capture.is_recording
        assert capture.final_transcript == "that is all"

    async def test_cancel_forgets_transcripts(self, settings) -> None:
        capture = _capture(settings, FakeEngine(["something"]))
        await capture.start_recording()
        FakeStream.instances[-1].push(_speech(1.0, settings))
        await asyncio.sleep(0)
        await _drain(capture)

        capture.cancel_recording()

        assert capture.partial_transcript == ""
        assert capture.final_transcript is None
        assert capture.transcript == ""


class TestAudioSession:
    def test_released_only_when_last_owner_leaves(self) -> None:
        session = AudioSession()
        changes = []
        session.subscribe(changes.append)

        session.claim("audio_recorder")
        session.claim("speech_capture")
        session.release("speech_capture")
        assert session.active

        session.release("audio_recorder")
        assert not session.active
        assert [c.value for c in changes] == [True, False]

    def test_release_is_idempotent(self) -> None:
        session = AudioSession()
        session.claim("speech_capture")
        session.release("speech_capture")
        session.release("speech_capture")
        session.release("never_claimed")
        assert session.owners == frozenset()

    async def test_capture_and_recorder_share_session(self, settings) -> None:
        session = AudioSession()
        capture = _capture(settings, session=session)
        session.claim("audio_recorder")
        await capture.start_recording()

        capture.stop_recording()

        assert session.owners == {"audio_recorder"}


class TestLevels:
    def test_amplitude_level_is_clamped(self) -> None:
        assert amplitude_level(np.full(100, 0.05, dtype=np.float32)) == pytest.approx(0.5)
        assert amplitude_level(np.full(100, 0.9, dtype=np.float32)) == 1.0
        assert amplitude_level(np.zeros(0, dtype=np.float32)) == 0.0

    def test_amplitude_level_of_int16(self) -> None:
        samples = np.full(100, 1638, dtype=np.int16)
        assert amplitude_level(samples) == pytest.approx(0.5, abs=0.01)

    def test_rms_db(self) -> None:
        assert rms_db(np.zeros(100, dtype=np.float32)) == SILENCE_DB
        assert rms_db(np.ones(100, dtype=np.float32)) == pytest.approx(0.0)
        assert rms_db(np.full(100, 1e-6, dtype=np.float32)) == SILENCE_DB

    def test_db_to_level(self) -> None:
        assert db_to_level(-60.0) == 0.0
        assert db_to_level(-90.0) == 0.0
        assert db_to_level(-30.0) == pytest.approx(0.5)
        assert db_to_level(0.0) == 1.0


def test_stitch_joins_segments() -> None:
    assert stitch([" Remind me", "", "  to call  ", "her GP."]) == "Remind me to call her GP."

"""PortAudio access through sounddevice.

sounddevice loads the PortAudio shared library when it is imported, so the
import happens on first use. Hosts without an audio stack can still serve
typed assistant turns; PortAudio failures surface here as ``OSError``.
"""

from __future__ import annotations

import logging
from types import ModuleType
from typing import Any

import numpy as np

logger = logging.getLogger(__name__)


def _sounddevice() -> ModuleType:
    import sounddevice

    return sounddevice


def input_available(sample_rate_hz: int, dtype: str = "float32") -> bool:
    """Whether the default input device opens at this rate and sample type."""
    try:
        sd = _sounddevice()
    except OSError as exc:
        logger.warning("PortAudio is not available: %s", exc)
        return False
    try:
        sd.check_input_settings(samplerate=sample_rate_hz, channels=1, dtype=dtype)
    except (sd.PortAudioError, ValueError) as exc:
        logger.warning("Microphone not available: %s", exc)
        return False
    return True


def open_input_stream(**kwargs: Any) -> Any:
    """Create and start a ``sounddevice.InputStream``."""
    sd = _sounddevice()
    try:
        stream = sd.InputStream(**kwargs)
        stream.start()
    except sd.PortAudioError as exc:
        raise OSError(f"Could not open input stream: {exc}") from exc
    return stream


def close_stream(stream: Any) -> None:
    try:
        stream.stop()
        stream.close()
    except Exception as exc:
        # sounddevice.PortAudioError; the module is only loaded once a real stream exists.
        logger.warning("Error closing input stream: %s", exc)


class Output:
    """The default output device, played to with ``sounddevice.play``."""

    def play(self, samples: np.ndarray, sample_rate: int) -> None:
        sd = _sounddevice()
        try:
            sd.play(samples, samplerate=sample_rate)
        except sd.PortAudioError as exc:
            raise OSError(f"Audio output unavailable: {exc}") from exc

    def active(self) -> bool:
        sd = _sounddevice()
        try:
            return bool(sd.get_stream().active)
        except RuntimeError:
            # No stream has been started yet.
            return False

    def stop(self) -> None:
        _sounddevice().stop()

"""Audio level metering for capture telemetry."""

from __future__ import annotations

import numpy as np

# Floor of the recorder's dB meter; anything quieter reads as zero.
SILENCE_DB = -60.0


def _as_float(samples: np.ndarray) -> np.ndarray:
    if samples.dtype == np.int16:
        return samples.astype(np.float32) / 32768.0
    return samples.astype(np.float32, copy=False)


def amplitude_level(samples: np.ndarray) -> float:
    """Level in [0, 1] from the mean absolute amplitude of one buffer."""
    if samples.size == 0:
        return 0.0
    mean = float(np.mean(np.abs(_as_float(samples))))
    return min(1.0, mean * 10.0)


def rms_db(samples: np.ndarray) -> float:
    """RMS power of a buffer in dBFS (``SILENCE_DB`` for silence)."""
    if samples.size == 0:
        return SILENCE_DB
    rms = float(np.sqrt(np.mean(np.square(_as_float(samples)))))
    if rms <= 0.0:
        return SILENCE_DB
    return max(SILENCE_DB, 20.0 * float(np.log10(rms)))


def db_to_level(db: float) -> float:
    """Map dBFS onto [0, 1], with -60 dB and below at zero."""
    return min(1.0, max(0.0, (db - SILENCE_DB) / -SILENCE_DB))

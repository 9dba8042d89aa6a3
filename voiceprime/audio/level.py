"""
Compute volume level from raw audio chunk (int16 LE) for level display and silence checks.
"""

from __future__ import annotations

import numpy as np


def chunk_rms_level(chunk: bytes) -> float:
    """RMS of int16 LE audio scaled to 0.0-1.0. Empty input is 0.0."""
    if len(chunk) < 2:
        return 0.0
    samples = np.frombuffer(chunk[: len(chunk) - len(chunk) % 2], dtype=np.int16)
    rms = float(np.sqrt(np.mean(samples.astype(np.float64) ** 2)))
    return max(0.0, min(1.0, rms / 32768.0))


__all__ = ["chunk_rms_level"]

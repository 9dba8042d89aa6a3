"""Audio format constants: 16 kHz mono int16 PCM throughout."""

from __future__ import annotations

SAMPLE_RATE = 16000
INT16_MAX = 32767
INT16_MIN = -32768
BYTES_PER_SAMPLE = 2

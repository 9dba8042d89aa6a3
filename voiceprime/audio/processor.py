"""
Prepare a recorded take for Whisper: trim leading/trailing silence, peak-normalize,
split long takes into overlapping chunks.
"""

from __future__ import annotations

import logging

import numpy as np

from .constants import INT16_MAX, SAMPLE_RATE

logger = logging.getLogger(__name__)

NORMALIZE_PEAK = 0.95


def db_to_linear(db: float) -> float:
    return float(10.0 ** (db / 20.0))


def bytes_to_float(audio_bytes: bytes) -> np.ndarray:
    """Convert raw int16 mono bytes to float32 in [-1, 1]."""
    samples = np.frombuffer(audio_bytes, dtype=np.int16)
    return samples.astype(np.float32) / 32768.0


def float_to_bytes(samples: np.ndarray) -> bytes:
    clipped = np.clip(samples, -1.0, 1.0)
    return (clipped * INT16_MAX).round().astype(np.int16).tobytes()


class AudioProcessor:
    """
    trim -> normalize -> chunk. Defaults suit Whisper's 30 s window:
    25 s chunks with 2 s overlap, silence below -30 dBFS trimmed, chunks under 1 s dropped.
    """

    def __init__(
        self,
        chunk_duration_sec: float = 25.0,
        overlap_sec: float = 2.0,
        silence_threshold_db: float = -30.0,
        min_chunk_sec: float = 1.0,
        sample_rate: int = SAMPLE_RATE,
    ) -> None:
        if overlap_sec >= chunk_duration_sec:
            raise ValueError("overlap_sec must be shorter than chunk_duration_sec")
        self.chunk_duration_sec = chunk_duration_sec
        self.overlap_sec = overlap_sec
        self.silence_threshold_db = silence_threshold_db
        self.min_chunk_sec = min_chunk_sec
        self.sample_rate = sample_rate

    def trim_silence(self, audio: np.ndarray) -> np.ndarray:
        if audio.size == 0:
            return audio
        threshold = db_to_linear(self.silence_threshold_db)
        # 10 ms analysis frames; the last one may be shorter
        frame = max(1, self.sample_rate // 100)
        starts = np.arange(0, audio.size, frame)
        sums = np.add.reduceat(np.square(audio, dtype=np.float64), starts)
        counts = np.diff(np.append(starts, audio.size))
        loud = np.flatnonzero(np.sqrt(sums / counts) > threshold)
        if loud.size == 0:
            return audio[:0]
        start = int(starts[loud[0]])
        end = min(int(starts[loud[-1]]) + frame, audio.size)
        return audio[start:end]

    def normalize(self, audio: np.ndarray) -> np.ndarray:
        if audio.size == 0:
            return audio
        peak = float(np.max(np.abs(audio)))
        if peak < 1e-6:
            return audio
        return (audio * (NORMALIZE_PEAK / peak)).astype(np.float32)

    def chunk_with_overlap(self, audio: np.ndarray) -> list[np.ndarray]:
        chunk = int(self.chunk_duration_sec * self.sample_rate)
        overlap = int(self.overlap_sec * self.sample_rate)
        min_len = int(self.min_chunk_sec * self.sample_rate)
        if audio.size <= chunk:
            return [audio] if audio.size >= min_len else []
        step = chunk - overlap
        chunks: list[np.ndarray] = []
        pos = 0
        while pos < audio.size:
            piece = audio[pos : pos + chunk]
            if piece.size >= min_len:
                chunks.append(piece)
            pos += step
            # Avoid a tiny trailing chunk that is fully covered by the overlap
            if audio.size - pos < min_len and chunks:
                break
        return chunks

    def process_samples(self, audio: np.ndarray) -> list[np.ndarray]:
        trimmed = self.trim_silence(audio)
        if trimmed.size == 0:
            return []
        return self.chunk_with_overlap(self.normalize(trimmed))

    def process(self, audio_bytes: bytes) -> list[bytes]:
        """Process int16 PCM; returns int16 PCM chunks (empty list when no speech)."""
        chunks = self.process_samples(bytes_to_float(audio_bytes))
        logger.debug(
            "Processed %.1fs of audio into %d chunk(s)",
            len(audio_bytes) / (2 * self.sample_rate),
            len(chunks),
        )
        return [float_to_bytes(c) for c in chunks]

from __future__ import annotations

import numpy as np
import pytest

from voiceprime.audio.level import chunk_rms_level
from voiceprime.audio.processor import AudioProcessor, bytes_to_float

SR = 16000


def test_trim_silence_keeps_signal() -> None:
    audio = np.concatenate(
        [np.zeros(1600), np.full(SR, 0.5), np.zeros(1600)]
    ).astype(np.float32)
    trimmed = AudioProcessor().trim_silence(audio)
    assert len(trimmed) < len(audio)
    assert len(trimmed) >= SR


def test_trim_all_silence_is_empty() -> None:
    assert AudioProcessor().trim_silence(np.zeros(SR, dtype=np.float32)).size == 0


def test_normalize_to_peak() -> None:
    out = AudioProcessor().normalize(np.array([0.1, -0.2, 0.15], dtype=np.float32))
    assert float(np.max(np.abs(out))) == pytest.approx(0.95, abs=0.01)


def test_chunking_with_overlap() -> None:
    processor = AudioProcessor(chunk_duration_sec=2.0, overlap_sec=0.5, min_chunk_sec=0.5)
    chunks = processor.chunk_with_overlap(np.full(5 * SR, 0.5, dtype=np.float32))
    assert len(chunks) >= 2
    assert len(chunks[0]) == 2 * SR


def test_short_audio_below_minimum_is_dropped() -> None:
    assert AudioProcessor().chunk_with_overlap(np.full(SR // 2, 0.5, dtype=np.float32)) == []


def test_process_returns_int16_chunks() -> None:
    pcm = (np.full(SR * 2, 0.25) * 32767).astype(np.int16).tobytes()
    chunks = AudioProcessor().process(pcm)
    assert len(chunks) == 1
    assert len(chunks[0]) == len(pcm)
    assert float(np.max(np.abs(bytes_to_float(chunks[0])))) == pytest.approx(0.95, abs=0.01)


def test_overlap_must_be_shorter_than_chunk() -> None:
    with pytest.raises(ValueError):
        AudioProcessor(chunk_duration_sec=2.0, overlap_sec=2.0)


def test_chunk_rms_level() -> None:
    assert chunk_rms_level(b"") == 0.0
    loud = (np.full(100, 16384)).astype(np.int16).tobytes()
    assert chunk_rms_level(loud) == pytest.approx(0.5, abs=0.01)


def test_trim_keeps_loud_partial_last_frame() -> None:
    # 2600 samples: the final 10 ms frame is only 40 samples long
    audio = np.concatenate([np.zeros(1600), np.full(1000, 0.5)]).astype(np.float32)
    trimmed = AudioProcessor().trim_silence(audio)
    assert len(trimmed) == 1000
    assert float(np.min(trimmed)) == pytest.approx(0.5)

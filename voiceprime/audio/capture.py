"""
Toggle-driven microphone capture: begin_capture() starts buffering, end_capture() returns the take.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import numpy as np

from ..errors import CaptureError
from .base import AudioCaptureBase
from .constants import INT16_MAX, INT16_MIN, SAMPLE_RATE
from .level import chunk_rms_level

logger = logging.getLogger(__name__)

# Callback block size; ~20 level reports per second at 16kHz
BLOCK_DURATION_SEC = 0.05


class CaptureHandle:
    """One open input stream and the blocks it has buffered so far."""

    def __init__(self, stream: Any) -> None:
        self.stream = stream
        self.blocks: list[bytes] = []
        self.closed = False
        self._lock = threading.Lock()

    def append(self, block: bytes) -> None:
        with self._lock:
            self.blocks.append(block)

    def take(self) -> bytes:
        with self._lock:
            raw = b"".join(self.blocks)
            self.blocks.clear()
        return raw


class AudioCapture(AudioCaptureBase):
    """
    Capture from the configured microphone until end_capture() is called.
    Sensitivity (gain) is applied to the finished buffer so quiet speech can be boosted.
    The device is held only between begin_capture() and end_capture()/abort_capture().
    """

    def __init__(
        self,
        device_id: int | None = None,
        sample_rate: int = SAMPLE_RATE,
        sensitivity: float = 1.0,
        on_level: Any = None,
    ) -> None:
        self.device_id = device_id
        self.sample_rate = sample_rate
        self.sensitivity = max(0.1, min(10.0, float(sensitivity)))
        self._block_frames = max(1, int(sample_rate * BLOCK_DURATION_SEC))
        self._on_level = on_level
        self._active: CaptureHandle | None = None

    def begin_capture(self) -> CaptureHandle:
        import sounddevice as sd

        if self._active is not None:
            raise CaptureError("A capture is already in progress")
        handle_box: list[CaptureHandle] = []

        def _stream_callback(indata, _frames, _time_info, status):  # noqa: ANN001
            handle = handle_box[0]
            if status:
                logger.debug("Capture stream status: %s", status)
            block = indata.tobytes()
            handle.append(block)
            if self._on_level is not None:
                self._on_level(chunk_rms_level(block))

        stream: Any = None
        try:
            stream = sd.InputStream(
                device=self.device_id,
                samplerate=self.sample_rate,
                channels=1,
                dtype="int16",
                blocksize=self._block_frames,
                callback=_stream_callback,
            )
            handle = CaptureHandle(stream)
            handle_box.append(handle)
            stream.start()
        except Exception as e:
            logger.exception("Failed to start audio capture: %s", e)
            if stream is not None:
                try:
                    stream.close()
                except Exception as close_err:
                    logger.debug("Closing failed input stream: %s", close_err)
            raise CaptureError("Microphone failed to start") from e
        self._active = handle
        logger.info(
            "Audio capture started (device=%s, rate=%s, sensitivity=%.2f)",
            self.device_id,
            self.sample_rate,
            self.sensitivity,
        )
        return handle

    def end_capture(self, handle: CaptureHandle) -> bytes:
        if handle.closed:
            raise CaptureError("Capture already finished")
        try:
            device_lost = not handle.stream.active
            self._close(handle)
        except Exception as e:
            logger.exception("Error closing audio stream: %s", e)
            raise CaptureError("Microphone disconnected or unavailable") from e
        raw = handle.take()
        if device_lost:
            logger.warning("Input stream stopped during recording; discarding %d bytes", len(raw))
            raise CaptureError("Microphone stopped during recording")
        if self.sensitivity != 1.0 and raw:
            raw = self._apply_gain(raw)
        logger.info("Audio capture stopped (%.1fs)", len(raw) / (2 * self.sample_rate))
        return raw

    def abort_capture(self, handle: CaptureHandle) -> None:
        try:
            self._close(handle)
        except Exception as e:
            logger.warning("Error closing audio stream: %s", e)
        handle.take()

    def _close(self, handle: CaptureHandle) -> None:
        if self._active is handle:
            self._active = None
        if handle.closed:
            return
        handle.closed = True
        try:
            handle.stream.stop()
        finally:
            handle.stream.close()

    def _apply_gain(self, raw: bytes) -> bytes:
        """Apply sensitivity gain to int16 LE audio; clip to avoid overflow."""
        arr = np.frombuffer(raw, dtype=np.int16)
        scaled = np.clip(
            (arr.astype(np.float64) * self.sensitivity).round(),
            INT16_MIN,
            INT16_MAX,
        ).astype(np.int16)
        return scaled.tobytes()

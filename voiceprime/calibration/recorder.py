"""
Record one calibration phrase, paced by the speaker: SPACE starts, SPACE stops, ESC aborts.
The microphone is held only while recording and is released on every exit path.
"""

from __future__ import annotations

import enum
import logging
from typing import Any

from ..audio.constants import BYTES_PER_SAMPLE, SAMPLE_RATE
from ..errors import CalibrationCancelled, CaptureError, RecordingAborted
from ..terminal import KeyEvent
from .constants import MIN_RECORDING_SEC

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    IDLE = "idle"
    ARMED_FOR_START = "armed_for_start"
    RECORDING = "recording"
    ARMED_FOR_STOP = "armed_for_stop"
    FINALIZED = "finalized"


class RecordingSession:
    """
    Drives one take through IDLE -> ARMED_FOR_START -> RECORDING -> ARMED_FOR_STOP -> FINALIZED.
    Waits on key events without a timeout. run() returns the finalized int16 PCM buffer, or
    raises RecordingAborted (ESC), CalibrationCancelled (quit) or CaptureError; in all three
    cases the state is back to IDLE, the device is released and no buffer is kept.
    A session can be run again after any failure.
    """

    def __init__(
        self,
        capture: Any,
        terminal: Any,
        *,
        sample_rate: int = SAMPLE_RATE,
        min_seconds: float = MIN_RECORDING_SEC,
    ) -> None:
        self._capture = capture
        self._terminal = terminal
        self._sample_rate = sample_rate
        self._min_seconds = max(0.0, float(min_seconds))
        self.state = SessionState.IDLE

    def run(self) -> bytes:
        self.state = SessionState.ARMED_FOR_START
        handle: Any = None
        try:
            while True:
                event = self._terminal.next_key_event()
                if event is KeyEvent.QUIT:
                    raise CalibrationCancelled("Calibration cancelled")
                if event is KeyEvent.ABORT:
                    raise RecordingAborted("Recording aborted")
                if event is not KeyEvent.TOGGLE:
                    continue
                if self.state is SessionState.ARMED_FOR_START:
                    handle = self._capture.begin_capture()
                    self.state = SessionState.RECORDING
                    self._terminal.show_prompt("   Recording... (SPACE to stop, ESC to redo)")
                    continue
                self.state = SessionState.ARMED_FOR_STOP
                # end_capture releases the device even when it fails
                pending, handle = handle, None
                audio = self._capture.end_capture(pending)
                break
        except BaseException:
            if handle is not None:
                self._capture.abort_capture(handle)
            self.state = SessionState.IDLE
            raise
        self._check_length(audio)
        self.state = SessionState.FINALIZED
        return audio

    def _check_length(self, audio: bytes) -> None:
        if not audio:
            self.state = SessionState.IDLE
            raise CaptureError("No audio recorded")
        duration = len(audio) / (BYTES_PER_SAMPLE * self._sample_rate)
        if duration < self._min_seconds:
            self.state = SessionState.IDLE
            raise CaptureError(f"Recording too short ({duration:.1f}s)")
        logger.debug("Recorded %.1fs", duration)

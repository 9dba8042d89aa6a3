"""
Abstract audio capture interface used by calibration and the dictation loop.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from ..errors import CaptureError

logger = logging.getLogger(__name__)


class AudioCaptureBase(ABC):
    """
    One capture at a time: begin_capture() opens the device and starts buffering,
    end_capture(handle) stops it and returns the recorded int16 mono PCM.
    Both raise CaptureError on device failure.
    """

    @abstractmethod
    def begin_capture(self) -> Any:
        """Open the input stream and start buffering. Returns an opaque handle."""
        ...

    @abstractmethod
    def end_capture(self, handle: Any) -> bytes:
        """Stop the stream behind handle, release the device, return the buffer."""
        ...

    def abort_capture(self, handle: Any) -> None:
        """Release the device behind handle and drop whatever was buffered."""
        try:
            self.end_capture(handle)
        except CaptureError as e:
            # Device is released either way.
            logger.debug("Capture abort after failure: %s", e)

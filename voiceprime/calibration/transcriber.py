"""Transcribe one finalized calibration recording, without any profile context."""

from __future__ import annotations

import logging
from typing import Any

from ..audio.processor import AudioProcessor
from ..errors import EngineError

logger = logging.getLogger(__name__)


class PhraseTranscriber:
    """
    transcribe(buffer) -> text. Empty text means the engine heard nothing (a valid,
    low-quality result); engine failures raise EngineError so the caller can retry.
    """

    def __init__(self, engine: Any, processor: AudioProcessor | None = None) -> None:
        self._engine = engine
        self._processor = processor or AudioProcessor()

    def transcribe(self, buffer: bytes) -> str:
        if not buffer:
            raise EngineError("Cannot transcribe an empty buffer")
        chunks = self._processor.process(buffer)
        if not chunks:
            logger.info("No speech detected in calibration recording")
            return ""
        texts = [self._engine.transcribe(chunk) for chunk in chunks]
        return " ".join(t.strip() for t in texts if t and t.strip())

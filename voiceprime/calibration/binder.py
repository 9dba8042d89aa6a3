"""
Bind a voice profile's context string to the recognition engine so every later
transcription call is primed with the speaker's vocabulary.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from ..audio.processor import AudioProcessor
from .voice_profile import VoiceProfile

logger = logging.getLogger(__name__)


class TranscriptionContextBinder:
    """
    Holds one context string for the whole session and passes it, unchanged, as the
    context argument of every engine call (single-shot and chunked). Without a profile
    the context is None and the engine runs uncalibrated.
    """

    def __init__(
        self,
        engine: Any,
        context: str | None = None,
        processor: AudioProcessor | None = None,
    ) -> None:
        self._engine = engine
        self._context = context or None
        self._processor = processor or AudioProcessor()

    @classmethod
    def from_profile(
        cls,
        engine: Any,
        profile: VoiceProfile | None,
        processor: AudioProcessor | None = None,
    ) -> "TranscriptionContextBinder":
        context = profile.context_string if profile is not None else None
        if context:
            logger.info("Voice profile bound (%d chars of context)", len(context))
        else:
            logger.info("No voice profile; transcribing uncalibrated")
        return cls(engine, context, processor)

    @property
    def context(self) -> str | None:
        return self._context

    @property
    def calibrated(self) -> bool:
        return self._context is not None

    def transcribe(self, audio_bytes: bytes) -> str:
        return self._engine.transcribe(audio_bytes, context=self._context)

    def transcribe_with_confidence(self, audio_bytes: bytes) -> tuple[str, float | None]:
        return self._engine.transcribe_with_confidence(audio_bytes, context=self._context)

    def transcribe_chunks(self, chunks: Iterable[bytes]) -> str:
        texts = [self.transcribe(chunk) for chunk in chunks]
        return " ".join(t.strip() for t in texts if t and t.strip())

    def transcribe_audio(self, audio_bytes: bytes) -> str:
        """Trim, normalize and chunk a full take, then transcribe every chunk."""
        chunks = self._processor.process(audio_bytes)
        if not chunks:
            return ""
        return self.transcribe_chunks(chunks)

"""
Abstract speech-to-text engine interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class STTEngine(ABC):
    """Interface for local STT. Implementations: Whisper, Vosk."""

    @abstractmethod
    def transcribe(self, audio_bytes: bytes, context: str | None = None) -> str:
        """
        Transcribe raw audio (int16 mono at 16kHz) to text.
        context, when given, primes the decoder toward the speaker's vocabulary.
        Returns empty string if nothing recognized; raises EngineError on failure.
        """
        ...

    def transcribe_with_confidence(
        self, audio_bytes: bytes, context: str | None = None
    ) -> tuple[str, float | None]:
        """Transcribe and return (text, confidence). Default: no confidence."""
        return (self.transcribe(audio_bytes, context), None)

    def start(self) -> None:
        """Optional: load model / warmup. No-op by default."""
        pass

    def stop(self) -> None:
        """Optional: release model. No-op by default."""
        pass

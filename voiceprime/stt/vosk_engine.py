"""
Vosk-based speech-to-text engine (low latency, Pi-friendly).
Vosk has no prompt priming, so the voice profile context is accepted and ignored.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ..errors import EngineError
from .base import STTEngine

logger = logging.getLogger(__name__)

DEFAULT_MODEL_DIR = Path("models") / "vosk-model-small-en-us-0.15"


class VoskEngine(STTEngine):
    """
    Transcribe audio using a Vosk model. Expects 16kHz mono int16 PCM.
    """

    def __init__(self, model_path: str | None = None, sample_rate: int = 16000) -> None:
        self._model_path = model_path
        self._sample_rate = sample_rate
        self._model: Any = None
        self._warned_context = False

    def start(self) -> None:
        if self._model is not None:
            return
        path = Path(self._model_path) if self._model_path else DEFAULT_MODEL_DIR
        if not path.exists():
            raise EngineError(
                f"No Vosk model found at {path}. Set stt.vosk.model_path to a downloaded model dir."
            )
        try:
            from vosk import Model

            self._model = Model(str(path))
        except Exception as e:
            logger.warning("Failed to load Vosk model from %s: %s", path, e)
            raise EngineError(f"Failed to load Vosk model from {path}") from e
        logger.info("Vosk model loaded: %s", path)

    def stop(self) -> None:
        self._model = None

    def transcribe(self, audio_bytes: bytes, context: str | None = None) -> str:
        if self._model is None:
            raise EngineError("Vosk model not loaded; call start() first")
        if not audio_bytes:
            return ""
        if context and not self._warned_context:
            logger.info("Vosk does not support prompt priming; voice profile context ignored")
            self._warned_context = True
        try:
            from vosk import KaldiRecognizer

            rec = KaldiRecognizer(self._model, self._sample_rate)
            rec.AcceptWaveform(audio_bytes)
            result = json.loads(rec.FinalResult())
        except Exception as e:
            logger.warning("Vosk transcribe error: %s", e)
            raise EngineError("Vosk transcription failed") from e
        return (result.get("text") or "").strip()

"""
Whisper-based STT using faster-whisper (CTranslate2).
Expects 16 kHz mono int16 PCM; converts to float32 for transcription.
The voice profile's context string is passed as Whisper's initial_prompt.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from ..errors import EngineError
from .base import STTEngine

logger = logging.getLogger(__name__)


def _resolve_device(device: str) -> tuple[str, str]:
    """Return (device, compute_type). device is 'cpu' or 'cuda'."""
    want = (device or "cpu").strip().lower()
    if want == "cuda":
        return ("cuda", "float16")
    if want == "auto":
        try:
            import torch

            if torch.cuda.is_available():
                return ("cuda", "float16")
        except ImportError:
            pass
        return ("cpu", "int8")
    return ("cpu", "int8")


class WhisperEngine(STTEngine):
    """
    Transcribe audio using faster-whisper. Expects 16 kHz mono int16 PCM.
    Model is loaded in start(); use config stt.whisper.model_path (e.g. "base", "small").
    Optional: device (cpu | cuda | auto), cpu_threads (CPU only), beam_size (1=faster, 5=more accurate),
    language (ISO 639-1, default "en").
    """

    def __init__(
        self,
        model_path: str | None = None,
        config: dict[str, Any] | None = None,
    ) -> None:
        cfg = config or {}
        self._model_path = (
            model_path or cfg.get("model_path") or "base"
        ).strip() or "base"
        self._model: Any = None
        self._language = (cfg.get("language") or "en").strip() or None
        self._device, self._compute_type = _resolve_device(cfg.get("device") or "cpu")
        self._cpu_threads = cfg.get("cpu_threads")
        if self._cpu_threads is not None:
            self._cpu_threads = int(self._cpu_threads)
        self._beam_size = cfg.get("beam_size")
        if self._beam_size is not None:
            self._beam_size = int(self._beam_size)
        if self._beam_size is None or self._beam_size < 1:
            self._beam_size = 1  # faster; use 5 for better accuracy
        # no_speech_threshold: when set, segments with a higher no_speech_prob are dropped
        ns = cfg.get("no_speech_threshold")
        self._no_speech_threshold: float | None = None
        if ns is not None:
            try:
                self._no_speech_threshold = float(ns)
                if self._no_speech_threshold < 0 or self._no_speech_threshold > 1:
                    self._no_speech_threshold = 0.6
            except (TypeError, ValueError):
                pass
        # min_avg_logprob: when set, discard segments with avg_logprob below this (e.g. -1)
        ml = cfg.get("min_avg_logprob")
        self._min_avg_logprob: float | None = None
        if ml is not None:
            try:
                self._min_avg_logprob = float(ml)
            except (TypeError, ValueError):
                pass

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    def start(self) -> None:
        if self._model is not None:
            return
        try:
            from faster_whisper import WhisperModel

            kwargs: dict[str, Any] = {"compute_type": self._compute_type}
            if self._device == "cuda":
                kwargs["device_index"] = 0
            if self._device == "cpu" and self._cpu_threads is not None:
                kwargs["cpu_threads"] = self._cpu_threads
            self._model = WhisperModel(self._model_path, device=self._device, **kwargs)
        except Exception as e:
            logger.warning("Failed to load Whisper model (%s): %s", self._model_path, e)
            raise EngineError(f"Failed to load Whisper model {self._model_path!r}") from e
        logger.info(
            "Whisper model loaded: %s (device=%s, compute_type=%s)",
            self._model_path,
            self._device,
            self._compute_type,
        )

    def stop(self) -> None:
        self._model = None

    def _include_segment(self, s: Any) -> bool:
        if not (s.text and s.text.strip()):
            return False
        if self._no_speech_threshold is not None and getattr(
            s, "no_speech_prob", None
        ) is not None:
            if s.no_speech_prob > self._no_speech_threshold:
                return False
        if self._min_avg_logprob is not None and getattr(
            s, "avg_logprob", None
        ) is not None:
            if s.avg_logprob < self._min_avg_logprob:
                return False
        return True

    def _segments(self, audio_bytes: bytes, context: str | None) -> list[Any]:
        """Run the model; returns the segments that pass the quality filters."""
        if self._model is None:
            raise EngineError("Whisper model not loaded; call start() first")
        if len(audio_bytes) % 2:
            raise EngineError("Malformed audio buffer (odd byte count for int16 PCM)")
        try:
            audio_array = (
                np.frombuffer(audio_bytes, dtype=np.int16).astype(np.float32) / 32768.0
            )
            audio_array = np.ascontiguousarray(audio_array)
            segments, _ = self._model.transcribe(
                audio_array,
                language=self._language,
                initial_prompt=context or None,
                vad_filter=False,
                no_speech_threshold=self._no_speech_threshold,
                without_timestamps=True,
                beam_size=self._beam_size,
            )
            segments_list = list(segments)
        except Exception as e:
            logger.warning("Whisper transcribe error: %s", e)
            raise EngineError("Whisper transcription failed") from e
        included = [s for s in segments_list if self._include_segment(s)]
        if not included:
            logger.info(
                "Whisper returned no text for this chunk (%d segment(s)). Try speaking closer, raising sensitivity in config, or check mic sample rate is 16000 Hz.",
                len(segments_list),
            )
        return included

    def transcribe(self, audio_bytes: bytes, context: str | None = None) -> str:
        if not audio_bytes:
            return ""
        included = self._segments(audio_bytes, context)
        return " ".join(s.text.strip() for s in included).strip()

    def transcribe_with_confidence(
        self, audio_bytes: bytes, context: str | None = None
    ) -> tuple[str, float | None]:
        """
        Transcribe and return (text, confidence 0.0--1.0 or None).
        Confidence is the mean of (1 - no_speech_prob) over included segments.
        """
        if not audio_bytes:
            return ("", None)
        included = self._segments(audio_bytes, context)
        text = " ".join(s.text.strip() for s in included).strip()
        probs = [
            1.0 - s.no_speech_prob
            for s in included
            if getattr(s, "no_speech_prob", None) is not None
        ]
        if not probs:
            return (text, None)
        conf = sum(probs) / len(probs)
        return (text, max(0.0, min(1.0, conf)))

"""
voiceprime: calibrate a per-user voice profile and prime speech recognition with it.
All construction goes through SpeechFactory; public API: create_speech_components().
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, NamedTuple

from .calibration.constants import MIN_TEXT_CHARS_DEFAULT, MIN_TEXT_CHARS_MAX
from .calibration.voice_profile import ProfileStore

logger = logging.getLogger(__name__)

__version__ = "0.2.0"


def _clamp(value: Any, lo: float, hi: float, default: float) -> float:
    try:
        return max(lo, min(hi, float(value)))
    except (TypeError, ValueError):
        logger.debug("Invalid numeric config value %r, using %s", value, default)
        return default


# --- Factory: single place for constructing speech components ---


class SpeechComponents(NamedTuple):
    """Immutable bundle of capture, STT engine, audio processor and profile store."""

    capture: Any
    stt: Any
    processor: Any
    store: ProfileStore


class SpeechFactory:
    """
    Builds all speech components from config.
    Single responsibility: construction; callers own start()/stop().
    """

    def __init__(self, config: dict) -> None:
        self._config = config
        self._audio_cfg = config.get("audio", {}) or {}

    @property
    def sample_rate(self) -> int:
        return int(self._audio_cfg.get("sample_rate", 16000))

    def create_capture(self) -> Any:
        from .audio.capture import AudioCapture

        return AudioCapture(
            device_id=self._audio_cfg.get("device_id"),
            sample_rate=self.sample_rate,
            sensitivity=_clamp(self._audio_cfg.get("sensitivity", 1.0), 0.1, 10.0, 1.0),
        )

    def create_stt(self) -> Any:
        from .stt.vosk_engine import VoskEngine
        from .stt.whisper_engine import WhisperEngine

        stt_cfg = self._config.get("stt", {}) or {}
        engine = (stt_cfg.get("engine") or "whisper").lower()
        if engine == "vosk":
            path = (stt_cfg.get("vosk") or {}).get("model_path")
            return VoskEngine(model_path=path, sample_rate=self.sample_rate)
        if engine != "whisper":
            raise ValueError(f"Unknown STT engine {engine!r} (expected whisper or vosk)")
        whisper_cfg = (stt_cfg.get("whisper") or {}).copy()
        path = whisper_cfg.pop("model_path", None)
        return WhisperEngine(model_path=path, config=whisper_cfg)

    def create_processor(self) -> Any:
        from .audio.processor import AudioProcessor

        cfg = self._config.get("processing", {}) or {}
        chunk = _clamp(cfg.get("chunk_duration_sec", 25.0), 2.0, 30.0, 25.0)
        # Overlap stays under half a chunk so the window always advances
        overlap = min(_clamp(cfg.get("overlap_sec", 2.0), 0.0, 5.0, 2.0), chunk / 2)
        return AudioProcessor(
            chunk_duration_sec=chunk,
            overlap_sec=overlap,
            silence_threshold_db=_clamp(cfg.get("silence_threshold_db", -30.0), -90.0, 0.0, -30.0),
            min_chunk_sec=_clamp(cfg.get("min_chunk_sec", 1.0), 0.1, 10.0, 1.0),
            sample_rate=self.sample_rate,
        )

    def create_store(self) -> ProfileStore:
        path = (self._config.get("profile", {}) or {}).get("path")
        return ProfileStore(Path(path).expanduser() if path else None)

    def create_orchestrator(self, components: SpeechComponents, terminal: Any) -> Any:
        from .calibration.orchestrator import CalibrationOrchestrator
        from .calibration.recorder import RecordingSession
        from .calibration.transcriber import PhraseTranscriber

        cal_cfg = self._config.get("calibration", {}) or {}
        session = RecordingSession(
            components.capture,
            terminal,
            sample_rate=self.sample_rate,
            min_seconds=_clamp(self._audio_cfg.get("min_recording_sec", 0.5), 0.0, 10.0, 0.5),
        )
        return CalibrationOrchestrator(
            components.capture,
            components.stt,
            terminal,
            min_text_chars=int(
                _clamp(
                    cal_cfg.get("min_text_chars", MIN_TEXT_CHARS_DEFAULT),
                    0,
                    MIN_TEXT_CHARS_MAX,
                    MIN_TEXT_CHARS_DEFAULT,
                )
            ),
            session=session,
            transcriber=PhraseTranscriber(components.stt, components.processor),
        )

    def create_components(self) -> SpeechComponents:
        """Build and return the full speech component bundle."""
        return SpeechComponents(
            capture=self.create_capture(),
            stt=self.create_stt(),
            processor=self.create_processor(),
            store=self.create_store(),
        )


def create_speech_components(config: dict) -> SpeechComponents:
    """Single entry point: build capture, STT, processor and profile store from config."""
    return SpeechFactory(config).create_components()


__all__ = [
    "SpeechComponents",
    "SpeechFactory",
    "create_speech_components",
]

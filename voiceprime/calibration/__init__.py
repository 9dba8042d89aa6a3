"""
Voice calibration: record the reference phrases, transcribe them, and keep the result as a
voice profile whose context string primes later transcriptions.
"""

from __future__ import annotations

from .binder import TranscriptionContextBinder
from .constants import CALIBRATION_PHRASES, PHRASE_COUNT
from .orchestrator import CalibrationOrchestrator
from .recorder import RecordingSession, SessionState
from .transcriber import PhraseTranscriber
from .voice_profile import (
    ProfileAbsent,
    ProfileCorrupt,
    ProfileLoaded,
    ProfileState,
    ProfileStore,
    VoiceProfile,
    build_context_string,
    default_profile_path,
)

__all__ = [
    "CALIBRATION_PHRASES",
    "PHRASE_COUNT",
    "CalibrationOrchestrator",
    "PhraseTranscriber",
    "ProfileAbsent",
    "ProfileCorrupt",
    "ProfileLoaded",
    "ProfileState",
    "ProfileStore",
    "RecordingSession",
    "SessionState",
    "TranscriptionContextBinder",
    "VoiceProfile",
    "build_context_string",
    "default_profile_path",
]

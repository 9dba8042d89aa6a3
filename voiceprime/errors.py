"""
Error kinds raised by capture, recognition, calibration and profile persistence.
"""

from __future__ import annotations


class VoicePrimeError(Exception):
    """Base class for every error raised by voiceprime."""


class CaptureError(VoicePrimeError):
    """Microphone or input stream failed; no buffer was produced."""


class EngineError(VoicePrimeError):
    """The recognition engine could not transcribe (not loaded, bad buffer, crash)."""


class CorruptProfile(VoicePrimeError):
    """Stored voice profile cannot be parsed into the complete six-phrase shape."""


class ProfileMissing(VoicePrimeError):
    """No voice profile has been stored yet."""


class PersistenceError(VoicePrimeError):
    """Voice profile could not be written to disk."""


class RecordingAborted(VoicePrimeError):
    """User aborted the current phrase recording; the phrase should be offered again."""


class CalibrationCancelled(VoicePrimeError):
    """User quit calibration; all intermediate results are discarded."""


__all__ = [
    "CalibrationCancelled",
    "CaptureError",
    "CorruptProfile",
    "EngineError",
    "PersistenceError",
    "ProfileMissing",
    "RecordingAborted",
    "VoicePrimeError",
]

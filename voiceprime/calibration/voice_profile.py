"""
Voice profile: per-phrase calibration transcripts plus the context string derived from them.
Persisted as JSON at a fixed per-user path; writes replace the file atomically so a
reader only ever sees the previous complete profile or the new complete one.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Union

from ..errors import CorruptProfile, PersistenceError, ProfileMissing
from .constants import CONTEXT_SEPARATOR, PHRASE_COUNT

logger = logging.getLogger(__name__)

PROFILE_DIR_NAME = "voiceprime"
PROFILE_FILE_NAME = "profile.json"
# Wire field names
KEY_TRANSCRIPTS = "phraseTranscripts"
KEY_CONTEXT = "contextString"
KEY_CREATED_AT = "createdAt"


def build_context_string(transcripts: Iterable[str]) -> str:
    """Join non-empty transcripts in phrase order. Pure function of the transcripts."""
    return CONTEXT_SEPARATOR.join(t.strip() for t in transcripts if t.strip())


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass(frozen=True)
class VoiceProfile:
    """
    Complete calibration result. phrase_transcripts[i] is what the engine heard for
    CALIBRATION_PHRASES[i]; context_string is always build_context_string(phrase_transcripts).
    created_at is informational only.
    """

    phrase_transcripts: tuple[str, ...]
    context_string: str
    created_at: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.phrase_transcripts, tuple):
            object.__setattr__(self, "phrase_transcripts", tuple(self.phrase_transcripts))
        if len(self.phrase_transcripts) != PHRASE_COUNT:
            raise ValueError(
                f"Voice profile needs exactly {PHRASE_COUNT} transcripts, got {len(self.phrase_transcripts)}"
            )
        if not all(isinstance(t, str) for t in self.phrase_transcripts):
            raise ValueError("Voice profile transcripts must be strings")
        if self.context_string != build_context_string(self.phrase_transcripts):
            raise ValueError("Context string does not match the phrase transcripts")

    @classmethod
    def from_transcripts(
        cls, transcripts: Iterable[str], created_at: str | None = None
    ) -> "VoiceProfile":
        items = tuple(transcripts)
        return cls(
            phrase_transcripts=items,
            context_string=build_context_string(items),
            created_at=created_at if created_at is not None else utc_now_iso(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            KEY_TRANSCRIPTS: list(self.phrase_transcripts),
            KEY_CONTEXT: self.context_string,
            KEY_CREATED_AT: self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "VoiceProfile":
        """Parse the stored shape. Raises CorruptProfile unless all six slots are present."""
        if not isinstance(data, dict):
            raise CorruptProfile("Profile is not a JSON object")
        transcripts = data.get(KEY_TRANSCRIPTS)
        context = data.get(KEY_CONTEXT)
        created_at = data.get(KEY_CREATED_AT, "")
        if not isinstance(transcripts, list):
            raise CorruptProfile(f"Missing or invalid {KEY_TRANSCRIPTS!r}")
        if not isinstance(context, str):
            raise CorruptProfile(f"Missing or invalid {KEY_CONTEXT!r}")
        if not isinstance(created_at, str):
            raise CorruptProfile(f"Invalid {KEY_CREATED_AT!r}")
        try:
            return cls(
                phrase_transcripts=tuple(transcripts),
                context_string=context,
                created_at=created_at,
            )
        except ValueError as e:
            raise CorruptProfile(str(e)) from e


# --- Tri-state result of reading the store ---


@dataclass(frozen=True)
class ProfileAbsent:
    """No calibration has been stored."""


@dataclass(frozen=True)
class ProfileCorrupt:
    reason: str


@dataclass(frozen=True)
class ProfileLoaded:
    profile: VoiceProfile


ProfileState = Union[ProfileAbsent, ProfileCorrupt, ProfileLoaded]


def default_profile_path() -> Path:
    """Per-user config location: $XDG_CONFIG_HOME, %APPDATA% on Windows, else ~/.config."""
    base = os.environ.get("XDG_CONFIG_HOME")
    if not base and os.name == "nt":
        base = os.environ.get("APPDATA")
    root = Path(base) if base else Path.home() / ".config"
    return root / PROFILE_DIR_NAME / PROFILE_FILE_NAME


class ProfileStore:
    """Load/save the single voice profile file. One writer (calibration), any number of readers."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else default_profile_path()

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> VoiceProfile:
        """Raises ProfileMissing if there is no file, CorruptProfile if it cannot be parsed."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ProfileMissing(f"No voice profile at {self.path}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise CorruptProfile(f"Cannot read voice profile {self.path}: {e}") from e
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, RecursionError) as e:
            raise CorruptProfile(f"Voice profile is not valid JSON: {e}") from e
        return VoiceProfile.from_dict(data)

    def load_state(self) -> ProfileState:
        try:
            return ProfileLoaded(self.load())
        except ProfileMissing:
            return ProfileAbsent()
        except CorruptProfile as e:
            logger.warning("Ignoring corrupt voice profile %s: %s", self.path, e)
            return ProfileCorrupt(str(e))

    def save(self, profile: VoiceProfile) -> None:
        """Write to a temp file in the same directory, fsync, then rename over the old file."""
        data = json.dumps(profile.to_dict(), ensure_ascii=False, indent=2)
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".profile-", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            logger.exception("Saving voice profile failed: %s", e)
            raise PersistenceError(f"Could not save voice profile to {self.path}: {e}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError as e:
                    logger.debug("Could not remove temp profile %s: %s", tmp_name, e)
        logger.info("Voice profile saved: %s", self.path)

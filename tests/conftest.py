from __future__ import annotations

from pathlib import Path

import pytest

from voiceprime.calibration.constants import CALIBRATION_PHRASES
from voiceprime.calibration.voice_profile import ProfileStore, VoiceProfile


@pytest.fixture
def sample_profile() -> VoiceProfile:
    return VoiceProfile.from_transcripts(
        [f"heard phrase {i}" for i in range(len(CALIBRATION_PHRASES))],
        created_at="2026-01-02T03:04:05+00:00",
    )


@pytest.fixture
def store(tmp_path: Path) -> ProfileStore:
    return ProfileStore(tmp_path / "cfg" / "profile.json")

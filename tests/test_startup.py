from __future__ import annotations

import json
from pathlib import Path

import pytest

from fakes import FakeCapture, FakeEngine, FakeTerminal, toggles
from voiceprime.calibration.binder import TranscriptionContextBinder
from voiceprime.calibration.orchestrator import CalibrationOrchestrator
from voiceprime.calibration.voice_profile import (
    ProfileAbsent,
    ProfileCorrupt,
    ProfileLoaded,
    ProfileStore,
    VoiceProfile,
)
from voiceprime.errors import CalibrationCancelled, PersistenceError
from voiceprime.startup import needs_calibration, resolve_profile
from voiceprime.terminal import KeyEvent

TEXTS = ["alpha", "bravo", "charlie", "delta", "echo", "foxtrot"]


def _never_calibrate() -> VoiceProfile:
    raise AssertionError("calibration must not run")


def test_needs_calibration_policy(sample_profile: VoiceProfile) -> None:
    assert needs_calibration(ProfileAbsent(), force=False)
    assert needs_calibration(ProfileCorrupt("bad"), force=False)
    assert not needs_calibration(ProfileLoaded(sample_profile), force=False)
    assert needs_calibration(ProfileLoaded(sample_profile), force=True)
    with pytest.raises(TypeError):
        needs_calibration(object(), force=False)  # type: ignore[arg-type]


def test_fresh_run_calibrates_then_persists_and_binds(store: ProfileStore) -> None:
    terminal = FakeTerminal(toggles(6))
    engine = FakeEngine(TEXTS)
    orchestrator = CalibrationOrchestrator(FakeCapture(), engine, terminal)
    notes: list[str] = []
    result = resolve_profile(store, force=False, calibrate=orchestrator.run, notify=notes.append)
    assert result.calibrated and result.saved
    assert notes and "No voice profile" in notes[0]
    assert store.load() == result.profile

    # Dictation only starts after calibration, primed with the new profile
    assert engine.contexts == [None] * 6
    binder = TranscriptionContextBinder.from_profile(engine, result.profile)
    binder.transcribe(b"\x00\x01")
    assert engine.contexts[-1] == " ".join(TEXTS)


def test_valid_profile_is_loaded_without_recording(
    store: ProfileStore, sample_profile: VoiceProfile
) -> None:
    store.save(sample_profile)
    result = resolve_profile(store, force=False, calibrate=_never_calibrate)
    assert result.profile == sample_profile
    assert not result.calibrated


def test_force_flag_recalibrates_and_overwrites(
    store: ProfileStore, sample_profile: VoiceProfile
) -> None:
    store.save(sample_profile)
    terminal = FakeTerminal(toggles(6))
    orchestrator = CalibrationOrchestrator(FakeCapture(), FakeEngine(TEXTS), terminal)
    result = resolve_profile(store, force=True, calibrate=orchestrator.run)
    assert result.saved
    assert store.load().phrase_transcripts == tuple(TEXTS)


def test_corrupt_profile_falls_back_to_calibration(store: ProfileStore) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_text(json.dumps({"phraseTranscripts": ["a"] * 3}), encoding="utf-8")
    fresh = VoiceProfile.from_transcripts(TEXTS)
    result = resolve_profile(store, force=False, calibrate=lambda: fresh)
    assert result.profile == fresh
    assert store.load() == fresh


def test_save_failure_keeps_in_memory_profile(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    store = ProfileStore(blocker / "profile.json")
    fresh = VoiceProfile.from_transcripts(TEXTS)
    result = resolve_profile(store, force=False, calibrate=lambda: fresh)
    assert result.profile == fresh
    assert result.calibrated and not result.saved
    assert "could not be saved" in result.message


def test_cancelled_calibration_runs_uncalibrated(store: ProfileStore) -> None:
    terminal = FakeTerminal([KeyEvent.QUIT])
    orchestrator = CalibrationOrchestrator(FakeCapture(), FakeEngine(), terminal)
    result = resolve_profile(store, force=False, calibrate=orchestrator.run)
    assert result.profile is None
    assert not store.exists()


def test_cancel_never_leaves_partial_file(store: ProfileStore, sample_profile: VoiceProfile) -> None:
    store.save(sample_profile)

    def _cancel() -> VoiceProfile:
        raise CalibrationCancelled("quit")

    result = resolve_profile(store, force=True, calibrate=_cancel)
    assert result.profile is None
    assert store.load() == sample_profile


def test_persistence_error_is_not_raised(store: ProfileStore, monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail(profile: VoiceProfile) -> None:
        raise PersistenceError("read-only")

    monkeypatch.setattr(store, "save", _fail)
    result = resolve_profile(store, force=True, calibrate=lambda: VoiceProfile.from_transcripts(TEXTS))
    assert result.profile is not None and not result.saved

"""
Startup decision: load and bind an existing voice profile, or calibrate first.
Calibrate when forced or when the stored profile is absent or corrupt.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from .calibration.voice_profile import (
    ProfileAbsent,
    ProfileCorrupt,
    ProfileLoaded,
    ProfileState,
    ProfileStore,
    VoiceProfile,
)
from .errors import CalibrationCancelled, PersistenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StartupResult:
    profile: VoiceProfile | None
    calibrated: bool = False
    saved: bool = False
    message: str = ""


def needs_calibration(state: ProfileState, force: bool) -> bool:
    if force:
        return True
    if isinstance(state, ProfileLoaded):
        return False
    if isinstance(state, (ProfileAbsent, ProfileCorrupt)):
        return True
    raise TypeError(f"Unknown profile state: {state!r}")


def resolve_profile(
    store: ProfileStore,
    force: bool,
    calibrate: Callable[[], VoiceProfile],
    notify: Callable[[str], None] | None = None,
) -> StartupResult:
    """
    Never raises for profile problems: a failed save keeps the in-memory profile,
    a cancelled calibration leaves the session uncalibrated.
    """
    state = store.load_state()
    if not needs_calibration(state, force) and isinstance(state, ProfileLoaded):
        logger.info("Voice profile loaded from %s", store.path)
        return StartupResult(profile=state.profile, message="Voice profile loaded.")

    if isinstance(state, ProfileCorrupt):
        logger.warning("Stored voice profile unusable (%s); recalibrating", state.reason)
        reason = "Stored voice profile is damaged. Starting calibration..."
    elif isinstance(state, ProfileAbsent):
        reason = "No voice profile found. Starting calibration..."
    else:
        reason = "Recalibrating voice profile..."
    logger.info(reason)
    if notify is not None:
        notify(reason)

    try:
        profile = calibrate()
    except CalibrationCancelled:
        logger.info("Calibration cancelled; continuing without a voice profile")
        return StartupResult(
            profile=None,
            message="Calibration cancelled; transcribing without a voice profile.",
        )

    try:
        store.save(profile)
    except PersistenceError as e:
        return StartupResult(
            profile=profile,
            calibrated=True,
            saved=False,
            message=f"Calibration finished but could not be saved: {e}. Using it for this session only.",
        )
    return StartupResult(
        profile=profile,
        calibrated=True,
        saved=True,
        message=f"Calibration complete. Profile saved to {store.path}",
    )

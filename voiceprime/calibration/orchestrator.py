"""
Interactive calibration: walk the speaker through every reference phrase, transcribe each
take, and build a complete VoiceProfile. Nothing is kept unless all phrases succeed.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from ..errors import CaptureError, EngineError, RecordingAborted
from .constants import CALIBRATION_PHRASES, MIN_TEXT_CHARS_DEFAULT, MIN_TEXT_CHARS_MAX
from .recorder import RecordingSession
from .transcriber import PhraseTranscriber
from .voice_profile import VoiceProfile

logger = logging.getLogger(__name__)

BANNER = (
    "=== VOICE CALIBRATION ===\n"
    "Read each phrase clearly, 15-20 cm from the microphone.\n"
    "SPACE starts recording, SPACE again stops. ESC redoes the phrase, q quits."
)


class CalibrationOrchestrator:
    """
    For phrase i in order: show it, record a take, transcribe it, keep the text at slot i.
    A CaptureError, an aborted take, an EngineError or a too-short transcript re-offers
    the same phrase; other slots are never touched. CalibrationCancelled propagates and
    the partial results are dropped with this call's local state.
    """

    def __init__(
        self,
        capture: Any,
        engine: Any,
        terminal: Any,
        *,
        phrases: Sequence[str] = CALIBRATION_PHRASES,
        min_text_chars: int = MIN_TEXT_CHARS_DEFAULT,
        session: RecordingSession | None = None,
        transcriber: PhraseTranscriber | None = None,
    ) -> None:
        self._terminal = terminal
        self._phrases = tuple(phrases)
        self._min_text_chars = max(0, min(MIN_TEXT_CHARS_MAX, int(min_text_chars)))
        self._session = session or RecordingSession(capture, terminal)
        self._transcriber = transcriber or PhraseTranscriber(engine)

    @property
    def min_text_chars(self) -> int:
        return self._min_text_chars

    def run(self) -> VoiceProfile:
        self._terminal.show_prompt(BANNER)
        transcripts: list[str] = []
        total = len(self._phrases)
        for index, phrase in enumerate(self._phrases):
            text = self._calibrate_phrase(index, total, phrase)
            transcripts.append(text)
        profile = VoiceProfile.from_transcripts(transcripts)
        logger.info("Calibration complete (%d phrases)", total)
        self._terminal.show_prompt("Calibration complete.")
        return profile

    def _calibrate_phrase(self, index: int, total: int, phrase: str) -> str:
        """Loop until this phrase yields an accepted transcript."""
        attempt = 0
        while True:
            attempt += 1
            self._terminal.show_prompt(f'\nPhrase {index + 1}/{total}: "{phrase}"')
            self._terminal.show_prompt("   [ SPACE ] start recording  [ ESC ] redo  [ q ] quit")
            try:
                audio = self._session.run()
            except RecordingAborted:
                self._terminal.show_prompt("   Discarded, let's try that phrase again.")
                continue
            except CaptureError as e:
                logger.warning("Phrase %d attempt %d: capture failed: %s", index + 1, attempt, e)
                self._terminal.show_prompt(f"   Recording failed ({e}). Try again.")
                continue
            self._terminal.show_prompt("   Transcribing...")
            try:
                text = self._transcriber.transcribe(audio).strip()
            except EngineError as e:
                logger.warning("Phrase %d attempt %d: engine failed: %s", index + 1, attempt, e)
                self._terminal.show_prompt(f"   Recognition failed ({e}). Try again.")
                continue
            if len(text) < self._min_text_chars:
                self._terminal.show_prompt("   Heard too little, please try again.")
                continue
            self._terminal.show_prompt(f'   Heard: "{text}"')
            return text

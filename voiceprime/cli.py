"""
Command-line entry point: decide on calibration, bind the profile, then run push-to-toggle dictation.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

from . import SpeechComponents, SpeechFactory
from .calibration.binder import TranscriptionContextBinder
from .calibration.recorder import RecordingSession
from .config import deep_merge, load_config
from .errors import (
    CalibrationCancelled,
    CaptureError,
    EngineError,
    RecordingAborted,
    VoicePrimeError,
)
from .startup import resolve_profile
from .terminal import Terminal

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voiceprime",
        description="Dictation primed with a calibrated voice profile",
    )
    parser.add_argument(
        "-c", "--calibrate", action="store_true", help="Recalibrate even if a profile exists"
    )
    parser.add_argument("--config", help="Path to YAML config file")
    parser.add_argument("--profile", help="Path to the voice profile JSON file")
    parser.add_argument("--engine", choices=["whisper", "vosk"], help="Recognition engine")
    parser.add_argument("--model", help="Whisper model name/path or Vosk model dir")
    parser.add_argument("--language", help="Whisper language code (e.g. en, ru)")
    parser.add_argument("--device", type=int, help="Input device id (see --list-devices)")
    parser.add_argument(
        "--list-devices", action="store_true", help="List input devices and exit"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> dict[str, Any]:
    """Load the config file and overlay command-line flags."""
    config = load_config(args.config)
    overlay: dict[str, Any] = {}
    if args.profile:
        overlay["profile"] = {"path": args.profile}
    if args.device is not None:
        overlay["audio"] = {"device_id": args.device}
    stt: dict[str, Any] = {}
    if args.engine:
        stt["engine"] = args.engine
    engine = args.engine or (config.get("stt", {}) or {}).get("engine") or "whisper"
    if args.model:
        stt[engine] = {"model_path": args.model}
    if args.language:
        stt.setdefault("whisper", {})["language"] = args.language
    if stt:
        overlay["stt"] = stt
    return deep_merge(config, overlay)


def dictation_loop(
    session: RecordingSession, binder: TranscriptionContextBinder, terminal: Any
) -> None:
    """Toggle-record, transcribe with the bound context, print; until the user quits."""
    terminal.show_prompt("\n=== voiceprime ===")
    terminal.show_prompt("[ SPACE ] start / stop recording   [ q ] quit")
    if not binder.calibrated:
        terminal.show_prompt("(no voice profile: run with --calibrate to personalize)")
    while True:
        try:
            audio = session.run()
        except CalibrationCancelled:
            return
        except RecordingAborted:
            terminal.show_prompt("Discarded.")
            continue
        except CaptureError as e:
            terminal.show_prompt(f"Recording failed: {e}")
            continue
        terminal.show_prompt("Transcribing...")
        try:
            text = binder.transcribe_audio(audio)
        except EngineError as e:
            logger.warning("Transcription failed: %s", e)
            terminal.show_prompt(f"Transcription failed: {e}")
            continue
        terminal.show_prompt(f"RESULT: {text}" if text else "No speech detected.")


def run(args: argparse.Namespace, terminal: Any = None) -> int:
    terminal = terminal or Terminal()
    try:
        factory = SpeechFactory(config_from_args(args))
        components: SpeechComponents = factory.create_components()
    except ValueError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 2
    terminal.show_prompt("Loading model...")
    try:
        components.stt.start()
    except EngineError as e:
        print(f"Cannot start recognition engine: {e}", file=sys.stderr)
        return 1
    try:
        orchestrator = factory.create_orchestrator(components, terminal)
        result = resolve_profile(
            components.store,
            force=args.calibrate,
            calibrate=orchestrator.run,
            notify=terminal.show_prompt,
        )
        terminal.show_prompt(result.message)
        binder = TranscriptionContextBinder.from_profile(
            components.stt, result.profile, components.processor
        )
        session = RecordingSession(
            components.capture,
            terminal,
            sample_rate=factory.sample_rate,
            min_seconds=0.0,
        )
        dictation_loop(session, binder, terminal)
    except VoicePrimeError as e:
        logger.exception("voiceprime stopped: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        components.stt.stop()
    terminal.show_prompt("Goodbye.")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.list_devices:
        from .audio.device_utils import (
            format_device_list,
            get_default_input_device_id,
            list_input_devices,
        )

        try:
            print(format_device_list(list_input_devices(), get_default_input_device_id()))
        except CaptureError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        return 0
    return run(args)


if __name__ == "__main__":
    sys.exit(main())

"""
Configuration: nested dict with audio / stt / calibration / profile sections.
A YAML file (default ~/.config/voiceprime/config.yaml) is deep-merged over DEFAULT_CONFIG.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

import yaml

from .calibration.voice_profile import default_profile_path

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "audio": {
        "device_id": None,
        "sample_rate": 16000,
        "sensitivity": 1.0,
        "min_recording_sec": 0.5,
    },
    "processing": {
        "chunk_duration_sec": 25.0,
        "overlap_sec": 2.0,
        "silence_threshold_db": -30.0,
        "min_chunk_sec": 1.0,
    },
    "stt": {
        "engine": "whisper",
        "whisper": {
            "model_path": "base",
            "language": "en",
            "device": "cpu",
            "beam_size": 1,
        },
        "vosk": {
            "model_path": None,
        },
    },
    "calibration": {
        "min_text_chars": 1,
    },
    "profile": {
        "path": None,
    },
}


def default_config_path() -> Path:
    return default_profile_path().parent / CONFIG_FILE_NAME


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict: override's values win, nested dicts are merged key by key."""
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = deep_merge(out[key], value)
        else:
            out[key] = copy.deepcopy(value)
    return out


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """
    Load config from path (or the default location when it exists).
    A missing default file is fine; a missing explicit file or invalid YAML raises ValueError.
    """
    explicit = path is not None
    cfg_path = Path(path) if path is not None else default_config_path()
    if not cfg_path.is_file():
        if explicit:
            raise ValueError(f"Config file not found: {cfg_path}")
        return copy.deepcopy(DEFAULT_CONFIG)
    try:
        data = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {cfg_path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Config {cfg_path} must be a mapping, got {type(data).__name__}")
    logger.debug("Loaded config from %s", cfg_path)
    return deep_merge(DEFAULT_CONFIG, data)

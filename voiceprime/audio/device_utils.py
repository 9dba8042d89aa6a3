"""
List audio input devices for the --list-devices flag and config validation.
"""

from __future__ import annotations

import logging
from typing import Any

from ..errors import CaptureError

logger = logging.getLogger(__name__)


def list_input_devices() -> list[dict[str, Any]]:
    """
    Return list of dicts with 'id', 'name', 'sample_rate' (default) for each input device.
    Uses sounddevice.
    """
    try:
        import sounddevice as sd

        devices = sd.query_devices()
        out = []
        for i, d in enumerate(devices):
            if d.get("max_input_channels", 0) > 0:
                out.append(
                    {
                        "id": i,
                        "name": d.get("name", "Unknown"),
                        "sample_rate": float(d.get("default_samplerate", 16000)),
                    }
                )
        return out
    except Exception as e:
        logger.exception("Failed to list input devices: %s", e)
        raise CaptureError("Cannot list microphone devices") from e


def get_default_input_device_id() -> int | None:
    """Return the default input device index, or None if none."""
    try:
        import sounddevice as sd

        device = int(sd.default.device[0])
    except Exception as e:
        logger.debug("No default input device: %s", e)
        return None
    return device if device >= 0 else None


def format_device_list(devices: list[dict[str, Any]], default_id: int | None) -> str:
    if not devices:
        return "No input devices found."
    lines = []
    for d in devices:
        marker = "*" if d["id"] == default_id else " "
        lines.append(f"{marker} {d['id']:>3}  {d['name']}  ({d['sample_rate']:.0f} Hz)")
    return "\n".join(lines)

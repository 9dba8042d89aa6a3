from __future__ import annotations

import sys
import types
from typing import Any

import numpy as np
import pytest

from voiceprime.audio.capture import AudioCapture
from voiceprime.errors import CaptureError


class FakeInputStream:
    instances: list["FakeInputStream"] = []

    def __init__(self, callback: Any = None, **kwargs: Any) -> None:
        self.callback = callback
        self.kwargs = kwargs
        self.active = False
        self.closed = False
        FakeInputStream.instances.append(self)

    def start(self) -> None:
        self.active = True

    def stop(self) -> None:
        self.active = False

    def close(self) -> None:
        self.closed = True

    def feed(self, samples: list[int]) -> None:
        block = np.array(samples, dtype=np.int16).reshape(-1, 1)
        self.callback(block, len(samples), None, None)


# Stands in for PortAudio so these tests run on machines without an input device
@pytest.fixture(autouse=True)
def fake_sd(monkeypatch: pytest.MonkeyPatch) -> types.ModuleType:
    FakeInputStream.instances = []
    module = types.ModuleType("sounddevice")
    module.InputStream = FakeInputStream  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "sounddevice", module)
    return module


def test_capture_returns_buffered_audio_and_releases_device() -> None:
    levels: list[float] = []
    capture = AudioCapture(sample_rate=16000, on_level=levels.append)
    handle = capture.begin_capture()
    stream = FakeInputStream.instances[0]
    assert stream.kwargs["samplerate"] == 16000
    assert stream.kwargs["dtype"] == "int16"
    stream.feed([100, 200])
    stream.feed([300])
    audio = capture.end_capture(handle)
    assert np.frombuffer(audio, dtype=np.int16).tolist() == [100, 200, 300]
    assert stream.closed
    assert len(levels) == 2


def test_sensitivity_gain_is_clipped() -> None:
    capture = AudioCapture(sensitivity=4.0)
    handle = capture.begin_capture()
    FakeInputStream.instances[0].feed([1000, 20000, -20000])
    audio = capture.end_capture(handle)
    assert np.frombuffer(audio, dtype=np.int16).tolist() == [4000, 32767, -32768]


def test_second_begin_while_recording_is_rejected() -> None:
    capture = AudioCapture()
    handle = capture.begin_capture()
    with pytest.raises(CaptureError):
        capture.begin_capture()
    capture.abort_capture(handle)
    capture.end_capture(capture.begin_capture())


def test_device_lost_mid_recording() -> None:
    capture = AudioCapture()
    handle = capture.begin_capture()
    stream = FakeInputStream.instances[0]
    stream.feed([1, 2, 3])
    stream.active = False
    with pytest.raises(CaptureError, match="stopped during recording"):
        capture.end_capture(handle)
    assert stream.closed
    # The device is free for the next take
    capture.begin_capture()


def test_start_failure_is_capture_error(
    monkeypatch: pytest.MonkeyPatch, fake_sd: types.ModuleType
) -> None:
    def _boom(**kwargs: Any) -> None:
        raise RuntimeError("no default input device")

    monkeypatch.setattr(fake_sd, "InputStream", _boom)
    with pytest.raises(CaptureError, match="failed to start"):
        AudioCapture().begin_capture()


def test_abort_drops_buffer() -> None:
    capture = AudioCapture()
    handle = capture.begin_capture()
    FakeInputStream.instances[0].feed([5, 5])
    capture.abort_capture(handle)
    assert handle.closed
    assert handle.take() == b""
    with pytest.raises(CaptureError):
        capture.end_capture(handle)


class _StreamThatWontStart(FakeInputStream):
    def start(self) -> None:
        raise RuntimeError("device busy")


def test_failed_start_closes_opened_stream(
    monkeypatch: pytest.MonkeyPatch, fake_sd: types.ModuleType
) -> None:
    monkeypatch.setattr(fake_sd, "InputStream", _StreamThatWontStart)
    capture = AudioCapture()
    with pytest.raises(CaptureError, match="failed to start"):
        capture.begin_capture()
    assert FakeInputStream.instances[0].closed
    # Nothing is left active, so the next take can open the device
    monkeypatch.setattr(fake_sd, "InputStream", FakeInputStream)
    capture.end_capture(capture.begin_capture())

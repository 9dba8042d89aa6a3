from __future__ import annotations

import base64
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from fakes import FakeCapture, FakeEngine, tone_bytes
from voiceprime import SpeechComponents
from voiceprime.audio.processor import AudioProcessor
from voiceprime.calibration.constants import CALIBRATION_PHRASES
from voiceprime.calibration.voice_profile import ProfileStore, VoiceProfile
from voiceprime.config import DEFAULT_CONFIG
from voiceprime.errors import EngineError
from voiceprime.server import create_app


def _client(store: ProfileStore, engine: FakeEngine) -> TestClient:
    components = SpeechComponents(FakeCapture(), engine, AudioProcessor(), store)
    return TestClient(create_app(DEFAULT_CONFIG, components))


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine(["transcribed"])


@pytest.fixture
def client(store: ProfileStore, engine: FakeEngine) -> Iterator[TestClient]:
    with _client(store, engine) as c:
        yield c


def _audio_payload(audio: bytes) -> dict[str, str]:
    return {"audio_base64": base64.b64encode(audio).decode("ascii")}


def test_health_without_profile(client: TestClient, engine: FakeEngine) -> None:
    body = client.get("/health").json()
    assert body == {"status": "ok", "ready": True, "calibrated": False}
    assert engine.started


def test_phrases(client: TestClient) -> None:
    assert client.get("/calibration/phrases").json() == {"phrases": list(CALIBRATION_PHRASES)}


def test_profile_absent(client: TestClient) -> None:
    assert client.get("/profile").json() == {"state": "absent"}


def test_profile_corrupt(client: TestClient, store: ProfileStore) -> None:
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text("{not json", encoding="utf-8")
    body = client.get("/profile").json()
    assert body["state"] == "corrupt"
    assert "JSON" in body["reason"]


def test_transcribe_uses_stored_profile_context(
    store: ProfileStore, sample_profile: VoiceProfile, engine: FakeEngine
) -> None:
    store.save(sample_profile)
    with _client(store, engine) as c:
        assert c.get("/health").json()["calibrated"] is True
        profile = c.get("/profile").json()
        assert profile["state"] == "loaded"
        assert profile["profile"]["contextString"] == sample_profile.context_string
        resp = c.post("/stt/transcribe", json=_audio_payload(tone_bytes()))
    assert resp.status_code == 200
    assert resp.json() == {"text": "transcribed", "calibrated": True}
    assert engine.contexts == [sample_profile.context_string]


def test_reload_picks_up_new_profile(
    client: TestClient, store: ProfileStore, sample_profile: VoiceProfile, engine: FakeEngine
) -> None:
    client.post("/stt/transcribe", json=_audio_payload(tone_bytes()))
    store.save(sample_profile)
    assert client.post("/profile/reload").json()["state"] == "loaded"
    client.post("/stt/transcribe", json=_audio_payload(tone_bytes()))
    assert engine.contexts == [None, sample_profile.context_string]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"json": {"audio_base64": "***"}},
        {"json": {"audio_base64": ""}},
        {"json": ["not", "an", "object"]},
        {"content": b"not json", "headers": {"content-type": "application/json"}},
    ],
)
def test_transcribe_bad_request(client: TestClient, kwargs: dict) -> None:
    resp = client.post("/stt/transcribe", **kwargs)
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_request"


def test_transcribe_engine_failure(store: ProfileStore) -> None:
    with _client(store, FakeEngine([EngineError("model crashed")])) as c:
        resp = c.post("/stt/transcribe", json=_audio_payload(tone_bytes()))
    assert resp.status_code == 502
    assert resp.json() == {"error": "engine_error", "message": "model crashed"}


class _BrokenEngine(FakeEngine):
    def start(self) -> None:
        raise EngineError("cannot load model")


def test_not_ready_when_engine_fails_to_start(store: ProfileStore) -> None:
    with _client(store, _BrokenEngine()) as c:
        assert c.get("/health").json()["ready"] is False
        resp = c.post("/stt/transcribe", json=_audio_payload(tone_bytes()))
    assert resp.status_code == 503

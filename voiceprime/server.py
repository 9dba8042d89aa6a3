"""
Speech HTTP server.
Exposes profile-primed transcription and read-only profile status via REST API.
Calibration itself is interactive and runs from the CLI (voiceprime --calibrate).
"""

from __future__ import annotations

import argparse
import base64
import binascii
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from . import SpeechComponents, SpeechFactory, __version__
from .calibration.binder import TranscriptionContextBinder
from .calibration.constants import CALIBRATION_PHRASES
from .calibration.voice_profile import ProfileCorrupt, ProfileLoaded
from .errors import EngineError

logger = logging.getLogger(__name__)


class SpeechServer:
    """HTTP server around one engine and one bound voice profile."""

    def __init__(
        self,
        config: dict[str, Any],
        components: SpeechComponents | None = None,
    ) -> None:
        self._config = config
        self._factory = SpeechFactory(config)
        self._components = components
        self._binder: TranscriptionContextBinder | None = None
        self._ready = False
        self._app = FastAPI(
            title="voiceprime", version=__version__, lifespan=self._lifespan
        )
        self._setup_endpoints()

    @property
    def app(self) -> FastAPI:
        return self._app

    @asynccontextmanager
    async def _lifespan(self, _app: FastAPI) -> AsyncIterator[None]:
        await self.startup()
        try:
            yield
        finally:
            await self.shutdown()

    @staticmethod
    def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
        return JSONResponse(
            status_code=status_code, content={"error": code, "message": message}
        )

    def _rebind(self, components: SpeechComponents) -> dict[str, Any]:
        """Reload the stored profile and bind it; returns the profile status payload."""
        state = components.store.load_state()
        profile = state.profile if isinstance(state, ProfileLoaded) else None
        self._binder = TranscriptionContextBinder.from_profile(
            components.stt, profile, components.processor
        )
        return self._profile_payload(state)

    @staticmethod
    def _profile_payload(state: Any) -> dict[str, Any]:
        if isinstance(state, ProfileLoaded):
            return {"state": "loaded", "profile": state.profile.to_dict()}
        if isinstance(state, ProfileCorrupt):
            return {"state": "corrupt", "reason": state.reason}
        return {"state": "absent"}

    def _setup_endpoints(self) -> None:
        @self._app.get("/health")
        async def health() -> dict[str, Any]:
            return {
                "status": "ok" if self._ready else "starting",
                "ready": self._ready,
                "calibrated": bool(self._binder and self._binder.calibrated),
            }

        @self._app.get("/calibration/phrases")
        async def calibration_phrases() -> dict[str, Any]:
            """Return the ordered calibration phrases."""
            return {"phrases": list(CALIBRATION_PHRASES)}

        @self._app.get("/profile")
        async def profile_status() -> Any:
            """Current stored profile (read-only)."""
            if self._components is None:
                return self._error_response(
                    status.HTTP_503_SERVICE_UNAVAILABLE, "not_ready", "Server not ready"
                )
            return self._profile_payload(self._components.store.load_state())

        @self._app.post("/profile/reload")
        async def profile_reload() -> Any:
            """Re-read the profile file (e.g. after a CLI recalibration) and rebind it."""
            if self._components is None:
                return self._error_response(
                    status.HTTP_503_SERVICE_UNAVAILABLE, "not_ready", "Server not ready"
                )
            return self._rebind(self._components)

        @self._app.post("/stt/transcribe")
        async def stt_transcribe(request: Request) -> Any:
            """Transcribe base64 int16 PCM with the bound voice profile context."""
            if not self._ready or self._binder is None:
                return self._error_response(
                    status.HTTP_503_SERVICE_UNAVAILABLE, "not_ready", "Server not ready"
                )
            try:
                data = await request.json()
                audio_bytes = base64.b64decode(data.get("audio_base64", ""), validate=True)
            except (ValueError, TypeError, binascii.Error, AttributeError) as e:
                return self._error_response(
                    status.HTTP_400_BAD_REQUEST, "invalid_request", str(e)
                )
            if not audio_bytes:
                return self._error_response(
                    status.HTTP_400_BAD_REQUEST, "invalid_request", "audio_base64 required"
                )
            try:
                text, confidence = self._binder.transcribe_with_confidence(audio_bytes)
            except EngineError as e:
                logger.warning("STT transcribe failed: %s", e)
                return self._error_response(
                    status.HTTP_502_BAD_GATEWAY, "engine_error", str(e)
                )
            out: dict[str, Any] = {"text": text, "calibrated": self._binder.calibrated}
            if confidence is not None:
                out["confidence"] = confidence
            return out

    async def startup(self) -> None:
        """Build components, load the model and bind the stored profile."""
        try:
            if self._components is None:
                self._components = self._factory.create_components()
            self._components.stt.start()
            self._rebind(self._components)
            self._ready = True
            logger.info(
                "Speech server ready (voice profile: %s)",
                "bound" if self._binder and self._binder.calibrated else "none",
            )
        except Exception as e:
            logger.exception("Failed to initialize speech server: %s", e)
            self._ready = False

    async def shutdown(self) -> None:
        if self._components is not None:
            try:
                self._components.stt.stop()
            except Exception as e:
                logger.warning("Error during speech server shutdown: %s", e)
        self._ready = False


def create_app(
    config: dict[str, Any], components: SpeechComponents | None = None
) -> FastAPI:
    return SpeechServer(config, components).app


def main() -> None:
    """CLI entry point for the speech server."""
    parser = argparse.ArgumentParser(description="voiceprime HTTP server")
    parser.add_argument("--host", default="localhost", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8001, help="Port to bind to")
    parser.add_argument("--config", help="Path to YAML config file")
    args = parser.parse_args()

    import uvicorn

    from .config import load_config

    logging.basicConfig(level=logging.INFO)
    app = create_app(load_config(args.config))
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()

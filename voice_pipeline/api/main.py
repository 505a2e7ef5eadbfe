"""FastAPI control surface for the voice pipeline."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from voice_pipeline.api.routes.assistant import router as assistant_router
from voice_pipeline.api.routes.dictation import router as dictation_router
from voice_pipeline.api.routes.reminders import router as reminders_router
from voice_pipeline.api.routes.voices import router as voices_router
from voice_pipeline.config import get_settings
from voice_pipeline.errors import (
    DecodeFailure,
    InvalidResponse,
    InvalidTransition,
    NetworkFailure,
    NoCredential,
    NotFound,
    PermissionDenied,
    RateLimited,
    RecordingFailed,
    ServiceUnavailable,
    Unavailable,
    VoicePipelineError,
)
from voice_pipeline.services import Services, build_services

logger = logging.getLogger(__name__)

# Checked in order; the first matching class decides the status code.
ERROR_STATUS: list[tuple[type[VoicePipelineError], int]] = [
    (NotFound, 404),
    (InvalidTransition, 409),
    (PermissionDenied, 403),
    (NoCredential, 501),
    (RateLimited, 429),
    (ServiceUnavailable, 503),
    (Unavailable, 503),
    (NetworkFailure, 502),
    (InvalidResponse, 502),
    (DecodeFailure, 502),
    (RecordingFailed, 500),
]


def status_for(exc: VoicePipelineError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 500


def create_app(services: Services | None = None) -> FastAPI:
    """Build the API; ``services`` replaces the settings-built wiring."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        active = services or build_services(get_settings())
        app.state.services = active
        active.recorder.cleanup_old_recordings(active.settings.recording_retention_days)
        yield
        active.capture.stop_recording()
        active.recorder.stop_recording()
        active.synthesis.stop()

    app = FastAPI(
        title="Voice Pipeline API",
        description="Voice dictation and conversational assistant for a therapy practice",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"http://localhost:\d+",
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(VoicePipelineError)
    async def pipeline_error(_request: Request, exc: VoicePipelineError) -> JSONResponse:
        status = status_for(exc)
        if status >= 500:
            logger.warning("%s: %s", type(exc).__name__, exc.description)
        return JSONResponse(status_code=status, content={"detail": exc.description})

    app.include_router(assistant_router)
    app.include_router(dictation_router)
    app.include_router(reminders_router)
    app.include_router(voices_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "healthy"}

    return app


logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=get_settings().api_host, port=get_settings().api_port)

"""
FastAPI application factory for the transcription relay.

``create_app()`` assembles the application with CORS, optional gateway
auth, error handlers, the relay router and the health endpoint. The
module-level ``app`` instance allows ``uvicorn voicenotes.api.app:app --reload``.
"""

from datetime import UTC, datetime

from fastapi import FastAPI

from voicenotes import __version__
from voicenotes.api.middleware.cors import add_cors
from voicenotes.api.middleware.error_handler import register_error_handlers
from voicenotes.api.middleware.relay_auth import RelayAuthMiddleware
from voicenotes.api.routes import transcribe
from voicenotes.core.models import HealthResponse


def create_app() -> FastAPI:
    """Build and return a fully configured FastAPI application."""

    app = FastAPI(
        title="Voice Notes Relay",
        description="Relays captured audio to a speech-recognition API "
        "and returns the recognized text.",
        version=__version__,
    )

    # -- Gateway auth (inner) then CORS (outermost) --
    app.add_middleware(RelayAuthMiddleware)
    add_cors(app)

    # -- Error handlers --
    register_error_handlers(app)

    # -- Health check --
    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(version=__version__, timestamp=datetime.now(UTC))

    # -- Relay function --
    app.include_router(transcribe.router)

    return app


app = create_app()

"""
Global error handling for the transcription relay.

Every failure becomes ``{"error": "<message>"}`` with status 500 and the
relay's CORS headers, so a browser caller can always read the message.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from voicenotes.api.middleware.cors import CORS_HEADERS
from voicenotes.core.exceptions import VoiceNotesError

logger = logging.getLogger(__name__)


def error_response(message: str, status_code: int = 500) -> JSONResponse:
    """Build the relay's JSON error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"error": message},
        headers=CORS_HEADERS,
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application.

    Registers three handlers in priority order:
    1. ``VoiceNotesError``: domain errors, message passed through.
    2. ``RequestValidationError``: malformed or non-JSON bodies.
    3. ``Exception``: catch-all for unexpected server errors.

    Args:
        app: The FastAPI application instance to register handlers on.
    """

    @app.exception_handler(VoiceNotesError)
    async def voicenotes_error_handler(_request: Request, exc: VoiceNotesError) -> JSONResponse:
        """Convert domain-specific errors into the error envelope."""
        logger.warning("Relay request failed [%s]: %s", exc.code, exc.detail)
        return error_response(exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle request bodies that are not a JSON object of the expected shape."""
        logger.warning("Relay request body rejected: %s", exc.errors())
        return error_response("Invalid request body: expected JSON {\"audio\": \"<base64>\"}")

    @app.exception_handler(Exception)
    async def generic_error_handler(_request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler; prevents stack traces from leaking to clients."""
        logger.exception("Unhandled relay error", exc_info=exc)
        return error_response("Internal server error")

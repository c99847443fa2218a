"""
Transcription relay endpoint.

``POST /functions/v1/transcribe-audio`` takes ``{"audio": "<base64>"}`` and
answers ``{"text": ...}``; failures are rendered by the error handlers as
``500 {"error": ...}``. All logic lives in ``TranscriptionRelay``.
"""

from fastapi import APIRouter, Depends, Response

from voicenotes.api.middleware.cors import CORS_HEADERS
from voicenotes.core.models import ErrorResponse, TranscribeRequest, TranscribeResponse
from voicenotes.services.relay import TranscriptionRelay

router = APIRouter(prefix="/functions/v1", tags=["transcription"])


def get_relay() -> TranscriptionRelay:
    """Build a relay per request; it holds no state between calls."""
    return TranscriptionRelay()


@router.options("/transcribe-audio")
async def transcribe_audio_preflight() -> Response:
    """Answer a pre-flight immediately, without touching the body."""
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post(
    "/transcribe-audio",
    response_model=TranscribeResponse,
    responses={500: {"model": ErrorResponse}},
)
async def transcribe_audio(
    body: TranscribeRequest,
    response: Response,
    relay: TranscriptionRelay = Depends(get_relay),
) -> TranscribeResponse:
    """Decode the audio, transcribe it once and return only the text."""
    text = await relay.transcribe(body.audio, mime_type=body.mime_type)
    response.headers.update(CORS_HEADERS)
    return TranscribeResponse(text=text)

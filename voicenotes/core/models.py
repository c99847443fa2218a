"""
Pydantic v2 models shared by the capture client and the transcription relay.

v0.1.0: capture state, audio payload, relay request/response, notifications
"""

import base64
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Capture
# ---------------------------------------------------------------------------


class AudioSource(StrEnum):
    """Where the capture controller takes audio from."""

    microphone = "microphone"
    system = "system"


class CaptureState(StrEnum):
    """States of the capture controller's record/transcribe lifecycle."""

    idle = "idle"
    acquiring = "acquiring"
    recording = "recording"
    stopping = "stopping"
    processing = "processing"
    error = "error"


class AudioConstraints(BaseModel):
    """Audio constraints handed to the media-device layer on acquisition."""

    echo_cancellation: bool = True
    noise_suppression: bool = True
    auto_gain_control: bool = True
    sample_rate: int = 44100
    channels: int = 1
    device: str | None = None


class EncodedAudioPayload(BaseModel):
    """The finalized audio of one session: all chunks, in emission order."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str = "audio/webm"
    chunk_count: int = 0

    @property
    def size(self) -> int:
        return len(self.data)

    def to_base64(self) -> str:
        """Return the transport encoding of the payload (standard alphabet, padded)."""
        return base64.b64encode(self.data).decode("ascii")


class NotificationLevel(StrEnum):
    success = "success"
    warning = "warning"
    error = "error"


class Notification(BaseModel):
    """User-facing message emitted by the capture controller."""

    level: NotificationLevel
    title: str
    message: str
    code: str | None = None


# ---------------------------------------------------------------------------
# Transcription relay
# ---------------------------------------------------------------------------


class TranscribeRequest(BaseModel):
    """POST /functions/v1/transcribe-audio request body.

    ``audio`` is optional at the schema level so that a missing field is
    reported through the relay's own ``{"error"}`` envelope.
    """

    audio: str | None = None
    mime_type: str = "audio/webm"


class TranscribeResponse(BaseModel):
    """Successful relay response: only the recognized text."""

    text: str


class ErrorResponse(BaseModel):
    """Failed relay response."""

    error: str


class TranscriptionResult(BaseModel):
    """Outcome of one transcription attempt: text or a typed failure, never both."""

    text: str | None = None
    error_code: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error_code is None

    @classmethod
    def success(cls, text: str) -> "TranscriptionResult":
        return cls(text=text)

    @classmethod
    def failure(cls, code: str, message: str) -> "TranscriptionResult":
        return cls(error_code=code, error=message)


# ---------------------------------------------------------------------------
# Note drafts
# ---------------------------------------------------------------------------


NOTE_COLORS: list[str] = ["blue", "green", "yellow", "red", "purple", "orange"]


class NoteDraft(BaseModel):
    """Unsaved note seeded from a transcript; persistence happens elsewhere."""

    title: str = ""
    content: str
    color: str = "blue"

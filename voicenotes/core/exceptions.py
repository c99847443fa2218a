"""
Voice Notes exception hierarchy.

All application-specific exceptions inherit from VoiceNotesError, so the
relay's error handlers and the capture controller can treat every failure
of the pipeline uniformly.
"""

from datetime import UTC, datetime


class VoiceNotesError(Exception):
    """Base exception for all Voice Notes errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "VOICENOTES_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Capture side
# ---------------------------------------------------------------------------


class DeviceAccessDeniedError(VoiceNotesError):
    """Raised when the OS/browser permission system rejects stream acquisition."""

    def __init__(self, detail: str = "Access to the audio device was denied") -> None:
        super().__init__(detail=detail, code="DEVICE_ACCESS_DENIED", status_code=403)


class SourceNotSupportedError(VoiceNotesError):
    """Raised when the capture API for the chosen source is unavailable."""

    def __init__(self, detail: str = "This audio source is not supported here") -> None:
        super().__init__(detail=detail, code="SOURCE_NOT_SUPPORTED", status_code=501)


class NoAudioTrackCapturedError(VoiceNotesError):
    """Raised when a system-audio capture came back without any audio track."""

    def __init__(
        self,
        detail: str = (
            "No system audio was captured. Share a tab or screen again "
            "and enable the 'share audio' option."
        ),
    ) -> None:
        super().__init__(detail=detail, code="NO_AUDIO_TRACK", status_code=422)


class EncodingFailureError(VoiceNotesError):
    """Raised when the captured payload cannot be turned into base64 text."""

    def __init__(self, detail: str = "Captured audio could not be encoded") -> None:
        super().__init__(detail=detail, code="ENCODING_FAILURE", status_code=500)


class RelayInvocationError(VoiceNotesError):
    """Raised when the call to the transcription relay fails.

    ``category`` is one of "connection", "timeout", "http", "network",
    "protocol" so callers can phrase the notification accordingly.
    """

    def __init__(self, detail: str = "Transcription request failed", category: str = "http") -> None:
        self.category = category
        super().__init__(detail=detail, code="RELAY_INVOCATION_FAILURE", status_code=502)


class EmptyTranscriptError(VoiceNotesError):
    """Raised when transcription succeeded but recognized no text (soft warning)."""

    def __init__(self, detail: str = "No speech was recognized in the recording") -> None:
        super().__init__(detail=detail, code="EMPTY_TRANSCRIPT", status_code=200)


class InvalidStateTransitionError(VoiceNotesError):
    """Raised when the capture state machine is driven through an illegal edge."""

    def __init__(self, from_state: str, to_state: str) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            detail=f"Invalid capture state transition: {from_state} -> {to_state}",
            code="INVALID_STATE_TRANSITION",
            status_code=500,
        )


# ---------------------------------------------------------------------------
# Relay side
# ---------------------------------------------------------------------------


class MissingAudioError(VoiceNotesError):
    """Raised when a relay request carries no audio data."""

    def __init__(self, detail: str = "Audio data is missing") -> None:
        super().__init__(detail=detail, code="MISSING_AUDIO", status_code=500)


class AudioDecodeError(VoiceNotesError):
    """Raised when the base64 audio field cannot be decoded."""

    def __init__(self, detail: str = "Audio data is not valid base64") -> None:
        super().__init__(detail=detail, code="AUDIO_DECODE_ERROR", status_code=500)


class ConfigurationError(VoiceNotesError):
    """Raised when required configuration (e.g. the API key) is missing."""

    def __init__(self, detail: str = "Service is not configured") -> None:
        super().__init__(detail=detail, code="CONFIGURATION_ERROR", status_code=500)


class UpstreamAPIError(VoiceNotesError):
    """Raised when the external speech-recognition API call fails.

    The message embeds the upstream status and body; the API key is never
    part of either.
    """

    def __init__(self, status: int | None, body: str = "") -> None:
        self.upstream_status = status
        self.upstream_body = body
        if status is None:
            detail = f"Speech recognition API unreachable: {body}"
        else:
            detail = f"Speech recognition API error ({status}): {body}"
        super().__init__(detail=detail, code="UPSTREAM_API_FAILURE", status_code=500)


class AudioTooLargeError(VoiceNotesError):
    """Raised when decoded audio exceeds the upstream upload limit."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            detail=f"Audio is too large ({size} bytes, limit {limit})",
            code="AUDIO_TOO_LARGE",
            status_code=500,
        )

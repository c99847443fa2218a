"""Transcription relay: base64 audio in, recognized text out.

Stateless; every call decodes its own payload and makes exactly one
upstream attempt. The HTTP route is a thin wrapper around
``TranscriptionRelay.transcribe``.
"""

import logging

from voicenotes.core.config import Settings, get_settings
from voicenotes.core.exceptions import AudioDecodeError, AudioTooLargeError, MissingAudioError
from voicenotes.services.audio.codec import decode_base64_chunks
from voicenotes.services.transcription import BaseSTT, create_stt

logger = logging.getLogger(__name__)

# Upload filename per container type; the extension tells the API the format
AUDIO_FILENAMES: dict[str, str] = {
    "audio/webm": "audio.webm",
    "audio/ogg": "audio.ogg",
    "audio/wav": "audio.wav",
    "audio/x-wav": "audio.wav",
    "audio/flac": "audio.flac",
    "audio/mpeg": "audio.mp3",
    "audio/mp4": "audio.m4a",
}


def filename_for(mime_type: str) -> tuple[str, str]:
    """Return ``(base mime type, upload filename)`` for a container type.

    Raises:
        AudioDecodeError: If the type is not an accepted audio container.
    """
    base = mime_type.split(";")[0].strip().lower() or "audio/webm"
    try:
        return base, AUDIO_FILENAMES[base]
    except KeyError:
        raise AudioDecodeError(f"Unsupported audio type: {mime_type}") from None


class TranscriptionRelay:
    """Decodes relay requests and forwards them to the STT provider.

    Args:
        stt: Provider to call (defaults to the configured provider).
        settings: Optional Settings instance (defaults to get_settings()).
    """

    def __init__(self, stt: BaseSTT | None = None, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._stt = stt or create_stt(
            provider=self._settings.transcription_provider, settings=self._settings
        )

    async def transcribe(self, audio_base64: str | None, mime_type: str = "audio/webm") -> str:
        """Turn one base64 payload into recognized text.

        Raises:
            MissingAudioError: ``audio_base64`` is missing or decodes to nothing.
            AudioDecodeError: Invalid base64 or unsupported container type.
            AudioTooLargeError: Decoded audio exceeds ``max_audio_bytes``.
            ConfigurationError: No API key configured.
            UpstreamAPIError: The speech-recognition call failed.
        """
        if not audio_base64:
            logger.error("Relay request has no audio data")
            raise MissingAudioError()
        logger.info("Relay request received, base64 length: %d", len(audio_base64))

        base_type, filename = filename_for(mime_type)
        audio = decode_base64_chunks(audio_base64, self._settings.base64_chunk_size)
        if not audio:
            raise MissingAudioError()
        if len(audio) > self._settings.max_audio_bytes:
            raise AudioTooLargeError(len(audio), self._settings.max_audio_bytes)
        logger.info("Decoded audio size: %d bytes", len(audio))

        return await self._stt.transcribe(audio, mime_type=base_type, filename=filename)

"""Whisper STT through the OpenAI-compatible ``/audio/transcriptions`` API.

The audio is uploaded as a multipart form (``file``, ``model``, ``language``).
Exactly one attempt is made per call; failures surface as
``UpstreamAPIError`` with the upstream status and body, never the key.
"""

import logging

import httpx

from voicenotes.core.config import get_settings
from voicenotes.core.exceptions import ConfigurationError, UpstreamAPIError
from voicenotes.services.transcription.base import BaseSTT

logger = logging.getLogger(__name__)


class WhisperAPISTT(BaseSTT):
    """Speech-to-text provider calling a hosted Whisper endpoint.

    Args:
        api_key: Bearer key for the API (falls back to settings).
        model: Model name sent with every request.
        language: ISO 639-1 spoken language sent with every request.
        api_url: Full URL of the transcription endpoint.
        timeout: Seconds to wait for the API; None waits indefinitely.
        settings: Optional Settings instance (defaults to get_settings()).
        transport: Optional httpx transport (tests).
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        language: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        settings=None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._api_key = self._settings.openai_api_key if api_key is None else api_key
        self._model = model or self._settings.transcription_model
        self._language = language or self._settings.transcription_language
        self._api_url = api_url or self._settings.transcription_api_url
        self._timeout = timeout if timeout is not None else self._settings.transcription_timeout_s
        self._transport = transport

    async def transcribe(
        self,
        audio: bytes,
        mime_type: str = "audio/webm",
        filename: str = "audio.webm",
        **kwargs,
    ) -> str:
        """Upload ``audio`` and return the ``text`` field of the response.

        Raises:
            ConfigurationError: If no API key is configured.
            UpstreamAPIError: On transport failure, non-2xx status or a malformed body.
        """
        if not self._api_key:
            raise ConfigurationError("Speech recognition API key is not configured")

        language = kwargs.get("language") or self._language
        model = kwargs.get("model") or self._model
        logger.info(
            "Sending %d bytes (%s) to speech recognition: model=%s language=%s",
            len(audio),
            mime_type,
            model,
            language,
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    self._api_url,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                    files={"file": (filename, audio, mime_type)},
                    data={"model": model, "language": language},
                )
        except httpx.HTTPError as exc:
            logger.warning("Speech recognition API unreachable: %s", exc)
            raise UpstreamAPIError(None, str(exc) or type(exc).__name__) from exc

        logger.info("Speech recognition responded with status %s", response.status_code)
        if response.is_error:
            logger.error(
                "Speech recognition API error %s: %s", response.status_code, response.text
            )
            raise UpstreamAPIError(response.status_code, response.text)

        try:
            result = response.json()
        except ValueError as exc:
            raise UpstreamAPIError(response.status_code, "response is not valid JSON") from exc
        if not isinstance(result, dict):
            raise UpstreamAPIError(response.status_code, "response is not a JSON object")

        text = result.get("text") or ""
        logger.info("Transcription succeeded, text length: %d", len(text))
        return str(text)

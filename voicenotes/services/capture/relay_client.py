"""
Asynchronous HTTP client for the transcription relay.

Uses ``httpx.AsyncClient`` because the capture controller runs on an
asyncio event loop. Every failure is raised as ``RelayInvocationError``
carrying a user-presentable message.
"""

import logging

import httpx

from voicenotes.core.config import Settings, get_settings
from voicenotes.core.exceptions import RelayInvocationError

logger = logging.getLogger(__name__)


class RelayClient:
    """Thin wrapper around httpx for calling the transcription relay.

    Args:
        base_url: Base URL of the relay (falls back to settings).
        function_path: Path of the transcription function.
        api_key: Gateway key sent as ``Authorization``/``apikey`` headers.
        timeout: Seconds to wait for the relay; None waits indefinitely.
        transport: Optional httpx transport (tests, in-process apps).
    """

    def __init__(
        self,
        base_url: str | None = None,
        function_path: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._base_url = (base_url or settings.relay_base_url).rstrip("/")
        self._function_path = function_path or settings.relay_function_path
        api_key = settings.relay_api_key if api_key is None else api_key
        headers = {"x-client-info": "voicenotes-capture"}
        if api_key:
            headers["authorization"] = f"Bearer {api_key}"
            headers["apikey"] = api_key
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.relay_timeout_s,
            transport=transport,
        )

    async def __aenter__(self) -> "RelayClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, json: dict) -> httpx.Response:
        """POST to the relay function with user-friendly error handling.

        Raises:
            RelayInvocationError: On connection, timeout, HTTP status, or network errors.
        """
        try:
            resp = await self._client.post(self._function_path, json=json)
            resp.raise_for_status()
            return resp
        except httpx.ConnectError:
            raise RelayInvocationError(
                f"Transcription service is unreachable at {self._base_url}",
                category="connection",
            ) from None
        except httpx.TimeoutException:
            raise RelayInvocationError(
                "Transcription request timed out.",
                category="timeout",
            ) from None
        except httpx.HTTPStatusError as exc:
            try:
                detail = exc.response.json().get("error") or exc.response.text
            except Exception:
                detail = exc.response.text or str(exc)
            raise RelayInvocationError(str(detail), category="http") from None
        except httpx.HTTPError as exc:
            raise RelayInvocationError(f"Network error: {exc}", category="network") from None

    async def transcribe(self, audio_base64: str, mime_type: str = "audio/webm") -> str:
        """Submit one base64 payload and return the recognized text (possibly empty).

        ``mime_type`` is only sent when it differs from the relay default.
        """
        body: dict = {"audio": audio_base64}
        if mime_type.split(";")[0].strip() != "audio/webm":
            body["mime_type"] = mime_type
        logger.info("Submitting %d base64 characters to the relay", len(audio_base64))
        resp = await self._post(body)

        try:
            data = resp.json()
        except ValueError:
            raise RelayInvocationError(
                "Transcription service returned an invalid response.", category="protocol"
            ) from None
        if not isinstance(data, dict):
            raise RelayInvocationError(
                "Transcription service returned an invalid response.", category="protocol"
            )
        if data.get("error"):
            raise RelayInvocationError(str(data["error"]), category="http")
        text = data.get("text")
        if text is None:
            return ""
        if not isinstance(text, str):
            raise RelayInvocationError(
                "Transcription service returned an invalid response.", category="protocol"
            )
        return text

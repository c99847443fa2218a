"""Unit tests for WhisperAPISTT (hosted Whisper via multipart upload).

The upstream API is replaced by ``httpx.MockTransport``; tests inspect the
multipart form, the Bearer header and the error messages, which must carry
the upstream status but never the key.
"""

import httpx
import pytest

from voicenotes.core.exceptions import ConfigurationError, UpstreamAPIError
from voicenotes.services.transcription import create_stt
from voicenotes.services.transcription.openai_whisper import WhisperAPISTT


def _stt(handler, settings, **kwargs) -> WhisperAPISTT:
    return WhisperAPISTT(settings=settings, transport=httpx.MockTransport(handler), **kwargs)


class TestRequest:
    """Verify the multipart upload sent upstream."""

    async def test_multipart_fields(self, settings):
        """file, model=whisper-1 and language=tr are sent as form parts."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["content_type"] = request.headers["content-type"]
            seen["body"] = request.read()
            return httpx.Response(200, json={"text": "merhaba dünya"})

        text = await _stt(handler, settings).transcribe(
            b"\x1a\x45\xdf\xa3audio", mime_type="audio/webm", filename="audio.webm"
        )

        assert text == "merhaba dünya"
        assert seen["url"] == "https://api.openai.com/v1/audio/transcriptions"
        assert seen["auth"] == "Bearer sk-test-key"
        assert seen["content_type"].startswith("multipart/form-data")
        body = seen["body"]
        assert b'name="file"; filename="audio.webm"' in body
        assert b"Content-Type: audio/webm" in body
        assert b"\x1a\x45\xdf\xa3audio" in body
        assert b'name="model"\r\n\r\nwhisper-1' in body
        assert b'name="language"\r\n\r\ntr' in body

    async def test_overrides(self, settings):
        """Model and language can be overridden per call."""
        seen = {}

        def handler(request):
            seen["body"] = request.read()
            return httpx.Response(200, json={"text": "hello"})

        await _stt(handler, settings).transcribe(b"a", language="en", model="whisper-large")
        assert b'name="language"\r\n\r\nen' in seen["body"]
        assert b'name="model"\r\n\r\nwhisper-large' in seen["body"]

    async def test_single_attempt(self, settings):
        """A failing upstream call is made exactly once."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503, text="overloaded")

        with pytest.raises(UpstreamAPIError):
            await _stt(handler, settings).transcribe(b"a")
        assert len(calls) == 1


class TestResponse:
    """Verify response handling."""

    async def test_missing_text_is_empty(self, settings):
        stt = _stt(lambda r: httpx.Response(200, json={}), settings)
        assert await stt.transcribe(b"a") == ""

    async def test_non_json_body(self, settings):
        stt = _stt(lambda r: httpx.Response(200, text="not json"), settings)
        with pytest.raises(UpstreamAPIError, match="not valid JSON"):
            await stt.transcribe(b"a")

    async def test_error_status_in_message(self, settings):
        """Non-2xx responses embed the status and body, never the key."""
        body = '{"error": {"message": "Incorrect API key provided"}}'
        stt = _stt(lambda r: httpx.Response(401, text=body), settings)
        with pytest.raises(UpstreamAPIError) as exc_info:
            await stt.transcribe(b"a")
        message = exc_info.value.detail
        assert message.startswith("Speech recognition API error (401): ")
        assert "Incorrect API key provided" in message
        assert "sk-test-key" not in message
        assert exc_info.value.upstream_status == 401

    async def test_unreachable(self, settings):
        def handler(request):
            raise httpx.ConnectError("name resolution failed", request=request)

        with pytest.raises(UpstreamAPIError, match="unreachable") as exc_info:
            await _stt(handler, settings).transcribe(b"a")
        assert exc_info.value.upstream_status is None


class TestConfiguration:
    """Verify key handling and the provider factory."""

    async def test_missing_key(self, settings):
        """No configured key fails before any network call."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"text": "x"})

        stt = _stt(handler, settings, api_key="")
        with pytest.raises(ConfigurationError, match="not configured"):
            await stt.transcribe(b"a")
        assert calls == []

    def test_factory_builds_whisper_api(self, settings):
        assert isinstance(create_stt("openai", settings=settings), WhisperAPISTT)
        assert isinstance(create_stt("whisper-api", settings=settings), WhisperAPISTT)

    def test_factory_rejects_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown STT provider"):
            create_stt("local-whisper")

"""Shared pytest fixtures for the Voice Notes test suite.

Provides settings isolated from the developer's environment, media-device
doubles whose tracks record when they are stopped, and a mock relay client.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from voicenotes.core.config import Settings, get_settings
from voicenotes.core.models import AudioConstraints
from voicenotes.services.capture.media import (
    ChunkCallback,
    MediaDevices,
    MediaRecorder,
    MediaStream,
    MediaTrack,
)
from voicenotes.services.capture.relay_client import RelayClient

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Keep a developer's .env / environment from leaking into tests."""
    for var in ("OPENAI_API_KEY", "RELAY_API_KEY", "CAPTURE_SYSTEM_DEVICE", "RELAY_BASE_URL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setitem(Settings.model_config, "env_file", None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    """Settings with a fake API key and default capture constraints."""
    return Settings(openai_api_key="sk-test-key")


# ---------------------------------------------------------------------------
# Media doubles
# ---------------------------------------------------------------------------


class FakeTrack(MediaTrack):
    """Track that logs the moment its device is released."""

    def __init__(self, kind: str, events: list[str]) -> None:
        super().__init__(kind, label=f"fake-{kind}")
        self.release_count = 0
        self._events = events

    def _on_stop(self) -> None:
        self.release_count += 1
        self._events.append(f"release:{self.kind}")


class FakeRecorder(MediaRecorder):
    """Recorder whose chunks are pushed by the test via ``emit``.

    ``pending`` chunks are delivered during ``stop()``, like the final
    data event of a browser recorder.
    """

    def __init__(self, stream: MediaStream, mime_type: str, pending: list[bytes], events: list[str]):
        self.mime_type = mime_type
        self.stream = stream
        self.started = False
        self.stopped = False
        self.stop_error: Exception | None = None
        self._pending = list(pending)
        self._events = events
        self._on_data: ChunkCallback | None = None

    async def start(self, on_data: ChunkCallback) -> None:
        self._on_data = on_data
        self.started = True

    def emit(self, chunk: bytes) -> None:
        assert self._on_data is not None
        self._on_data(chunk)

    async def stop(self) -> None:
        await asyncio.sleep(0)
        if self.stop_error is not None:
            raise self.stop_error
        for chunk in self._pending:
            self._on_data(chunk)
        self.stopped = True
        self._events.append("recorder:flushed")


class FakeMediaDevices(MediaDevices):
    """Configurable ``MediaDevices`` double.

    Attributes:
        user_media_error / display_media_error: Raised on acquisition when set.
        display_tracks: Track kinds a display capture returns.
        pending_chunks: Chunks each recorder flushes on stop.
        acquire_gate: When set, acquisition waits for this event.
    """

    def __init__(self) -> None:
        self.events: list[str] = []
        self.user_media_error: Exception | None = None
        self.display_media_error: Exception | None = None
        self.display_tracks: tuple[str, ...] = ("video", "audio")
        self.pending_chunks: list[bytes] = []
        self.acquire_gate: asyncio.Event | None = None
        self.streams: list[MediaStream] = []
        self.recorders: list[FakeRecorder] = []
        self.requests: list[tuple[str, AudioConstraints]] = []

    def _make_stream(self, kinds) -> MediaStream:
        stream = MediaStream([FakeTrack(kind, self.events) for kind in kinds])
        self.streams.append(stream)
        return stream

    async def get_user_media(self, constraints: AudioConstraints) -> MediaStream:
        self.requests.append(("microphone", constraints))
        if self.acquire_gate is not None:
            await self.acquire_gate.wait()
        if self.user_media_error is not None:
            raise self.user_media_error
        return self._make_stream(("audio",))

    async def get_display_media(self, constraints: AudioConstraints) -> MediaStream:
        self.requests.append(("system", constraints))
        if self.acquire_gate is not None:
            await self.acquire_gate.wait()
        if self.display_media_error is not None:
            raise self.display_media_error
        return self._make_stream(self.display_tracks)

    def create_recorder(self, stream: MediaStream, mime_type: str) -> MediaRecorder:
        recorder = FakeRecorder(stream, mime_type, self.pending_chunks, self.events)
        self.recorders.append(recorder)
        return recorder


@pytest.fixture
def devices():
    """Fresh media-device double."""
    return FakeMediaDevices()


# ---------------------------------------------------------------------------
# Relay client
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_relay():
    """Mock RelayClient returning a Turkish transcript.

    Returns:
        AsyncMock: spec'd on RelayClient; ``transcribe`` is awaitable.
    """
    relay = AsyncMock(spec=RelayClient)
    relay.transcribe.return_value = "merhaba dünya"
    return relay

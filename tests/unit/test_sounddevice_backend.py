"""Unit tests for the local PortAudio capture backend.

``sounddevice`` is replaced by a MagicMock so no audio hardware is needed;
the fake RawInputStream keeps the callback so tests can feed PCM frames.
"""

import io
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
import soundfile as sf

from voicenotes.core.exceptions import SourceNotSupportedError
from voicenotes.core.models import AudioConstraints
from voicenotes.services.capture.media import MediaStream, MediaTrack
from voicenotes.services.capture.sounddevice_backend import (
    ContainerRecorder,
    InputDeviceTrack,
    SoundDeviceMediaDevices,
)


class PortAudioError(Exception):
    pass


@pytest.fixture
def fake_sd():
    """MagicMock standing in for the sounddevice module."""
    sd = MagicMock()
    sd.PortAudioError = PortAudioError
    streams = []

    def make_stream(**kwargs):
        stream = MagicMock()
        stream.kwargs = kwargs
        streams.append(stream)
        return stream

    sd.RawInputStream.side_effect = make_stream
    sd.streams = streams
    return sd


@pytest.fixture
def backend(fake_sd):
    with patch(
        "voicenotes.services.capture.sounddevice_backend._load_sounddevice",
        return_value=fake_sd,
    ):
        yield SoundDeviceMediaDevices(system_device="BlackHole 2ch")


def _feed(stream_mock, pcm: bytes) -> None:
    """Invoke the PortAudio callback as the audio thread would."""
    stream_mock.kwargs["callback"](pcm, len(pcm) // 2, None, None)


class TestAcquisition:
    """Verify device opening and error mapping."""

    async def test_microphone_opens_default_device(self, backend, fake_sd):
        stream = await backend.get_user_media(AudioConstraints(sample_rate=16000))
        assert len(stream.get_audio_tracks()) == 1
        kwargs = fake_sd.streams[0].kwargs
        assert kwargs["device"] is None
        assert kwargs["samplerate"] == 16000
        assert kwargs["dtype"] == "int16"
        fake_sd.streams[0].start.assert_called_once()

    async def test_system_uses_loopback_device(self, backend, fake_sd):
        stream = await backend.get_display_media(AudioConstraints())
        assert stream.get_video_tracks() == []
        assert fake_sd.streams[0].kwargs["device"] == "BlackHole 2ch"

    async def test_system_constraint_device_wins(self, backend, fake_sd):
        await backend.get_display_media(AudioConstraints(device="Stereo Mix"))
        assert fake_sd.streams[0].kwargs["device"] == "Stereo Mix"

    async def test_system_without_device_unsupported(self, fake_sd):
        devices = SoundDeviceMediaDevices()
        with pytest.raises(SourceNotSupportedError, match="CAPTURE_SYSTEM_DEVICE"):
            await devices.get_display_media(AudioConstraints())

    async def test_unknown_device(self, backend, fake_sd):
        fake_sd.RawInputStream.side_effect = ValueError("No input device matching 'x'")
        with pytest.raises(SourceNotSupportedError, match="not found"):
            await backend.get_user_media(AudioConstraints(device="x"))

    async def test_port_audio_error_is_permission(self, backend, fake_sd):
        """A device that cannot be opened is reported like a denied permission."""
        fake_sd.RawInputStream.side_effect = PortAudioError("Error opening InputStream")
        with pytest.raises(PermissionError):
            await backend.get_user_media(AudioConstraints())

    async def test_track_stop_closes_stream(self, backend, fake_sd):
        stream = await backend.get_user_media(AudioConstraints())
        stream.stop_all()
        stream.stop_all()
        fake_sd.streams[0].stop.assert_called_once()
        fake_sd.streams[0].close.assert_called_once()


class TestRecorder:
    """Verify the recorder emits one complete container chunk on stop."""

    async def test_emits_container_on_stop(self, backend, fake_sd):
        stream = await backend.get_user_media(AudioConstraints(sample_rate=16000))
        recorder = backend.create_recorder(stream, "audio/wav")
        chunks = []
        await recorder.start(chunks.append)

        pcm = (np.ones(1600) * 1000).astype(np.int16).tobytes()
        _feed(fake_sd.streams[0], pcm)
        _feed(fake_sd.streams[0], pcm)
        assert chunks == []

        await recorder.stop()
        assert len(chunks) == 1
        samples, rate = sf.read(io.BytesIO(chunks[0]))
        assert rate == 16000
        assert len(samples) == 3200

    async def test_frames_before_start_are_ignored(self, backend, fake_sd):
        stream = await backend.get_user_media(AudioConstraints(sample_rate=16000))
        _feed(fake_sd.streams[0], b"\x01\x00" * 100)
        recorder = backend.create_recorder(stream, "audio/wav")
        chunks = []
        await recorder.start(chunks.append)
        await recorder.stop()
        assert chunks == []

    async def test_webm_falls_back_to_ogg(self, backend):
        stream = await backend.get_user_media(AudioConstraints())
        recorder = backend.create_recorder(stream, "audio/webm")
        assert isinstance(recorder, ContainerRecorder)
        assert recorder.mime_type == "audio/ogg"

    def test_foreign_stream_rejected(self, backend):
        with pytest.raises(SourceNotSupportedError):
            backend.create_recorder(MediaStream([MediaTrack("audio")]), "audio/ogg")


class TestInputDeviceTrack:
    def test_take_frames_disarms(self, fake_sd):
        track = InputDeviceTrack(fake_sd, None, 16000, 1)
        track.arm()
        _feed(fake_sd.streams[0], b"\x01\x00")
        assert track.take_frames() == b"\x01\x00"
        _feed(fake_sd.streams[0], b"\x02\x00")
        assert track.take_frames() == b""

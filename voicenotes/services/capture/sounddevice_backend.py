"""Local capture backend built on PortAudio via ``sounddevice``.

Microphone capture opens the default (or configured) input device. System
audio needs a loopback/monitor input device (e.g. "BlackHole", "Stereo Mix",
a PulseAudio ".monitor" source) named by ``CAPTURE_SYSTEM_DEVICE``.

The recorder keeps raw PCM while armed and, like a browser recorder started
without a timeslice, emits one complete container chunk when stopped.
"""

import asyncio
import logging
import threading
from typing import Any

from voicenotes.core.exceptions import SourceNotSupportedError
from voicenotes.core.models import AudioConstraints
from voicenotes.services.audio.processor import CONTAINER_FORMATS, AudioProcessor
from voicenotes.services.capture.media import (
    ChunkCallback,
    MediaDevices,
    MediaRecorder,
    MediaStream,
    MediaTrack,
)

logger = logging.getLogger(__name__)

DEFAULT_CONTAINER = "audio/ogg"


def _load_sounddevice() -> Any:
    """Import sounddevice, reporting a missing PortAudio as an unsupported source."""
    try:
        import sounddevice as sd
    except (ImportError, OSError) as exc:
        raise SourceNotSupportedError(f"Local audio capture is unavailable: {exc}") from exc
    return sd


class InputDeviceTrack(MediaTrack):
    """Audio track backed by a running PortAudio input stream."""

    def __init__(self, sd: Any, device: str | int | None, sample_rate: int, channels: int) -> None:
        super().__init__("audio", label=str(device) if device is not None else "default")
        self.sample_rate = sample_rate
        self.channels = channels
        self._lock = threading.Lock()
        self._frames: list[bytes] = []
        self._armed = False
        self._stream = sd.RawInputStream(
            samplerate=sample_rate,
            channels=channels,
            dtype="int16",
            device=device,
            callback=self._on_audio,
        )
        self._stream.start()

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        # Runs on the PortAudio thread
        if status:
            logger.debug("Input stream status: %s", status)
        with self._lock:
            if self._armed:
                self._frames.append(bytes(indata))

    def arm(self) -> None:
        with self._lock:
            self._armed = True

    def take_frames(self) -> bytes:
        """Disarm and return everything captured since ``arm()``."""
        with self._lock:
            self._armed = False
            data = b"".join(self._frames)
            self._frames.clear()
        return data

    def _on_stop(self) -> None:
        self._stream.stop()
        self._stream.close()


class ContainerRecorder(MediaRecorder):
    """Encodes the PCM of one ``InputDeviceTrack`` into a single container chunk."""

    def __init__(self, track: InputDeviceTrack, mime_type: str = DEFAULT_CONTAINER) -> None:
        self.mime_type = mime_type
        self._track = track
        self._processor = AudioProcessor(sample_rate=track.sample_rate, channels=track.channels)
        self._on_data: ChunkCallback | None = None

    async def start(self, on_data: ChunkCallback) -> None:
        self._on_data = on_data
        self._track.arm()

    async def stop(self) -> None:
        pcm = self._track.take_frames()
        if not pcm or self._on_data is None:
            return
        data = await asyncio.to_thread(self._processor.encode, pcm, self.mime_type)
        self._on_data(data)


class SoundDeviceMediaDevices(MediaDevices):
    """``MediaDevices`` for a desktop host using PortAudio input devices.

    Args:
        system_device: Input device used for system audio when the
            constraints name none.
    """

    def __init__(self, system_device: str = "") -> None:
        self._system_device = system_device or None

    async def get_user_media(self, constraints: AudioConstraints) -> MediaStream:
        return await asyncio.to_thread(self._open, constraints.device, constraints)

    async def get_display_media(self, constraints: AudioConstraints) -> MediaStream:
        device = constraints.device or self._system_device
        if not device:
            raise SourceNotSupportedError(
                "System audio needs a loopback input device; set CAPTURE_SYSTEM_DEVICE."
            )
        # PortAudio has no screen capture, so no throwaway video track here
        return await asyncio.to_thread(self._open, device, constraints)

    def _open(self, device: str | None, constraints: AudioConstraints) -> MediaStream:
        sd = _load_sounddevice()
        if constraints.echo_cancellation or constraints.noise_suppression:
            logger.debug("Echo cancellation/noise suppression are not available through PortAudio")
        try:
            track = InputDeviceTrack(sd, device, constraints.sample_rate, constraints.channels)
        except ValueError as exc:
            # sounddevice raises ValueError for unknown device names
            raise SourceNotSupportedError(f"Audio input device not found: {device}") from exc
        except sd.PortAudioError as exc:
            raise PermissionError(f"Audio input device could not be opened: {exc}") from exc
        logger.info("Opened input device %s at %d Hz", track.label, constraints.sample_rate)
        return MediaStream([track])

    def create_recorder(self, stream: MediaStream, mime_type: str) -> MediaRecorder:
        tracks = [t for t in stream.get_audio_tracks() if isinstance(t, InputDeviceTrack)]
        if not tracks:
            raise SourceNotSupportedError("Stream has no local input track to record")
        if mime_type not in CONTAINER_FORMATS:
            logger.info("%s cannot be written locally; recording %s", mime_type, DEFAULT_CONTAINER)
            mime_type = DEFAULT_CONTAINER
        return ContainerRecorder(tracks[0], mime_type)

"""
Media-device ports used by the capture controller.

A ``MediaDevices`` backend hands out ``MediaStream`` objects made of
``MediaTrack`` objects and builds ``MediaRecorder`` instances over them.
The controller only talks to these types, so a browser bridge, a local
PortAudio backend or a test double can sit behind it.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable

from voicenotes.core.models import AudioConstraints

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[bytes], None]


class MediaTrack:
    """One audio or video track of a media stream.

    ``stop()`` is idempotent; subclasses release the underlying device in
    ``_on_stop()``.
    """

    def __init__(self, kind: str, label: str = "") -> None:
        if kind not in ("audio", "video"):
            raise ValueError(f"Unknown track kind: {kind}")
        self.kind = kind
        self.label = label
        self.ready_state = "live"

    @property
    def live(self) -> bool:
        return self.ready_state == "live"

    def stop(self) -> None:
        if self.ready_state == "ended":
            return
        self.ready_state = "ended"
        self._on_stop()

    def _on_stop(self) -> None:
        """Release the device behind this track."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self.kind} label={self.label!r} {self.ready_state}>"


class MediaStream:
    """An ordered set of tracks acquired together."""

    def __init__(self, tracks: Iterable[MediaTrack] = ()) -> None:
        self._tracks = list(tracks)

    def get_tracks(self) -> list[MediaTrack]:
        return list(self._tracks)

    def get_audio_tracks(self) -> list[MediaTrack]:
        return [t for t in self._tracks if t.kind == "audio"]

    def get_video_tracks(self) -> list[MediaTrack]:
        return [t for t in self._tracks if t.kind == "video"]

    @property
    def active(self) -> bool:
        """True while at least one track is live."""
        return any(t.live for t in self._tracks)

    def audio_only(self) -> "MediaStream":
        """Return a stream sharing this stream's audio tracks only."""
        return MediaStream(self.get_audio_tracks())

    def stop_all(self) -> None:
        """Stop every track, continuing past tracks that fail to stop."""
        for track in self._tracks:
            try:
                track.stop()
            except Exception:
                logger.exception("Failed to stop %r", track)


class MediaRecorder(ABC):
    """Encodes a stream into container chunks."""

    mime_type: str = "audio/webm"

    @abstractmethod
    async def start(self, on_data: ChunkCallback) -> None:
        """Begin recording; ``on_data`` receives chunks in emission order."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop recording.

        Must hand every pending chunk to ``on_data`` before returning.
        """


class MediaDevices(ABC):
    """Acquires streams for the two audio sources.

    Implementations signal failures with ``PermissionError`` (access denied),
    ``NotImplementedError`` (capture API unavailable) or a
    ``VoiceNotesError`` subclass.
    """

    @abstractmethod
    async def get_user_media(self, constraints: AudioConstraints) -> MediaStream:
        """Acquire a microphone stream."""

    @abstractmethod
    async def get_display_media(self, constraints: AudioConstraints) -> MediaStream:
        """Acquire a shared-screen/tab stream with system audio.

        Display capture may require a video track; callers discard it.
        """

    @abstractmethod
    def create_recorder(self, stream: MediaStream, mime_type: str) -> MediaRecorder:
        """Build a recorder over ``stream`` preferring ``mime_type``."""

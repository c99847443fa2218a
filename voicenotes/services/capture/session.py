"""State of one in-progress recording.

A ``RecordingSession`` exclusively owns its media stream, its recorder, its
chunk buffer and its one-second ticker. ``release()`` stops every track
exactly once no matter how the session ends.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

from voicenotes.core.models import AudioSource, EncodedAudioPayload
from voicenotes.services.audio.recorder import ChunkBuffer
from voicenotes.services.capture.media import MediaRecorder, MediaStream

logger = logging.getLogger(__name__)

TickCallback = Callable[[int], Awaitable[None] | None]


class RecordingSession:
    """One recording, from a live stream to a finalized payload.

    Args:
        source: Which audio source the stream came from.
        stream: The acquired stream; owned by this session from now on.
        buffer: Append-only chunk store for this session.
    """

    def __init__(self, source: AudioSource, stream: MediaStream, buffer: ChunkBuffer) -> None:
        self.source = source
        self.elapsed = 0
        self._stream = stream
        self._buffer = buffer
        self._recorder: MediaRecorder | None = None
        self._ticker: asyncio.Task | None = None
        self._released = False

    @property
    def stream(self) -> MediaStream:
        return self._stream

    @property
    def released(self) -> bool:
        return self._released

    @property
    def chunk_count(self) -> int:
        return self._buffer.chunk_count

    @property
    def mime_type(self) -> str:
        return self._recorder.mime_type if self._recorder else "audio/webm"

    async def begin(
        self,
        recorder: MediaRecorder,
        tick_interval: float = 1.0,
        on_tick: TickCallback | None = None,
    ) -> None:
        """Start the recorder and the elapsed-time ticker."""
        self._recorder = recorder
        await recorder.start(self._on_data)
        self._ticker = asyncio.create_task(self._tick(tick_interval, on_tick))

    def _on_data(self, chunk: bytes) -> None:
        if self._buffer.closed:
            logger.warning("Dropping %d-byte chunk that arrived after stop", len(chunk))
            return
        self._buffer.append(chunk)

    async def _tick(self, interval: float, on_tick: TickCallback | None) -> None:
        while True:
            await asyncio.sleep(interval)
            self.elapsed += 1
            if on_tick is None:
                continue
            try:
                result = on_tick(self.elapsed)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Tick callback failed")

    def cancel_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    async def finish(self) -> EncodedAudioPayload:
        """Stop recording, drain pending chunks, release the stream, build the payload.

        The stream is released even if the recorder fails to flush.
        """
        self.cancel_ticker()
        try:
            if self._recorder is not None:
                await self._recorder.stop()
        finally:
            self.release()
            self._buffer.close()
        payload = self._buffer.to_payload(self.mime_type)
        logger.info(
            "Recording finished: source=%s elapsed=%ss chunks=%d bytes=%d",
            self.source,
            self.elapsed,
            payload.chunk_count,
            payload.size,
        )
        return payload

    def release(self) -> None:
        """Stop every track of the stream; later calls are no-ops."""
        self.cancel_ticker()
        if self._released:
            return
        self._released = True
        self._stream.stop_all()
        logger.debug("Released %d track(s) of %s stream", len(self._stream.get_tracks()), self.source)

"""Chunk accumulation for an in-progress recording.

Encoded chunks arrive from the media recorder one by one and are appended in
emission order. Once the session leaves ``recording`` the buffer is closed and
joined into a single payload.
"""

import logging

from voicenotes.core.models import EncodedAudioPayload

logger = logging.getLogger(__name__)


class ChunkBuffer:
    """Bounded, append-only store of encoded audio chunks.

    Appends past ``max_chunks`` are dropped and counted in ``dropped_chunks``.
    After ``close()`` no writer may append any more.
    """

    def __init__(self, max_chunks: int = 10_000) -> None:
        self._max_chunks = max_chunks
        self._chunks: list[bytes] = []
        self._size = 0
        self._closed = False
        self.dropped_chunks = 0

    @property
    def chunk_count(self) -> int:
        """Number of chunks accepted so far."""
        return len(self._chunks)

    @property
    def size_bytes(self) -> int:
        """Total size of accepted chunks."""
        return self._size

    @property
    def closed(self) -> bool:
        return self._closed

    def append(self, chunk: bytes) -> bool:
        """Append one chunk; empty chunks are ignored.

        Returns:
            True if the chunk was stored.

        Raises:
            BufferError: If the buffer has already been closed.
        """
        if self._closed:
            raise BufferError("Chunk buffer is closed")
        if not chunk:
            return False
        if len(self._chunks) >= self._max_chunks:
            self.dropped_chunks += 1
            logger.warning(
                "Chunk buffer full (%d chunks); dropped %d so far",
                self._max_chunks,
                self.dropped_chunks,
            )
            return False
        self._chunks.append(bytes(chunk))
        self._size += len(chunk)
        return True

    def close(self) -> None:
        """Refuse further appends."""
        self._closed = True

    def to_payload(self, mime_type: str = "audio/webm") -> EncodedAudioPayload:
        """Join all chunks into the session's immutable payload.

        Raises:
            BufferError: If called before ``close()``.
        """
        if not self._closed:
            raise BufferError("Chunk buffer must be closed before building the payload")
        return EncodedAudioPayload(
            data=b"".join(self._chunks),
            mime_type=mime_type,
            chunk_count=len(self._chunks),
        )


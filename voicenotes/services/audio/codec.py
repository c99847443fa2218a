"""Base64 transport encoding for captured audio.

The capture client never ships binary audio: the finalized payload is
base64-encoded (off the event loop) and the relay decodes it back in
bounded slices so a very large string is never decoded in one allocation.
"""

import asyncio
import base64
import binascii
import logging

from voicenotes.core.exceptions import AudioDecodeError, EncodingFailureError
from voicenotes.core.models import EncodedAudioPayload

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 32768


def strip_data_url_prefix(value: str) -> str:
    """Drop a ``data:<mime>;base64,`` prefix if the sender left one in."""
    if value.startswith("data:") and "," in value:
        return value.split(",", 1)[1]
    return value


def decode_base64_chunks(value: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> bytes:
    """Decode a base64 string slice by slice and reassemble the binary.

    Args:
        value: Standard-alphabet base64 text (padding required on the last quantum).
        chunk_size: Characters decoded per slice. Must be a multiple of 4 so
            that no slice splits a 4-character quantum.

    Returns:
        The decoded bytes.

    Raises:
        ValueError: If ``chunk_size`` is not a positive multiple of 4.
        AudioDecodeError: If the text is not valid base64.
    """
    if chunk_size <= 0 or chunk_size % 4 != 0:
        raise ValueError(f"chunk_size must be a positive multiple of 4, got {chunk_size}")

    text = "".join(strip_data_url_prefix(value).split())
    if len(text) % 4 != 0:
        raise AudioDecodeError(f"Audio data is not valid base64 (length {len(text)})")
    # Padding is only legal in the final quantum
    if "=" in text[:-4]:
        raise AudioDecodeError("Audio data is not valid base64 (padding before the end)")

    result = bytearray()
    for position in range(0, len(text), chunk_size):
        piece = text[position : position + chunk_size]
        try:
            result.extend(base64.b64decode(piece, validate=True))
        except (binascii.Error, ValueError) as exc:
            raise AudioDecodeError(f"Audio data is not valid base64: {exc}") from exc
    return bytes(result)


async def encode_payload(payload: EncodedAudioPayload) -> str:
    """Base64-encode a finalized payload without blocking the event loop.

    Raises:
        EncodingFailureError: If the payload is empty, the conversion fails,
            or it yields no usable text.
    """
    if not payload.data:
        raise EncodingFailureError("Captured audio is empty; nothing to transcribe")
    try:
        encoded = await asyncio.to_thread(payload.to_base64)
    except Exception as exc:
        logger.exception("Base64 encoding of %d audio bytes failed", payload.size)
        raise EncodingFailureError(f"Captured audio could not be encoded: {exc}") from exc
    if not encoded:
        raise EncodingFailureError("Audio encoding produced no data")
    logger.debug("Encoded %d audio bytes into %d base64 characters", payload.size, len(encoded))
    return encoded

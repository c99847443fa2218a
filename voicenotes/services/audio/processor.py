"""Audio processing utilities for PCM data.

Converts raw PCM bytes to numpy arrays and packs them into a compressed
container that the speech-recognition API accepts.
"""

import io

import numpy as np
import soundfile as sf

# Container formats soundfile can write, keyed by the MIME type they produce
CONTAINER_FORMATS: dict[str, tuple[str, str]] = {
    "audio/ogg": ("OGG", "VORBIS"),
    "audio/flac": ("FLAC", "PCM_16"),
    "audio/wav": ("WAV", "PCM_16"),
}


class AudioProcessor:
    """Handles PCM audio data conversion and container encoding.

    Args:
        sample_rate: Audio sample rate in Hz.
        sample_width: Bytes per sample (2 = 16-bit signed PCM).
        channels: Number of audio channels (1 = mono).
    """

    def __init__(
        self,
        sample_rate: int = 44100,
        sample_width: int = 2,
        channels: int = 1,
    ) -> None:
        self.sample_rate = sample_rate
        self.sample_width = sample_width
        self.channels = channels

    def pcm_to_ndarray(self, pcm_data: bytes) -> np.ndarray:
        """Convert raw PCM bytes (16-bit signed) to a float32 array.

        Multi-channel input is returned as shape ``(frames, channels)``.

        Raises:
            ValueError: If data length is not aligned to sample frame size.
        """
        frame_size = self.sample_width * self.channels
        if len(pcm_data) % frame_size != 0:
            raise ValueError(
                f"PCM data length ({len(pcm_data)}) is not aligned to frame size ({frame_size})"
            )
        # 16-bit signed integers -> float32 in [-1.0, 1.0]
        samples = np.frombuffer(pcm_data, dtype=np.int16).astype(np.float32) / 32768.0
        if self.channels > 1:
            samples = samples.reshape(-1, self.channels)
        return samples

    def encode(self, pcm_data: bytes, mime_type: str = "audio/ogg") -> bytes:
        """Pack raw PCM into a complete audio file of the given MIME type.

        Raises:
            ValueError: If pcm_data is empty or the MIME type is not writable.
        """
        if not pcm_data:
            raise ValueError("Cannot encode empty PCM data")
        try:
            fmt, subtype = CONTAINER_FORMATS[mime_type]
        except KeyError:
            raise ValueError(f"Unsupported container type: {mime_type}") from None
        buf = io.BytesIO()
        sf.write(
            buf,
            self.pcm_to_ndarray(pcm_data),
            self.sample_rate,
            format=fmt,
            subtype=subtype,
        )
        return buf.getvalue()

"""
Abstract base class for Speech-to-Text providers.

All STT implementations must implement this interface, keeping the relay
independent of which speech-recognition service sits behind it.
"""

from abc import ABC, abstractmethod


class BaseSTT(ABC):
    """Interface that every STT provider must implement."""

    @abstractmethod
    async def transcribe(
        self,
        audio: bytes,
        mime_type: str = "audio/webm",
        filename: str = "audio.webm",
        **kwargs,
    ) -> str:
        """Transcribe one complete audio file to text.

        Args:
            audio: The file's bytes (container format given by ``mime_type``).
            mime_type: Content type of the uploaded file part.
            filename: Upload filename; its extension tells the API the format.
            **kwargs: Provider-specific options (language, model, etc.).

        Returns:
            The recognized text, possibly empty.
        """

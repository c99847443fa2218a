"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Voice Notes settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        openai_api_key: Key for the speech-recognition API (relay side only).
        transcription_language: Spoken language sent with every transcription.
        relay_base_url: Where the capture client reaches the relay.
        capture_default_source: Audio source used when ``start()`` gets none.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Speech recognition (relay -> external API) ---
    openai_api_key: str = ""  # Required by the relay; never sent to clients
    transcription_provider: str = "openai"  # Only OpenAI-compatible APIs for now
    transcription_api_url: str = "https://api.openai.com/v1/audio/transcriptions"
    transcription_model: str = "whisper-1"
    transcription_language: str = "tr"  # ISO 639-1 code of the product locale
    transcription_timeout_s: float | None = None  # None = wait indefinitely

    # --- Relay (capture client -> relay) ---
    relay_base_url: str = "http://localhost:8000"
    relay_function_path: str = "/functions/v1/transcribe-audio"
    relay_api_key: str = ""  # Empty = relay accepts unauthenticated calls
    relay_timeout_s: float | None = None

    # --- Relay payload handling ---
    base64_chunk_size: int = 32768  # Characters decoded per slice; multiple of 4
    max_audio_bytes: int = 25 * 1024 * 1024  # Upstream upload limit

    # --- Capture ---
    # System-audio constraints differ between browsers/OSes, so they are tunable
    capture_default_source: str = "microphone"  # "microphone" or "system"
    capture_mime_type: str = "audio/webm"
    capture_sample_rate: int = 44100
    capture_channels: int = 1
    capture_echo_cancellation: bool = True
    capture_noise_suppression: bool = True
    capture_auto_gain_control: bool = True
    capture_system_device: str = ""  # Loopback/monitor input name for "system"
    chunk_buffer_max_chunks: int = 10_000

    # --- Application ---
    app_host: str = "0.0.0.0"  # Bind address for the FastAPI relay
    app_port: int = 8000
    log_level: str = "INFO"  # Python logging level


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()

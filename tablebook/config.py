"""
Configuration Management

Uses Pydantic BaseSettings to load configuration from environment variables.
All settings can be overridden via .env file or environment variables.

Environment Variables:
    REDIS_URL: Redis connection string (slot counters and locks)
    DEEPGRAM_API_KEY: Speech-to-text API key
    ELEVENLABS_API_KEY: Text-to-speech API key
    SPREADSHEET_ID: Google Sheet receiving confirmed bookings
    GOOGLE_SERVICE_ACCOUNT_EMAIL: Service account used for the sheet
    GOOGLE_PRIVATE_KEY: Service account private key (\\n escaped)
    NLU_BACKEND: "regex" (default) or "claude"
    APP_ENV: Environment name (development/staging/production)
    DEBUG: Enable debug mode (default: False)
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Redis Configuration
    redis_url: str = "redis://localhost:6379/0"
    """Redis connection URL.

    Format: redis://host:port/db

    Holds the per-slot booking counters and the per-slot reservation locks
    shared by every active call.
    """

    # Reservation Rules
    slot_capacity: int = 10
    """Maximum confirmed bookings per (date, hour) slot."""

    slot_lock_ttl: int = 300
    """Seconds a caller may hold a slot while confirming (default: 5 minutes).

    A caller who hangs up mid-confirmation keeps the slot for at most this
    long.
    """

    restaurant_name: str = "The Gourmet Bistro"
    """Name used in the greeting."""

    # Speech-to-Text (Deepgram)
    deepgram_api_key: str = ""
    """Deepgram API key. Transcription returns empty text when unset."""

    deepgram_url: str = "https://api.deepgram.com/v1/listen"
    deepgram_model: str = "nova-2"
    deepgram_content_type: str = "audio/webm"
    """Content type of the client's recorded audio (browser MediaRecorder)."""

    # Text-to-Speech (ElevenLabs)
    elevenlabs_api_key: str = ""
    """ElevenLabs API key. Synthesis returns empty audio when unset."""

    elevenlabs_url: str = "https://api.elevenlabs.io/v1/text-to-speech"
    elevenlabs_model: str = "eleven_turbo_v2"
    elevenlabs_stability: float = 0.7
    elevenlabs_similarity_boost: float = 0.8

    voice_formal_id: str = "21m00Tcm4TlvDq8ikWAM"
    voice_friendly_id: str = "AZnzlk1XvdvUeBnXmlld"
    voice_casual_id: str = "ErXwobaYiN019PkySvjV"
    voice_neutral_id: str = "MF3mGyEYCl7XYWlgWWvy"

    speech_timeout: float = 30.0
    """HTTP timeout in seconds for STT/TTS calls."""

    # Booking Sheet (Google Sheets)
    spreadsheet_id: str = ""
    google_service_account_email: str = ""
    google_private_key: str = ""
    """Service account private key. Literal "\\n" sequences are unescaped."""

    sheet_range: str = "Sheet1!A:I"

    # Slot/Intent Extraction
    nlu_backend: Literal["regex", "claude"] = "regex"
    """Which extractor interprets caller utterances.

    Options:
    - regex: Rule-based extraction, no external calls
    - claude: LLM extraction with automatic fallback to the rule-based one
    """

    anthropic_api_key: str = ""
    claude_nlu_model: str = "claude-3-5-haiku-20241022"
    claude_fallback_model: str = "claude-3-5-sonnet-20241022"

    # Application Environment
    app_env: Literal["development", "staging", "production"] = "development"
    """Current application environment."""

    debug: bool = False
    """Enable debug mode (verbose logging, auto-reload)."""

    app_name: str = "tablebook"
    """Application name."""

    host: str = "0.0.0.0"
    """Host to bind the application server."""

    port: int = 3000
    """Port to bind the application server."""

    # Pydantic configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def google_private_key_pem(self) -> str:
        """Private key with escaped newlines restored."""
        return self.google_private_key.replace("\\n", "\n")

    @property
    def sheets_configured(self) -> bool:
        """Check if all Google Sheets credentials are present."""
        return bool(
            self.spreadsheet_id
            and self.google_service_account_email
            and self.google_private_key
        )

    @property
    def voice_ids(self) -> dict[str, str]:
        """Map abstract voice selectors to ElevenLabs voice IDs."""
        return {
            "voice_formal": self.voice_formal_id,
            "voice_friendly": self.voice_friendly_id,
            "voice_casual": self.voice_casual_id,
            "voice_neutral": self.voice_neutral_id,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache so settings are loaded only once and reused across the
    application.

    Example:
        >>> from tablebook.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.slot_capacity)
        10
    """
    return Settings()


# Module-level settings instance for easy imports
settings = get_settings()

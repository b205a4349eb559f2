"""Configuration management for Pantry Chef.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        # Classifier model: turns text/image/audio into the structured analysis
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")
        # Image generation model: illustrative recipe thumbnails (best-effort only)
        self.IMAGE_GENERATION_MODEL: str = os.getenv("IMAGE_GENERATION_MODEL", "gemini-2.5-flash-image")
        # Support model: help pages and support chat replies
        self.SUPPORT_MODEL: str = os.getenv("SUPPORT_MODEL", "gemini-3-flash-preview")
        # Low temperature keeps the image-quality verdict (unclear vs. readable) stable
        self.TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.1"))

        # Capture limits
        self.MAX_IMAGE_SIZE_MB: int = int(os.getenv("MAX_IMAGE_SIZE_MB", "5"))
        self.MAX_AUDIO_SIZE_MB: int = int(os.getenv("MAX_AUDIO_SIZE_MB", "10"))
        self.MAX_TEXT_LENGTH: int = int(os.getenv("MAX_TEXT_LENGTH", "2000"))
        # Image Compression: re-encode large photos as JPEG before upload
        self.COMPRESS_IMG: bool = _env_bool("COMPRESS_IMG", "true")
        # Only images at or above this size (in KB) are compressed
        self.COMPRESS_IMG_THRESHOLD_KB: int = int(os.getenv("COMPRESS_IMG_THRESHOLD_KB", "300"))

        # Classifier retry configuration (transient failures only)
        # MAX_RETRIES: total attempts per analysis
        self.MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))
        # DELAY_BETWEEN_RETRIES: initial delay in seconds, doubled on each retry
        self.DELAY_BETWEEN_RETRIES: float = float(os.getenv("DELAY_BETWEEN_RETRIES", "1"))

        # Illustrative images never block display; give up after this many seconds
        self.IMAGE_GENERATION_TIMEOUT_SECONDS: float = float(os.getenv("IMAGE_GENERATION_TIMEOUT_SECONDS", "20"))

        # Remote store (Supabase REST). Remote mirroring is disabled when either is empty.
        self.SUPABASE_URL: str = os.getenv("SUPABASE_URL", "").rstrip("/")
        self.SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")
        self.REMOTE_TIMEOUT_SECONDS: float = float(os.getenv("REMOTE_TIMEOUT_SECONDS", "10"))

    @property
    def remote_store_enabled(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY)

    def validate(self) -> None:
        """Validate required configuration.

        Raises:
            ValueError: If required API keys are missing or invalid values provided.
        """
        if not self.GEMINI_API_KEY:
            raise ValueError("GEMINI_API_KEY environment variable is required")
        if not (0.0 <= self.TEMPERATURE <= 1.0):
            raise ValueError(
                f"TEMPERATURE must be between 0.0 and 1.0, got: {self.TEMPERATURE}"
            )
        if self.MAX_IMAGE_SIZE_MB < 1:
            raise ValueError(
                f"MAX_IMAGE_SIZE_MB must be at least 1, got: {self.MAX_IMAGE_SIZE_MB}"
            )
        if self.MAX_AUDIO_SIZE_MB < 1:
            raise ValueError(
                f"MAX_AUDIO_SIZE_MB must be at least 1, got: {self.MAX_AUDIO_SIZE_MB}"
            )
        if self.MAX_RETRIES < 1:
            raise ValueError(
                f"MAX_RETRIES must be at least 1, got: {self.MAX_RETRIES}"
            )
        if self.DELAY_BETWEEN_RETRIES < 0:
            raise ValueError(
                f"DELAY_BETWEEN_RETRIES must not be negative, got: {self.DELAY_BETWEEN_RETRIES}"
            )
        if bool(self.SUPABASE_URL) != bool(self.SUPABASE_ANON_KEY):
            raise ValueError(
                "SUPABASE_URL and SUPABASE_ANON_KEY must be set together"
            )


# Module-level config instance; validated by the factories that need live services
config = Config()

"""Application configuration using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """TrackSync application settings.

    Loaded from environment variables or .env file.
    """

    # --- Application ---
    APP_NAME: str = "TrackSync"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # --- Kie.ai (Suno music generation) ---
    KIE_KEY: str = ""
    KIE_BASE: str = "https://api.kie.ai"
    UPSTREAM_TIMEOUT: float = 20.0

    # --- Local storage ---
    DOWNLOAD_DIR: str = "downloads"
    PUBLIC_DIR: str = "public"
    DOWNLOAD_TIMEOUT: float = 60.0

    # --- Polling ---
    POLL_INTERVAL_SECONDS: float = 5.0
    POLL_MAX_ATTEMPTS: int = 120  # ~10 minutes at the default interval
    FIRST_SUCCESS_IS_FINAL: bool = True

    # --- HTTP surface ---
    CORS_ORIGINS: str = "*"  # comma-separated
    CALLBACK_LOG_LIMIT: int = 2000

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings singleton."""
    return Settings()

"""Application configuration."""

import math
import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_INFERENCE_URL = (
    "https://api-inference.huggingface.co/models/stabilityai/stable-diffusion-2"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_anon_key: str
    huggingface_api_key: str | None = None
    inference_url: str = DEFAULT_INFERENCE_URL
    inference_timeout_seconds: float = 30.0
    max_retries: int = 3
    retry_delay_seconds: float = 2.0
    default_retry_after_seconds: float = 5.0
    max_retry_after_seconds: float = 60.0
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_retry_after(
    raw: str | None, default: float, maximum: float = 60.0
) -> float:
    """Parse a Retry-After header given in seconds, capped at ``maximum``."""
    if raw is None:
        return default
    cleaned = raw.strip()
    try:
        value = float(cleaned)
    except ValueError:
        return default
    if not math.isfinite(value) or value < 0:
        return default
    return min(value, maximum)

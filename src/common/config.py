"""Configuration management for the translation orchestration service."""

import shlex
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# This file is in src/common/, so go up 2 levels to project root
_PROJECT_ROOT = Path(__file__).parent.parent.parent

SUPPORTED_CACHE_BACKENDS = ("memory", "redis")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Translation Engine
    engine_binary_path: str = Field(
        default="./translate", env="ENGINE_BINARY_PATH"
    )  # External engine executable, invoked once per request
    engine_args: str = Field(
        default="-json", env="ENGINE_ARGS"
    )  # Shell-style argument string passed to every invocation

    # Segmentation and Batching
    translation_max_chunk_length: int = Field(
        default=500, env="TRANSLATION_MAX_CHUNK_LENGTH"
    )  # Maximum characters per segment (oversized sentences are kept whole)
    translation_long_text_threshold: int = Field(
        default=500, env="TRANSLATION_LONG_TEXT_THRESHOLD"
    )  # Texts longer than this are segmented and sent as one batch
    translation_default_source_language: str = Field(
        default="auto", env="TRANSLATION_DEFAULT_SOURCE_LANGUAGE"
    )
    translation_default_target_language: str = Field(
        default="en", env="TRANSLATION_DEFAULT_TARGET_LANGUAGE"
    )

    # Interactive Controller
    realtime_debounce_seconds: float = Field(
        default=0.8, env="REALTIME_DEBOUNCE_SECONDS"
    )  # Quiet period before a live input is translated
    fanout_max_concurrency: int = Field(
        default=3, env="FANOUT_MAX_CONCURRENCY"
    )  # Parallel engine calls during a display language change
    display_language: str = Field(default="zh-CN", env="DISPLAY_LANGUAGE")

    # Translation Cache
    cache_backend: str = Field(default="memory", env="CACHE_BACKEND")

    # Redis Configuration (used when cache_backend == "redis")
    redis_url: str = Field(default="redis://localhost:6379", env="REDIS_URL")
    redis_cache_key_prefix: str = Field(
        default="translation", env="REDIS_CACHE_KEY_PREFIX"
    )
    redis_reconnect_max_retries: int = Field(
        default=5, env="REDIS_RECONNECT_MAX_RETRIES"
    )
    redis_reconnect_initial_delay: float = Field(
        default=1.0, env="REDIS_RECONNECT_INITIAL_DELAY"
    )
    redis_reconnect_max_delay: float = Field(
        default=30.0, env="REDIS_RECONNECT_MAX_DELAY"
    )

    # API Configuration
    api_host: str = Field(default="0.0.0.0", env="API_HOST")
    api_port: int = Field(default=8080, env="API_PORT")
    cors_allowed_origins: Optional[str] = Field(
        default="*", env="CORS_ALLOWED_ORIGINS"
    )  # Comma-separated list of origins

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    log_to_file: bool = Field(default=False, env="LOG_TO_FILE")

    @field_validator(
        "translation_max_chunk_length",
        "translation_long_text_threshold",
        "fanout_max_concurrency",
    )
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """
        Ensure size and concurrency limits are positive.

        Args:
            v: Configured integer value

        Returns:
            The value unchanged

        Raises:
            ValueError: If the value is zero or negative
        """
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("realtime_debounce_seconds")
    @classmethod
    def validate_debounce(cls, v: float) -> float:
        """Debounce window may be zero (no coalescing) but never negative."""
        if v < 0:
            raise ValueError("realtime_debounce_seconds must be >= 0")
        return v

    @field_validator("cache_backend")
    @classmethod
    def validate_cache_backend(cls, v: str) -> str:
        """
        Normalize and validate the cache backend name.

        Args:
            v: Backend name from the environment

        Returns:
            Lowercased backend name

        Raises:
            ValueError: If the backend is not supported
        """
        normalized = v.strip().lower()
        if normalized not in SUPPORTED_CACHE_BACKENDS:
            raise ValueError(
                f"cache_backend must be one of {', '.join(SUPPORTED_CACHE_BACKENDS)}"
            )
        return normalized

    @property
    def engine_argv(self) -> List[str]:
        """Engine arguments split the way a shell would split them."""
        return shlex.split(self.engine_args)

    @property
    def allowed_origins(self) -> List[str]:
        """Parsed CORS origins, defaulting to a local development frontend."""
        if not self.cors_allowed_origins:
            return ["http://localhost:3000"]
        return [
            origin.strip()
            for origin in self.cors_allowed_origins.split(",")
            if origin.strip()
        ]

    class Config:
        env_file = str(_PROJECT_ROOT / ".env")
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()

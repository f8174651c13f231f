"""Application settings using Pydantic. No side effects at import time."""

from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.types import RateLimitConfig, RetryConfig

from .constants import (
    CURSOR_FILE_NAME,
    DATA_DIR,
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_BATCH_SIZE,
    DEFAULT_BURST_LIMIT,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_ITEMS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_REQUESTS_PER_SECOND,
    DEFAULT_RETRY_BASE_DELAY,
    DEFAULT_RETRY_MAX_DELAY,
    DEFAULT_USER_AGENT,
    PRODUCT_HUNT_API_ENDPOINT,
)


class Settings(BaseSettings):
    """Application settings with validation.

    Settings are loaded from environment variables and .env file.
    No side effects at class definition time - .env is loaded only when
    Settings() is instantiated.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
    )

    # === Product Hunt API ===
    ph_api_token: str | None = None
    ph_endpoint: str = PRODUCT_HUNT_API_ENDPOINT
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: Annotated[float, Field(gt=0)] = DEFAULT_REQUEST_TIMEOUT

    # === Rate Limits ===
    requests_per_second: Annotated[float, Field(gt=0)] = DEFAULT_REQUESTS_PER_SECOND
    burst_limit: Annotated[int, Field(ge=1)] = DEFAULT_BURST_LIMIT

    # === Retry ===
    max_retries: Annotated[int, Field(ge=1, description="Total attempts per request")] = (
        DEFAULT_MAX_ATTEMPTS
    )
    retry_base_delay: Annotated[float, Field(ge=0)] = DEFAULT_RETRY_BASE_DELAY
    retry_max_delay: Annotated[float, Field(ge=0)] = DEFAULT_RETRY_MAX_DELAY
    backoff_multiplier: Annotated[float, Field(ge=1)] = DEFAULT_BACKOFF_MULTIPLIER

    # === Batching ===
    batch_size: Annotated[int, Field(gt=0)] = DEFAULT_BATCH_SIZE
    max_items: Annotated[int, Field(gt=0)] = DEFAULT_MAX_ITEMS
    advance_on_persist_failure: bool = Field(
        default=True,
        description="Advance the cursor past pages whose persistence failed",
    )

    # === Database ===
    supabase_url: str | None = None
    supabase_key: str | None = None

    # === Paths ===
    data_dir: Path = DATA_DIR

    @model_validator(mode="after")
    def _check_delays(self) -> "Settings":
        if self.retry_max_delay < self.retry_base_delay:
            raise ValueError("retry_max_delay must be >= retry_base_delay")
        return self

    @property
    def cursor_file(self) -> Path:
        """File holding persisted sync cursors."""
        return self.data_dir / CURSOR_FILE_NAME

    @property
    def has_api_token(self) -> bool:
        """Check if the Product Hunt token is configured."""
        return bool(self.ph_api_token)

    @property
    def has_supabase(self) -> bool:
        """Check if Supabase credentials are configured."""
        return bool(self.supabase_url and self.supabase_key)

    @property
    def retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.max_retries,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
            backoff_multiplier=self.backoff_multiplier,
        )

    @property
    def rate_limit_config(self) -> RateLimitConfig:
        return RateLimitConfig(
            requests_per_second=self.requests_per_second,
            burst_limit=self.burst_limit,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This is the recommended way to access settings to avoid
    repeated .env file parsing.
    """
    return Settings()

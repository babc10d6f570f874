"""Engine settings loaded from the environment.

Values are read from ``TOOLSPINE_*`` environment variables or a ``.env``
file, e.g. ``TOOLSPINE_CACHE_TTL_SECONDS=60``.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ValidationSettings(BaseSettings):
    """Tunables of the validation engine."""

    cache_ttl_seconds: float = Field(default=300.0, gt=0, description="Absolute lifetime of a compiled validator")
    cache_max_size: int = Field(default=1000, ge=1, description="Maximum number of cached validators")
    cache_eviction_fraction: float = Field(
        default=0.25, gt=0, le=1, description="Share of oldest entries evicted when the cache is full"
    )

    model_config = SettingsConfigDict(
        env_prefix="TOOLSPINE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

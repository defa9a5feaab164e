"""Application settings for the legal research engine."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings, read from ``LEXRESEARCH_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LEXRESEARCH_",
        env_file=None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Core application settings
    app_env: Literal["development", "test", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = True

    # Cache
    redis_url: str | None = None
    cache_enabled: bool = True
    cache_ttl_seconds: int = 3600
    cache_key_prefix: str = "research"

    # Text completion collaborator
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    completion_timeout_seconds: float = 30.0
    completion_max_attempts: int = Field(default=3, ge=1, le=10)
    completion_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    completion_max_tokens: int = Field(default=1200, ge=1)
    cost_per_1k_tokens: float = Field(default=0.0006, ge=0.0)

    # Source adapters
    source_timeout_seconds: float = 15.0
    source_max_attempts: int = Field(default=2, ge=1, le=10)
    corpus_path: str | None = None

    # Pipeline
    research_deadline_seconds: float | None = None
    usage_record_timeout_seconds: float = Field(default=2.0, gt=0.0)

    # Ranking weights (normalised at use time, see lexresearch.models.WeightFactors)
    ranking_relevance_weight: float = 0.4
    ranking_recency_weight: float = 0.3
    ranking_authority_weight: float = 0.2
    ranking_jurisdiction_weight: float = 0.1

    @field_validator(
        "ranking_relevance_weight",
        "ranking_recency_weight",
        "ranking_authority_weight",
        "ranking_jurisdiction_weight",
    )
    @classmethod
    def validate_weight(cls, v: float) -> float:
        """Ranking weights must be non-negative."""
        if v < 0:
            raise ValueError("Ranking weights must be non-negative")
        return v

    @field_validator("cache_ttl_seconds")
    @classmethod
    def validate_ttl(cls, v: int) -> int:
        """Cache TTL must be positive."""
        if v <= 0:
            raise ValueError("Cache TTL must be a positive number of seconds")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def is_test(self) -> bool:
        """Check if running under the test suite."""
        return self.app_env == "test"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

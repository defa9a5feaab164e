"""Tests for application settings."""

import os
import tempfile

import pytest
from pydantic import ValidationError

from libs.common.settings import Settings, get_settings


class TestSettings:
    """Test settings configuration."""

    def test_settings_from_env_file(self, monkeypatch):
        """Test settings read from an env file with the LEXRESEARCH_ prefix."""
        monkeypatch.delenv("LEXRESEARCH_APP_ENV", raising=False)
        env_vars = {
            "LEXRESEARCH_REDIS_URL": "redis://localhost:6379/0",
            "LEXRESEARCH_OPENAI_MODEL": "gpt-4o",
            "LEXRESEARCH_CACHE_TTL_SECONDS": "600",
        }

        with tempfile.NamedTemporaryFile(mode="w", suffix=".env", delete=False) as f:
            for key, value in env_vars.items():
                f.write(f"{key}={value}\n")
            env_file = f.name

        try:
            settings = Settings(_env_file=env_file)
            assert settings.redis_url == "redis://localhost:6379/0"
            assert settings.openai_model == "gpt-4o"
            assert settings.cache_ttl_seconds == 600
            assert settings.app_env == "development"  # default
        finally:
            os.unlink(env_file)

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LEXRESEARCH_APP_ENV", raising=False)
        settings = Settings()

        assert settings.cache_enabled is True
        assert settings.cache_ttl_seconds == 3600
        assert settings.redis_url is None
        assert settings.research_deadline_seconds is None
        assert (
            settings.ranking_relevance_weight,
            settings.ranking_recency_weight,
            settings.ranking_authority_weight,
            settings.ranking_jurisdiction_weight,
        ) == (0.4, 0.3, 0.2, 0.1)

    def test_environment_variables_override(self, monkeypatch):
        monkeypatch.setenv("LEXRESEARCH_RANKING_AUTHORITY_WEIGHT", "0.5")
        monkeypatch.setenv("LEXRESEARCH_LOG_LEVEL", "DEBUG")

        settings = Settings()

        assert settings.ranking_authority_weight == 0.5
        assert settings.log_level == "DEBUG"

    def test_negative_weight_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            Settings(ranking_recency_weight=-0.1)
        assert "Ranking weights must be non-negative" in str(exc_info.value)

    def test_non_positive_ttl_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            Settings(cache_ttl_seconds=0)
        assert "Cache TTL must be a positive number of seconds" in str(exc_info.value)

    def test_settings_environment_properties(self):
        """Test environment detection properties."""
        assert Settings(app_env="development").is_development
        assert Settings(app_env="production").is_production
        assert Settings(app_env="test").is_test
        assert not Settings(app_env="staging").is_production

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
        assert get_settings().is_test

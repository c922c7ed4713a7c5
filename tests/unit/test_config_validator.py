"""Tests for configuration validation."""

from unittest.mock import patch

import pytest

from shuttle.config_validator import (
    ConfigurationError,
    validate_all,
    validate_settings,
)
from shuttle.settings import AppSettings


def test_validate_settings_success():
    """Test successful configuration validation."""
    with patch.dict(
        "os.environ",
        {
            "SHUTTLE_PROVIDER": "deepseek",
            "SHUTTLE_MODEL_NAME": "deepseek-chat",
            "SHUTTLE_API_KEY": "sk-test-key",
        },
        clear=True,
    ):
        settings = AppSettings(_env_file=None)
        validate_settings(settings)

    assert settings.max_retries == 3
    assert settings.enable_caching is False


def test_provider_key_variable_is_accepted():
    """Test the provider's own key variable satisfies validation."""
    with patch.dict(
        "os.environ",
        {
            "SHUTTLE_PROVIDER": "openai",
            "SHUTTLE_MODEL_NAME": "gpt-4o",
            "OPENAI_API_KEY": "sk-test-key",
        },
        clear=True,
    ):
        settings = AppSettings(_env_file=None)
        validate_settings(settings)


def test_validate_settings_missing_api_key():
    """Test validation fails when no API key is available."""
    with patch.dict(
        "os.environ",
        {
            "SHUTTLE_PROVIDER": "deepseek",
        },
        clear=True,
    ):
        settings = AppSettings(_env_file=None)

        with pytest.raises(ConfigurationError) as exc_info:
            validate_settings(settings)

    assert "DEEPSEEK_API_KEY must be set" in str(exc_info.value)


def test_mock_provider_needs_no_key():
    with patch.dict("os.environ", {"SHUTTLE_PROVIDER": "mock"}, clear=True):
        validate_settings(AppSettings(_env_file=None))


def test_validate_settings_reports_every_problem():
    """Test that all failures are listed together."""
    settings = AppSettings(
        _env_file=None,
        provider="mock",
        max_retries=-1,
        request_timeout_s=0,
        max_connections=0,
        enable_caching=True,
        cache_ttl_s=0,
    )

    with pytest.raises(ConfigurationError) as exc_info:
        validate_settings(settings)

    message = str(exc_info.value)
    assert "MAX_RETRIES must be >= 0" in message
    assert "REQUEST_TIMEOUT_S must be > 0" in message
    assert "MAX_CONNECTIONS must be > 0" in message
    assert "CACHE_TTL_S must be > 0" in message


def test_validate_all_with_redis_backend():
    """Test full validation including the redis package check."""
    settings = AppSettings(
        _env_file=None,
        provider="mock",
        enable_caching=True,
        cache_backend="redis",
    )
    validate_all(settings)


def test_validate_all_redis_missing():
    settings = AppSettings(
        _env_file=None,
        provider="mock",
        enable_caching=True,
        cache_backend="redis",
    )

    with patch.dict("sys.modules", {"redis.asyncio": None}):
        with pytest.raises(ConfigurationError, match="redis package not installed"):
            validate_all(settings)

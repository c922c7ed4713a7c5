"""Configuration validation at startup.

Checks all settings up front so a misconfigured client fails fast with one
message listing every problem.
"""

import logging
import os

from shuttle.models.providers import get_provider
from shuttle.settings import AppSettings

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


def validate_settings(settings: AppSettings) -> None:
    """Validate all critical configuration settings.

    Args:
        settings: Settings instance to validate

    Raises:
        ConfigurationError: If any validation check fails
    """
    errors: list[str] = []

    if not settings.model_name:
        errors.append("MODEL_NAME must be set (e.g., 'deepseek-chat', 'gpt-4o')")

    if settings.provider != "mock":
        key_env = get_provider(settings.provider).api_key_env
        if not settings.api_key and not os.getenv(key_env):
            errors.append(
                f"API_KEY or {key_env} must be set for provider '{settings.provider}'"
            )

    if settings.max_retries < 0:
        errors.append(f"MAX_RETRIES must be >= 0, got {settings.max_retries}")

    if settings.retry_initial_delay_s < 0:
        errors.append(
            f"RETRY_INITIAL_DELAY_S must be >= 0, got {settings.retry_initial_delay_s}"
        )

    if settings.request_timeout_s <= 0:
        errors.append(
            f"REQUEST_TIMEOUT_S must be > 0, got {settings.request_timeout_s}"
        )

    if settings.max_connections <= 0:
        errors.append(f"MAX_CONNECTIONS must be > 0, got {settings.max_connections}")

    if settings.enable_caching and settings.cache_ttl_s <= 0:
        errors.append(f"CACHE_TTL_S must be > 0, got {settings.cache_ttl_s}")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(
            f"  - {error}" for error in errors
        )
        raise ConfigurationError(error_msg)

    logger.info("Configuration validation passed")


def validate_redis_available() -> None:
    """Validate Redis package is available.

    Raises:
        ConfigurationError: If Redis package is not installed
    """
    try:
        import redis.asyncio  # noqa: F401  # type: ignore[import-untyped]

        logger.info("Redis package is available")
    except ImportError as e:
        raise ConfigurationError(
            "redis package not installed. Run: pip install redis"
        ) from e


def validate_all(settings: AppSettings) -> None:
    """Run all validation checks.

    Args:
        settings: AppSettings instance to validate

    Raises:
        ConfigurationError: If any validation check fails
    """
    logger.info("Starting configuration validation...")

    validate_settings(settings)
    if settings.enable_caching and settings.cache_backend == "redis":
        validate_redis_available()

    logger.info("All configuration validation checks passed")

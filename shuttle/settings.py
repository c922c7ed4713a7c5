from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Application configuration."""

    provider: Literal["openai", "deepseek", "groq", "openrouter", "anthropic", "mock"] = (
        "deepseek"
    )
    model_name: str = "deepseek-chat"
    base_url: str | None = None
    api_key: str | None = None

    # Retries and transport
    max_retries: int = 3
    retry_initial_delay_s: float = 0.0
    retry_backoff: Literal["exponential", "linear", "fixed"] = "fixed"
    request_timeout_s: float = 30.0
    max_connections: int = 100
    http2: bool = True

    # Response cache
    enable_caching: bool = False
    cache_backend: Literal["memory", "redis"] = "memory"
    cache_ttl_s: int = 600  # 10 minutes
    cache_prefix: str = "shuttle:"
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: str | None = None

    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="SHUTTLE_",
        env_parse_none_str="none",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        protected_namespaces=(),
    )

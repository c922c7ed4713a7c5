"""Shuttle: cached, validated chat completions for OpenAI-compatible APIs."""

from .cache import InMemoryCache, RedisCache
from .errors import (
    CacheUnavailableError,
    EmptyStructuredResponseError,
    InsufficientBalanceError,
    MalformedJSONError,
    SchemaValidationFailedError,
    ShuttleError,
    TransportError,
)
from .models import (
    ChatMessage,
    CompletionClient,
    CompletionRequest,
    ModelRouter,
    ResponseModel,
    ToolDefinition,
)
from .settings import AppSettings

__all__ = [
    "AppSettings",
    "CompletionClient",
    "ModelRouter",
    "ChatMessage",
    "CompletionRequest",
    "ResponseModel",
    "ToolDefinition",
    "InMemoryCache",
    "RedisCache",
    "ShuttleError",
    "CacheUnavailableError",
    "EmptyStructuredResponseError",
    "MalformedJSONError",
    "SchemaValidationFailedError",
    "InsufficientBalanceError",
    "TransportError",
]

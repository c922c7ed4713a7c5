"""Completion clients, provider adapters and request types."""

from .client import CompletionClient
from .mock import MockTransport, chat_completion
from .providers import (
    AnthropicProvider,
    OpenAICompatibleProvider,
    ProviderAdapter,
    get_provider,
)
from .router import ModelRouter
from .transport import HTTPConnectionPool, HTTPTransport, Transport
from .types import (
    ChatMessage,
    CompletionRequest,
    ImagePart,
    ResponseModel,
    TextPart,
    ToolDefinition,
)

__all__ = [
    "CompletionClient",
    "ModelRouter",
    "ProviderAdapter",
    "OpenAICompatibleProvider",
    "AnthropicProvider",
    "get_provider",
    "HTTPConnectionPool",
    "HTTPTransport",
    "Transport",
    "MockTransport",
    "chat_completion",
    "ChatMessage",
    "CompletionRequest",
    "ImagePart",
    "ResponseModel",
    "TextPart",
    "ToolDefinition",
]

"""Provider field mapping.

Each provider adapter knows how one API family wants its requests shaped and
how its responses and errors look. The retry, cache and validation loop in
``CompletionClient`` is written once against this interface.

Examples:
    # DeepSeek
    provider = get_provider("deepseek")

    # Any OpenAI-compatible endpoint
    provider = OpenAICompatibleProvider(
        name="local",
        display_name="vLLM",
        default_base_url="http://localhost:8000/v1",
    )
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..errors import InsufficientBalanceError, ShuttleError, TransportError
from .types import ChatMessage, CompletionRequest, ToolDefinition


class ProviderAdapter(ABC):
    """Maps provider-agnostic requests onto one provider's wire format."""

    name: str = "provider"
    display_name: str = "Provider"
    default_base_url: str = ""
    api_key_env: str = "LLM_API_KEY"
    completions_path: str = "/chat/completions"
    # Error codes providers use for payment or quota exhaustion
    balance_codes: frozenset[str] = frozenset(
        {"insufficient_quota", "insufficient_balance"}
    )

    @abstractmethod
    def build_headers(self, api_key: str | None) -> dict[str, str]:
        """Authentication and version headers."""

    @abstractmethod
    def build_payload(
        self,
        model: str,
        messages: list[ChatMessage],
        request: CompletionRequest,
    ) -> dict[str, Any]:
        """Request body for one attempt."""

    @abstractmethod
    def map_tools(self, tools: list[ToolDefinition]) -> list[dict[str, Any]]:
        """Tool definitions in the provider's function-calling shape."""

    @abstractmethod
    def extract_content(self, data: Any) -> str | None:
        """Text of the first choice, or None when there is none.

        Bodies of an unexpected shape also yield None.
        """

    def format_messages(self, messages: list[ChatMessage]) -> list[dict[str, Any]]:
        return [{"role": m.role, "content": m.flattened_content()} for m in messages]

    def classify_error(self, error: TransportError) -> ShuttleError | None:
        """Return a fatal replacement for ``error``, or None to keep retrying."""
        if error.status == 402 or (error.code and error.code in self.balance_codes):
            return InsufficientBalanceError(
                f"{self.display_name} API: Insufficient balance. "
                "Please add funds to your account.",
                cause=error,
            )
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class OpenAICompatibleProvider(ProviderAdapter):
    """Any API speaking the OpenAI chat completions format.

    Works for OpenAI, DeepSeek, Groq, OpenRouter and self-hosted servers such
    as vLLM; only the base URL, key variable and display name differ.
    """

    def __init__(
        self,
        name: str = "openai",
        display_name: str = "OpenAI",
        default_base_url: str = "https://api.openai.com/v1",
        api_key_env: str = "OPENAI_API_KEY",
    ):
        self.name = name
        self.display_name = display_name
        self.default_base_url = default_base_url
        self.api_key_env = api_key_env

    def build_headers(self, api_key: str | None) -> dict[str, str]:
        if not api_key:
            return {}
        return {"Authorization": f"Bearer {api_key}"}

    def build_payload(
        self,
        model: str,
        messages: list[ChatMessage],
        request: CompletionRequest,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": model,
            "messages": self.format_messages(messages),
            "stream": False,
        }

        def add_optional(key: str, value: Any) -> None:
            if value is not None:
                body[key] = value

        add_optional("temperature", request.temperature)
        add_optional("max_tokens", request.max_tokens)
        add_optional("top_p", request.top_p)
        add_optional("frequency_penalty", request.frequency_penalty)
        add_optional("presence_penalty", request.presence_penalty)
        if request.tools:
            body["tools"] = self.map_tools(request.tools)
        return body

    def map_tools(self, tools: list[ToolDefinition]) -> list[dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                },
            }
            for tool in tools
        ]

    def extract_content(self, data: Any) -> str | None:
        if not isinstance(data, dict):
            return None
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return None
        message = choices[0].get("message")
        if not isinstance(message, dict):
            return None
        content = message.get("content")
        if isinstance(content, list):
            # Some compatible servers return content parts
            content = "".join(
                part["text"]
                for part in content
                if isinstance(part, dict) and isinstance(part.get("text"), str)
            )
        return content if isinstance(content, str) and content else None


class AnthropicProvider(ProviderAdapter):
    """Adapter for Anthropic's Messages API.

    Differs from the OpenAI format in several ways:
    - x-api-key and anthropic-version headers instead of a bearer token
    - /messages endpoint instead of /chat/completions
    - system prompts travel in a top-level ``system`` field
    - ``max_tokens`` is mandatory
    """

    name = "anthropic"
    display_name = "Anthropic"
    default_base_url = "https://api.anthropic.com/v1"
    api_key_env = "ANTHROPIC_API_KEY"
    completions_path = "/messages"

    def __init__(self, anthropic_version: str = "2023-06-01", default_max_tokens: int = 1024):
        self.anthropic_version = anthropic_version
        self.default_max_tokens = default_max_tokens

    def build_headers(self, api_key: str | None) -> dict[str, str]:
        headers = {"anthropic-version": self.anthropic_version}
        if api_key:
            headers["x-api-key"] = api_key
        return headers

    def build_payload(
        self,
        model: str,
        messages: list[ChatMessage],
        request: CompletionRequest,
    ) -> dict[str, Any]:
        system = [m.flattened_content() for m in messages if m.role == "system"]
        body: dict[str, Any] = {
            "model": model,
            "messages": self.format_messages([m for m in messages if m.role != "system"]),
            "max_tokens": request.max_tokens or self.default_max_tokens,
            "stream": False,
        }
        if system:
            body["system"] = "\n\n".join(system)
        if request.temperature is not None:
            body["temperature"] = request.temperature
        if request.top_p is not None:
            body["top_p"] = request.top_p
        if request.tools:
            body["tools"] = self.map_tools(request.tools)
        return body

    def map_tools(self, tools: list[ToolDefinition]) -> list[dict[str, Any]]:
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.parameters,
            }
            for tool in tools
        ]

    def extract_content(self, data: Any) -> str | None:
        blocks = data.get("content") if isinstance(data, dict) else None
        if not isinstance(blocks, list):
            return None
        text = ""
        for block in blocks:
            if isinstance(block, dict) and block.get("type") == "text":
                if isinstance(block.get("text"), str):
                    text += block["text"]
        return text or None


PROVIDER_PRESETS: dict[str, dict[str, str]] = {
    "openai": {
        "display_name": "OpenAI",
        "default_base_url": "https://api.openai.com/v1",
        "api_key_env": "OPENAI_API_KEY",
    },
    "deepseek": {
        "display_name": "DeepSeek",
        "default_base_url": "https://api.deepseek.com",
        "api_key_env": "DEEPSEEK_API_KEY",
    },
    "groq": {
        "display_name": "Groq",
        "default_base_url": "https://api.groq.com/openai/v1",
        "api_key_env": "GROQ_API_KEY",
    },
    "openrouter": {
        "display_name": "OpenRouter",
        "default_base_url": "https://openrouter.ai/api/v1",
        "api_key_env": "OPENROUTER_API_KEY",
    },
}


def get_provider(name: str) -> ProviderAdapter:
    """Resolve a provider adapter by name."""
    if name == "anthropic":
        return AnthropicProvider()
    if name in PROVIDER_PRESETS:
        return OpenAICompatibleProvider(name=name, **PROVIDER_PRESETS[name])
    available = ", ".join(sorted([*PROVIDER_PRESETS, "anthropic"]))
    raise ValueError(f"Unknown provider '{name}'. Available: {available}")

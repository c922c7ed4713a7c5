"""Tests for provider field mapping and error classification."""

from __future__ import annotations

import pytest

from shuttle.errors import InsufficientBalanceError, TransportError
from shuttle.models import (
    AnthropicProvider,
    ChatMessage,
    CompletionRequest,
    OpenAICompatibleProvider,
    ToolDefinition,
    chat_completion,
    get_provider,
)

WEATHER_TOOL = ToolDefinition(
    name="get_weather",
    description="Current weather for a city",
    parameters={"type": "object", "properties": {"city": {"type": "string"}}},
)


def sample_request(**kwargs) -> CompletionRequest:
    return CompletionRequest(
        messages=[
            ChatMessage(role="system", content="Be brief."),
            ChatMessage(role="user", content="Weather in Oslo?"),
        ],
        **kwargs,
    )


class TestPresets:
    def test_deepseek_preset(self):
        provider = get_provider("deepseek")
        assert isinstance(provider, OpenAICompatibleProvider)
        assert provider.default_base_url == "https://api.deepseek.com"
        assert provider.api_key_env == "DEEPSEEK_API_KEY"
        assert provider.name == "deepseek"

    def test_anthropic_preset(self):
        assert isinstance(get_provider("anthropic"), AnthropicProvider)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown provider 'nope'"):
            get_provider("nope")


class TestOpenAICompatible:
    def test_headers(self):
        provider = get_provider("openai")
        assert provider.build_headers("sk-1") == {"Authorization": "Bearer sk-1"}
        assert provider.build_headers(None) == {}

    def test_payload_omits_unset_options(self):
        provider = get_provider("openai")
        request = sample_request(top_p=0.9, frequency_penalty=0.1)

        payload = provider.build_payload("gpt-4o", request.messages, request)

        assert payload == {
            "model": "gpt-4o",
            "messages": [
                {"role": "system", "content": "Be brief."},
                {"role": "user", "content": "Weather in Oslo?"},
            ],
            "stream": False,
            "top_p": 0.9,
            "frequency_penalty": 0.1,
        }

    def test_tools_use_function_shape(self):
        tools = get_provider("openai").map_tools([WEATHER_TOOL])
        assert tools[0]["type"] == "function"
        assert tools[0]["function"]["name"] == "get_weather"
        assert tools[0]["function"]["parameters"]["properties"]["city"] == {"type": "string"}

    def test_extract_content(self):
        provider = get_provider("openai")
        assert provider.extract_content(chat_completion("hello")) == "hello"
        assert provider.extract_content(chat_completion(None)) is None
        assert provider.extract_content({"choices": []}) is None
        parts = {"choices": [{"message": {"content": [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}]}}]}
        assert provider.extract_content(parts) == "ab"

    @pytest.mark.parametrize(
        "data",
        [None, [1], {"choices": [None]}, {"choices": [{"message": "hi"}]}, {"choices": [{"message": {"content": 4}}]}],
    )
    def test_extract_content_ignores_unexpected_shapes(self, data):
        assert get_provider("openai").extract_content(data) is None


class TestAnthropic:
    def test_system_prompt_moves_to_top_level(self):
        provider = AnthropicProvider()
        request = sample_request(temperature=0.3, tools=[WEATHER_TOOL])

        payload = provider.build_payload("claude-3-opus-20240229", request.messages, request)

        assert payload["system"] == "Be brief."
        assert payload["messages"] == [{"role": "user", "content": "Weather in Oslo?"}]
        assert payload["max_tokens"] == 1024
        assert payload["temperature"] == 0.3
        assert payload["tools"] == [
            {
                "name": "get_weather",
                "description": "Current weather for a city",
                "input_schema": WEATHER_TOOL.parameters,
            }
        ]

    def test_headers_and_path(self):
        provider = AnthropicProvider()
        headers = provider.build_headers("sk-ant")
        assert headers["x-api-key"] == "sk-ant"
        assert headers["anthropic-version"] == "2023-06-01"
        assert provider.completions_path == "/messages"

    def test_extract_content_joins_text_blocks(self):
        data = {
            "content": [
                {"type": "text", "text": '{"answer": '},
                {"type": "tool_use", "name": "x"},
                {"type": "text", "text": "4}"},
            ]
        }
        assert AnthropicProvider().extract_content(data) == '{"answer": 4}'
        assert AnthropicProvider().extract_content({"content": []}) is None

    @pytest.mark.parametrize(
        "data",
        [None, [], {"content": None}, {"content": "text"}, {"content": [None, {"type": "text", "text": 4}]}],
    )
    def test_extract_content_ignores_unexpected_shapes(self, data):
        assert AnthropicProvider().extract_content(data) is None


class TestErrorClassification:
    def test_payment_required(self):
        error = TransportError("pay up", status=402)
        fatal = get_provider("deepseek").classify_error(error)
        assert isinstance(fatal, InsufficientBalanceError)
        assert str(fatal) == (
            "DeepSeek API: Insufficient balance. Please add funds to your account."
        )
        assert fatal.cause is error

    def test_quota_code(self):
        error = TransportError("quota", status=429, code="insufficient_quota")
        assert isinstance(get_provider("openai").classify_error(error), InsufficientBalanceError)

    @pytest.mark.parametrize("status", [400, 429, 500, 503, None])
    def test_other_errors_stay_retryable(self, status):
        error = TransportError("nope", status=status, code="server_error")
        assert get_provider("deepseek").classify_error(error) is None

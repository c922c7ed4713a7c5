"""Tests for the model router with the mock transport."""

import asyncio

from pydantic import BaseModel

from shuttle.models import (
    ChatMessage,
    CompletionRequest,
    ModelRouter,
    MockTransport,
    ResponseModel,
)


class Answer(BaseModel):
    answer: float


def ask(text: str, structured: bool = False) -> CompletionRequest:
    return CompletionRequest(
        messages=[ChatMessage(role="user", content=text)],
        response_model=ResponseModel.from_type(Answer) if structured else None,
    )


def test_mock_transport_replies():
    """Test the built-in mock responder."""
    router = ModelRouter(use_connection_pooling=False)
    router.add_model(name="test-mock", provider="mock", model="mock-1")

    response = asyncio.run(router.complete(ask("Hello world")))
    assert "Hello" in response["choices"][0]["message"]["content"]
    assert response["model"] == "mock-1"

    response = asyncio.run(router.complete(ask("What is 10 + 5?")))
    assert response["choices"][0]["message"]["content"] == "15"


def test_model_router():
    """Test model router functionality."""
    router = ModelRouter(use_connection_pooling=False)
    router.add_model(name="mock", provider="mock", model="mock")

    assert "mock" in router.list_models()
    assert router.default_model == "mock"

    transport = MockTransport()
    router.add_model(name="mock2", provider="mock", model="mock2", transport=transport)
    assert "mock2" in router.list_models()

    response = asyncio.run(router.complete(ask("Test"), model_name="mock2"))
    assert response["model"] == "mock2"
    assert transport.call_count == 1


def test_structured_math():
    """Test that structured math answers validate."""
    router = ModelRouter(use_connection_pooling=False)
    router.add_model(name="mock", provider="mock", model="mock")

    tests = [
        ("5 + 3", 8),
        ("10 - 4", 6),
        ("3 * 7", 21),
        ("20 / 4", 5),
    ]

    for expr, expected in tests:
        result = asyncio.run(router.complete(ask(expr, structured=True)))
        assert result.answer == expected, f"Failed for {expr}"


def test_unknown_model():
    router = ModelRouter(use_connection_pooling=False)

    try:
        asyncio.run(router.complete(ask("hi"), model_name="missing"))
    except ValueError as e:
        assert "missing" in str(e)
    else:
        raise AssertionError("expected ValueError")

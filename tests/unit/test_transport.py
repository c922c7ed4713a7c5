"""Tests for the HTTP transport and its error decoding."""

from __future__ import annotations

import json

import httpx
import pytest
from pydantic import BaseModel

from shuttle.errors import InsufficientBalanceError, TransportError
from shuttle.models import (
    ChatMessage,
    CompletionClient,
    CompletionRequest,
    HTTPConnectionPool,
    HTTPTransport,
    ResponseModel,
    chat_completion,
)


def pool_for(handler) -> HTTPConnectionPool:
    return HTTPConnectionPool(transport=httpx.MockTransport(handler), http2=False)


class Answer(BaseModel):
    answer: int


@pytest.mark.asyncio
async def test_post_returns_decoded_json():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=chat_completion("hi"))

    transport = HTTPTransport("https://api.deepseek.com/", pool=pool_for(handler))
    data = await transport.post("/chat/completions", {"model": "m"}, {"X-Test": "1"})

    assert data["choices"][0]["message"]["content"] == "hi"
    assert str(seen[0].url) == "https://api.deepseek.com/chat/completions"
    assert seen[0].headers["X-Test"] == "1"
    assert json.loads(seen[0].content) == {"model": "m"}
    await transport.aclose()


@pytest.mark.asyncio
async def test_error_body_is_decoded():
    body = {
        "error": {
            "message": "Insufficient Balance",
            "type": "unknown_error",
            "param": None,
            "code": "invalid_request_error",
        }
    }
    transport = HTTPTransport(
        "https://api.deepseek.com",
        pool=pool_for(lambda request: httpx.Response(402, json=body)),
    )

    with pytest.raises(TransportError) as exc_info:
        await transport.post("/chat/completions", {})

    error = exc_info.value
    assert error.status == 402
    assert error.code == "invalid_request_error"
    assert error.error["message"] == "Insufficient Balance"
    assert "Insufficient Balance" in str(error)


@pytest.mark.asyncio
async def test_plain_text_error_body():
    transport = HTTPTransport(
        "https://api.deepseek.com",
        pool=pool_for(lambda request: httpx.Response(502, text="Bad gateway")),
    )

    with pytest.raises(TransportError) as exc_info:
        await transport.post("/chat/completions", {})

    assert exc_info.value.status == 502
    assert exc_info.value.code is None
    assert exc_info.value.error == {"message": "Bad gateway"}


@pytest.mark.asyncio
async def test_network_failures_become_transport_errors():
    def refuse(request):
        raise httpx.ConnectError("connection refused")

    def slow(request):
        raise httpx.ReadTimeout("too slow")

    with pytest.raises(TransportError) as refused:
        await HTTPTransport("https://x.test", pool=pool_for(refuse)).post("/p", {})
    with pytest.raises(TransportError) as timed_out:
        await HTTPTransport("https://x.test", pool=pool_for(slow)).post("/p", {})

    assert refused.value.code == "network_error"
    assert refused.value.status is None
    assert timed_out.value.code == "timeout"


@pytest.mark.asyncio
async def test_non_json_success_body():
    transport = HTTPTransport(
        "https://x.test",
        pool=pool_for(lambda request: httpx.Response(200, text="<html>")),
    )

    with pytest.raises(TransportError) as exc_info:
        await transport.post("/p", {})

    assert exc_info.value.code == "invalid_response_body"


@pytest.mark.asyncio
async def test_client_over_http_end_to_end():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=chat_completion('{"answer": 4}'))

    client = CompletionClient(
        "deepseek",
        "deepseek-chat",
        api_key="sk-test",
        connection_pool=pool_for(handler),
    )
    request = CompletionRequest(
        messages=[ChatMessage(role="user", content="2+2?")],
        response_model=ResponseModel.from_type(Answer),
    )

    result = await client.complete(request)

    assert result == Answer(answer=4)
    assert str(requests[0].url) == "https://api.deepseek.com/chat/completions"
    assert requests[0].headers["Authorization"] == "Bearer sk-test"
    assert json.loads(requests[0].content)["stream"] is False
    await client.aclose()


@pytest.mark.asyncio
async def test_client_over_http_payment_required():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(402, json={"error": {"message": "Insufficient Balance"}})

    client = CompletionClient(
        "deepseek",
        "deepseek-chat",
        api_key="sk-test",
        connection_pool=pool_for(handler),
    )

    with pytest.raises(InsufficientBalanceError):
        await client.complete(
            CompletionRequest(messages=[ChatMessage(role="user", content="hi")]),
            retries=3,
        )

    assert len(calls) == 1
    await client.aclose()

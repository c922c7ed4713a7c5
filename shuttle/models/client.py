"""Completion client: cache check, remote call, structured validation, retries.

Examples:
    client = CompletionClient("deepseek", "deepseek-chat", enable_caching=True,
                              cache=InMemoryCache())

    # Raw provider response
    response = await client.complete(CompletionRequest(messages=[...]))

    # Validated structured output
    answer = await client.complete(
        CompletionRequest(
            messages=[ChatMessage(role="user", content="2+2?")],
            response_model=ResponseModel.from_type(Answer),
        )
    )
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from pydantic import ValidationError

from ..cache.base import LLMCache, build_cache_key
from ..errors import (
    CacheUnavailableError,
    EmptyStructuredResponseError,
    MalformedJSONError,
    SchemaValidationFailedError,
    ShuttleError,
    TransportError,
)
from ..log import LoggerFn, LogLine, aux, logging_logger
from ..retry import RetryPolicy
from .providers import ProviderAdapter, get_provider
from .transport import HTTPConnectionPool, HTTPTransport, Transport
from .types import ChatMessage, CompletionRequest

STRUCTURED_OUTPUT_INSTRUCTION = (
    "Return response in this JSON format: {schema}. "
    "Do not include any other text or markdown formatting."
)

_MISS = object()


class CompletionClient:
    """Chat completion client for one provider and model."""

    def __init__(
        self,
        provider: ProviderAdapter | str,
        model_name: str,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        transport: Transport | None = None,
        connection_pool: HTTPConnectionPool | None = None,
        cache: LLMCache | None = None,
        enable_caching: bool = False,
        logger: LoggerFn | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        """Initialize the client.

        Args:
            provider: Provider adapter or preset name ("deepseek", "openai", ...)
            model_name: Model identifier sent to the provider
            api_key: API key; falls back to the provider's environment variable
            base_url: Override for the provider's default endpoint
            transport: Custom transport; an HTTPTransport is built when omitted
            connection_pool: Shared pool for the default HTTPTransport
            cache: Response cache consulted when caching is enabled
            enable_caching: Whether to read from and write to ``cache``
            logger: Receives structured log lines; defaults to stdlib logging
            retry_policy: Delay between attempts (immediate by default)
        """
        self.provider = get_provider(provider) if isinstance(provider, str) else provider
        self.model_name = model_name
        self.cache = cache
        self.enable_caching = enable_caching
        self.logger = logger or logging_logger(logging.getLogger(__name__))
        self.retry_policy = retry_policy or RetryPolicy()

        api_key = api_key or os.getenv(self.provider.api_key_env)
        if transport is None:
            if not api_key:
                raise ValueError(
                    f"{self.provider.api_key_env} is required for "
                    f"{self.provider.display_name}."
                )
            transport = HTTPTransport(
                base_url or self.provider.default_base_url,
                pool=connection_pool,
            )
        self.transport = transport
        self._headers = self.provider.build_headers(api_key)

    @property
    def caching(self) -> bool:
        return self.enable_caching and self.cache is not None

    async def complete(
        self,
        request: CompletionRequest | dict[str, Any],
        retries: int = 3,
    ) -> Any:
        """Run a completion, retrying transient and validation failures.

        Args:
            request: The provider-agnostic request (never mutated)
            retries: Extra attempts allowed after the first one

        Returns:
            The raw provider response, or the validated structured value when
            ``request.response_model`` is set

        Raises:
            InsufficientBalanceError: Provider refused for payment reasons
            MalformedJSONError: Structured response text was not JSON
            SchemaValidationFailedError: Output never matched the schema
            EmptyStructuredResponseError: No text came back on the last attempt
            TransportError: Any other API failure on the last attempt
            CacheUnavailableError: The cache lookup failed
        """
        if not isinstance(request, CompletionRequest):
            request = CompletionRequest.model_validate(request)
        if retries < 0:
            raise ValueError(f"retries must be >= 0, got {retries}")

        cache_key = build_cache_key(request.cache_options(self.model_name))

        if self.caching:
            cached = await self._lookup(cache_key, request)
            if cached is not _MISS:
                return cached

        attempt = 0
        while True:
            try:
                return await self._attempt(request, cache_key)
            except ShuttleError as error:
                remaining = retries - attempt
                self._log_error(error, request, remaining)
                if isinstance(error, TransportError):
                    fatal = self.provider.classify_error(error)
                    if fatal is not None:
                        raise fatal from error
                if not error.retryable or remaining <= 0:
                    raise
                await self.retry_policy.wait(attempt)
                attempt += 1

    async def _attempt(self, request: CompletionRequest, cache_key: str) -> Any:
        """One call to the provider, built from the original request."""
        messages = self._outgoing_messages(request)
        payload = self.provider.build_payload(self.model_name, messages, request)

        self._log(
            self.provider.name,
            "creating chat completion",
            1,
            options=aux(request.log_options()),
            requestId=aux(request.request_id or ""),
        )

        response = await self.transport.post(
            self.provider.completions_path, payload, self._headers
        )

        self._log(
            self.provider.name,
            "response received",
            1,
            response=aux(response),
            requestId=aux(request.request_id or ""),
        )

        response_model = request.response_model
        if response_model is None:
            await self._store(cache_key, response, request)
            return response

        content = self.provider.extract_content(response)
        if not content:
            raise EmptyStructuredResponseError()

        try:
            json.loads(content)
        except json.JSONDecodeError as e:
            raise MalformedJSONError(
                f"Response content is not valid JSON: {e}", content
            ) from e

        try:
            value = response_model.validate_json(content)
        except ValidationError as e:
            raise SchemaValidationFailedError(
                f"Invalid response schema for {response_model.name}",
                schema_name=response_model.name,
                validation_error=e,
            ) from e

        await self._store(cache_key, value, request)
        return value

    def _outgoing_messages(self, request: CompletionRequest) -> list[ChatMessage]:
        messages = list(request.messages)
        if request.response_model is not None:
            schema = json.dumps(request.response_model.json_schema())
            messages.insert(
                0,
                ChatMessage(
                    role="system",
                    content=STRUCTURED_OUTPUT_INSTRUCTION.format(schema=schema),
                ),
            )
        return messages

    async def _lookup(self, cache_key: str, request: CompletionRequest) -> Any:
        cached = await self.cache.get(cache_key, request.request_id)
        if cached is None:
            return _MISS

        if request.response_model is not None:
            # Stores that serialize (Redis) hand back plain JSON
            try:
                cached = request.response_model.validate_value(cached)
            except ValidationError as e:
                self._log(
                    "llm_cache",
                    "cached response no longer matches schema - ignoring it",
                    1,
                    requestId=aux(request.request_id or ""),
                    error=aux(str(e)),
                )
                return _MISS

        self._log(
            "llm_cache",
            "LLM cache hit - returning cached response",
            1,
            requestId=aux(request.request_id or ""),
            cachedResponse=aux(cached, "object"),
        )
        return cached

    async def _store(self, cache_key: str, value: Any, request: CompletionRequest) -> None:
        if not self.caching:
            return
        try:
            await self.cache.set(cache_key, value, request.request_id)
        except CacheUnavailableError as e:
            self._log(
                "llm_cache",
                "failed to write response to cache",
                0,
                requestId=aux(request.request_id or ""),
                error=aux(str(e)),
            )

    def _log_error(self, error: ShuttleError, request: CompletionRequest, remaining: int) -> None:
        if isinstance(error, TransportError):
            code = error.code or "unknown"
            details = error.error
        else:
            code = type(error).__name__
            details = {}
            if isinstance(error, SchemaValidationFailedError) and error.validation_error:
                details = {"errors": error.validation_error.errors(include_url=False)}
        self._log(
            self.provider.name,
            "error creating chat completion",
            0,
            error=aux(str(error) or "Unknown error"),
            code=aux(code),
            details=aux(details, "object"),
            retriesRemaining=aux(max(remaining, 0)),
            requestId=aux(request.request_id or ""),
        )

    def _log(self, category: str, message: str, level: int, **auxiliary: Any) -> None:
        self.logger(
            LogLine(category=category, message=message, level=level, auxiliary=auxiliary)
        )

    async def aclose(self) -> None:
        close = getattr(self.transport, "aclose", None)
        if close is not None:
            await close()

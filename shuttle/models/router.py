"""Model router for selecting a configured completion client by name.

Examples:
    router = ModelRouter(cache=InMemoryCache(), enable_caching=True)

    # DeepSeek
    router.add_model(
        name="deepseek",
        provider="deepseek",
        api_key=os.getenv("DEEPSEEK_API_KEY"),
        model="deepseek-chat",
    )

    # Groq Llama through the same OpenAI-compatible adapter
    router.add_model(
        name="llama",
        provider="groq",
        api_key=os.getenv("GROQ_API_KEY"),
        model="llama3-70b-8192",
    )

    response = await router.complete(request, model_name="llama")
"""

from __future__ import annotations

from typing import Any

from ..cache import CacheConfig, InMemoryCache, LLMCache, RedisCache
from ..log import LoggerFn
from ..retry import RetryPolicy
from ..settings import AppSettings
from .client import CompletionClient
from .mock import MockTransport
from .providers import OpenAICompatibleProvider
from .transport import HTTPConnectionPool
from .types import CompletionRequest

_PRIVATE_CONFIG = {"api_key", "transport"}


class ModelRouter:
    """Routes completion requests to named clients.

    All clients added through ``add_model`` share one connection pool, one
    cache and one logger.
    """

    def __init__(
        self,
        use_connection_pooling: bool = True,
        connection_pool: HTTPConnectionPool | None = None,
        cache: LLMCache | None = None,
        enable_caching: bool = False,
        logger: LoggerFn | None = None,
        retry_policy: RetryPolicy | None = None,
        default_retries: int = 3,
    ):
        self.models: dict[str, dict[str, Any]] = {}
        self.clients: dict[str, CompletionClient] = {}
        self.default_model: str | None = None
        self.cache = cache
        self.enable_caching = enable_caching
        self.logger = logger
        self.retry_policy = retry_policy
        self.default_retries = default_retries

        self.connection_pool = connection_pool
        if self.connection_pool is None and use_connection_pooling:
            self.connection_pool = HTTPConnectionPool()

    def add_model(
        self,
        name: str,
        provider: str,
        model: str,
        **config: Any,
    ) -> CompletionClient:
        """Add a model under a friendly name.

        Args:
            name: Friendly name for this model configuration
            provider: Provider preset ("deepseek", "openai", "anthropic", "mock", ...)
            model: Model identifier sent to the provider
            **config: api_key, base_url or transport for the client

        Returns:
            The registered client
        """
        if provider == "mock":
            adapter = OpenAICompatibleProvider(
                name="mock",
                display_name="Mock",
                default_base_url="",
                api_key_env="SHUTTLE_MOCK_API_KEY",
            )
            config.setdefault("transport", MockTransport())
        else:
            adapter = provider

        client = CompletionClient(
            adapter,
            model,
            api_key=config.get("api_key"),
            base_url=config.get("base_url"),
            transport=config.get("transport"),
            connection_pool=self.connection_pool,
            cache=self.cache,
            enable_caching=self.enable_caching,
            logger=self.logger,
            retry_policy=self.retry_policy,
        )

        info = {k: v for k, v in config.items() if k not in _PRIVATE_CONFIG}
        self.register(name, client, provider=provider, **info)
        return client

    def register(self, name: str, client: CompletionClient, **info: Any) -> None:
        """Register an already-built client."""
        self.clients[name] = client
        self.models[name] = {
            "provider": info.pop("provider", client.provider.name),
            "model": client.model_name,
            **info,
        }
        if not self.default_model:
            self.default_model = name

    def get_client(self, model_name: str | None = None) -> CompletionClient:
        name = model_name or self.default_model
        if not name or name not in self.clients:
            available = ", ".join(self.clients.keys())
            raise ValueError(f"Model '{name}' not found. Available: {available}")
        return self.clients[name]

    async def complete(
        self,
        request: CompletionRequest | dict[str, Any],
        model_name: str | None = None,
        retries: int | None = None,
    ) -> Any:
        """Run a completion with the named (or default) model."""
        client = self.get_client(model_name)
        return await client.complete(
            request,
            retries=self.default_retries if retries is None else retries,
        )

    def list_models(self) -> list[str]:
        return list(self.models.keys())

    def get_model_info(self, name: str) -> dict[str, Any]:
        if name not in self.models:
            raise ValueError(f"Model '{name}' not found")
        return self.models[name].copy()

    def get_cache_statistics(self) -> dict[str, Any]:
        get_stats = getattr(self.cache, "get_stats", None)
        if get_stats is None:
            return {}
        return get_stats()

    def get_connection_statistics(self) -> dict[str, Any]:
        if self.connection_pool is None:
            return {"active": False, "pooled": False}
        return {"pooled": True, **self.connection_pool.get_stats()}

    async def aclose(self) -> None:
        for client in self.clients.values():
            await client.aclose()
        if self.connection_pool is not None:
            await self.connection_pool.close()
        close_cache = getattr(self.cache, "aclose", None)
        if close_cache is not None:
            await close_cache()

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        logger: LoggerFn | None = None,
        name: str = "default",
    ) -> ModelRouter:
        """Build a router with a single model configured from settings."""
        cache: LLMCache | None = None
        if settings.enable_caching:
            if settings.cache_backend == "redis":
                cache = RedisCache(
                    CacheConfig(
                        host=settings.redis_host,
                        port=settings.redis_port,
                        db=settings.redis_db,
                        password=settings.redis_password,
                        ttl_s=settings.cache_ttl_s,
                        prefix=settings.cache_prefix,
                    )
                )
            else:
                cache = InMemoryCache(ttl_s=settings.cache_ttl_s)

        router = cls(
            connection_pool=HTTPConnectionPool(
                max_connections=settings.max_connections,
                timeout=settings.request_timeout_s,
                http2=settings.http2,
            ),
            cache=cache,
            enable_caching=settings.enable_caching,
            logger=logger,
            retry_policy=RetryPolicy(
                initial_delay=settings.retry_initial_delay_s,
                backoff=settings.retry_backoff,
            ),
            default_retries=settings.max_retries,
        )
        router.add_model(
            name=name,
            provider=settings.provider,
            model=settings.model_name,
            api_key=settings.api_key,
            base_url=settings.base_url,
        )
        return router

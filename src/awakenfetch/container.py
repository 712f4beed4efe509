from dependency_injector import containers, providers

from awakenfetch.client.cache import TransactionCache
from awakenfetch.client.orchestrator import TransactionFetchClient
from awakenfetch.config import Settings
from awakenfetch.infra.blockchain.registry import build_default_registry
from awakenfetch.infra.http.rate_limited_client import RateLimitedClient


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(modules=["awakenfetch.api.deps"])

    settings = providers.Singleton(Settings)

    http_client = providers.Singleton(
        RateLimitedClient,
        rate_per_second=settings.provided.http_rate_per_second,
        timeout=settings.provided.http_timeout,
    )

    adapter_registry = providers.Singleton(
        build_default_registry,
        http_client=http_client,
        settings=settings,
    )

    # Client side: one cache shared by every fetch client built here
    transaction_cache = providers.Singleton(
        TransactionCache,
        ttl=settings.provided.cache_ttl_seconds,
    )

    # Called with the proxy's httpx.AsyncClient: container.fetch_client(http)
    fetch_client = providers.Factory(
        TransactionFetchClient,
        max_retries=settings.provided.client_max_retries,
        retry_base_delay=settings.provided.client_retry_base_delay,
        cache=transaction_cache,
    )

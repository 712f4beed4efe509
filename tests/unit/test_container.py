"""Container wiring: settings flow into the fetch client and its shared cache."""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

from dependency_injector import providers

from awakenfetch.api.main import app, lifespan
from awakenfetch.client.cache import TransactionCache
from awakenfetch.client.orchestrator import TransactionFetchClient
from awakenfetch.config import Settings
from awakenfetch.container import Container


def _container(**overrides) -> Container:
    container = Container()
    container.settings.override(providers.Object(Settings(**overrides)))
    return container


class TestFetchClient:
    def test_built_from_settings(self):
        container = _container(client_max_retries=2, client_retry_base_delay=0.5, cache_ttl_seconds=60)

        client = container.fetch_client(MagicMock())

        assert isinstance(client, TransactionFetchClient)
        assert client._max_retries == 2
        assert client._retry_base_delay == 0.5
        assert isinstance(client._cache, TransactionCache)
        assert client._cache._ttl == 60

    def test_clients_share_one_cache(self):
        container = _container()

        first = container.fetch_client(MagicMock())
        second = container.fetch_client(MagicMock())

        assert first is not second
        assert first._cache is second._cache is container.transaction_cache()


class TestLifespan:
    async def test_debug_raises_package_log_level_and_closes_client(self):
        container = MagicMock()
        container.settings.return_value = Settings(debug=True)
        container.http_client.return_value.close = AsyncMock()
        package_logger = logging.getLogger("awakenfetch")
        previous = package_logger.level

        try:
            with patch("awakenfetch.api.main.Container", return_value=container):
                async with lifespan(app):
                    assert package_logger.level == logging.DEBUG
        finally:
            package_logger.setLevel(previous)

        container.http_client.return_value.close.assert_awaited_once()

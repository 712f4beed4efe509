"""ChainAdapterRegistry: chain id → adapter lookup."""

from pydantic import BaseModel

from awakenfetch.config import Settings
from awakenfetch.infra.blockchain.base import ChainAdapter
from awakenfetch.infra.http.rate_limited_client import RateLimitedClient


class ChainInfo(BaseModel):
    """Registry entry shown by the chain selector."""

    chain_id: str
    chain_name: str
    ticker: str
    enabled: bool = True
    perps_capable: bool = False


class ChainAdapterRegistry:
    """Registry mapping chain_id → ChainAdapter. Re-registering a chain id replaces it."""

    def __init__(self) -> None:
        self._adapters: dict[str, ChainAdapter] = {}

    def register(self, adapter: ChainAdapter) -> None:
        self._adapters[adapter.chain_id] = adapter

    def get(self, chain_id: str) -> ChainAdapter | None:
        return self._adapters.get(chain_id)

    def has(self, chain_id: str) -> bool:
        return chain_id in self._adapters

    def unregister(self, chain_id: str) -> bool:
        return self._adapters.pop(chain_id, None) is not None

    @property
    def chain_ids(self) -> list[str]:
        return list(self._adapters)

    def available_chains(self) -> list[ChainInfo]:
        return [
            ChainInfo(
                chain_id=a.chain_id,
                chain_name=a.chain_name,
                ticker=a.ticker,
                perps_capable=a.perps_capable,
            )
            for a in self._adapters.values()
        ]

    def clear(self) -> None:
        self._adapters.clear()

    def __len__(self) -> int:
        return len(self._adapters)


def build_default_registry(http_client: RateLimitedClient, settings: Settings) -> ChainAdapterRegistry:
    """Create a registry with all built-in chain adapters registered."""
    from awakenfetch.infra.blockchain.bittensor.adapter import BittensorAdapter
    from awakenfetch.infra.blockchain.kaspa.adapter import KaspaAdapter

    registry = ChainAdapterRegistry()
    registry.register(BittensorAdapter(http_client, api_key=settings.taostats_api_key, api_base=settings.taostats_api_base))
    registry.register(KaspaAdapter(http_client, api_base=settings.kaspa_api_base))
    return registry

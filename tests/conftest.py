from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from awakenfetch.api.deps import get_registry
from awakenfetch.api.main import app
from awakenfetch.domain.enums import TransactionType
from awakenfetch.domain.models.transaction import FetchOptions, Transaction
from awakenfetch.infra.blockchain.base import ChainAdapter
from awakenfetch.infra.blockchain.registry import ChainAdapterRegistry

KASPA_ADDRESS = "kaspa:qz" + "a" * 59
BITTENSOR_ADDRESS = "5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY"
OTHER_BITTENSOR_ADDRESS = "5FHneW46xGXgs5mUiveU4sbTyGBzmstUspZC92UhjJM694ty"


def make_tx(day: int = 1, quantity: str = "1.5", **overrides) -> Transaction:
    fields = {
        "date": datetime(2024, 1, day, 12, 0, tzinfo=UTC),
        "type": TransactionType.RECEIVE,
        "received_quantity": Decimal(quantity),
        "received_currency": "KAS",
        "tx_hash": f"hash{day}",
    }
    fields.update(overrides)
    return Transaction(**fields)


class FakeAdapter(ChainAdapter):
    """Scriptable adapter: emits ``pages`` through on_progress, or raises ``error``."""

    chain_id = "kaspa"
    chain_name = "Kaspa"
    ticker = "KAS"

    def __init__(self) -> None:
        self.pages: list[list[Transaction]] = []
        self.report_progress = True
        self.estimated_total: int | None = None
        self.error: Exception | None = None
        self.calls: list[tuple[str, FetchOptions]] = []

    async def fetch_transactions(self, address: str, options: FetchOptions | None = None) -> list[Transaction]:
        options = options or FetchOptions()
        self.calls.append((address, options))
        if self.estimated_total is not None:
            options.report_estimated_total(self.estimated_total)
        result: list[Transaction] = []
        for page in self.pages:
            result.extend(page)
            if self.report_progress:
                options.report_progress(page)
        if self.error is not None:
            raise self.error
        return result

    def get_explorer_url(self, tx_hash: str) -> str:
        return f"https://explorer.kaspa.org/txs/{tx_hash}"

    def validate_address(self, address: str) -> bool:
        return address.startswith("kaspa:")


@pytest.fixture()
def tx_factory() -> Callable[..., Transaction]:
    return make_tx


@pytest.fixture()
def fake_adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture()
def fake_registry(fake_adapter) -> ChainAdapterRegistry:
    registry = ChainAdapterRegistry()
    registry.register(fake_adapter)
    return registry


@pytest.fixture()
async def api_client(fake_registry):
    app.dependency_overrides[get_registry] = lambda: fake_registry
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

"""Abstract base for chain-specific transaction adapters."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from awakenfetch.domain.models.transaction import FetchOptions, Transaction
from awakenfetch.report.standard_csv import generate_standard_csv


class ChainAdapter(ABC):
    """Strategy interface for fetching canonical transactions from one chain.

    Implementations must validate the address before any network call, report
    each fetched page through ``options.on_progress`` in fetch order, and
    return the full result sorted by date ascending.
    """

    chain_id: str
    chain_name: str
    ticker: str
    perps_capable: bool = False

    @abstractmethod
    async def fetch_transactions(self, address: str, options: FetchOptions | None = None) -> list[Transaction]:
        """Fetch every transaction for ``address`` within the optional date window."""

    @abstractmethod
    def get_explorer_url(self, tx_hash: str) -> str:
        """Block explorer link for a transaction hash."""

    @abstractmethod
    def validate_address(self, address: str) -> bool:
        """True if ``address`` matches this chain's address format."""

    def to_awaken_csv(self, txs: Sequence[Transaction]) -> str:
        return generate_standard_csv(txs)

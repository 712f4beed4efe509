"""Kaspa (KAS) adapter backed by the Kaspa REST API (https://api.kaspa.org), no API key.

Kaspa is UTXO-based: each transaction's effect on the wallet is the net of
inputs spent from the address and outputs paid back to it. Previous outpoints
are resolved in "light" mode so inputs carry their address and amount.
"""

import logging
import re
from datetime import UTC, datetime
from decimal import Decimal

from awakenfetch.domain.enums import TransactionType
from awakenfetch.domain.models.transaction import FetchOptions, Transaction
from awakenfetch.exceptions import InvalidAddressError
from awakenfetch.infra.blockchain.base import ChainAdapter
from awakenfetch.infra.http.fetch_with_retry import fetch_with_retry
from awakenfetch.infra.http.rate_limited_client import RateLimitedClient

logger = logging.getLogger(__name__)

API_BASE = "https://api.kaspa.org"

SOMPI_PER_KAS = Decimal(100_000_000)

PAGE_LIMIT = 500

KASPA_ADDRESS_RE = re.compile(r"^kaspa:[a-z0-9]{61,63}$")

COINBASE_OUTPOINT = "0" * 64


def sompi_to_kas(sompi: int | str | None) -> Decimal:
    try:
        return Decimal(int(sompi or 0)) / SOMPI_PER_KAS
    except (TypeError, ValueError):
        return Decimal(0)


def is_valid_kaspa_address(address: str) -> bool:
    if not isinstance(address, str):
        return False
    return KASPA_ADDRESS_RE.match(address.strip()) is not None


def _input_address(inp: dict) -> str | None:
    resolved = inp.get("previous_outpoint_resolved") or {}
    return inp.get("previous_outpoint_address") or resolved.get("script_public_key_address")


def _input_amount(inp: dict) -> int:
    resolved = inp.get("previous_outpoint_resolved") or {}
    amount = inp.get("previous_outpoint_amount")
    if amount is None:
        amount = resolved.get("amount", 0)
    return int(amount or 0)


def _is_coinbase(tx: dict) -> bool:
    inputs = tx.get("inputs") or []
    if not inputs:
        return True
    return all(inp.get("previous_outpoint_hash") == COINBASE_OUTPOINT for inp in inputs)


def _tx_time(tx: dict) -> datetime:
    millis = tx.get("accepting_block_time") or tx.get("block_time") or 0
    return datetime.fromtimestamp(int(millis) / 1000, tz=UTC)


def map_transaction(tx: dict, address: str) -> Transaction | None:
    """Map a Kaspa transaction to the wallet's net effect, or None if it is not ours."""
    if not tx.get("is_accepted"):
        return None

    inputs = tx.get("inputs") or []
    outputs = tx.get("outputs") or []

    input_from_us = sum(_input_amount(i) for i in inputs if _input_address(i) == address)
    output_to_us = sum(
        int(o.get("amount") or 0) for o in outputs if o.get("script_public_key_address") == address
    )
    if input_from_us == 0 and output_to_us == 0:
        return None

    coinbase = _is_coinbase(tx)

    # Whole-tx fee = inputs - outputs; coinbase has none
    fee = 0
    if not coinbase:
        total_in = sum(_input_amount(i) for i in inputs)
        total_out = sum(int(o.get("amount") or 0) for o in outputs)
        fee = max(total_in - total_out, 0)

    date = _tx_time(tx)
    tx_hash = tx.get("transaction_id")

    if coinbase:
        return Transaction(
            date=date,
            type=TransactionType.RECEIVE,
            received_quantity=sompi_to_kas(output_to_us),
            received_currency="KAS",
            tx_hash=tx_hash,
            notes="Mining reward",
        )

    if input_from_us == 0:
        return Transaction(
            date=date,
            type=TransactionType.RECEIVE,
            received_quantity=sompi_to_kas(output_to_us),
            received_currency="KAS",
            tx_hash=tx_hash,
        )

    net_spent = input_from_us - output_to_us
    if net_spent > 0:
        # Change already netted out; what remains is payment + fee
        sent = net_spent - fee
        return Transaction(
            date=date,
            type=TransactionType.SEND,
            sent_quantity=sompi_to_kas(sent if sent > 0 else net_spent),
            sent_currency="KAS",
            fee_amount=sompi_to_kas(fee) if fee > 0 else None,
            fee_currency="KAS" if fee > 0 else None,
            tx_hash=tx_hash,
        )

    # Consolidation funded from elsewhere: the surplus is a receive
    return Transaction(
        date=date,
        type=TransactionType.RECEIVE,
        received_quantity=sompi_to_kas(-net_spent),
        received_currency="KAS",
        tx_hash=tx_hash,
    )


class KaspaAdapter(ChainAdapter):
    chain_id = "kaspa"
    chain_name = "Kaspa"
    ticker = "KAS"

    def __init__(self, http_client: RateLimitedClient, api_base: str = API_BASE) -> None:
        self._http = http_client
        self._api_base = api_base.rstrip("/")

    async def fetch_transactions(self, address: str, options: FetchOptions | None = None) -> list[Transaction]:
        if not self.validate_address(address):
            raise InvalidAddressError(
                "Invalid Kaspa address. Expected format: kaspa:<61-63 lowercase alphanumeric characters>"
            )
        options = options or FetchOptions()
        address = address.strip()

        results: list[Transaction] = []
        offset = 0
        while True:
            page = await fetch_with_retry(
                self._http,
                f"{self._api_base}/addresses/{address}/full-transactions",
                params={"limit": PAGE_LIMIT, "offset": offset, "resolve_previous_outpoints": "light"},
                error_label="Kaspa API",
            )
            if not isinstance(page, list) or not page:
                break

            # The API has no time filter, so the window is applied here
            batch = [
                tx
                for tx in (map_transaction(raw, address) for raw in page)
                if tx is not None and options.in_range(tx.date)
            ]
            results.extend(batch)
            options.report_progress(batch)
            logger.info("Kaspa page offset=%d: %d raw, %d mapped for %s", offset, len(page), len(batch), address)

            if len(page) < PAGE_LIMIT:
                break
            offset += len(page)

        results.sort(key=lambda tx: tx.date)
        return results

    def get_explorer_url(self, tx_hash: str) -> str:
        return f"https://explorer.kaspa.org/txs/{tx_hash}"

    def validate_address(self, address: str) -> bool:
        return is_valid_kaspa_address(address)

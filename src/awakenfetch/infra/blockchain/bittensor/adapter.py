"""Bittensor (TAO) adapter backed by the Taostats API (https://docs.taostats.io).

Transfers come from ``/transfer/v1``; staking, unstaking and subnet
registration come from ``/extrinsic/v1`` filtered by extrinsic name. Taostats
requires an API key (``TAOSTATS_API_KEY``) and rate-limits aggressively, so
calls use a longer backoff than the default.
"""

import logging
import re
from datetime import datetime
from decimal import Decimal
from typing import Any

from awakenfetch.domain.enums import TransactionType
from awakenfetch.domain.models.transaction import FetchOptions, Transaction
from awakenfetch.exceptions import ConfigurationError, InvalidAddressError
from awakenfetch.infra.blockchain.base import ChainAdapter
from awakenfetch.infra.http.fetch_with_retry import fetch_with_retry
from awakenfetch.infra.http.rate_limited_client import RateLimitedClient

logger = logging.getLogger(__name__)

API_BASE = "https://api.taostats.io/api"

RAO_PER_TAO = Decimal(1_000_000_000)

PAGE_LIMIT = 200

MAX_RETRIES = 5
BASE_DELAY = 2.0

# SS58 uses the Base58 alphabet (no 0, O, I, l)
BASE58_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]+$")

# Extrinsic name → (type, note, tag); checked in this order
STAKING_EXTRINSICS: dict[str, tuple[TransactionType, str, str | None]] = {
    "SubtensorModule.add_stake": (TransactionType.STAKE, "Stake", "staked"),
    "SubtensorModule.add_stake_limit": (TransactionType.STAKE, "Stake", "staked"),
    "SubtensorModule.remove_stake": (TransactionType.UNSTAKE, "Unstake", "unstaked"),
    "SubtensorModule.remove_stake_limit": (TransactionType.UNSTAKE, "Unstake", "unstaked"),
    "SubtensorModule.burned_register": (TransactionType.OTHER, "Subnet registration", None),
}


def rao_to_tao(rao: str | int | None) -> Decimal:
    try:
        return Decimal(int(rao or 0)) / RAO_PER_TAO
    except (TypeError, ValueError):
        return Decimal(0)


def is_valid_bittensor_address(address: str) -> bool:
    if not isinstance(address, str):
        return False
    trimmed = address.strip()
    if not 46 <= len(trimmed) <= 48 or not trimmed.startswith("5"):
        return False
    return BASE58_RE.match(trimmed) is not None


def _positive(value: Decimal) -> Decimal | None:
    return value if value > 0 else None


def map_transfer(transfer: dict, address: str) -> Transaction | None:
    sender = (transfer.get("from") or {}).get("ss58")
    receiver = (transfer.get("to") or {}).get("ss58")
    if address not in (sender, receiver):
        return None

    date = datetime.fromisoformat(transfer["timestamp"])
    amount = rao_to_tao(transfer.get("amount"))

    if sender == address:
        fee = _positive(rao_to_tao(transfer.get("fee")))
        return Transaction(
            date=date,
            type=TransactionType.SEND,
            sent_quantity=amount,
            sent_currency="TAO",
            fee_amount=fee,
            fee_currency="TAO" if fee else None,
            tx_hash=transfer.get("transaction_hash"),
            notes=f"Transfer to {(receiver or '')[:8]}…",
        )

    return Transaction(
        date=date,
        type=TransactionType.RECEIVE,
        received_quantity=amount,
        received_currency="TAO",
        tx_hash=transfer.get("transaction_hash"),
        notes=f"Transfer from {(sender or '')[:8]}…",
    )


def _stake_amount(call_args: dict[str, Any]) -> Decimal:
    raw = call_args.get("amountStaked") or call_args.get("amountUnstaked")
    return rao_to_tao(raw) if raw else Decimal(0)


def map_extrinsic(ext: dict) -> Transaction | None:
    """Classify a signed extrinsic by its function name; unknown or failed ones are dropped."""
    if not ext.get("success"):
        return None
    rule = STAKING_EXTRINSICS.get(ext.get("full_name", ""))
    if rule is None:
        return None
    tx_type, label, tag = rule

    call_args = ext.get("call_args") or {}
    netuid = call_args.get("netuid")
    fee = _positive(rao_to_tao(ext.get("fee")))
    amount = _positive(_stake_amount(call_args))
    date = datetime.fromisoformat(ext["timestamp"])

    common: dict[str, Any] = {
        "date": date,
        "type": tx_type,
        "fee_amount": fee,
        "fee_currency": "TAO" if fee else None,
        "tx_hash": ext.get("hash"),
        "tag": tag,
    }

    if tx_type is TransactionType.STAKE:
        note = f"Stake on subnet {netuid}" if netuid is not None else label
        return Transaction(sent_quantity=amount, sent_currency="TAO" if amount else None, notes=note, **common)
    if tx_type is TransactionType.UNSTAKE:
        note = f"Unstake from subnet {netuid}" if netuid is not None else label
        return Transaction(
            received_quantity=amount, received_currency="TAO" if amount else None, notes=note, **common
        )
    note = f"Subnet registration (netuid {netuid})" if netuid is not None else label
    return Transaction(notes=note, **common)


def _timestamp_params(options: FetchOptions) -> dict[str, int]:
    params: dict[str, int] = {}
    if options.from_date is not None:
        params["timestamp_start"] = int(options.from_date.timestamp())
    if options.to_date is not None:
        params["timestamp_end"] = int(options.to_date.timestamp())
    return params


def _has_next_page(data: dict, page_size: int) -> bool:
    pagination = data.get("pagination") or {}
    return pagination.get("next_page") is not None and page_size >= PAGE_LIMIT


class BittensorAdapter(ChainAdapter):
    chain_id = "bittensor"
    chain_name = "Bittensor"
    ticker = "TAO"

    def __init__(self, http_client: RateLimitedClient, api_key: str, api_base: str = API_BASE) -> None:
        self._http = http_client
        self._api_key = api_key
        self._api_base = api_base.rstrip("/")

    async def _get(self, path: str, params: dict[str, Any]) -> dict:
        return await fetch_with_retry(
            self._http,
            f"{self._api_base}{path}",
            params=params,
            headers={"Authorization": self._api_key},
            max_retries=MAX_RETRIES,
            base_delay=BASE_DELAY,
            error_label="Taostats API",
        )

    async def fetch_transactions(self, address: str, options: FetchOptions | None = None) -> list[Transaction]:
        if not self.validate_address(address):
            raise InvalidAddressError(
                "Invalid Bittensor address. Expected SS58 format (starts with 5, 46-48 characters)."
            )
        if not self._api_key:
            raise ConfigurationError(
                "TAOSTATS_API_KEY environment variable is not set. Get a key at https://dash.taostats.io"
            )
        options = options or FetchOptions()
        address = address.strip()

        # Sequential on purpose: Taostats rate limits per key
        transfers = await self._fetch_transfers(address, options)
        extrinsics = await self._fetch_staking(address, options)

        result = transfers + extrinsics
        result.sort(key=lambda tx: tx.date)
        return result

    async def _fetch_transfers(self, address: str, options: FetchOptions) -> list[Transaction]:
        results: list[Transaction] = []
        page = 1
        while True:
            params = {
                "network": "finney",
                "address": address,
                "limit": PAGE_LIMIT,
                "page": page,
                "order": "timestamp_asc",
                **_timestamp_params(options),
            }
            data = await self._get("/transfer/v1", params)
            rows = data.get("data") or []

            if page == 1:
                total = (data.get("pagination") or {}).get("total_items")
                if total is not None:
                    options.report_estimated_total(int(total))

            batch = [tx for tx in (map_transfer(t, address) for t in rows) if tx is not None]
            results.extend(batch)
            options.report_progress(batch)
            logger.info("Taostats transfers page %d: %d rows for %s", page, len(rows), address)

            if not rows or not _has_next_page(data, len(rows)):
                break
            page = data["pagination"]["next_page"]
        return results

    async def _fetch_staking(self, address: str, options: FetchOptions) -> list[Transaction]:
        results: list[Transaction] = []
        for full_name in STAKING_EXTRINSICS:
            page = 1
            while True:
                params = {
                    "signer_address": address,
                    "full_name": full_name,
                    "limit": PAGE_LIMIT,
                    "page": page,
                    "order": "timestamp_asc",
                    **_timestamp_params(options),
                }
                data = await self._get("/extrinsic/v1", params)
                rows = data.get("data") or []

                batch = [tx for tx in (map_extrinsic(e) for e in rows) if tx is not None]
                results.extend(batch)
                options.report_progress(batch)

                if not rows or not _has_next_page(data, len(rows)):
                    break
                page = data["pagination"]["next_page"]
        return results

    def get_explorer_url(self, tx_hash: str) -> str:
        return f"https://taostats.io/extrinsic/{tx_hash}"

    def validate_address(self, address: str) -> bool:
        return is_valid_bittensor_address(address)

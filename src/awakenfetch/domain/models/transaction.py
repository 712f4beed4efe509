"""Canonical, chain-agnostic transaction records produced by chain adapters."""

from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from awakenfetch.domain.enums import PerpTag, TransactionType

# camelCase on the wire, snake_case in Python; either accepted on input
_WIRE_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class AssetEntry(BaseModel):
    """One extra leg of a multi-asset transaction (LP add/remove etc.)."""

    model_config = _WIRE_CONFIG

    quantity: Decimal
    currency: str
    fiat_amount: Optional[Decimal] = None


class Transaction(BaseModel):
    """A standard (non-perp) transaction as exported to Awaken."""

    model_config = _WIRE_CONFIG

    date: datetime
    type: TransactionType
    sent_quantity: Optional[Decimal] = None
    sent_currency: Optional[str] = None
    sent_fiat_amount: Optional[Decimal] = None
    received_quantity: Optional[Decimal] = None
    received_currency: Optional[str] = None
    received_fiat_amount: Optional[Decimal] = None
    fee_amount: Optional[Decimal] = None
    fee_currency: Optional[str] = None
    tx_hash: Optional[str] = None
    notes: Optional[str] = None
    tag: Optional[str] = None
    additional_sent: Optional[tuple[AssetEntry, ...]] = None
    additional_received: Optional[tuple[AssetEntry, ...]] = None

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: datetime) -> datetime:
        return _to_utc(value)

    @property
    def is_multi_asset(self) -> bool:
        return bool(self.additional_sent) or bool(self.additional_received)

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict: camelCase keys, ISO-8601 date, unset fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PerpTransaction(BaseModel):
    """A perpetual-futures event (open, close, funding)."""

    model_config = _WIRE_CONFIG

    date: datetime
    asset: str
    amount: Decimal
    fee: Optional[Decimal] = None
    pnl: Decimal  # Signed
    payment_token: str
    notes: Optional[str] = None
    tx_hash: Optional[str] = None
    tag: PerpTag

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: datetime) -> datetime:
        return _to_utc(value)


class FetchOptions(BaseModel):
    """Per-call options accepted by ChainAdapter.fetch_transactions."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    on_progress: Optional[Callable[[list[Transaction]], None]] = None
    on_estimated_total: Optional[Callable[[int], None]] = None

    @field_validator("from_date", "to_date")
    @classmethod
    def normalize_bounds(cls, value: Optional[datetime]) -> Optional[datetime]:
        return None if value is None else _to_utc(value)

    def in_range(self, when: datetime) -> bool:
        """Inclusive date-window check for adapters that filter client-side."""
        if self.from_date is not None and when < self.from_date:
            return False
        if self.to_date is not None and when > self.to_date:
            return False
        return True

    def report_progress(self, batch: list[Transaction]) -> None:
        if self.on_progress is not None:
            self.on_progress(batch)

    def report_estimated_total(self, total: int) -> None:
        if self.on_estimated_total is not None:
            self.on_estimated_total(total)

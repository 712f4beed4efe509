"""Fetch lifecycle state and its transition table."""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from awakenfetch.domain.enums import FetchStatus
from awakenfetch.domain.models.transaction import Transaction
from awakenfetch.exceptions import InvalidTransitionError

ALLOWED_TRANSITIONS: dict[FetchStatus, frozenset[FetchStatus]] = {
    FetchStatus.IDLE: frozenset({FetchStatus.LOADING}),
    FetchStatus.LOADING: frozenset(
        {FetchStatus.STREAMING, FetchStatus.SUCCESS, FetchStatus.ERROR, FetchStatus.IDLE}
    ),
    FetchStatus.STREAMING: frozenset(
        {FetchStatus.STREAMING, FetchStatus.SUCCESS, FetchStatus.ERROR, FetchStatus.IDLE}
    ),
    FetchStatus.SUCCESS: frozenset({FetchStatus.LOADING, FetchStatus.IDLE}),
    FetchStatus.ERROR: frozenset({FetchStatus.LOADING, FetchStatus.IDLE}),
}


def can_transition(current: FetchStatus, target: FetchStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def transition(current: FetchStatus, target: FetchStatus) -> FetchStatus:
    if not can_transition(current, target):
        raise InvalidTransitionError(f"Cannot transition from {current.value} to {target.value}")
    return target


class FetchState(BaseModel):
    """Immutable snapshot of one client fetch, replaced on every change."""

    model_config = ConfigDict(frozen=True)

    status: FetchStatus = FetchStatus.IDLE
    transactions: tuple[Transaction, ...] = ()
    transaction_count: int = 0
    estimated_total: Optional[int] = None
    error: Optional[str] = None
    error_retryable: bool = False
    warnings: tuple[str, ...] = ()
    retry_count: int = 0

    def move_to(self, target: FetchStatus, **changes) -> "FetchState":
        """Validated status change; other fields updated from ``changes``."""
        return self.model_copy(update={"status": transition(self.status, target), **changes})


INITIAL_STATE = FetchState()

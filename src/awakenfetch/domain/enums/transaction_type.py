from enum import Enum


class TransactionType(str, Enum):
    """Canonical transaction classification shared by all chain adapters."""

    SEND = "send"
    RECEIVE = "receive"
    TRADE = "trade"
    LP_ADD = "lp_add"
    LP_REMOVE = "lp_remove"
    STAKE = "stake"
    UNSTAKE = "unstake"
    CLAIM = "claim"
    BRIDGE = "bridge"
    APPROVAL = "approval"
    OTHER = "other"

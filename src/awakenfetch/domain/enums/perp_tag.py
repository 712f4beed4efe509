from enum import Enum


class PerpTag(str, Enum):
    """Awaken perpetuals CSV tags."""

    OPEN_POSITION = "open_position"
    CLOSE_POSITION = "close_position"
    FUNDING_PAYMENT = "funding_payment"

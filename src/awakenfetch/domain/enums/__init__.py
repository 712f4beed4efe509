from awakenfetch.domain.enums.fetch_status import FetchStatus
from awakenfetch.domain.enums.perp_tag import PerpTag
from awakenfetch.domain.enums.transaction_type import TransactionType

__all__ = [
    "FetchStatus",
    "PerpTag",
    "TransactionType",
]

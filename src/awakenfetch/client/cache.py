"""In-memory transaction cache keyed by (chain, address, date range).

Entries expire after a TTL (30 minutes by default) and are pruned lazily on
read. The cache is capped; once full, the oldest entry is evicted.
"""

import logging
import time
from collections import OrderedDict
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Optional

from awakenfetch.domain.models.transaction import Transaction

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60
MAX_ENTRIES = 50


def build_cache_key(
    chain_id: str,
    address: str,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
) -> str:
    parts = [chain_id, address.lower()]
    if from_date:
        parts.append(from_date)
    if to_date:
        parts.append(to_date)
    return ":".join(parts)


@dataclass(frozen=True)
class CacheEntry:
    transactions: tuple[Transaction, ...]
    cached_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.cached_at > self.ttl


class TransactionCache:
    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        max_entries: int = MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    def get(self, key: str) -> Optional[list[Transaction]]:
        self._prune()
        entry = self._entries.get(key)
        if entry is None:
            return None
        logger.debug("Cache hit for %s (%d transactions)", key, len(entry.transactions))
        return list(entry.transactions)

    def set(self, key: str, transactions: Sequence[Transaction], ttl: Optional[float] = None) -> None:
        self._prune()
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(
            transactions=tuple(transactions),
            cached_at=self._clock(),
            ttl=self._ttl if ttl is None else ttl,
        )
        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted cache entry %s", evicted)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _prune(self) -> None:
        now = self._clock()
        for key in [k for k, entry in self._entries.items() if entry.is_expired(now)]:
            del self._entries[key]

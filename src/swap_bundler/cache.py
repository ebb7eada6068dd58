"""Time-bounded cache of asset prices."""

from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable

from .constants import PRICE_CACHE_TTL_SECONDS


@dataclass(frozen=True)
class PriceCacheEntry:
    price: Decimal
    fetched_at: float


class PriceCache:
    """Price memoization keyed by asset address (case-insensitive).

    Entries expire lazily: an entry whose age reaches ``ttl_seconds`` is
    dropped on the next ``get``. Concurrent ``put`` calls for the same key
    overwrite each other, last write wins; prices here are display data only.
    """

    def __init__(
        self,
        ttl_seconds: float = PRICE_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, PriceCacheEntry] = {}

    def get(self, asset_id: str) -> Decimal | None:
        key = asset_id.lower()
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self.ttl_seconds:
            self._entries.pop(key, None)
            return None
        return entry.price

    def put(self, asset_id: str, price: Decimal) -> None:
        self._entries[asset_id.lower()] = PriceCacheEntry(
            price=price, fetched_at=self._clock()
        )

    def __len__(self) -> int:
        return len(self._entries)

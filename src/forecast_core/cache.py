"""
Snapshot-keyed memoization for forecast results.

The key is a digest of the snapshot's content, never object identity, so two
callers holding equal snapshots share one computation and any change to the
inputs yields a new key.
"""

import hashlib
import json
import threading
from collections.abc import Callable, Iterable
from datetime import date
from typing import Any

from cachetools import LRUCache
from pydantic import BaseModel

from .schemas import InventoryItem, TransactionEvent


def snapshot_digest(
    items: Iterable[InventoryItem],
    events: Iterable[TransactionEvent],
    as_of: date | None = None,
    settings: BaseModel | None = None,
    start: date | None = None,
) -> str:
    """
    SHA-256 over a canonical JSON rendering of the snapshot.

    `start` is the first day of the usage window; records without a catalog
    match can move it while leaving `events` unchanged.
    """
    payload = {
        "start": start.isoformat() if start else None,
        "items": sorted(
            (item.model_dump(mode="json") for item in items), key=lambda i: (i["sku"], i["id"])
        ),
        "events": [event.model_dump(mode="json") for event in events],
        "as_of": as_of.isoformat() if as_of else None,
        "settings": settings.model_dump(mode="json") if settings is not None else None,
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class SnapshotCache:
    """Thread-safe LRU of computed results keyed by snapshot digest."""

    def __init__(self, maxsize: int = 32):
        self._cache: LRUCache = LRUCache(maxsize=maxsize)
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get_or_compute(self, key: str, compute: Callable[[], Any]) -> Any:
        with self._lock:
            if key in self._cache:
                self.hits += 1
                return self._cache[key]
            self.misses += 1

        # Computed outside the lock; a concurrent duplicate just overwrites an equal value
        value = compute()
        with self._lock:
            self._cache[key] = value
        return value

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        return len(self._cache)

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Optional

from .coordinates import PrecisionTier, round_coordinates, ttl_for
from .entities import ProviderCacheEntry


class CoordinateCache:
    """Thread-safe TTL cache of provider responses keyed by rounded coordinates.

    Expired entries are dropped lazily on read; ``sweep`` can be called
    periodically to bound memory.
    """

    def __init__(self, time_func: Callable[[], float] = time.monotonic) -> None:
        self._time_func = time_func
        self._storage: Dict[str, ProviderCacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def now(self) -> float:
        return self._time_func()

    def get(self, key: str) -> Optional[ProviderCacheEntry]:
        now = self._time_func()
        with self._lock:
            entry = self._storage.get(key)
            if entry is not None and entry.is_expired(now):
                self._storage.pop(key, None)
                entry = None
            if entry is None:
                self._misses += 1
                return None
            self._hits += 1
            return entry

    def set(self, key: str, entry: ProviderCacheEntry) -> None:
        with self._lock:
            self._storage[key] = entry

    def put(
        self,
        key: str,
        *,
        provider: str,
        latitude: float,
        longitude: float,
        tier: PrecisionTier,
        payload: Any,
    ) -> ProviderCacheEntry:
        rounded_lat, rounded_lon = round_coordinates(latitude, longitude, tier)
        entry = ProviderCacheEntry(
            provider=provider,
            rounded_lat=rounded_lat,
            rounded_lon=rounded_lon,
            precision=tier.decimals,
            fetched_at=self._time_func(),
            ttl_ms=ttl_for(tier),
            payload=payload,
        )
        self.set(key, entry)
        return entry

    def sweep(self) -> int:
        now = self._time_func()
        with self._lock:
            expired = [key for key, entry in self._storage.items() if entry.is_expired(now)]
            for key in expired:
                del self._storage[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._storage.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {"hits": self._hits, "misses": self._misses, "keys": len(self._storage)}

    def __len__(self) -> int:
        with self._lock:
            return len(self._storage)


__all__ = ["CoordinateCache"]

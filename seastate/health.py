"""In-memory health registry for provider calls and cache efficiency.

Counters are kept per provider id and are safe to update from the worker
threads of ``FetchOrchestrator.fetch_many``.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Mapping, Optional


@dataclass(frozen=True)
class CacheStats:
    """Simple container for cache related counters."""

    hits: int = 0
    misses: int = 0
    keys: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {"hits": self.hits, "misses": self.misses, "keys": self.keys}


@dataclass(frozen=True)
class ProviderStats:
    requests: int = 0
    successes: int = 0
    failures: int = 0
    last_error: Optional[str] = None
    last_error_at: Optional[str] = None
    last_duration_ms: Optional[float] = None

    def as_dict(self) -> Dict[str, object]:
        return {
            "requests": self.requests,
            "successes": self.successes,
            "failures": self.failures,
            "last_error": self.last_error,
            "last_error_at": self.last_error_at,
            "last_duration_ms": self.last_duration_ms,
        }


class HealthRegistry:
    """Stores provider request counters and cache stats."""

    def __init__(self) -> None:
        self._providers: Dict[str, ProviderStats] = {}
        self._cache_stats: CacheStats = CacheStats()
        self._lock = Lock()

    # -- Provider calls -----------------------------------------------------
    def record_success(self, provider: str, duration_ms: Optional[float] = None) -> None:
        if not provider:
            raise ValueError("provider must be provided")
        with self._lock:
            stats = self._providers.get(provider, ProviderStats())
            self._providers[provider] = replace(
                stats,
                requests=stats.requests + 1,
                successes=stats.successes + 1,
                last_duration_ms=duration_ms,
            )

    def record_failure(
        self,
        provider: str,
        error: str,
        duration_ms: Optional[float] = None,
        when: Optional[datetime] = None,
    ) -> None:
        if not provider:
            raise ValueError("provider must be provided")
        when = when or datetime.now(timezone.utc)
        with self._lock:
            stats = self._providers.get(provider, ProviderStats())
            self._providers[provider] = replace(
                stats,
                requests=stats.requests + 1,
                failures=stats.failures + 1,
                last_error=error,
                last_error_at=self._format_datetime(when),
                last_duration_ms=duration_ms,
            )

    def provider_stats(self, provider: str) -> ProviderStats:
        with self._lock:
            return self._providers.get(provider, ProviderStats())

    # -- Cache stats --------------------------------------------------------
    def set_cache_stats(self, stats: Optional[Mapping[str, int]]) -> None:
        if not stats:
            new_stats = CacheStats()
        else:
            new_stats = CacheStats(
                hits=int(stats.get("hits", 0)),
                misses=int(stats.get("misses", 0)),
                keys=int(stats.get("keys", 0)),
            )
        with self._lock:
            self._cache_stats = new_stats

    # -- Snapshot -----------------------------------------------------------
    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            providers = {name: stats.as_dict() for name, stats in self._providers.items()}
            cache = self._cache_stats.as_dict()
        return {"providers": providers, "cache": cache}

    def reset(self) -> None:
        with self._lock:
            self._providers.clear()
            self._cache_stats = CacheStats()

    @staticmethod
    def _format_datetime(value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()


__all__ = ["CacheStats", "HealthRegistry", "ProviderStats"]

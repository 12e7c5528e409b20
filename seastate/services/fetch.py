from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..cache import CoordinateCache
from ..coordinates import InvalidCoordinate, cache_key, round_coordinates, validate_coordinates
from ..entities import FetchResult, Metric, ProviderAttempt
from ..health import HealthRegistry
from ..providers.base import DataProvider, ProviderError, QuotaExceeded, SchemaMismatch
from ..regions import select_providers


class AllProvidersExhausted(ProviderError):
    """Every provider in the chain failed, was skipped or ran out of time."""

    def __init__(self, attempts: Iterable[ProviderAttempt], message: str = "all providers failed") -> None:
        super().__init__(message)
        self.attempts: Tuple[ProviderAttempt, ...] = tuple(attempts)

    def __str__(self) -> str:
        tried = ", ".join(f"{a.provider}={a.outcome}" for a in self.attempts) or "none"
        return f"{super().__str__()} ({tried})"


@dataclass(frozen=True)
class FetchRequest:
    latitude: float
    longitude: float
    metric: Metric = Metric.WEATHER
    region_label: Optional[str] = None
    deadline: Optional[float] = None


Selector = Callable[..., Sequence[str]]
FetchOutcome = Union[FetchResult, AllProvidersExhausted, InvalidCoordinate]


class FetchOrchestrator:
    """Walks the provider chain for a point, serving from cache when possible.

    Each provider is rounded and cached at its own precision tier, so a
    cache hit for a coarse paid source never leaks into a fine free one.
    """

    def __init__(
        self,
        providers: Iterable[DataProvider],
        cache: Optional[CoordinateCache] = None,
        selector: Selector = select_providers,
        health: Optional[HealthRegistry] = None,
        time_func: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.providers: Dict[str, DataProvider] = {provider.name: provider for provider in providers}
        self.cache = cache or CoordinateCache(time_func=time_func)
        self.selector = selector
        self.health = health or HealthRegistry()
        self._time_func = time_func
        self._log = logger or logging.getLogger(self.__class__.__name__)

    # Public API ---------------------------------------------------------
    def fetch(
        self,
        latitude: float,
        longitude: float,
        metric: Metric = Metric.WEATHER,
        *,
        region_label: Optional[str] = None,
        deadline: Optional[float] = None,
    ) -> FetchResult:
        validate_coordinates(latitude, longitude)
        metric = Metric(metric)
        started = self._time_func()
        attempts: List[ProviderAttempt] = []

        for name in self.selector(latitude, longitude, metric, region_label):
            provider = self.providers.get(name)
            if provider is None:
                self._log.debug("Provider %s not configured, skipping", name)
                attempts.append(ProviderAttempt(name, "skipped", "not configured"))
                continue
            if not provider.supports(metric):
                self._log.debug("Provider %s does not serve %s, skipping", name, metric.value)
                attempts.append(ProviderAttempt(name, "skipped", f"no {metric.value}"))
                continue

            remaining: Optional[float] = None
            if deadline is not None:
                remaining = deadline - (self._time_func() - started)
                if remaining <= 0:
                    self._log.warning("Deadline of %.2fs exhausted before %s", deadline, name)
                    attempts.append(ProviderAttempt(name, "deadline", "budget exhausted"))
                    break

            tier = provider.precision
            rounded_lat, rounded_lon = round_coordinates(latitude, longitude, tier)
            key = cache_key(name, latitude, longitude, tier, prefix=metric.value)
            entry = self.cache.get(key)
            if entry is not None:
                self._log.debug("Cache hit for %s", key)
                attempts.append(ProviderAttempt(name, "hit"))
                self._publish_cache_stats()
                return self._result(provider, "hit", rounded_lat, rounded_lon, entry.payload, attempts)

            timeout = provider.timeout if remaining is None else min(provider.timeout, remaining)
            call_started = self._time_func()
            try:
                records = provider.normalize(metric, provider.fetch_raw(rounded_lat, rounded_lon, metric, timeout=timeout))
                if not records:
                    raise SchemaMismatch("no records in payload", provider=name)
            except QuotaExceeded as exc:
                self._log.warning("Provider %s quota exceeded", name)
                self._record_failure(name, "quota", exc, call_started, attempts)
                continue
            except SchemaMismatch as exc:
                self._log.error("Provider %s returned an unexpected payload: %s", name, exc)
                self._record_failure(name, "schema", exc, call_started, attempts)
                continue
            except ProviderError as exc:
                self._log.error("Provider %s failed: %s", name, exc)
                self._record_failure(name, "unavailable", exc, call_started, attempts)
                continue

            duration_ms = (self._time_func() - call_started) * 1000.0
            if deadline is not None and self._time_func() - started > deadline:
                self._log.warning("Provider %s answered after the %.2fs deadline, discarding", name, deadline)
                self.health.record_failure(name, "late", duration_ms)
                attempts.append(ProviderAttempt(name, "late", f"{duration_ms:.0f} ms"))
                break

            self.health.record_success(name, duration_ms)
            payload = tuple(records)
            self.cache.put(key, provider=name, latitude=latitude, longitude=longitude, tier=tier, payload=payload)
            self._publish_cache_stats()
            attempts.append(ProviderAttempt(name, "miss"))
            self._log.info("Served %s for %s from %s", metric.value, key, provider.label)
            return self._result(provider, "miss", rounded_lat, rounded_lon, payload, attempts)

        self._publish_cache_stats()
        raise AllProvidersExhausted(attempts)

    def fetch_many(
        self,
        requests: Iterable[Union[FetchRequest, Tuple]],
        max_workers: int = 4,
    ) -> List[FetchOutcome]:
        """Run independent fetches concurrently; results keep the input order."""
        batch = [item if isinstance(item, FetchRequest) else FetchRequest(*item) for item in requests]
        if not batch:
            return []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(self._fetch_one, batch))

    # Helpers ------------------------------------------------------------
    def _fetch_one(self, request: FetchRequest) -> FetchOutcome:
        try:
            return self.fetch(
                request.latitude,
                request.longitude,
                request.metric,
                region_label=request.region_label,
                deadline=request.deadline,
            )
        except (AllProvidersExhausted, InvalidCoordinate) as exc:
            return exc

    def _record_failure(
        self,
        name: str,
        outcome: str,
        exc: Exception,
        call_started: float,
        attempts: List[ProviderAttempt],
    ) -> None:
        duration_ms = (self._time_func() - call_started) * 1000.0
        self.health.record_failure(name, str(exc), duration_ms)
        attempts.append(ProviderAttempt(name, outcome, str(exc)))

    def _publish_cache_stats(self) -> None:
        self.health.set_cache_stats(self.cache.stats())

    @staticmethod
    def _result(
        provider: DataProvider,
        status: str,
        rounded_lat: float,
        rounded_lon: float,
        records: Sequence,
        attempts: List[ProviderAttempt],
    ) -> FetchResult:
        return FetchResult(
            records=tuple(records),
            provider=provider.name,
            source=provider.label,
            cache_status=status,
            rounded_lat=rounded_lat,
            rounded_lon=rounded_lon,
            attempts=tuple(attempts),
        )


__all__ = ["AllProvidersExhausted", "FetchOrchestrator", "FetchRequest"]

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from seastate.health import HealthRegistry, ProviderStats


@pytest.fixture()
def registry() -> HealthRegistry:
    registry = HealthRegistry()
    when = datetime(2024, 1, 10, 12, 30, tzinfo=timezone.utc)
    registry.record_success("metno", duration_ms=120.0)
    registry.record_success("metno", duration_ms=80.0)
    registry.record_failure("openweather", "HTTP 429", duration_ms=40.0, when=when)
    registry.record_failure("openmeteo", "timeout", when=when.astimezone(timezone(timedelta(hours=2))))
    registry.set_cache_stats({"hits": 42, "misses": 3, "keys": 7})
    return registry


def test_snapshot_contains_provider_and_cache_counters(registry: HealthRegistry) -> None:
    snapshot = registry.snapshot()

    assert snapshot["cache"] == {"hits": 42, "misses": 3, "keys": 7}
    assert snapshot["providers"]["metno"] == {
        "requests": 2,
        "successes": 2,
        "failures": 0,
        "last_error": None,
        "last_error_at": None,
        "last_duration_ms": 80.0,
    }
    assert snapshot["providers"]["openweather"]["last_error"] == "HTTP 429"
    assert snapshot["providers"]["openweather"]["last_error_at"] == "2024-01-10T12:30:00+00:00"


def test_failure_timestamps_are_normalised_to_utc(registry: HealthRegistry) -> None:
    assert registry.provider_stats("openmeteo").last_error_at == "2024-01-10T12:30:00+00:00"


def test_unknown_provider_has_empty_stats(registry: HealthRegistry) -> None:
    assert registry.provider_stats("stormglass") == ProviderStats()


def test_empty_cache_stats_reset_counters(registry: HealthRegistry) -> None:
    registry.set_cache_stats(None)

    assert registry.snapshot()["cache"] == {"hits": 0, "misses": 0, "keys": 0}


def test_reset_clears_everything(registry: HealthRegistry) -> None:
    registry.reset()

    assert registry.snapshot() == {"providers": {}, "cache": {"hits": 0, "misses": 0, "keys": 0}}


def test_provider_name_is_required() -> None:
    registry = HealthRegistry()

    with pytest.raises(ValueError):
        registry.record_success("")
    with pytest.raises(ValueError):
        registry.record_failure("", "boom")

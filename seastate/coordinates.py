"""Coordinate precision tiers.

Every data source is cached at a fixed coordinate precision. Coarse sources
(astronomy, paid marine APIs) change slowly or cost money per call, so they
are rounded harder and kept longer:

========================  ==  ========  =====
tier                      dp  ~res      TTL
========================  ==  ========  =====
astronomy                 0   111 km    24 h
paid-marine               1   11 km     12 h
environmental             2   1.1 km    6 h
standard                  3   110 m     3 h
high-precision            4   11 m      1 h
========================  ==  ========  =====
"""
from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, List, Optional, Tuple

_HOUR_MS = 60 * 60 * 1000


class InvalidCoordinate(ValueError):
    """Raised for latitude/longitude values outside the valid range."""


class PrecisionTier(Enum):
    ASTRONOMY = "astronomy"
    PAID_MARINE = "paid-marine"
    ENVIRONMENTAL = "environmental"
    STANDARD = "standard"
    HIGH_PRECISION = "high-precision"

    @property
    def decimals(self) -> int:
        return _DECIMALS[self]


_DECIMALS = {
    PrecisionTier.ASTRONOMY: 0,
    PrecisionTier.PAID_MARINE: 1,
    PrecisionTier.ENVIRONMENTAL: 2,
    PrecisionTier.STANDARD: 3,
    PrecisionTier.HIGH_PRECISION: 4,
}

_TTL_MS = {
    PrecisionTier.ASTRONOMY: 24 * _HOUR_MS,
    PrecisionTier.PAID_MARINE: 12 * _HOUR_MS,
    PrecisionTier.ENVIRONMENTAL: 6 * _HOUR_MS,
    PrecisionTier.STANDARD: 3 * _HOUR_MS,
    PrecisionTier.HIGH_PRECISION: 1 * _HOUR_MS,
}


def validate_coordinates(latitude: float, longitude: float) -> None:
    for name, value, limit in (("latitude", latitude, 90.0), ("longitude", longitude, 180.0)):
        try:
            number = float(value)
        except (TypeError, ValueError) as exc:
            raise InvalidCoordinate(f"{name} must be a number, got {value!r}") from exc
        if not math.isfinite(number) or abs(number) > limit:
            raise InvalidCoordinate(f"{name} {value!r} outside [-{limit:g}, {limit:g}]")


def round_value(value: float, decimals: int) -> float:
    """Round half away from zero using the shortest decimal repr of ``value``.

    Going through ``repr`` keeps the operation idempotent: a rounded float
    prints back as the same decimal string and rounds to itself.
    """
    quantum = Decimal(1).scaleb(-decimals)
    rounded = float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))
    return rounded + 0.0  # -0.0 -> 0.0


def round_coordinates(latitude: float, longitude: float, tier: PrecisionTier) -> Tuple[float, float]:
    return round_value(latitude, tier.decimals), round_value(longitude, tier.decimals)


def ttl_for(tier: PrecisionTier) -> int:
    """Cache lifetime for ``tier`` in milliseconds."""
    return _TTL_MS[tier]


def format_coordinates(latitude: float, longitude: float, tier: PrecisionTier) -> str:
    lat, lon = round_coordinates(latitude, longitude, tier)
    decimals = tier.decimals
    return f"{lat:.{decimals}f},{lon:.{decimals}f}"


def cache_key(
    provider: str,
    latitude: float,
    longitude: float,
    tier: PrecisionTier,
    prefix: Optional[str] = None,
) -> str:
    key = f"{provider}:{format_coordinates(latitude, longitude, tier)}"
    return f"{prefix}:{key}" if prefix else key


def unique_rounded_coordinates(
    coordinates: Iterable[Tuple[float, float]], tier: PrecisionTier
) -> List[Tuple[float, float]]:
    """Collapse points that share a grid cell at ``tier`` precision, keeping first-seen order."""
    seen = set()
    result: List[Tuple[float, float]] = []
    for latitude, longitude in coordinates:
        rounded = round_coordinates(latitude, longitude, tier)
        if rounded in seen:
            continue
        seen.add(rounded)
        result.append(rounded)
    return result


__all__ = [
    "InvalidCoordinate",
    "PrecisionTier",
    "cache_key",
    "format_coordinates",
    "round_coordinates",
    "round_value",
    "ttl_for",
    "unique_rounded_coordinates",
    "validate_coordinates",
]

"""Barometric pressure trend over the last three hours.

=================  ====================  =======================
category           delta over 3 h        angling note
=================  ====================  =======================
``rapid_falling``  <= -5.0 hPa           bite may stall
``falling``        <= -2.0 hPa           reduced fish activity
``rising``         >= +2.0 hPa           fish active
``steady``         otherwise
=================  ====================  =======================
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Sequence

from ..entities import PressureTrend

RAPID_FALL_HPA = -5.0
FALL_HPA = -2.0
RISE_HPA = 2.0
# readings carry one or two decimals; drop float noise before comparing
DELTA_DECIMALS = 6


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _nearest(timeseries: Sequence[Any], target: datetime) -> Any:
    # min() keeps the first of equally distant entries
    return min(timeseries, key=lambda entry: abs((_aware(entry.timestamp) - target).total_seconds()))


def _pressure(entry: Any) -> Optional[float]:
    return getattr(entry, "pressure_hpa", None)


def classify(timeseries: Sequence[Any], target_time: Optional[datetime] = None) -> PressureTrend:
    """Classify the trend at ``target_time`` (default: now, UTC).

    ``timeseries`` holds objects exposing ``timestamp`` and ``pressure_hpa``,
    such as :class:`~seastate.entities.WeatherRecord`.
    """
    if not timeseries:
        return PressureTrend(
            category="unknown",
            pressure_now=None,
            pressure_3h_ago=None,
            pressure_6h_ago=None,
            delta_3h=None,
            delta_6h=None,
            explanation="No timeseries data available",
        )

    target = _aware(target_time or datetime.now(timezone.utc))
    pressure_now = _pressure(_nearest(timeseries, target))
    pressure_3h = _pressure(_nearest(timeseries, target - timedelta(hours=3)))
    pressure_6h = _pressure(_nearest(timeseries, target - timedelta(hours=6)))

    if pressure_now is None or pressure_3h is None:
        return PressureTrend(
            category="unknown",
            pressure_now=pressure_now,
            pressure_3h_ago=pressure_3h,
            pressure_6h_ago=pressure_6h,
            delta_3h=None,
            delta_6h=None,
            explanation="Insufficient pressure data (missing current or 3h ago)",
        )

    delta_3h = round(pressure_now - pressure_3h, DELTA_DECIMALS)
    delta_6h = round(pressure_now - pressure_6h, DELTA_DECIMALS) if pressure_6h is not None else None

    if delta_3h <= RAPID_FALL_HPA:
        category = "rapid_falling"
        explanation = f"Pressure falling rapidly ({delta_3h:.1f} hPa/3h) - bite may stall"
    elif delta_3h <= FALL_HPA:
        category = "falling"
        explanation = f"Pressure falling ({delta_3h:.1f} hPa/3h) - reduced fish activity"
    elif delta_3h >= RISE_HPA:
        category = "rising"
        explanation = f"Pressure rising (+{delta_3h:.1f} hPa/3h) - fish active"
    else:
        category = "steady"
        sign = "+" if delta_3h > 0 else ""
        explanation = f"Pressure stable ({sign}{delta_3h:.1f} hPa/3h)"

    return PressureTrend(
        category=category,
        pressure_now=pressure_now,
        pressure_3h_ago=pressure_3h,
        pressure_6h_ago=pressure_6h,
        delta_3h=delta_3h,
        delta_6h=delta_6h,
        explanation=explanation,
    )


__all__ = ["classify"]

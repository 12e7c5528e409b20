"""Ocean current speed and direction and what they mean for a bait in the water.

Copernicus physics products publish currents as ``uo`` (eastward) and
``vo`` (northward) components in m/s. Direction here is the mathematical
angle of the flow: 0 = towards east, 90 = towards north.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

KNOTS_TO_MS = 1852 / 3600

# counter-clockwise from east, matching the direction convention above
COMPASS_FROM_EAST = (
    "E", "ENE", "NE", "NNE", "N", "NNW", "NW", "WNW",
    "W", "WSW", "SW", "SSW", "S", "SSE", "SE", "ESE",
)

STRATEGY_RANGES = {
    "scent_hunter": (0.15, 0.8),
    "ambush_predator": (0.1, 0.6),
    "active_chaser": (0.2, 1.0),
    "bottom_feeder": (0.0, 0.5),
}


@dataclass(frozen=True)
class OceanCurrent:
    eastward_ms: float
    northward_ms: float
    speed_ms: float
    direction_deg: float


@dataclass(frozen=True)
class CurrentAnalysis:
    current: OceanCurrent
    feeding_score: float
    interpretation: str
    recommendations: Tuple[str, ...]


def calculate_current(eastward_ms: float, northward_ms: float) -> OceanCurrent:
    speed = math.hypot(eastward_ms, northward_ms)
    direction = (math.degrees(math.atan2(northward_ms, eastward_ms)) + 360) % 360
    return OceanCurrent(eastward_ms, northward_ms, speed, direction)


def current_feeding_score(speed_ms: float) -> float:
    """0-1 suitability; 0.3 m/s moving water scores 1.0."""
    if speed_ms < 0.1:
        return 0.5
    if speed_ms <= 0.3:
        return 0.7 + (speed_ms - 0.1) * 1.5
    if speed_ms <= 0.5:
        return 1.0 - (speed_ms - 0.3) * 0.5
    if speed_ms <= 1.0:
        return 0.7 - (speed_ms - 0.5) * 0.6
    return max(0.2, 0.4 - (speed_ms - 1.0) * 0.2)


def interpret_current_speed(speed_ms: float) -> str:
    if speed_ms < 0.1:
        return "Very slow current"
    if speed_ms < 0.2:
        return "Slow current"
    if speed_ms < 0.5:
        return "Moderate current (ideal)"
    if speed_ms < 1.0:
        return "Strong current"
    if speed_ms < 1.5:
        return "Very strong current"
    return "Extreme current"


def compass_direction(degrees: float) -> str:
    index = round((degrees % 360) / 360 * 16) % 16
    return COMPASS_FROM_EAST[index]


def current_recommendations(current: OceanCurrent) -> List[str]:
    speed = current.speed_ms
    if speed < 0.1:
        advice = ["Slack water - try static baits or slow retrieves", "Fish may be less active - target structure"]
    elif speed <= 0.5:
        advice = [
            "Perfect current for active feeding",
            "Drift fishing highly effective",
            "Fish will be facing into current",
        ]
        if 0.2 <= speed <= 0.3:
            advice.append("OPTIMAL CONDITIONS - scent trails active")
    elif speed <= 1.0:
        advice = [
            "Strong current - use heavier weights",
            "Fish current breaks and eddies",
            "Predators hunting in flow",
        ]
    else:
        advice = [
            "Very strong current - challenging conditions",
            "Focus on slack water zones",
            "Wait for current to ease",
        ]
    advice.append(f"Current flowing {compass_direction(current.direction_deg)} ({current.direction_deg:.0f} deg)")
    return advice


def analyze_current(eastward_ms: float, northward_ms: float) -> CurrentAnalysis:
    current = calculate_current(eastward_ms, northward_ms)
    return CurrentAnalysis(
        current=current,
        feeding_score=current_feeding_score(current.speed_ms),
        interpretation=interpret_current_speed(current.speed_ms),
        recommendations=tuple(current_recommendations(current)),
    )


def knots_to_ms(speed_kn: float) -> float:
    """``MarineRecord.current_speed_kn`` back to m/s for the scores above."""
    return speed_kn * KNOTS_TO_MS


def drift_distance_m(speed_ms: float, minutes: float) -> float:
    return speed_ms * minutes * 60


def scent_trail_reach_m(speed_ms: float) -> int:
    if speed_ms < 0.1:
        return 10
    if speed_ms < 0.3:
        return 30
    if speed_ms < 0.5:
        return 50
    if speed_ms < 1.0:
        return 40
    return 20


def is_favorable_for_strategy(current: OceanCurrent, strategy: str) -> bool:
    """Unknown strategies are never favourable."""
    bounds = STRATEGY_RANGES.get(strategy)
    if bounds is None:
        return False
    low, high = bounds
    return low <= current.speed_ms <= high


__all__ = [
    "CurrentAnalysis",
    "OceanCurrent",
    "analyze_current",
    "calculate_current",
    "compass_direction",
    "current_feeding_score",
    "current_recommendations",
    "drift_distance_m",
    "interpret_current_speed",
    "is_favorable_for_strategy",
    "knots_to_ms",
    "scent_trail_reach_m",
]

"""Traffic-light surf grading for one day of hourly conditions.

Each hour gets a 0-100 score from wave height and period, wind strength
and direction relative to the beach, and the tide stage. Scores map to
``green`` (>= 70), ``amber`` (>= 45) or ``red``. Skill gates then cap the
light so a novice is never shown green in overhead surf.

Night hours (local hour < 6 or >= 20) are graded and returned but never
chosen as the best hour of the day.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import List, Optional, Sequence, Tuple, Union
from zoneinfo import ZoneInfo

from ..entities import DayGrade, HourGrade

GREEN = "green"
AMBER = "amber"
RED = "red"
_LIGHT_RANK = {GREEN: 2, AMBER: 1, RED: 0}

OFFSHORE = "offshore"
ONSHORE = "onshore"
CROSS_SHORE = "cross-shore"

SKILLS = ("novice", "intermediate", "advanced")
# max wave height (m) and period (s) before the light is capped at amber
SAFETY_GATES = {
    "novice": (1.2, 11.0),
    "intermediate": (2.5, 15.0),
}
HARD_GATE_FACTOR = 1.5

DAY_START_HOUR = 6
NIGHT_START_HOUR = 20
GLASSY_MPS = 3.0


@dataclass(frozen=True)
class SurfHour:
    ts: datetime
    wave_height_m: float
    wave_period_s: float
    wind_speed_mps: Optional[float] = None
    wind_dir_deg: Optional[float] = None
    tide_height_m: Optional[float] = None


@dataclass(frozen=True)
class DayMarine:
    hours: Sequence[SurfHour] = field(default_factory=tuple)
    beach_facing_deg: Optional[float] = None
    skill: str = "intermediate"
    timezone: Union[str, tzinfo, None] = None

    def __post_init__(self) -> None:
        if self.skill not in SKILLS:
            raise ValueError(f"skill must be one of {', '.join(SKILLS)}, got {self.skill!r}")


def angular_difference(a: float, b: float) -> float:
    return abs(((a - b + 540) % 360) - 180)


def wind_regime(beach_facing_deg: Optional[float], wind_dir_deg: Optional[float]) -> Optional[str]:
    """Classify wind (direction it blows *from*) against the beach's seaward bearing."""
    if beach_facing_deg is None or wind_dir_deg is None:
        return None
    from_land = (beach_facing_deg + 180) % 360
    if angular_difference(wind_dir_deg, from_land) <= 45:
        return OFFSHORE
    if angular_difference(wind_dir_deg, beach_facing_deg) <= 45:
        return ONSHORE
    return CROSS_SHORE


def light_for(score: int) -> str:
    if score >= 70:
        return GREEN
    if score >= 45:
        return AMBER
    return RED


def label_for(light: str, skill: str, wave_height_m: Optional[float]) -> str:
    if light == GREEN:
        return "Good"
    if light == AMBER:
        return "Fair"
    if skill == "novice" and wave_height_m is not None and 0.3 <= wave_height_m < 1.0:
        return "Beginner friendly"
    return "Poor"


def is_night(ts: datetime, zone: Optional[tzinfo] = None) -> bool:
    local = ts.astimezone(zone) if zone is not None and ts.tzinfo is not None else ts
    return local.hour < DAY_START_HOUR or local.hour >= NIGHT_START_HOUR


# Helpers ----------------------------------------------------------------------
def _height_score(height: float) -> Tuple[int, str]:
    if height < 0.3:
        return 10, f"flat ({height:.1f}m)"
    if height < 0.6:
        return 40, f"small waves ({height:.1f}m)"
    if height < 1.0:
        return 60, f"fun size ({height:.1f}m)"
    if height < 2.0:
        return 85, f"good size ({height:.1f}m)"
    if height < 3.0:
        return 70, f"big ({height:.1f}m)"
    return 45, f"very big ({height:.1f}m)"


def _period_adjustment(period: float) -> Tuple[int, str]:
    if period < 6:
        return -15, f"short period wind swell ({period:.0f}s)"
    if period < 9:
        return 0, f"average period ({period:.0f}s)"
    if period < 12:
        return 10, f"good period ({period:.0f}s)"
    return 15, f"long period groundswell ({period:.0f}s)"


def _wind_adjustment(speed: Optional[float], regime: Optional[str]) -> Tuple[int, str]:
    if speed is None:
        return 0, "no wind data"
    if speed < GLASSY_MPS:
        return 10, "glassy"
    if regime == OFFSHORE:
        return (10, "light offshore") if speed <= 10 else (-10, "strong offshore")
    if regime == CROSS_SHORE:
        return (-5, "cross-shore") if speed <= 7 else (-15, "strong cross-shore")
    if regime == ONSHORE:
        return (-15, "onshore") if speed <= 7 else (-30, "strong onshore, blown out")
    if speed <= 5:
        return 0, "light wind"
    if speed <= 10:
        return -10, "moderate wind"
    return -25, "strong wind"


def _tide_range(hours: Sequence[SurfHour]) -> Optional[Tuple[float, float]]:
    heights = [hour.tide_height_m for hour in hours if hour.tide_height_m is not None]
    if len(heights) < 2 or max(heights) == min(heights):
        return None
    return min(heights), max(heights)


def _apply_gate(light: str, hour: SurfHour, skill: str, reasons: List[str]) -> str:
    gate = SAFETY_GATES.get(skill)
    if gate is None:
        return light
    max_height, max_period = gate
    if hour.wave_height_m > max_height * HARD_GATE_FACTOR:
        reasons.append(f"well beyond {skill} limit of {max_height:g}m")
        return RED
    if hour.wave_height_m > max_height or hour.wave_period_s > max_period:
        reasons.append(f"above {skill} limit ({max_height:g}m / {max_period:g}s)")
        return AMBER if light == GREEN else light
    return light


def _resolve_zone(zone: Union[str, tzinfo, None]) -> Optional[tzinfo]:
    if isinstance(zone, str):
        return ZoneInfo(zone)
    return zone


# Public API -------------------------------------------------------------------
def grade_hour(
    hour: SurfHour,
    beach_facing_deg: Optional[float] = None,
    skill: str = "intermediate",
    tide_range: Optional[Tuple[float, float]] = None,
) -> HourGrade:
    reasons: List[str] = []
    score, reason = _height_score(hour.wave_height_m)
    reasons.append(reason)

    adjustment, reason = _period_adjustment(hour.wave_period_s)
    score += adjustment
    reasons.append(reason)

    regime = wind_regime(beach_facing_deg, hour.wind_dir_deg)
    adjustment, reason = _wind_adjustment(hour.wind_speed_mps, regime)
    score += adjustment
    reasons.append(reason)

    if tide_range is not None and hour.tide_height_m is not None:
        low, high = tide_range
        stage = (hour.tide_height_m - low) / (high - low)
        if 0.25 <= stage <= 0.75:
            score += 5
            reasons.append("mid tide")

    score = max(0, min(100, score))
    light = _apply_gate(light_for(score), hour, skill, reasons)
    return HourGrade(
        ts=hour.ts,
        light=light,
        score=score,
        reasons=tuple(reasons),
        label=label_for(light, skill, hour.wave_height_m),
        wind_regime=regime,
    )


def grade_day(day: DayMarine) -> DayGrade:
    tide_range = _tide_range(day.hours)
    zone = _resolve_zone(day.timezone)
    graded = tuple(grade_hour(hour, day.beach_facing_deg, day.skill, tide_range) for hour in day.hours)

    daytime = [grade for grade in graded if not is_night(grade.ts, zone)]
    best: Optional[HourGrade] = None
    if daytime:
        ranked = sorted(daytime, key=lambda grade: (-_LIGHT_RANK[grade.light], -grade.score, grade.ts))
        best = ranked[0]

    day_light = best.light if best is not None else RED
    mean_height = (
        sum(hour.wave_height_m for hour in day.hours) / len(day.hours) if day.hours else None
    )
    return DayGrade(
        hours=graded,
        best_hour=best,
        day_light=day_light,
        day_label=label_for(day_light, day.skill, mean_height),
    )


__all__ = [
    "AMBER",
    "CROSS_SHORE",
    "DayMarine",
    "GREEN",
    "OFFSHORE",
    "ONSHORE",
    "RED",
    "SurfHour",
    "angular_difference",
    "grade_day",
    "grade_hour",
    "is_night",
    "label_for",
    "light_for",
    "wind_regime",
]

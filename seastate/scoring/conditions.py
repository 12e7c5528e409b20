"""Small-boat sea conditions and safety warnings for one marine step."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..entities import MarineRecord

MS_TO_KNOTS = 3600 / 1852
STRONG_CURRENT_KN = 2.0 * MS_TO_KNOTS


@dataclass(frozen=True)
class ConditionsReport:
    category: str
    wind_speed_kn: float
    wave_height_m: float
    visibility_km: float
    visibility_estimated: bool
    warnings: Tuple[str, ...]


def estimate_visibility(wind_kn: float, wave_height_m: float) -> float:
    """Rough sea-spray visibility in km when no observation is available."""
    if wind_kn > 25 or wave_height_m > 3:
        return 2.0
    if wind_kn > 15 or wave_height_m > 2:
        return 5.0
    if wind_kn > 10 or wave_height_m > 1:
        return 8.0
    return 12.0


def categorize(wind_kn: float, wave_height_m: float, visibility_km: float) -> str:
    if wind_kn > 25 or wave_height_m > 3.0 or visibility_km < 1.0:
        return "dangerous"
    if wind_kn > 20 or wave_height_m > 2.0 or visibility_km < 2.0:
        return "poor"
    if wind_kn > 15 or wave_height_m > 1.5 or visibility_km < 5.0:
        return "moderate"
    if wind_kn > 10 or wave_height_m > 1.0:
        return "good"
    return "excellent"


def safety_warnings(
    wind_kn: float,
    wave_height_m: float,
    visibility_km: float,
    current_kn: Optional[float] = None,
) -> List[str]:
    warnings: List[str] = []
    if wind_kn > 20:
        warnings.append(f"Strong winds: {wind_kn:.0f} knots - consider postponing the trip")
    elif wind_kn > 15:
        warnings.append(f"Moderate winds: {wind_kn:.0f} knots - experienced boaters only")

    if wave_height_m > 2.5:
        warnings.append(f"High waves: {wave_height_m:.1f}m - dangerous for small boats")
    elif wave_height_m > 1.5:
        warnings.append(f"Moderate waves: {wave_height_m:.1f}m - use caution")

    if visibility_km < 2.0:
        warnings.append(f"Poor visibility: {visibility_km:g}km - navigation hazard")

    if current_kn is not None and current_kn > STRONG_CURRENT_KN:
        warnings.append(f"Strong currents: {current_kn:.1f} knots - anchoring may be difficult")
    return warnings


def assess_conditions(marine: MarineRecord, wind_speed_mps: Optional[float] = None) -> ConditionsReport:
    wave = max(marine.wave_height_m, marine.swell_height_m or 0.0)
    wind_kn = (wind_speed_mps or 0.0) * MS_TO_KNOTS
    estimated = marine.visibility_km is None
    visibility_km = estimate_visibility(wind_kn, wave) if estimated else marine.visibility_km
    return ConditionsReport(
        category=categorize(wind_kn, wave, visibility_km),
        wind_speed_kn=wind_kn,
        wave_height_m=wave,
        visibility_km=visibility_km,
        visibility_estimated=estimated,
        warnings=tuple(safety_warnings(wind_kn, wave, visibility_km, marine.current_speed_kn)),
    )


__all__ = ["ConditionsReport", "assess_conditions", "categorize", "estimate_visibility", "safety_warnings"]

"""Water clarity index (0 turbid .. 1 clear) from Kd490 and chlorophyll-a."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

KD490_TURBID = 0.4
CHLOROPHYLL_TURBID = 3.0


@dataclass(frozen=True)
class WaterClarity:
    clarity_index: float
    method: str
    confidence: str
    kd490: Optional[float] = None
    chlorophyll_mg_m3: Optional[float] = None


@dataclass(frozen=True)
class ClarityInterpretation:
    label: str
    description: str
    fishing_impact: str


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def clarity_from_kd490(kd490: float) -> float:
    return _clamp(1 - kd490 / KD490_TURBID)


def clarity_from_chlorophyll(chlorophyll: float) -> float:
    return _clamp(1 - chlorophyll / CHLOROPHYLL_TURBID)


def combined_clarity(kd490: float, chlorophyll: float) -> float:
    return 0.7 * clarity_from_kd490(kd490) + 0.3 * clarity_from_chlorophyll(chlorophyll)


def calculate_water_clarity(
    kd490: Optional[float] = None, chlorophyll: Optional[float] = None
) -> Optional[WaterClarity]:
    """Kd490 is a direct optical measure; chlorophyll only a bloom proxy."""
    if kd490 is not None and chlorophyll is not None:
        return WaterClarity(combined_clarity(kd490, chlorophyll), "combined", "high", kd490, chlorophyll)
    if kd490 is not None:
        return WaterClarity(clarity_from_kd490(kd490), "kd490", "high", kd490=kd490)
    if chlorophyll is not None:
        return WaterClarity(clarity_from_chlorophyll(chlorophyll), "chlorophyll", "medium", chlorophyll_mg_m3=chlorophyll)
    return None


def interpret_clarity(clarity_index: float) -> ClarityInterpretation:
    if clarity_index >= 0.8:
        return ClarityInterpretation("Crystal Clear", "Excellent visibility", "+18% for sight feeders")
    if clarity_index >= 0.6:
        return ClarityInterpretation("Clear", "Good visibility", "+10% for sight feeders")
    if clarity_index >= 0.4:
        return ClarityInterpretation("Moderate", "Fair visibility", "Neutral, normal conditions")
    if clarity_index >= 0.2:
        return ClarityInterpretation("Murky", "Poor visibility", "-10% for sight feeders, scent feeders unaffected")
    return ClarityInterpretation("Very Murky", "Very poor visibility", "-18% for sight feeders, switch to scent feeders")


def chlorophyll_clarity_index(chlorophyll: Optional[float]) -> Optional[int]:
    """Chlorophyll clarity on a 0-100 scale, ``None`` without a usable value."""
    if chlorophyll is None or not math.isfinite(chlorophyll):
        return None
    return int(math.floor(clarity_from_chlorophyll(chlorophyll) * 100 + 0.5))


__all__ = [
    "ClarityInterpretation",
    "WaterClarity",
    "calculate_water_clarity",
    "chlorophyll_clarity_index",
    "clarity_from_chlorophyll",
    "clarity_from_kd490",
    "combined_clarity",
    "interpret_clarity",
]

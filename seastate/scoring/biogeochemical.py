"""Fishing-score enhancement from ocean biogeochemistry.

Three 0-100 indices are derived from Copernicus-style inputs and folded into
a multiplier applied to a base catch prediction:

- baitfish activity from chlorophyll (plus nutrient boosts),
- visibility from the Kd490 attenuation coefficient,
- habitat suitability from oxygen, temperature and salinity per species.

Every input may be missing; a missing input scores 50 ("average").
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from ..entities import BiogeochemicalData, EnhancementResult

HYPOXIC_MG_L = 2.0
UNKNOWN_SCORE = 50
MIN_MULTIPLIER = 0.5
MAX_MULTIPLIER = 2.0


@dataclass(frozen=True)
class SpeciesPreferences:
    temp_min: float
    temp_max: float
    temp_optimal_min: float
    temp_optimal_max: float
    oxygen_min: float
    salinity_min: float
    salinity_max: float
    prefers_turbid: bool = False
    prefers_clear: bool = False


SPECIES_PREFERENCES: Dict[str, SpeciesPreferences] = {
    "mackerel": SpeciesPreferences(8, 20, 11, 15, 5, 30, 38, prefers_clear=True),
    "bass": SpeciesPreferences(8, 24, 12, 18, 5, 28, 40, prefers_clear=True),
    "pollock": SpeciesPreferences(4, 16, 8, 12, 6, 30, 36),
    "cod": SpeciesPreferences(0, 16, 4, 10, 6, 28, 35),
    "plaice": SpeciesPreferences(2, 20, 8, 15, 4, 28, 36, prefers_turbid=True),
    # euryhaline, tolerates brackish water
    "flounder": SpeciesPreferences(2, 22, 10, 18, 4, 5, 35, prefers_turbid=True),
    "whiting": SpeciesPreferences(4, 16, 8, 12, 5, 30, 36),
    "herring": SpeciesPreferences(4, 18, 8, 14, 5, 25, 38, prefers_clear=True),
    "bream": SpeciesPreferences(8, 24, 12, 20, 4, 28, 36, prefers_turbid=True),
    "default": SpeciesPreferences(4, 20, 10, 16, 5, 28, 38),
}


class _Index(NamedTuple):
    score: int
    explanation: str


class _Habitat(NamedTuple):
    score: int
    explanation: str
    warnings: Tuple[str, ...]
    hypoxic: bool


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def species_preferences(species_name: Optional[str]) -> SpeciesPreferences:
    if not species_name:
        return SPECIES_PREFERENCES["default"]
    return SPECIES_PREFERENCES.get(species_name.strip().lower(), SPECIES_PREFERENCES["default"])


# Public API -------------------------------------------------------------------
def baitfish_activity(
    chlorophyll: Optional[float],
    nitrate: Optional[float] = None,
    phosphate: Optional[float] = None,
) -> _Index:
    if chlorophyll is None:
        return _Index(UNKNOWN_SCORE, "No chlorophyll data available, assuming average baitfish activity")

    if chlorophyll < 0.5:
        score, explanation = 25, "Very low productivity, baitfish scarce"
    elif chlorophyll < 1.0:
        score, explanation = 40, "Low productivity, limited baitfish activity"
    elif chlorophyll < 3.0:
        score, explanation = 65, "Moderate productivity, decent baitfish presence"
    elif chlorophyll < 8.0:
        score, explanation = 85, f"Active feeding zone ({chlorophyll:.1f} mg/m3), good baitfish activity"
    elif chlorophyll < 20.0:
        score, explanation = 95, f"Phytoplankton bloom detected ({chlorophyll:.1f} mg/m3), excellent baitfish activity"
    else:
        # a hypereutrophic bloom can signal water-quality stress
        score, explanation = 80, f"Major bloom ({chlorophyll:.1f} mg/m3), watch water quality"

    if nitrate is not None and nitrate > 5:
        score = min(100, score + 5)
        explanation += ". High nutrients sustaining productivity"
    if phosphate is not None and phosphate > 0.5:
        score = min(100, score + 5)
        explanation += ". Phosphate-rich waters"
    return _Index(score, explanation)


def visibility(
    kd490: Optional[float],
    chlorophyll: Optional[float] = None,
    time_of_day: Optional[str] = None,
    preferences: Optional[SpeciesPreferences] = None,
) -> _Index:
    if kd490 is None:
        return _Index(UNKNOWN_SCORE, "No clarity data, assuming moderate visibility")

    secchi = f"{1.7 / kd490:.1f}m visibility" if kd490 > 0 else "unlimited visibility"
    if kd490 < 0.05:
        score, explanation = 100.0, f"Crystal clear waters ({secchi})"
    elif kd490 < 0.15:
        score, explanation = 85.0, f"Clear waters ({secchi})"
    elif kd490 < 0.5:
        score, explanation = 65.0, f"Moderate clarity ({secchi})"
    elif kd490 < 1.0:
        score, explanation = 45.0, f"Turbid waters ({secchi})"
    elif kd490 < 2.0:
        score, explanation = 30.0, f"Very turbid ({secchi})"
    else:
        score, explanation = 20.0, f"Extremely turbid ({secchi})"

    if preferences is not None and preferences.prefers_turbid:
        score = 100 - score
        explanation += ", scored for a species that hunts in murky water"

    if time_of_day in ("dawn", "dusk"):
        score = min(100.0, score * 1.2)
        explanation += ". Prime feeding time enhances visual hunting"
    elif time_of_day == "night":
        score = max(20.0, score * 0.6)
        explanation += ". Night conditions reduce visual hunting effectiveness"

    if chlorophyll is not None and chlorophyll > 10 and kd490 > 0.5:
        explanation += ". Algal bloom reducing clarity"
    return _Index(round_half_up(score), explanation)


def habitat_suitability(
    oxygen: Optional[float],
    temperature: Optional[float],
    salinity: Optional[float],
    species_name: Optional[str] = None,
) -> _Habitat:
    prefs = species_preferences(species_name)
    subject = species_name or "this species"
    warnings: List[str] = []
    explanations: List[str] = []
    oxygen_score = temp_score = salinity_score = UNKNOWN_SCORE
    hypoxic = False

    if oxygen is None:
        explanations.append("No oxygen data, habitat quality unknown")
    elif oxygen < HYPOXIC_MG_L:
        hypoxic = True
        oxygen_score = 0
        explanations.append(f"Hypoxic dead zone ({oxygen:.1f} mg/L O2), fish will avoid")
        warnings.append("HYPOXIC CONDITIONS: fish are likely absent or fleeing this area")
    elif oxygen < prefs.oxygen_min:
        oxygen_score = 30
        explanations.append(f"Low oxygen ({oxygen:.1f} mg/L), fish stressed and less active")
        warnings.append(f"Oxygen below {prefs.oxygen_min:g} mg/L, {species_name or 'fish'} activity reduced")
    elif oxygen < 5:
        oxygen_score = 50
        explanations.append(f"Marginal oxygen ({oxygen:.1f} mg/L), reduced fish activity")
    elif oxygen < 8:
        oxygen_score = 90
        explanations.append(f"Good oxygen levels ({oxygen:.1f} mg/L)")
    elif oxygen < 12:
        oxygen_score = 100
        explanations.append(f"Excellent oxygen ({oxygen:.1f} mg/L), prime habitat")
    else:
        oxygen_score = 85
        explanations.append(f"Very high oxygen ({oxygen:.1f} mg/L), possibly supersaturated")

    if temperature is not None:
        if temperature < prefs.temp_min:
            temp_score = 20
            explanations.append(f"Too cold ({temperature:.1f}C), below species minimum")
            warnings.append(f"Temperature {temperature:.1f}C is below optimal for {subject}")
        elif temperature > prefs.temp_max:
            temp_score = 20
            explanations.append(f"Too warm ({temperature:.1f}C), above species maximum")
            warnings.append(f"Temperature {temperature:.1f}C is above optimal for {subject}")
        elif prefs.temp_optimal_min <= temperature <= prefs.temp_optimal_max:
            temp_score = 100
            explanations.append(f"Ideal temperature ({temperature:.1f}C)")
        else:
            temp_score = 70
            explanations.append(f"Acceptable temperature ({temperature:.1f}C), within species range")

    if salinity is not None:
        if salinity < prefs.salinity_min or salinity > prefs.salinity_max:
            salinity_score = 30
            explanations.append(f"Salinity stress ({salinity:.1f} PSU), outside preferred range")
            if salinity < 10:
                warnings.append("Brackish water, some marine species may be absent")
            elif salinity > 40:
                warnings.append("High salinity, some species may be stressed")
        else:
            salinity_score = 100
            explanations.append(f"Good salinity ({salinity:.1f} PSU)")

    score = round_half_up(oxygen_score * 0.5 + temp_score * 0.35 + salinity_score * 0.15)
    return _Habitat(score, ". ".join(explanations), tuple(warnings), hypoxic)


def habitat_multiplier(habitat_score: int) -> float:
    if habitat_score < 20:
        return 0.5
    if habitat_score < 50:
        return 0.7
    if habitat_score < 70:
        return 0.9
    if habitat_score < 85:
        return 1.1
    return 1.3


def confidence(bio: BiogeochemicalData) -> int:
    critical = (bio.chlorophyll_mg_m3, bio.dissolved_oxygen_mg_l, bio.water_temp_c, bio.water_clarity_kd490)
    present = sum(1 for value in critical if value is not None)
    return round_half_up(present / len(critical) * 100)


def enhance(
    bio: BiogeochemicalData,
    species_name: Optional[str] = None,
    time_of_day: Optional[str] = None,
) -> EnhancementResult:
    """Score ``bio`` for ``species_name``; never raises on missing data."""
    prefs = species_preferences(species_name)
    bait = baitfish_activity(bio.chlorophyll_mg_m3, bio.nitrate_umol_l, bio.phosphate_umol_l)
    vis = visibility(bio.water_clarity_kd490, bio.chlorophyll_mg_m3, time_of_day, prefs)
    habitat = habitat_suitability(bio.dissolved_oxygen_mg_l, bio.water_temp_c, bio.salinity_psu, species_name)

    base = MIN_MULTIPLIER if habitat.hypoxic else habitat_multiplier(habitat.score)
    if habitat.hypoxic:
        overall = MIN_MULTIPLIER
    else:
        overall = base
        if bait.score > 80:
            overall += 0.3
        elif bait.score > 60:
            overall += 0.15
        elif bait.score < 40:
            overall -= 0.1
        if vis.score > 80:
            overall += 0.1
        elif vis.score < 30:
            overall -= 0.05
        overall = max(MIN_MULTIPLIER, min(MAX_MULTIPLIER, overall))

    return EnhancementResult(
        baitfish_index=bait.score,
        visibility_index=vis.score,
        habitat_index=habitat.score,
        habitat_multiplier=base,
        overall_multiplier=round(overall, 2),
        confidence=confidence(bio),
        tactical_recommendation=tactical_recommendation(bait, vis, habitat, bio),
        warnings=habitat.warnings,
    )


def enhance_multiple_species(
    bio: BiogeochemicalData,
    species_names: Iterable[str],
    time_of_day: Optional[str] = None,
) -> Dict[str, EnhancementResult]:
    return {name: enhance(bio, name, time_of_day) for name in species_names}


def tactical_recommendation(bait: _Index, vis: _Index, habitat: _Habitat, bio: BiogeochemicalData) -> str:
    if habitat.hypoxic or habitat.score < 20:
        return (
            f"AVOID THIS AREA: {habitat.explanation}. "
            "Fish are unlikely to be present. Try a different location."
        )

    parts: List[str] = []
    if habitat.score < 50:
        parts.append(f"Challenging conditions: {habitat.explanation}")
    elif habitat.score > 85:
        parts.append(f"Prime habitat: {habitat.explanation}")

    if bait.score > 80:
        parts.append(f"{bait.explanation}, predators are likely feeding actively")
    elif bait.score < 40:
        parts.append(f"{bait.explanation}, fish may be less aggressive")

    kd490 = bio.water_clarity_kd490
    if vis.score > 80:
        parts.append(f"Excellent visibility ({kd490:.2f} m-1), use natural colours and realistic lures")
    elif vis.score < 40 and kd490 is not None:
        parts.append(f"Poor visibility ({kd490:.2f} m-1), use bright colours, noisy lures or scented bait")

    temp = bio.water_temp_c
    if temp is not None and temp < 8:
        parts.append(f"Cold water ({temp:.1f}C), fish metabolism slow, try slower presentations")
    elif temp is not None and temp > 18:
        parts.append(f"Warm water ({temp:.1f}C), fish active, faster retrieves may work")

    if not parts:
        return "Average conditions, no strong environmental signal."
    return ". ".join(parts) + "."


__all__ = [
    "SPECIES_PREFERENCES",
    "SpeciesPreferences",
    "baitfish_activity",
    "confidence",
    "enhance",
    "enhance_multiple_species",
    "habitat_multiplier",
    "habitat_suitability",
    "round_half_up",
    "species_preferences",
    "tactical_recommendation",
    "visibility",
]

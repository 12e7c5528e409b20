from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Tuple


class Metric(str, Enum):
    WEATHER = "weather"
    MARINE = "marine"
    BIOGEOCHEMICAL = "biogeochemical"


@dataclass(frozen=True)
class WeatherRecord:
    """Normalized forecast step.

    Values are stored in SI-like units to make providers interchangeable:
    - temperature in Celsius
    - pressure in hectopascal (hPa)
    - wind speed and gusts in metres per second (m/s)
    - precipitation in millimetres (mm)
    """

    timestamp: datetime
    air_temp_c: float
    wind_speed_mps: float
    wind_dir_deg: Optional[float]
    condition_code: str
    is_daytime: bool
    wind_gust_mps: Optional[float] = None
    pressure_hpa: Optional[float] = None
    humidity_pct: Optional[float] = None
    precipitation_mm: Optional[float] = None
    precip_probability_pct: Optional[float] = None


@dataclass(frozen=True)
class MarineRecord:
    """Normalized sea-state step. Speeds of currents are in knots."""

    timestamp: datetime
    wave_height_m: float
    water_temp_c: Optional[float] = None
    swell_height_m: Optional[float] = None
    swell_direction_deg: Optional[float] = None
    swell_period_s: Optional[float] = None
    current_speed_kn: Optional[float] = None
    visibility_km: Optional[float] = None


@dataclass(frozen=True)
class BiogeochemicalData:
    chlorophyll_mg_m3: Optional[float] = None
    water_clarity_kd490: Optional[float] = None
    dissolved_oxygen_mg_l: Optional[float] = None
    nitrate_umol_l: Optional[float] = None
    phosphate_umol_l: Optional[float] = None
    salinity_psu: Optional[float] = None
    water_temp_c: Optional[float] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class PressureTrend:
    category: str
    pressure_now: Optional[float]
    pressure_3h_ago: Optional[float]
    pressure_6h_ago: Optional[float]
    delta_3h: Optional[float]
    delta_6h: Optional[float]
    explanation: str


@dataclass(frozen=True)
class EnhancementResult:
    baitfish_index: int
    visibility_index: int
    habitat_index: int
    habitat_multiplier: float
    overall_multiplier: float
    confidence: int
    tactical_recommendation: str
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class HourGrade:
    ts: datetime
    light: str
    score: int
    reasons: Tuple[str, ...]
    label: str
    wind_regime: Optional[str] = None


@dataclass(frozen=True)
class DayGrade:
    hours: Tuple[HourGrade, ...]
    best_hour: Optional[HourGrade]
    day_light: str
    day_label: str


@dataclass(frozen=True)
class ProviderCacheEntry:
    """Cached provider response; ``fetched_at`` is in clock seconds."""

    provider: str
    rounded_lat: float
    rounded_lon: float
    precision: int
    fetched_at: float
    ttl_ms: int
    payload: Any

    @property
    def expires_at(self) -> float:
        return self.fetched_at + self.ttl_ms / 1000.0

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class ProviderAttempt:
    provider: str
    outcome: str
    detail: str = ""


@dataclass(frozen=True)
class FetchResult:
    records: Tuple[Any, ...]
    provider: str
    source: str
    cache_status: str
    rounded_lat: float
    rounded_lon: float
    attempts: Tuple[ProviderAttempt, ...] = field(default_factory=tuple)


__all__ = [
    "BiogeochemicalData",
    "DayGrade",
    "EnhancementResult",
    "FetchResult",
    "HourGrade",
    "MarineRecord",
    "Metric",
    "PressureTrend",
    "ProviderAttempt",
    "ProviderCacheEntry",
    "WeatherRecord",
]

"""Stormglass point API (marine weather and biogeochemistry).

Every variable is reported per upstream source, e.g.
``{"waveHeight": {"sg": 1.2, "noaa": 1.1}}``. One value is chosen per
variable following ``SOURCE_PREFERENCE``; ``sg`` is Stormglass' own blend.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, Field

from .base import (
    DataProvider,
    SchemaMismatch,
    as_utc,
    check_marine_ranges,
    sort_by_timestamp,
    validate_payload,
)
from ..coordinates import PrecisionTier
from ..entities import BiogeochemicalData, MarineRecord, Metric

PROVIDER = "stormglass"
SOURCE_PREFERENCE = ("sg", "noaa", "meto", "icon", "dwd", "smhi", "fcoo", "fmi", "yr", "meteo")
MS_TO_KNOTS = 3600 / 1852
# Dissolved O2 molar mass, mmol/m3 -> mg/L
OXYGEN_MG_PER_MMOL = 31.998 / 1000

MARINE_PARAMS = (
    "waveHeight",
    "waterTemperature",
    "swellHeight",
    "swellDirection",
    "swellPeriod",
    "currentSpeed",
    "visibility",
)
BIO_PARAMS = ("chlorophyll", "oxygen", "nitrate", "phosphate", "salinity")

_SourceValue = Union[float, Dict[str, Optional[float]], None]


class _MarineHour(BaseModel):
    time: datetime
    waveHeight: _SourceValue = None
    waterTemperature: _SourceValue = None
    swellHeight: _SourceValue = None
    swellDirection: _SourceValue = None
    swellPeriod: _SourceValue = None
    currentSpeed: _SourceValue = None
    visibility: _SourceValue = None


class MarinePoint(BaseModel):
    hours: List[_MarineHour]


class _BioHour(BaseModel):
    time: datetime
    chlorophyll: _SourceValue = None
    oxygen: _SourceValue = Field(default=None, validation_alias=AliasChoices("oxygen", "dissolvedOxygen"))
    nitrate: _SourceValue = None
    phosphate: _SourceValue = None
    salinity: _SourceValue = None
    waterTemperature: _SourceValue = Field(default=None, validation_alias=AliasChoices("waterTemperature", "sst"))


class BioPoint(BaseModel):
    hours: List[_BioHour]


def pick_source(value: _SourceValue) -> Optional[float]:
    """Pick the preferred source out of a per-source mapping."""
    if value is None or isinstance(value, (int, float)):
        return value
    for source in SOURCE_PREFERENCE:
        candidate = value.get(source)
        if candidate is not None:
            return candidate
    for source in sorted(value):
        if value[source] is not None:
            return value[source]
    return None


def _scaled(value: Optional[float], factor: float) -> Optional[float]:
    return value * factor if value is not None else None


def normalize_marine(payload: Any) -> List[MarineRecord]:
    point = validate_payload(PROVIDER, MarinePoint, payload)
    records: List[MarineRecord] = []
    for index, hour in enumerate(point.hours):
        wave_height = pick_source(hour.waveHeight)
        if wave_height is None:
            raise SchemaMismatch("no wave height from any source", provider=PROVIDER, field=f"hours.{index}.waveHeight")
        water_temp = pick_source(hour.waterTemperature)
        check_marine_ranges(PROVIDER, wave_height, water_temp, f"hours.{index}")
        records.append(
            MarineRecord(
                timestamp=as_utc(hour.time),
                wave_height_m=wave_height,
                water_temp_c=water_temp,
                swell_height_m=pick_source(hour.swellHeight),
                swell_direction_deg=pick_source(hour.swellDirection),
                swell_period_s=pick_source(hour.swellPeriod),
                current_speed_kn=_scaled(pick_source(hour.currentSpeed), MS_TO_KNOTS),
                visibility_km=pick_source(hour.visibility),
            )
        )
    return sort_by_timestamp(records)


def normalize_bio(payload: Any) -> List[BiogeochemicalData]:
    """Nitrate and phosphate arrive in mmol/m3, which equals umol/L."""
    point = validate_payload(PROVIDER, BioPoint, payload)
    records: List[BiogeochemicalData] = []
    for index, hour in enumerate(point.hours):
        water_temp = pick_source(hour.waterTemperature)
        check_marine_ranges(PROVIDER, None, water_temp, f"hours.{index}")
        records.append(
            BiogeochemicalData(
                chlorophyll_mg_m3=pick_source(hour.chlorophyll),
                dissolved_oxygen_mg_l=_scaled(pick_source(hour.oxygen), OXYGEN_MG_PER_MMOL),
                nitrate_umol_l=pick_source(hour.nitrate),
                phosphate_umol_l=pick_source(hour.phosphate),
                salinity_psu=pick_source(hour.salinity),
                water_temp_c=water_temp,
                timestamp=as_utc(hour.time),
            )
        )
    return sort_by_timestamp(records)


class StormglassProvider(DataProvider):
    name = PROVIDER
    licence = "paid"
    precision = PrecisionTier.PAID_MARINE
    metrics = (Metric.MARINE, Metric.BIOGEOCHEMICAL)

    base_url = "https://api.stormglass.io/v2"

    def __init__(self, api_key: str, base_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        if not api_key:
            raise ValueError("Stormglass requires an API key")
        self.api_key = api_key
        self.base_url = (base_url or self.base_url).rstrip("/")

    def fetch_raw(self, latitude: float, longitude: float, metric: Metric, timeout: Optional[float] = None) -> Any:
        metric = Metric(metric)
        if metric is Metric.MARINE:
            url, params = f"{self.base_url}/weather/point", MARINE_PARAMS
        elif metric is Metric.BIOGEOCHEMICAL:
            url, params = f"{self.base_url}/bio/point", BIO_PARAMS
        else:
            raise self._unsupported(metric)
        query: Mapping[str, Any] = {"lat": latitude, "lng": longitude, "params": ",".join(params)}
        return self._get_json(url, timeout=timeout, params=query, headers={"Authorization": self.api_key})

    def normalize(self, metric: Metric, payload: Any) -> List[Any]:
        metric = Metric(metric)
        if metric is Metric.MARINE:
            return normalize_marine(payload)
        if metric is Metric.BIOGEOCHEMICAL:
            return normalize_bio(payload)
        raise self._unsupported(metric)


__all__ = ["SOURCE_PREFERENCE", "StormglassProvider", "normalize_bio", "normalize_marine", "pick_source"]

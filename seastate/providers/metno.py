from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from .base import (
    DataProvider,
    as_utc,
    check_marine_ranges,
    is_solar_daytime,
    sort_by_timestamp,
    validate_payload,
)
from ..coordinates import PrecisionTier
from ..entities import MarineRecord, Metric, WeatherRecord

PROVIDER = "metno"
MS_TO_KNOTS = 3600 / 1852


# Locationforecast 2.0 (compact) ------------------------------------------------
class _InstantDetails(BaseModel):
    air_temperature: float
    wind_speed: float
    wind_from_direction: Optional[float] = None
    wind_speed_of_gust: Optional[float] = None
    air_pressure_at_sea_level: Optional[float] = None
    relative_humidity: Optional[float] = None


class _Instant(BaseModel):
    details: _InstantDetails


class _Summary(BaseModel):
    symbol_code: Optional[str] = None


class _PeriodDetails(BaseModel):
    precipitation_amount: Optional[float] = None
    probability_of_precipitation: Optional[float] = None


class _Period(BaseModel):
    summary: _Summary = Field(default_factory=_Summary)
    details: _PeriodDetails = Field(default_factory=_PeriodDetails)


class _StepData(BaseModel):
    instant: _Instant
    next_1_hours: Optional[_Period] = None
    next_6_hours: Optional[_Period] = None


class _Step(BaseModel):
    time: datetime
    data: _StepData


class _Properties(BaseModel):
    timeseries: List[_Step]


class _Geometry(BaseModel):
    coordinates: List[float] = Field(default_factory=list)


class LocationForecast(BaseModel):
    geometry: _Geometry = Field(default_factory=_Geometry)
    properties: _Properties


# Oceanforecast 2.0 -------------------------------------------------------------
class _OceanDetails(BaseModel):
    sea_surface_wave_height: float
    sea_surface_wave_from_direction: Optional[float] = None
    sea_water_temperature: Optional[float] = None
    sea_water_speed: Optional[float] = None


class _OceanInstant(BaseModel):
    details: _OceanDetails


class _OceanStepData(BaseModel):
    instant: _OceanInstant


class _OceanStep(BaseModel):
    time: datetime
    data: _OceanStepData


class _OceanProperties(BaseModel):
    timeseries: List[_OceanStep]


class OceanForecast(BaseModel):
    properties: _OceanProperties


def _daytime_from_symbol(symbol: Optional[str]) -> Optional[bool]:
    if not symbol:
        return None
    if symbol.endswith("_day"):
        return True
    if symbol.endswith("_night"):
        return False
    return None


def normalize_locationforecast(payload: Any) -> List[WeatherRecord]:
    forecast = validate_payload(PROVIDER, LocationForecast, payload)
    coordinates = forecast.geometry.coordinates
    longitude = coordinates[0] if coordinates else None
    records: List[WeatherRecord] = []
    for step in forecast.properties.timeseries:
        details = step.data.instant.details
        period = step.data.next_1_hours or step.data.next_6_hours or _Period()
        symbol = period.summary.symbol_code
        timestamp = as_utc(step.time)
        daytime = _daytime_from_symbol(symbol)
        if daytime is None:
            daytime = is_solar_daytime(timestamp, longitude)
        records.append(
            WeatherRecord(
                timestamp=timestamp,
                air_temp_c=details.air_temperature,
                wind_speed_mps=details.wind_speed,
                wind_dir_deg=details.wind_from_direction,
                wind_gust_mps=details.wind_speed_of_gust,
                pressure_hpa=details.air_pressure_at_sea_level,
                humidity_pct=details.relative_humidity,
                precipitation_mm=period.details.precipitation_amount,
                precip_probability_pct=period.details.probability_of_precipitation,
                condition_code=f"metno:{symbol or 'unknown'}",
                is_daytime=daytime,
            )
        )
    return sort_by_timestamp(records)


def normalize_oceanforecast(payload: Any) -> List[MarineRecord]:
    forecast = validate_payload(PROVIDER, OceanForecast, payload)
    records: List[MarineRecord] = []
    for index, step in enumerate(forecast.properties.timeseries):
        details = step.data.instant.details
        check_marine_ranges(
            PROVIDER,
            details.sea_surface_wave_height,
            details.sea_water_temperature,
            f"properties.timeseries.{index}",
        )
        current = details.sea_water_speed
        records.append(
            MarineRecord(
                timestamp=as_utc(step.time),
                wave_height_m=details.sea_surface_wave_height,
                water_temp_c=details.sea_water_temperature,
                current_speed_kn=current * MS_TO_KNOTS if current is not None else None,
            )
        )
    return sort_by_timestamp(records)


class MetNoProvider(DataProvider):
    """MET Norway. Requires an identifying User-Agent on every request."""

    name = PROVIDER
    licence = "free"
    precision = PrecisionTier.HIGH_PRECISION
    metrics = (Metric.WEATHER, Metric.MARINE)

    base_url = "https://api.met.no/weatherapi"

    def __init__(self, user_agent: str, base_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        if not user_agent:
            raise ValueError("MET Norway requires a User-Agent")
        self.user_agent = user_agent
        self.base_url = (base_url or self.base_url).rstrip("/")

    def fetch_raw(self, latitude: float, longitude: float, metric: Metric, timeout: Optional[float] = None) -> Any:
        metric = Metric(metric)
        if metric is Metric.WEATHER:
            url = f"{self.base_url}/locationforecast/2.0/compact"
        elif metric is Metric.MARINE:
            url = f"{self.base_url}/oceanforecast/2.0/complete"
        else:
            raise self._unsupported(metric)
        params = {"lat": f"{latitude:.4f}", "lon": f"{longitude:.4f}"}
        return self._get_json(url, timeout=timeout, params=params, headers={"User-Agent": self.user_agent})

    def normalize(self, metric: Metric, payload: Any) -> List[Any]:
        metric = Metric(metric)
        if metric is Metric.WEATHER:
            return normalize_locationforecast(payload)
        if metric is Metric.MARINE:
            return normalize_oceanforecast(payload)
        raise self._unsupported(metric)


__all__ = ["MetNoProvider", "normalize_locationforecast", "normalize_oceanforecast"]

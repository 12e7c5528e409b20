from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from .base import (
    DataProvider,
    as_utc,
    check_marine_ranges,
    is_solar_daytime,
    series_value,
    sort_by_timestamp,
    validate_payload,
)
from ..coordinates import PrecisionTier
from ..entities import MarineRecord, Metric, WeatherRecord

PROVIDER = "openmeteo"
KMH_TO_KNOTS = 1 / 1.852

FORECAST_VARIABLES = (
    "temperature_2m",
    "relative_humidity_2m",
    "precipitation",
    "precipitation_probability",
    "pressure_msl",
    "wind_speed_10m",
    "wind_direction_10m",
    "wind_gusts_10m",
    "weather_code",
    "is_day",
)
MARINE_VARIABLES = (
    "wave_height",
    "swell_wave_height",
    "swell_wave_direction",
    "swell_wave_period",
    "ocean_current_velocity",
    "sea_surface_temperature",
)

_Series = List[Optional[float]]


class _ForecastHourly(BaseModel):
    time: List[datetime]
    temperature_2m: _Series
    wind_speed_10m: _Series
    relative_humidity_2m: _Series = Field(default_factory=list)
    precipitation: _Series = Field(default_factory=list)
    precipitation_probability: _Series = Field(default_factory=list)
    pressure_msl: _Series = Field(default_factory=list)
    wind_direction_10m: _Series = Field(default_factory=list)
    wind_gusts_10m: _Series = Field(default_factory=list)
    weather_code: List[Optional[int]] = Field(default_factory=list)
    is_day: List[Optional[int]] = Field(default_factory=list)


class Forecast(BaseModel):
    longitude: Optional[float] = None
    hourly: _ForecastHourly


class _MarineHourly(BaseModel):
    time: List[datetime]
    wave_height: _Series
    swell_wave_height: _Series = Field(default_factory=list)
    swell_wave_direction: _Series = Field(default_factory=list)
    swell_wave_period: _Series = Field(default_factory=list)
    ocean_current_velocity: _Series = Field(default_factory=list)
    sea_surface_temperature: _Series = Field(default_factory=list)


class MarineForecast(BaseModel):
    hourly: _MarineHourly


def _safe_index(values: List[Optional[int]], index: int) -> Optional[int]:
    if index >= len(values):
        return None
    return values[index]


def normalize_forecast(payload: Any) -> List[WeatherRecord]:
    """``/v1/forecast`` requested with ``wind_speed_unit=ms``.

    Steps whose temperature or wind speed is null (beyond the model horizon)
    are skipped.
    """
    forecast = validate_payload(PROVIDER, Forecast, payload)
    hourly = forecast.hourly
    records: List[WeatherRecord] = []
    for idx, ts in enumerate(hourly.time):
        temperature = series_value(hourly.temperature_2m, idx)
        wind = series_value(hourly.wind_speed_10m, idx)
        if temperature is None or wind is None:
            continue
        timestamp = as_utc(ts)
        is_day = _safe_index(hourly.is_day, idx)
        code = _safe_index(hourly.weather_code, idx)
        records.append(
            WeatherRecord(
                timestamp=timestamp,
                air_temp_c=temperature,
                wind_speed_mps=wind,
                wind_dir_deg=series_value(hourly.wind_direction_10m, idx),
                wind_gust_mps=series_value(hourly.wind_gusts_10m, idx),
                pressure_hpa=series_value(hourly.pressure_msl, idx),
                humidity_pct=series_value(hourly.relative_humidity_2m, idx),
                precipitation_mm=series_value(hourly.precipitation, idx),
                precip_probability_pct=series_value(hourly.precipitation_probability, idx),
                condition_code=f"wmo:{code}" if code is not None else "wmo:unknown",
                is_daytime=bool(is_day) if is_day is not None else is_solar_daytime(timestamp, forecast.longitude),
            )
        )
    return sort_by_timestamp(records)


def normalize_marine(payload: Any) -> List[MarineRecord]:
    """Marine API hourly block. Ocean current velocity arrives in km/h."""
    forecast = validate_payload(PROVIDER, MarineForecast, payload)
    hourly = forecast.hourly
    records: List[MarineRecord] = []
    for idx, ts in enumerate(hourly.time):
        wave_height = series_value(hourly.wave_height, idx)
        if wave_height is None:
            continue
        water_temp = series_value(hourly.sea_surface_temperature, idx)
        check_marine_ranges(PROVIDER, wave_height, water_temp, f"hourly.{idx}")
        current = series_value(hourly.ocean_current_velocity, idx)
        records.append(
            MarineRecord(
                timestamp=as_utc(ts),
                wave_height_m=wave_height,
                water_temp_c=water_temp,
                swell_height_m=series_value(hourly.swell_wave_height, idx),
                swell_direction_deg=series_value(hourly.swell_wave_direction, idx),
                swell_period_s=series_value(hourly.swell_wave_period, idx),
                current_speed_kn=current * KMH_TO_KNOTS if current is not None else None,
            )
        )
    return sort_by_timestamp(records)


class OpenMeteoProvider(DataProvider):
    name = PROVIDER
    licence = "free"
    precision = PrecisionTier.STANDARD
    metrics = (Metric.WEATHER, Metric.MARINE)

    base_url = "https://api.open-meteo.com/v1/forecast"
    marine_url = "https://marine-api.open-meteo.com/v1/marine"

    def __init__(self, base_url: Optional[str] = None, marine_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url or self.base_url
        self.marine_url = marine_url or self.marine_url

    def fetch_raw(self, latitude: float, longitude: float, metric: Metric, timeout: Optional[float] = None) -> Any:
        metric = Metric(metric)
        params = {"latitude": latitude, "longitude": longitude, "timezone": "GMT"}
        if metric is Metric.WEATHER:
            params.update(hourly=",".join(FORECAST_VARIABLES), wind_speed_unit="ms")
            return self._get_json(self.base_url, timeout=timeout, params=params)
        if metric is Metric.MARINE:
            params.update(hourly=",".join(MARINE_VARIABLES))
            return self._get_json(self.marine_url, timeout=timeout, params=params)
        raise self._unsupported(metric)

    def normalize(self, metric: Metric, payload: Any) -> List[Any]:
        metric = Metric(metric)
        if metric is Metric.WEATHER:
            return normalize_forecast(payload)
        if metric is Metric.MARINE:
            return normalize_marine(payload)
        raise self._unsupported(metric)


__all__ = ["OpenMeteoProvider", "normalize_forecast", "normalize_marine"]

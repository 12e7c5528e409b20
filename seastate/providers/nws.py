from __future__ import annotations

import re
import time
from datetime import datetime
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, Field

from .base import DataProvider, ProviderUnavailable, SchemaMismatch, as_utc, sort_by_timestamp, validate_payload
from ..coordinates import PrecisionTier
from ..entities import Metric, WeatherRecord

PROVIDER = "nws"
MPH_TO_MS = 0.44704

COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)
_COMPASS_DEGREES = {point: index * 22.5 for index, point in enumerate(COMPASS_POINTS)}
_WIND_SPEED = re.compile(r"(\d+(?:\.\d+)?)")


class _QuantitativeValue(BaseModel):
    value: Optional[float] = None
    unitCode: Optional[str] = None


class _Period(BaseModel):
    startTime: datetime
    isDaytime: bool
    temperature: float
    temperatureUnit: str = "F"
    windSpeed: str
    windDirection: Optional[str] = None
    shortForecast: Optional[str] = None
    probabilityOfPrecipitation: _QuantitativeValue = Field(default_factory=_QuantitativeValue)
    relativeHumidity: _QuantitativeValue = Field(default_factory=_QuantitativeValue)


class _Properties(BaseModel):
    periods: List[_Period]


class HourlyForecast(BaseModel):
    properties: _Properties


class _PointProperties(BaseModel):
    forecastHourly: str


class PointMetadata(BaseModel):
    properties: _PointProperties


def fahrenheit_to_celsius(value: float) -> float:
    return (value - 32) * 5 / 9


def compass_to_degrees(direction: Optional[str]) -> Optional[float]:
    if not direction:
        return None
    return _COMPASS_DEGREES.get(direction.strip().upper())


def parse_wind_speed(text: str, field: str = "windSpeed") -> float:
    """``"10 to 15 mph"`` -> 4.4704 m/s. The lower bound of a range is used."""
    match = _WIND_SPEED.search(text)
    if match is None:
        raise SchemaMismatch(f"unparseable wind speed {text!r}", provider=PROVIDER, field=field)
    value = float(match.group(1))
    if "km/h" in text.lower():
        return value / 3.6
    return value * MPH_TO_MS


def normalize_hourly(payload: Any) -> List[WeatherRecord]:
    forecast = validate_payload(PROVIDER, HourlyForecast, payload)
    records: List[WeatherRecord] = []
    for index, period in enumerate(forecast.properties.periods):
        temperature = period.temperature
        if period.temperatureUnit.upper() == "F":
            temperature = fahrenheit_to_celsius(temperature)
        summary = period.shortForecast or "unknown"
        records.append(
            WeatherRecord(
                timestamp=as_utc(period.startTime),
                air_temp_c=temperature,
                wind_speed_mps=parse_wind_speed(period.windSpeed, f"properties.periods.{index}.windSpeed"),
                wind_dir_deg=compass_to_degrees(period.windDirection),
                humidity_pct=period.relativeHumidity.value,
                precip_probability_pct=period.probabilityOfPrecipitation.value,
                condition_code=f"nws:{summary}",
                is_daytime=period.isDaytime,
            )
        )
    return sort_by_timestamp(records)


class NWSProvider(DataProvider):
    """NOAA National Weather Service, US territory only.

    Two calls are needed: ``/points`` resolves the forecast grid, then the
    hourly forecast URL it returns is fetched.
    """

    name = PROVIDER
    licence = "free"
    precision = PrecisionTier.STANDARD
    metrics = (Metric.WEATHER,)

    base_url = "https://api.weather.gov"

    def __init__(
        self,
        user_agent: str,
        base_url: Optional[str] = None,
        time_func: Callable[[], float] = time.monotonic,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.user_agent = user_agent
        self.base_url = (base_url or self.base_url).rstrip("/")
        self._time_func = time_func

    def fetch_raw(self, latitude: float, longitude: float, metric: Metric, timeout: Optional[float] = None) -> Any:
        """Two requests share one timeout: the forecast hop gets what the points hop left."""
        if Metric(metric) is not Metric.WEATHER:
            raise self._unsupported(metric)
        headers = {"User-Agent": self.user_agent, "Accept": "application/geo+json"}
        budget = self.timeout if timeout is None else timeout
        started = self._time_func()
        points = self._get_json(f"{self.base_url}/points/{latitude:.4f},{longitude:.4f}", timeout=budget, headers=headers)
        metadata = validate_payload(PROVIDER, PointMetadata, points)
        remaining = budget - (self._time_func() - started)
        if remaining <= 0:
            self._log.error("Points lookup used the whole %.2fs timeout", budget)
            raise ProviderUnavailable("timeout", provider=self.name)
        return self._get_json(metadata.properties.forecastHourly, timeout=remaining, headers=headers)

    def normalize(self, metric: Metric, payload: Any) -> List[Any]:
        if Metric(metric) is not Metric.WEATHER:
            raise self._unsupported(metric)
        return normalize_hourly(payload)


__all__ = [
    "NWSProvider",
    "compass_to_degrees",
    "fahrenheit_to_celsius",
    "normalize_hourly",
    "parse_wind_speed",
]

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .base import DataProvider, as_utc, is_solar_daytime, sort_by_timestamp, validate_payload
from ..coordinates import PrecisionTier
from ..entities import Metric, WeatherRecord

PROVIDER = "openweather"


class _Condition(BaseModel):
    id: int
    icon: Optional[str] = None


class _Hour(BaseModel):
    dt: datetime
    temp: float
    wind_speed: float
    wind_deg: Optional[float] = None
    wind_gust: Optional[float] = None
    pressure: Optional[float] = None
    humidity: Optional[float] = None
    pop: Optional[float] = None
    rain: Dict[str, float] = Field(default_factory=dict)
    weather: List[_Condition] = Field(default_factory=list)


class OneCall(BaseModel):
    lon: Optional[float] = None
    hourly: List[_Hour]


def normalize_onecall(payload: Any) -> List[WeatherRecord]:
    """One Call 3.0 ``hourly`` block requested with ``units=metric``."""
    onecall = validate_payload(PROVIDER, OneCall, payload)
    records: List[WeatherRecord] = []
    for hour in onecall.hourly:
        timestamp = as_utc(hour.dt)
        condition = hour.weather[0] if hour.weather else None
        icon = condition.icon if condition else None
        if icon and icon[-1] in "dn":
            daytime = icon.endswith("d")
        else:
            daytime = is_solar_daytime(timestamp, onecall.lon)
        records.append(
            WeatherRecord(
                timestamp=timestamp,
                air_temp_c=hour.temp,
                wind_speed_mps=hour.wind_speed,
                wind_dir_deg=hour.wind_deg,
                wind_gust_mps=hour.wind_gust,
                pressure_hpa=hour.pressure,
                humidity_pct=hour.humidity,
                precipitation_mm=hour.rain.get("1h"),
                precip_probability_pct=hour.pop * 100 if hour.pop is not None else None,
                condition_code=f"owm:{condition.id}" if condition else "owm:unknown",
                is_daytime=daytime,
            )
        )
    return sort_by_timestamp(records)


class OpenWeatherProvider(DataProvider):
    name = PROVIDER
    licence = "paid"
    precision = PrecisionTier.STANDARD
    metrics = (Metric.WEATHER,)

    base_url = "https://api.openweathermap.org/data/3.0/onecall"

    def __init__(self, api_key: str, base_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        if not api_key:
            raise ValueError("OpenWeather requires an API key")
        self.api_key = api_key
        self.base_url = base_url or self.base_url

    def fetch_raw(self, latitude: float, longitude: float, metric: Metric, timeout: Optional[float] = None) -> Any:
        if Metric(metric) is not Metric.WEATHER:
            raise self._unsupported(metric)
        params = {
            "lat": latitude,
            "lon": longitude,
            "appid": self.api_key,
            "units": "metric",
            "exclude": "current,minutely,daily,alerts",
        }
        return self._get_json(self.base_url, timeout=timeout, params=params)

    def normalize(self, metric: Metric, payload: Any) -> List[Any]:
        if Metric(metric) is not Metric.WEATHER:
            raise self._unsupported(metric)
        return normalize_onecall(payload)


__all__ = ["OpenWeatherProvider", "normalize_onecall"]

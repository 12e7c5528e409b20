from __future__ import annotations

import copy
from datetime import datetime, timezone

import pytest
import requests

from seastate.entities import Metric
from seastate.providers.base import ProviderError, ProviderUnavailable, QuotaExceeded, SchemaMismatch
from seastate.providers.metno import MetNoProvider, normalize_locationforecast, normalize_oceanforecast
from seastate.providers.nws import NWSProvider, compass_to_degrees, normalize_hourly, parse_wind_speed
from seastate.providers.openmeteo import OpenMeteoProvider, normalize_marine
from seastate.providers.openweather import OpenWeatherProvider, normalize_onecall
from seastate.providers.stormglass import StormglassProvider, normalize_bio, pick_source
from seastate.providers import stormglass


def metno_step(time: str, symbol=None, **details) -> dict:
    instant = {"air_temperature": 15.0, "wind_speed": 4.0}
    instant.update(details)
    data = {"instant": {"details": instant}}
    if symbol is not None:
        data["next_1_hours"] = {"summary": {"symbol_code": symbol}, "details": {"precipitation_amount": 0.2}}
    return {"time": time, "data": data}


METNO_LOCATION = {
    "type": "Feature",
    "geometry": {"type": "Point", "coordinates": [10.75, 59.91, 12]},
    "properties": {
        "timeseries": [
            metno_step("2024-06-01T13:00:00Z", "partlycloudy_night", air_pressure_at_sea_level=1012.3),
            metno_step("2024-06-01T12:00:00Z", "clearsky_day", wind_from_direction=200.0, relative_humidity=70.0),
            metno_step("2024-06-01T23:00:00Z"),
        ]
    },
}

METNO_OCEAN = {
    "properties": {
        "timeseries": [
            {
                "time": "2024-06-01T12:00:00Z",
                "data": {
                    "instant": {
                        "details": {
                            "sea_surface_wave_height": 1.4,
                            "sea_water_temperature": 11.2,
                            "sea_water_speed": 1.0,
                        }
                    }
                },
            }
        ]
    }
}

NWS_HOURLY = {
    "properties": {
        "periods": [
            {
                "startTime": "2024-06-01T14:00:00-04:00",
                "isDaytime": True,
                "temperature": 68,
                "temperatureUnit": "F",
                "windSpeed": "10 to 15 mph",
                "windDirection": "NW",
                "shortForecast": "Sunny",
                "probabilityOfPrecipitation": {"unitCode": "wmoUnit:percent", "value": 20},
                "relativeHumidity": {"unitCode": "wmoUnit:percent", "value": 55},
            }
        ]
    }
}


def test_metno_locationforecast_normalization():
    records = normalize_locationforecast(METNO_LOCATION)

    assert [r.timestamp.hour for r in records] == [12, 13, 23]
    noon, one, late = records
    assert noon.condition_code == "metno:clearsky_day"
    assert noon.is_daytime is True
    assert noon.wind_dir_deg == 200.0
    assert noon.humidity_pct == 70.0
    assert one.is_daytime is False
    assert one.pressure_hpa == 1012.3
    assert one.precipitation_mm == 0.2
    # no symbol: 23:00 UTC at 10.75E is still night in solar time
    assert late.condition_code == "metno:unknown"
    assert late.is_daytime is False
    assert noon.timestamp.tzinfo is not None


def test_metno_missing_required_field_is_schema_mismatch():
    payload = copy.deepcopy(METNO_LOCATION)
    del payload["properties"]["timeseries"][0]["data"]["instant"]["details"]["air_temperature"]

    with pytest.raises(SchemaMismatch) as excinfo:
        normalize_locationforecast(payload)

    assert excinfo.value.provider == "metno"
    assert "air_temperature" in excinfo.value.field


def test_metno_oceanforecast_converts_current_to_knots():
    records = normalize_oceanforecast(METNO_OCEAN)

    assert len(records) == 1
    assert records[0].wave_height_m == 1.4
    assert records[0].water_temp_c == 11.2
    assert records[0].current_speed_kn == pytest.approx(1.94384, rel=1e-4)
    assert records[0].swell_height_m is None


@pytest.mark.parametrize("field,value", [("sea_surface_wave_height", -0.5), ("sea_water_temperature", 45.0)])
def test_metno_oceanforecast_rejects_out_of_range_values(field, value):
    payload = copy.deepcopy(METNO_OCEAN)
    payload["properties"]["timeseries"][0]["data"]["instant"]["details"][field] = value

    with pytest.raises(SchemaMismatch):
        normalize_oceanforecast(payload)


def test_metno_fetch_sends_user_agent(requests_mock):
    provider = MetNoProvider(user_agent="seastate-tests/1.0", base_url="https://metno.test")
    requests_mock.get("https://metno.test/locationforecast/2.0/compact", json=METNO_LOCATION)

    records = provider.fetch(59.9139, 10.7522, Metric.WEATHER)

    assert len(records) == 3
    request = requests_mock.request_history[0]
    assert request.headers["User-Agent"] == "seastate-tests/1.0"
    assert request.qs == {"lat": ["59.9139"], "lon": ["10.7522"]}
    assert provider.label == "free:metno"


def test_nws_hourly_normalization():
    (record,) = normalize_hourly(NWS_HOURLY)

    assert record.air_temp_c == pytest.approx(20.0)
    assert record.wind_speed_mps == pytest.approx(4.4704)
    assert record.wind_dir_deg == 315.0
    assert record.timestamp == datetime(2024, 6, 1, 18, 0, tzinfo=timezone.utc)
    assert record.precip_probability_pct == 20
    assert record.humidity_pct == 55
    assert record.condition_code == "nws:Sunny"
    assert record.is_daytime is True


def test_nws_wind_and_compass_helpers():
    assert parse_wind_speed("5 mph") == pytest.approx(2.2352)
    assert parse_wind_speed("18 km/h") == pytest.approx(5.0)
    assert compass_to_degrees("SSW") == 202.5
    assert compass_to_degrees("") is None
    with pytest.raises(SchemaMismatch):
        parse_wind_speed("calm")


def test_nws_fetch_follows_points_metadata(requests_mock):
    provider = NWSProvider(user_agent="seastate-tests/1.0", base_url="https://nws.test")
    requests_mock.get(
        "https://nws.test/points/38.8894,-77.0352",
        json={"properties": {"forecastHourly": "https://nws.test/gridpoints/LWX/97,71/forecast/hourly"}},
    )
    requests_mock.get("https://nws.test/gridpoints/LWX/97,71/forecast/hourly", json=NWS_HOURLY)

    records = provider.fetch(38.8894, -77.0352, Metric.WEATHER)

    assert len(records) == 1
    assert requests_mock.call_count == 2


def test_nws_forecast_hop_gets_the_remaining_timeout(requests_mock, clock):
    provider = NWSProvider(user_agent="seastate-tests/1.0", base_url="https://nws.test", time_func=clock)

    def slow_points(request, context):
        clock.advance(1.5)
        return {"properties": {"forecastHourly": "https://nws.test/gridpoints/LWX/97,71/forecast/hourly"}}

    requests_mock.get("https://nws.test/points/38.8894,-77.0352", json=slow_points)
    requests_mock.get("https://nws.test/gridpoints/LWX/97,71/forecast/hourly", json=NWS_HOURLY)

    provider.fetch_raw(38.8894, -77.0352, Metric.WEATHER, timeout=2.0)

    assert [request.timeout for request in requests_mock.request_history] == [2.0, pytest.approx(0.5)]


def test_nws_points_hop_using_the_whole_timeout_fails(requests_mock, clock):
    provider = NWSProvider(user_agent="seastate-tests/1.0", base_url="https://nws.test", time_func=clock)

    def stalled_points(request, context):
        clock.advance(3.0)
        return {"properties": {"forecastHourly": "https://nws.test/gridpoints/LWX/97,71/forecast/hourly"}}

    requests_mock.get("https://nws.test/points/38.8894,-77.0352", json=stalled_points)

    with pytest.raises(ProviderUnavailable):
        provider.fetch_raw(38.8894, -77.0352, Metric.WEATHER, timeout=2.0)

    assert requests_mock.call_count == 1


def test_openweather_onecall_normalization():
    payload = {
        "lat": 25.0,
        "lon": -40.0,
        "hourly": [
            {
                "dt": 1717243200,
                "temp": 18.5,
                "pressure": 1015,
                "humidity": 60,
                "wind_speed": 5.5,
                "wind_deg": 270,
                "wind_gust": 8.0,
                "pop": 0.35,
                "rain": {"1h": 0.4},
                "weather": [{"id": 500, "main": "Rain", "icon": "10d"}],
            }
        ],
    }

    (record,) = normalize_onecall(payload)

    assert record.timestamp == datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
    assert record.precip_probability_pct == pytest.approx(35.0)
    assert record.precipitation_mm == 0.4
    assert record.pressure_hpa == 1015
    assert record.condition_code == "owm:500"
    assert record.is_daytime is True


def test_openweather_quota_maps_to_quota_exceeded(requests_mock):
    provider = OpenWeatherProvider(api_key="test", base_url="https://owm.test/onecall")
    requests_mock.get("https://owm.test/onecall", status_code=429, text="quota exceeded")

    with pytest.raises(QuotaExceeded):
        provider.fetch_raw(25.0, -40.0, Metric.WEATHER)


def test_openmeteo_hourly_normalization(requests_mock):
    provider = OpenMeteoProvider(base_url="https://openmeteo.test")
    requests_mock.get(
        "https://openmeteo.test",
        json={
            "longitude": 37.6,
            "hourly": {
                "time": ["2023-10-10T00:00", "2023-10-10T01:00", "2023-10-10T02:00"],
                "temperature_2m": [5.0, 6.0, None],
                "pressure_msl": [1010.0, 1011.0, None],
                "wind_speed_10m": [10.0, 5.0, None],
                "precipitation": [1.2, 0.0, None],
                "weather_code": [61, 3, None],
                "is_day": [0, 0, None],
            },
        },
    )

    forecast = provider.fetch(55.7, 37.6, Metric.WEATHER)

    assert len(forecast) == 2
    assert forecast[0].wind_speed_mps == 10.0
    assert forecast[1].wind_speed_mps == 5.0
    assert forecast[0].pressure_hpa == 1010.0
    assert forecast[0].condition_code == "wmo:61"
    assert forecast[0].is_daytime is False
    assert forecast[0].timestamp.tzinfo == timezone.utc
    assert requests_mock.request_history[0].qs["wind_speed_unit"] == ["ms"]


def test_openmeteo_marine_current_in_knots():
    records = normalize_marine(
        {
            "hourly": {
                "time": ["2024-06-01T00:00", "2024-06-01T01:00"],
                "wave_height": [0.8, None],
                "swell_wave_period": [9.5, 9.0],
                "ocean_current_velocity": [1.852, 0.0],
                "sea_surface_temperature": [14.1, 14.0],
            }
        }
    )

    assert len(records) == 1
    assert records[0].current_speed_kn == pytest.approx(1.0)
    assert records[0].swell_period_s == 9.5


def test_openmeteo_server_error_is_unavailable(requests_mock):
    provider = OpenMeteoProvider(base_url="https://openmeteo.test")
    requests_mock.get("https://openmeteo.test", status_code=502, text="bad gateway")

    with pytest.raises(ProviderUnavailable):
        provider.fetch_raw(1.0, 1.0, Metric.WEATHER)


def test_timeout_is_unavailable(requests_mock):
    provider = OpenMeteoProvider(base_url="https://openmeteo.test")
    requests_mock.get("https://openmeteo.test", exc=requests.exceptions.ConnectTimeout)

    with pytest.raises(ProviderUnavailable) as excinfo:
        provider.fetch_raw(1.0, 1.0, Metric.WEATHER)

    assert excinfo.value.provider == "openmeteo"


def test_invalid_json_is_schema_mismatch(requests_mock):
    provider = OpenMeteoProvider(base_url="https://openmeteo.test")
    requests_mock.get("https://openmeteo.test", text="<html>maintenance</html>")

    with pytest.raises(SchemaMismatch):
        provider.fetch_raw(1.0, 1.0, Metric.WEATHER)


def test_stormglass_source_preference():
    assert pick_source({"noaa": 1.1, "sg": 1.2}) == 1.2
    assert pick_source({"smhi": 0.9, "noaa": 1.0}) == 1.0
    assert pick_source({"sg": None, "icon": 0.7}) == 0.7
    assert pick_source({"unlisted": 2.0}) == 2.0
    assert pick_source(3.5) == 3.5
    assert pick_source(None) is None


def test_stormglass_marine_fetch(requests_mock):
    provider = StormglassProvider(api_key="sg-key", base_url="https://stormglass.test/v2")
    requests_mock.get(
        "https://stormglass.test/v2/weather/point",
        json={
            "hours": [
                {
                    "time": "2024-06-01T13:00:00+00:00",
                    "waveHeight": {"noaa": 1.1, "sg": 1.2},
                    "currentSpeed": {"sg": 1.0},
                    "visibility": {"noaa": 24.0},
                },
                {
                    "time": "2024-06-01T12:00:00+00:00",
                    "waveHeight": {"meto": 0.9},
                    "waterTemperature": {"sg": 12.5},
                },
            ]
        },
    )

    records = provider.fetch(50.1, -5.5, Metric.MARINE)

    assert [r.wave_height_m for r in records] == [0.9, 1.2]
    assert records[0].water_temp_c == 12.5
    assert records[1].current_speed_kn == pytest.approx(1.0 * 3600 / 1852)
    assert records[1].visibility_km == 24.0
    assert requests_mock.request_history[0].headers["Authorization"] == "sg-key"
    assert provider.label == "paid:stormglass"


def test_stormglass_missing_wave_height():
    with pytest.raises(SchemaMismatch) as excinfo:
        stormglass.normalize_marine({"hours": [{"time": "2024-06-01T12:00:00+00:00", "waveHeight": {}}]})

    assert excinfo.value.field == "hours.0.waveHeight"


def test_stormglass_bio_converts_oxygen():
    records = normalize_bio(
        {
            "hours": [
                {
                    "time": "2024-06-01T00:00:00+00:00",
                    "chlorophyll": {"sg": 2.4},
                    "oxygen": {"sg": 250.0},
                    "nitrate": {"sg": 6.1},
                    "phosphate": {"sg": 0.4},
                    "salinity": {"sg": 35.1},
                },
                {"time": "2024-06-01T01:00:00+00:00", "dissolvedOxygen": {"sg": 100.0}},
            ]
        }
    )

    assert records[0].dissolved_oxygen_mg_l == pytest.approx(7.9995)
    assert records[0].chlorophyll_mg_m3 == 2.4
    assert records[0].nitrate_umol_l == 6.1
    assert records[0].water_clarity_kd490 is None
    assert records[1].dissolved_oxygen_mg_l == pytest.approx(3.1998)
    assert records[1].chlorophyll_mg_m3 is None


def test_unsupported_metric_is_provider_error():
    provider = OpenWeatherProvider(api_key="test")

    assert not provider.supports(Metric.MARINE)
    with pytest.raises(ProviderError) as excinfo:
        provider.normalize(Metric.MARINE, {})
    assert "does not serve marine" in str(excinfo.value)

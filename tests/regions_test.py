from __future__ import annotations

import pytest

from seastate.entities import Metric
from seastate.regions import region_for_code, resolve_marine_region, select_providers, weather_rule_for


@pytest.mark.parametrize(
    "latitude, longitude, expected",
    [
        (59.91, 10.75, ("metno", "openweather", "openmeteo")),
        (40.71, -74.01, ("nws", "openweather", "openmeteo")),
        (61.22, -149.9, ("nws", "openweather", "openmeteo")),
        (52.0, 175.0, ("nws", "openweather", "openmeteo")),
        (21.31, -157.86, ("nws", "openweather", "openmeteo")),
        (-33.87, 151.21, ("openweather", "openmeteo")),
    ],
)
def test_weather_provider_order(latitude, longitude, expected):
    assert select_providers(latitude, longitude, Metric.WEATHER) == expected


def test_openmeteo_is_always_last_for_weather():
    for latitude, longitude in ((0.0, 0.0), (48.85, 2.35), (35.0, -100.0)):
        assert select_providers(latitude, longitude)[-1] == "openmeteo"


def test_weather_rule_names():
    assert weather_rule_for(48.85, 2.35).name == "europe"
    assert weather_rule_for(0.0, 0.0) is None


def test_region_keyword_wins_over_bbox():
    match = resolve_marine_region(43.0, 5.0, "Gulf of Finland charter")

    assert match.code == "BAL"
    assert match.matched_by == "keyword"


def test_blackpool_is_not_the_black_sea():
    match = resolve_marine_region(53.82, -3.05, "Blackpool")

    assert match.code == "IBI"
    assert match.matched_by == "bbox"


def test_black_sea_keyword():
    assert resolve_marine_region(0.0, 0.0, "Black-Sea coast").code == "BLK"


def test_region_table_order_resolves_overlaps():
    assert resolve_marine_region(43.0, 34.0).code == "BLK"
    assert resolve_marine_region(40.0, 15.0).code == "MED"


def test_open_ocean_falls_back_to_global():
    match = resolve_marine_region(0.0, -140.0)

    assert match.code == "GLO"
    assert match.matched_by == "fallback"
    assert match.datasets.waves == "cmems_mod_glo_wav_anfc_0.083deg_PT3H-i"


def test_region_for_code():
    assert region_for_code("med").name == "Mediterranean Sea"
    with pytest.raises(KeyError):
        region_for_code("XXX")


def test_marine_and_bio_provider_order():
    assert select_providers(56.0, 3.0, Metric.MARINE) == ("metno", "openmeteo", "stormglass")
    assert select_providers(45.0, -5.0, Metric.MARINE) == ("openmeteo", "stormglass")
    assert select_providers(45.0, -5.0, Metric.BIOGEOCHEMICAL) == ("stormglass",)


def test_wales_keyword_selects_ibi():
    match = resolve_marine_region(0.0, 0.0, "North Wales coast")

    assert match.code == "IBI"
    assert match.matched_by == "keyword"

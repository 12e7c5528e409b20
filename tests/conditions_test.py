from __future__ import annotations

import math
from datetime import datetime, timezone

import pytest

from seastate.entities import MarineRecord
from seastate.scoring.clarity import (
    calculate_water_clarity,
    chlorophyll_clarity_index,
    interpret_clarity,
)
from seastate.scoring.conditions import assess_conditions, categorize

TS = datetime(2024, 6, 1, 12, tzinfo=timezone.utc)


def test_calm_day_is_excellent():
    report = assess_conditions(MarineRecord(TS, wave_height_m=0.5), wind_speed_mps=3.0)

    assert report.category == "excellent"
    assert report.visibility_km == 12.0
    assert report.visibility_estimated
    assert report.warnings == ()


def test_storm_is_dangerous():
    report = assess_conditions(MarineRecord(TS, wave_height_m=3.5), wind_speed_mps=15.0)

    assert report.category == "dangerous"
    assert report.visibility_km == 2.0
    assert report.warnings == (
        "Strong winds: 29 knots - consider postponing the trip",
        "High waves: 3.5m - dangerous for small boats",
    )


def test_swell_counts_when_larger_than_wind_waves():
    report = assess_conditions(MarineRecord(TS, wave_height_m=0.5, swell_height_m=2.2))

    assert report.wave_height_m == 2.2
    assert report.category == "poor"
    assert report.warnings == ("Moderate waves: 2.2m - use caution",)


def test_observed_visibility_and_currents():
    marine = MarineRecord(TS, wave_height_m=0.4, visibility_km=1.5, current_speed_kn=4.5)

    report = assess_conditions(marine, wind_speed_mps=2.0)

    assert not report.visibility_estimated
    assert report.category == "poor"
    assert "Poor visibility: 1.5km - navigation hazard" in report.warnings
    assert "Strong currents: 4.5 knots - anchoring may be difficult" in report.warnings


@pytest.mark.parametrize(
    "wind_kn, wave, visibility_km, category",
    [(5, 0.5, 10, "excellent"), (12, 0.5, 10, "good"), (16, 0.5, 10, "moderate"), (22, 0.5, 10, "poor"), (5, 0.5, 0.5, "dangerous")],
)
def test_categorize(wind_kn, wave, visibility_km, category):
    assert categorize(wind_kn, wave, visibility_km) == category


def test_water_clarity_methods():
    combined = calculate_water_clarity(kd490=0.2, chlorophyll=1.5)
    kd_only = calculate_water_clarity(kd490=0.5)
    chl_only = calculate_water_clarity(chlorophyll=0.3)

    assert combined.method == "combined"
    assert combined.clarity_index == pytest.approx(0.5)
    assert kd_only.clarity_index == 0.0
    assert kd_only.confidence == "high"
    assert chl_only.clarity_index == pytest.approx(0.9)
    assert chl_only.confidence == "medium"
    assert calculate_water_clarity() is None


@pytest.mark.parametrize(
    "index, label",
    [(0.85, "Crystal Clear"), (0.6, "Clear"), (0.4, "Moderate"), (0.2, "Murky"), (0.1, "Very Murky")],
)
def test_interpret_clarity(index, label):
    assert interpret_clarity(index).label == label


def test_chlorophyll_clarity_index():
    assert chlorophyll_clarity_index(0.3) == 90
    assert chlorophyll_clarity_index(6.0) == 0
    assert chlorophyll_clarity_index(None) is None
    assert chlorophyll_clarity_index(math.nan) is None

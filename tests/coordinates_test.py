from __future__ import annotations

import math

import pytest

from seastate.coordinates import (
    InvalidCoordinate,
    PrecisionTier,
    cache_key,
    format_coordinates,
    round_coordinates,
    round_value,
    ttl_for,
    unique_rounded_coordinates,
    validate_coordinates,
)


@pytest.mark.parametrize("tier", list(PrecisionTier))
def test_rounding_is_idempotent_for_every_tier(tier):
    for latitude, longitude in ((59.91101, 10.75012), (-33.86785, 151.20732), (0.05, -0.05), (89.99999, -179.99999)):
        once = round_coordinates(latitude, longitude, tier)
        assert round_coordinates(*once, tier) == once


def test_round_value_is_half_away_from_zero():
    assert round_value(1.2345, 3) == 1.235
    assert round_value(0.0005, 3) == 0.001
    assert round_value(-0.0005, 3) == -0.001
    assert round_value(2.5, 0) == 3.0


def test_round_value_never_returns_negative_zero():
    value = round_value(-0.0001, 3)
    assert value == 0.0
    assert math.copysign(1.0, value) == 1.0


def test_tier_decimals_and_ttl():
    assert [tier.decimals for tier in PrecisionTier] == [0, 1, 2, 3, 4]
    assert ttl_for(PrecisionTier.ASTRONOMY) == 24 * 60 * 60 * 1000
    assert ttl_for(PrecisionTier.PAID_MARINE) == 12 * 60 * 60 * 1000
    assert ttl_for(PrecisionTier.HIGH_PRECISION) == 60 * 60 * 1000


def test_cache_key_pads_to_tier_precision():
    assert format_coordinates(59.9, 10.75, PrecisionTier.STANDARD) == "59.900,10.750"
    assert cache_key("metno", 59.91101, 10.75012, PrecisionTier.HIGH_PRECISION) == "metno:59.9110,10.7501"
    assert (
        cache_key("stormglass", 50.36, -4.14, PrecisionTier.PAID_MARINE, prefix="marine")
        == "marine:stormglass:50.4,-4.1"
    )


def test_nearby_points_share_a_key():
    first = cache_key("openmeteo", 51.50012, -0.12004, PrecisionTier.STANDARD)
    second = cache_key("openmeteo", 51.50049, -0.11951, PrecisionTier.STANDARD)
    assert first == second == "openmeteo:51.500,-0.120"


def test_unique_rounded_coordinates_keeps_first_seen_order():
    points = [(51.60001, -0.12), (51.50012, -0.12), (51.50049, -0.1204), (51.6, -0.12)]
    assert unique_rounded_coordinates(points, PrecisionTier.STANDARD) == [(51.6, -0.12), (51.5, -0.12)]


@pytest.mark.parametrize("latitude, longitude", [(90.0, 180.0), (-90.0, -180.0), (0, 0)])
def test_validate_accepts_limits(latitude, longitude):
    validate_coordinates(latitude, longitude)


@pytest.mark.parametrize(
    "latitude, longitude",
    [(90.0001, 0.0), (0.0, -180.5), (float("nan"), 0.0), (0.0, float("inf")), ("north", 0.0), (None, 0.0)],
)
def test_validate_rejects_bad_values(latitude, longitude):
    with pytest.raises(InvalidCoordinate):
        validate_coordinates(latitude, longitude)

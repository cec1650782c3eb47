"""
tests/test_geo.py
~~~~~~~~~~~~~~~~~
Haversine distance, inclusive radius check and coordinate validation.
"""

from __future__ import annotations

import math

import pytest

from overhead.geo import (
    Coordinate,
    InvalidCoordinate,
    bounding_box,
    check_radius,
    distance_km,
    is_within_radius,
    miles_to_km,
)

POINTS = [
    Coordinate(0.0, 0.0),
    Coordinate(51.4700, -0.4543),  # LHR
    Coordinate(40.6413, -73.7781),  # JFK
    Coordinate(-33.9399, 151.1753),  # SYD
    Coordinate(90.0, 180.0),
]


@pytest.mark.parametrize("p", POINTS)
def test_distance_to_self_is_zero(p: Coordinate) -> None:
    assert distance_km(p, p) == 0.0


@pytest.mark.parametrize("a", POINTS)
@pytest.mark.parametrize("b", POINTS)
def test_distance_is_symmetric(a: Coordinate, b: Coordinate) -> None:
    assert distance_km(a, b) == pytest.approx(distance_km(b, a))


def test_one_degree_of_latitude() -> None:
    assert distance_km(Coordinate(10.0, 20.0), Coordinate(11.0, 20.0)) == pytest.approx(
        111.19, abs=0.1
    )


def test_lhr_jfk() -> None:
    """Published great-circle distance LHR–JFK ≈ 5 540 km."""
    assert distance_km(POINTS[1], POINTS[2]) == pytest.approx(5540, rel=0.01)


def test_antipodes() -> None:
    d = distance_km(Coordinate(0.0, 0.0), Coordinate(0.0, 180.0))
    assert d == pytest.approx(math.pi * 6371.0)


def test_radius_is_inclusive() -> None:
    a, b = Coordinate(10.0, 20.0), Coordinate(11.0, 20.0)
    exact = distance_km(a, b)
    assert is_within_radius(a, b, exact)
    assert not is_within_radius(a, b, exact - 0.001)


@pytest.mark.parametrize(
    "bad",
    [
        Coordinate(90.0001, 0.0),
        Coordinate(-91.0, 0.0),
        Coordinate(0.0, 180.5),
        Coordinate(0.0, -181.0),
        Coordinate(float("nan"), 0.0),
        Coordinate("north", 0.0),  # type: ignore[arg-type]
    ],
)
def test_out_of_range_is_rejected(bad: Coordinate) -> None:
    with pytest.raises(InvalidCoordinate):
        distance_km(bad, Coordinate(0.0, 0.0))
    with pytest.raises(InvalidCoordinate):
        is_within_radius(Coordinate(0.0, 0.0), bad, 10.0)


def test_negative_radius_is_rejected() -> None:
    with pytest.raises(InvalidCoordinate):
        is_within_radius(Coordinate(0.0, 0.0), Coordinate(0.0, 0.0), -1.0)


@pytest.mark.parametrize("radius", [-0.5, math.inf, math.nan, "ten", None])
def test_check_radius_rejects(radius) -> None:
    with pytest.raises(InvalidCoordinate):
        check_radius(radius)


def test_check_radius_accepts_zero_and_ints() -> None:
    assert check_radius(0) == 0.0
    assert check_radius(5) == 5.0


def test_invalid_coordinate_is_value_error() -> None:
    assert issubclass(InvalidCoordinate, ValueError)


def test_miles_to_km() -> None:
    assert miles_to_km(5) == pytest.approx(8.04672)


def test_bounding_box_uses_69_miles_per_degree() -> None:
    lat_min, lon_min, lat_max, lon_max = bounding_box(Coordinate(40.0, -75.0), 69.0)
    assert (lat_min, lon_min, lat_max, lon_max) == pytest.approx((39.0, -76.0, 41.0, -74.0))


def test_bounding_box_is_capped_at_the_pole() -> None:
    lat_min, _, lat_max, _ = bounding_box(Coordinate(89.5, 0.0), 69.0)
    assert lat_max == 90.0
    assert lat_min == pytest.approx(88.5)

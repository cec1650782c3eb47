"""
geo.py
~~~~~~
Great-circle helpers used to keep only the aircraft near the user.

Coordinates are validated, never clamped: an out-of-range latitude or
longitude is a caller error and raises :class:`InvalidCoordinate`.
"""

from __future__ import annotations

import math
from typing import NamedTuple

from .constants import KM_PER_MILE, MILES_PER_DEGREE, R_EARTH_KM


class InvalidCoordinate(ValueError):
    """Latitude/longitude outside the valid range (or not a number)."""


class Coordinate(NamedTuple):
    lat: float
    lon: float


def validate(point: Coordinate) -> Coordinate:
    """Return *point* as a float :class:`Coordinate` or raise InvalidCoordinate."""
    try:
        lat, lon = float(point[0]), float(point[1])
    except (TypeError, ValueError, IndexError) as exc:
        raise InvalidCoordinate(f"not a coordinate: {point!r}") from exc
    if not (math.isfinite(lat) and -90.0 <= lat <= 90.0):
        raise InvalidCoordinate(f"latitude out of range: {lat}")
    if not (math.isfinite(lon) and -180.0 <= lon <= 180.0):
        raise InvalidCoordinate(f"longitude out of range: {lon}")
    return Coordinate(lat, lon)


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Great‑circle distance (km) between *a* and *b* (haversine)."""
    a, b = validate(a), validate(b)

    φ1, φ2 = map(math.radians, (a.lat, b.lat))
    dφ = math.radians(b.lat - a.lat)
    dλ = math.radians(b.lon - a.lon)
    h = math.sin(dφ / 2) ** 2 + math.cos(φ1) * math.cos(φ2) * math.sin(dλ / 2) ** 2
    # float error can push h a hair above 1 for antipodal points
    return 2 * R_EARTH_KM * math.asin(math.sqrt(min(1.0, h)))


def check_radius(radius_km: float) -> float:
    """Return *radius_km* as float or raise InvalidCoordinate (negative, NaN, inf)."""
    try:
        radius = float(radius_km)
    except (TypeError, ValueError) as exc:
        raise InvalidCoordinate(f"radius must be a number: {radius_km!r}") from exc
    if not math.isfinite(radius) or radius < 0:
        raise InvalidCoordinate(f"radius must be a non-negative number: {radius_km}")
    return radius


def is_within_radius(origin: Coordinate, candidate: Coordinate, radius_km: float) -> bool:
    """True when *candidate* lies within *radius_km* of *origin* (inclusive)."""
    return distance_km(origin, candidate) <= check_radius(radius_km)


def miles_to_km(miles: float) -> float:
    return miles * KM_PER_MILE


def bounding_box(origin: Coordinate, radius_miles: float) -> tuple[float, float, float, float]:
    """
    Return ``(lat_min, lon_min, lat_max, lon_max)`` around *origin*.

    Uses the flat ``miles / 69`` degrees approximation box-keyed flight
    search APIs were queried with. Latitude is capped at the poles and
    longitude at ±180; the box is a query hint, the exact cut is
    :pyfunc:`is_within_radius`.
    """
    origin = validate(origin)
    delta = radius_miles / MILES_PER_DEGREE
    return (
        max(-90.0, origin.lat - delta),
        max(-180.0, origin.lon - delta),
        min(90.0, origin.lat + delta),
        min(180.0, origin.lon + delta),
    )


__all__ = [
    "Coordinate",
    "InvalidCoordinate",
    "bounding_box",
    "check_radius",
    "distance_km",
    "is_within_radius",
    "miles_to_km",
    "validate",
]

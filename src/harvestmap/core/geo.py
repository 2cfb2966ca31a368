from __future__ import annotations
from math import asin, ceil, cos, radians, sin, sqrt
from typing import Protocol

"""
Geospatial helpers.

We keep a tiny geometry layer here so the catalog filter and the map projections can do
distance checks without pulling in heavier GIS dependencies.
"""

EARTH_RADIUS_KM = 6371.0


class HasLatLng(Protocol):
    lat: float
    lng: float


def distance_km(a: HasLatLng, b: HasLatLng) -> float:
    """Compute great-circle (haversine) distance in kilometers between two points."""
    lat1 = radians(a.lat)
    lng1 = radians(a.lng)
    lat2 = radians(b.lat)
    lng2 = radians(b.lng)

    dlat = lat2 - lat1
    dlng = lng2 - lng1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlng / 2) ** 2
    # Rounding can push h a hair above 1 for antipodal points.
    return 2 * EARTH_RADIUS_KM * asin(min(1.0, sqrt(h)))


def within_radius(center: HasLatLng, point: HasLatLng, radius_km: float) -> bool:
    """True when `point` lies within `radius_km` of `center` (inclusive).

    A non-positive radius is an empty search area, not an unbounded one.
    """
    if radius_km <= 0:
        return False
    return distance_km(center, point) <= radius_km


def estimate_delivery_time(distance_km: float, average_speed_kph: float = 30) -> str:
    """Rough, human-readable delivery estimate using a linear speed model."""
    if distance_km <= 0:
        return "Immediate"

    hours = distance_km / average_speed_kph
    if hours < 24:
        rounded = ceil(hours)
        return f"Approximately {rounded} hour{'s' if rounded > 1 else ''}"

    days = hours / 24
    lower = ceil(days)
    upper = ceil(days + 1)
    return f"Approximately {lower}-{upper} day{'s' if upper > 1 else ''}"

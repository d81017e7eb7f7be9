"""Great-circle distance and coordinate rounding helpers."""

from __future__ import annotations

import math
from typing import Protocol

EARTH_RADIUS_KM = 6371.0
CACHE_COORDINATE_DECIMALS = 5

_ROUNDING_SCALE = 10**CACHE_COORDINATE_DECIMALS


class HasCoordinates(Protocol):
    latitude: float
    longitude: float


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle (haversine) distance in kilometres."""

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(a: HasCoordinates, b: HasCoordinates) -> float:
    """Distance in kilometres between two points exposing latitude/longitude."""

    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def round_coordinate(value: float) -> float:
    """Round a coordinate to 5 decimals (~1 m) with halves rounded up."""

    return math.floor(value * _ROUNDING_SCALE + 0.5) / _ROUNDING_SCALE


__all__ = [
    "EARTH_RADIUS_KM",
    "HasCoordinates",
    "distance_km",
    "haversine_km",
    "round_coordinate",
]

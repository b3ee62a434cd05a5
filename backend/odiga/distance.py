"""
Geometric distance estimates between places.

Course legs and stop spacing use the walking estimate: great-circle distance
scaled by a fixed street-detour factor. No street network is consulted.
"""

from __future__ import annotations

import math
from typing import Protocol, Union

from .settings import settings

EARTH_RADIUS_KM = 6371.0
WALKING_DETOUR_FACTOR = settings.WALKING_DETOUR_FACTOR


class HasCoordinates(Protocol):
    @property
    def lat(self) -> float: ...

    @property
    def lon(self) -> float: ...


Point = Union[HasCoordinates, tuple[float, float]]


def geo_distance_meters(a_lat: float, a_lon: float, b_lat: float, b_lon: float) -> float:
    """Great-circle distance in meters (haversine)."""
    dlat = math.radians(b_lat - a_lat)
    dlon = math.radians(b_lon - a_lon)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(a_lat)) * math.cos(math.radians(b_lat)) * math.sin(dlon / 2) ** 2
    )
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c * 1000.0


def _coords(point: Point) -> tuple[float, float]:
    if isinstance(point, tuple):
        return float(point[0]), float(point[1])
    return float(point.lat), float(point.lon)


def walking_distance_meters(
    a: Point, b: Point, detour_factor: float = WALKING_DETOUR_FACTOR
) -> float:
    a_lat, a_lon = _coords(a)
    b_lat, b_lon = _coords(b)
    return geo_distance_meters(a_lat, a_lon, b_lat, b_lon) * detour_factor


__all__ = ["geo_distance_meters", "walking_distance_meters", "WALKING_DETOUR_FACTOR"]

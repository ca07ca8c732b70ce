"""
Great-circle distance helpers.
"""

import math
from decimal import Decimal
from typing import Union

EARTH_RADIUS_KM = 6371.0

Coordinate = Union[float, Decimal, int]


def haversine_km(
    lat1: Coordinate,
    lon1: Coordinate,
    lat2: Coordinate,
    lon2: Coordinate,
) -> float:
    """
    Haversine distance between two points given in degrees.

    Args:
        lat1, lon1: First point
        lat2, lon2: Second point

    Returns:
        Distance in kilometres (R = 6371 km)
    """
    phi1 = math.radians(float(lat1))
    phi2 = math.radians(float(lat2))
    d_lat = math.radians(float(lat2) - float(lat1))
    d_lon = math.radians(float(lon2) - float(lon1))

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lon / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def within_radius(
    origin_lat: Coordinate,
    origin_lon: Coordinate,
    lat: Coordinate,
    lon: Coordinate,
    radius_km: float,
) -> bool:
    return haversine_km(origin_lat, origin_lon, lat, lon) <= radius_km

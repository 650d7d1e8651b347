"""Geospatial helper functions."""

from __future__ import annotations

import math

from ..models.domain import Point

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(a: Point, b: Point) -> float:
    """Great-circle distance in meters between two (lat, lon) points.

    Non-finite coordinates are not rejected: the result is NaN.
    """

    lat1, lon1 = a
    lat2, lon2 = b
    if not all(math.isfinite(value) for value in (lat1, lon1, lat2, lon2)):
        return math.nan

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # rounding can push antipodal pairs just above 1
    h = min(h, 1.0)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c

"""Closed-form geometry over latitude/longitude coordinates.

All functions are pure and never raise on degenerate input: polygons with
fewer than three vertices have zero area and contain nothing. The area
formula is a spherical approximation meant for field-sized polygons that do
not cross the antimeridian; self-intersecting rings give a number, not a
meaningful area.
"""

from __future__ import annotations

import math
from typing import Sequence

from ..core.constants import (
    EARTH_RADIUS_AREA_M,
    EARTH_RADIUS_DISTANCE_M,
    MIN_POLYGON_POINTS,
    SQ_METERS_PER_ACRE,
)
from .model import Coordinate


def polygon_area_square_meters(polygon: Sequence[Coordinate]) -> float:
    """Approximate area of a lat/lon ring in square metres.

    Sums ``(lon2 - lon1) * (2 + sin(lat1) + sin(lat2))`` over each edge
    (wrapping to the first vertex), scales by ``R**2 / 2`` and returns the
    absolute value.
    """
    n = len(polygon)
    if n < MIN_POLYGON_POINTS:
        return 0.0

    total = 0.0
    for i in range(n):
        a = polygon[i]
        b = polygon[(i + 1) % n]
        lat1 = math.radians(a.latitude)
        lat2 = math.radians(b.latitude)
        lon1 = math.radians(a.longitude)
        lon2 = math.radians(b.longitude)
        total += (lon2 - lon1) * (2 + math.sin(lat1) + math.sin(lat2))

    return abs(total * EARTH_RADIUS_AREA_M * EARTH_RADIUS_AREA_M / 2)


def is_point_in_polygon(point: Coordinate, polygon: Sequence[Coordinate]) -> bool:
    """Ray-casting containment test.

    Latitude is the x axis and longitude the y axis. Points exactly on an
    edge may land on either side.
    """
    n = len(polygon)
    if n < MIN_POLYGON_POINTS:
        return False

    x = point.latitude
    y = point.longitude
    inside = False

    j = n - 1
    for i in range(n):
        xi, yi = polygon[i].latitude, polygon[i].longitude
        xj, yj = polygon[j].latitude, polygon[j].longitude
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i

    return inside


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """Haversine great-circle distance in metres."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    dphi = math.radians(b.latitude - a.latitude)
    dlambda = math.radians(b.longitude - a.longitude)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_DISTANCE_M * c


def square_meters_to_acres(sq_meters: float) -> float:
    return sq_meters / SQ_METERS_PER_ACRE


def nearest_vertex_distance_meters(point: Coordinate, polygon: Sequence[Coordinate]) -> float | None:
    """Distance from ``point`` to the closest polygon vertex, or None if empty."""
    if not polygon:
        return None
    return min(distance_meters(point, v) for v in polygon)

"""GeoJSON Polygon <-> Polygon conversion.

Boundaries are stored the way the mobile client draws them: a GeoJSON
``Polygon`` whose single ring lists ``[longitude, latitude]`` pairs and
repeats the first point at the end.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from ..core.exceptions import ValidationError
from .model import Coordinate, Polygon


def polygon_from_geojson(geometry: Mapping[str, Any]) -> Polygon:
    if not isinstance(geometry, Mapping) or geometry.get("type") != "Polygon":
        raise ValidationError("Boundary must be a GeoJSON Polygon")

    rings = geometry.get("coordinates")
    if not isinstance(rings, Sequence) or not rings:
        raise ValidationError("Boundary has no coordinate ring")

    ring = rings[0]
    if not isinstance(ring, Sequence) or isinstance(ring, str):
        raise ValidationError(f"Boundary ring must be a list of positions, got {ring!r}")

    points = []
    for pair in ring:
        if not isinstance(pair, Sequence) or isinstance(pair, str) or len(pair) < 2:
            raise ValidationError(f"Invalid position in boundary: {pair!r}")
        points.append(Coordinate.checked(latitude=pair[1], longitude=pair[0]))

    # Drop the closing point; the ring is implicitly closed.
    if len(points) > 1 and points[0] == points[-1]:
        points.pop()
    return tuple(points)


def polygon_to_geojson(polygon: Polygon) -> dict:
    ring = [[p.longitude, p.latitude] for p in polygon]
    if ring:
        ring.append(list(ring[0]))
    return {"type": "Polygon", "coordinates": [ring]}

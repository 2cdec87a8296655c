from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

from ..common.validators import require_coordinate


@dataclass(frozen=True)
class Coordinate:
    """WGS84 latitude/longitude in degrees. No datum conversion is done."""

    latitude: float
    longitude: float

    @classmethod
    def checked(cls, latitude, longitude) -> "Coordinate":
        lat, lon = require_coordinate(latitude, longitude)
        return cls(latitude=lat, longitude=lon)


# Ordered vertices; the last vertex connects back to the first.
Polygon = Tuple[Coordinate, ...]


def as_polygon(points: Iterable[Coordinate]) -> Polygon:
    return tuple(points)

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from ..core.enums import FieldState
from ..geo.geometry import polygon_area_square_meters, square_meters_to_acres
from ..geo.model import Coordinate, Polygon, as_polygon


@dataclass(frozen=True)
class FieldBoundary:
    """Polygon of a field plus its cached area.

    Build with ``from_polygon`` so the area always matches the vertices.
    """

    polygon: Polygon
    area_sq_m: float
    area_acres: float

    @classmethod
    def from_polygon(cls, points: Iterable[Coordinate]) -> "FieldBoundary":
        polygon = as_polygon(points)
        area = polygon_area_square_meters(polygon)
        return cls(polygon=polygon, area_sq_m=area, area_acres=square_meters_to_acres(area))


@dataclass(frozen=True)
class Field:
    field_id: str
    name: str
    boundary: FieldBoundary
    status: FieldState = FieldState.ACTIVE
    crop_type: Optional[str] = None
    manager_id: Optional[str] = None
    created_at: Optional[datetime] = None

from __future__ import annotations

import logging
import uuid
from typing import Iterable, Optional, Sequence

from ..common.validators import require_non_empty
from ..core.constants import MIN_POLYGON_POINTS
from ..core.exceptions import ValidationError
from ..geo.model import Coordinate
from .model import Field, FieldBoundary
from .repository import FieldRepository

logger = logging.getLogger(__name__)


class FieldService:
    def __init__(self, fields: FieldRepository):
        self._fields = fields

    @staticmethod
    def _boundary(points: Iterable[Coordinate]) -> FieldBoundary:
        boundary = FieldBoundary.from_polygon(points)
        if len(boundary.polygon) < MIN_POLYGON_POINTS:
            raise ValidationError(f"A field boundary needs at least {MIN_POLYGON_POINTS} points")
        return boundary

    def create_field(
        self,
        *,
        name: str,
        polygon: Iterable[Coordinate],
        crop_type: Optional[str] = None,
        manager_id: Optional[str] = None,
    ) -> Field:
        field = Field(
            field_id=uuid.uuid4().hex,
            name=require_non_empty(name, "name"),
            boundary=self._boundary(polygon),
            crop_type=crop_type,
            manager_id=manager_id,
        )
        self._fields.create(field)
        logger.info("created field %s (%.1f m2)", field.field_id, field.boundary.area_sq_m)
        return field

    def update_boundary(self, field_id: str, polygon: Iterable[Coordinate]) -> FieldBoundary:
        boundary = self._boundary(polygon)
        if not self._fields.update_boundary(field_id, boundary):
            raise ValidationError(f"Field {field_id} not found")
        return boundary

    def get_field(self, field_id: str) -> Field:
        field = self._fields.get_by_id(field_id)
        if not field:
            raise ValidationError(f"Field {field_id} not found")
        return field

    def list_fields(self) -> Sequence[Field]:
        return self._fields.list_all()

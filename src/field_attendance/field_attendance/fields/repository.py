from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..geo.model import Polygon
from .model import Field, FieldBoundary


class FieldRepository(Protocol):
    def get_by_id(self, field_id: str) -> Optional[Field]:
        raise NotImplementedError

    def get_field_boundary(self, field_id: str) -> Optional[Polygon]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Field]:
        raise NotImplementedError

    def create(self, field: Field) -> str:
        raise NotImplementedError

    def update_boundary(self, field_id: str, boundary: FieldBoundary) -> bool:
        raise NotImplementedError

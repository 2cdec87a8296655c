from __future__ import annotations

import json
from typing import Any, Dict, Optional, Sequence

from ..core.enums import FieldState
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..geo.geojson import polygon_from_geojson, polygon_to_geojson
from ..geo.model import Polygon
from .model import Field, FieldBoundary
from .repository import FieldRepository

_COLUMNS = "field_id, name, boundary, crop_type, manager_id, status, created_at"


def _load_geojson(raw) -> dict:
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        return json.loads(raw)
    return raw


def _to_field(r: Dict[str, Any]) -> Field:
    # Area is recomputed from the polygon rather than trusted from the row.
    return Field(
        field_id=r["field_id"],
        name=r["name"],
        boundary=FieldBoundary.from_polygon(polygon_from_geojson(_load_geojson(r["boundary"]))),
        status=FieldState(r["status"]),
        crop_type=r.get("crop_type"),
        manager_id=r.get("manager_id"),
        created_at=r.get("created_at"),
    )


class MySQLFieldRepository(FieldRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, field_id: str) -> Optional[Field]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM fields WHERE field_id=%s", (field_id,))
            r = fetchone(cur)
            return _to_field(r) if r else None

    def list_all(self) -> Sequence[Field]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM fields ORDER BY name ASC")
            return [_to_field(r) for r in fetchall(cur)]

    def get_field_boundary(self, field_id: str) -> Optional[Polygon]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT boundary FROM fields WHERE field_id=%s", (field_id,))
            r = fetchone(cur)
            if not r:
                return None
            return polygon_from_geojson(_load_geojson(r["boundary"]))

    def create(self, field: Field) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO fields(field_id, name, boundary, area_sq_m, crop_type, manager_id, status)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    field.field_id,
                    field.name,
                    json.dumps(polygon_to_geojson(field.boundary.polygon)),
                    field.boundary.area_sq_m,
                    field.crop_type,
                    field.manager_id,
                    field.status.value,
                ),
            )
            return field.field_id

    def update_boundary(self, field_id: str, boundary: FieldBoundary) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE fields SET boundary=%s, area_sq_m=%s WHERE field_id=%s",
                (json.dumps(polygon_to_geojson(boundary.polygon)), boundary.area_sq_m, field_id),
            )
            return cur.rowcount > 0

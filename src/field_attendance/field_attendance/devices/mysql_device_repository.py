from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import DeviceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Device
from .repository import DeviceRepository

_COLUMNS = "device_id, assigned_field_id, gate_name, status, firmware, model, created_at"


def _to_device(r: Dict[str, Any]) -> Device:
    return Device(
        device_id=r["device_id"],
        assigned_field_id=r.get("assigned_field_id"),
        gate_name=r.get("gate_name"),
        status=DeviceStatus(r.get("status") or DeviceStatus.UNASSIGNED.value),
        firmware=r.get("firmware"),
        model=r.get("model"),
        created_at=r.get("created_at"),
    )


class MySQLDeviceRepository(DeviceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, device_id: str) -> Optional[Device]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM devices WHERE device_id=%s", (device_id,))
            r = fetchone(cur)
            return _to_device(r) if r else None

    def register(self, device: Device) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO devices(device_id, status, firmware, model)
                VALUES(%s,%s,%s,%s)
                """,
                (device.device_id, device.status.value, device.firmware, device.model),
            )

    def assign(self, device_id: str, field_id: str, gate_name: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE devices
                SET assigned_field_id=%s, gate_name=%s, status=%s
                WHERE device_id=%s
                """,
                (field_id, gate_name, DeviceStatus.ACTIVE.value, device_id),
            )
            return cur.rowcount > 0

    def list_unassigned(self) -> Sequence[Device]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM devices WHERE status=%s ORDER BY created_at ASC",
                (DeviceStatus.UNASSIGNED.value,),
            )
            return [_to_device(r) for r in fetchall(cur)]

    def list_all(self, *, field_id: Optional[str] = None) -> Sequence[Device]:
        with db_cursor(self._conn_factory) as (_, cur):
            if field_id is None:
                cur.execute(f"SELECT {_COLUMNS} FROM devices ORDER BY device_id ASC")
            else:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM devices WHERE assigned_field_id=%s ORDER BY device_id ASC",
                    (field_id,),
                )
            return [_to_device(r) for r in fetchall(cur)]

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus, CheckMethod, GeofenceStatus
from ..core.exceptions import DataIntegrityError, OpenSessionExistsError, SessionAlreadyClosedError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from ..geo.model import Coordinate
from .model import AttendanceSession, SessionClose
from .repository import AttendanceRepository


_COLUMNS = """
    session_id, worker_id, field_id,
    check_in_time, check_in_lat, check_in_lon, check_in_method,
    check_in_device_id, check_in_event_id, check_in_geofence,
    check_out_time, check_out_lat, check_out_lon, check_out_method,
    check_out_device_id, check_out_event_id, check_out_geofence,
    status, verified, verified_at, verifier_id
"""


def _coord(lat, lon) -> Optional[Coordinate]:
    if lat is None or lon is None:
        return None
    return Coordinate(latitude=float(lat), longitude=float(lon))


def _split(coord: Optional[Coordinate]) -> tuple:
    if coord is None:
        return None, None
    return coord.latitude, coord.longitude


def _to_session(r: Dict[str, Any]) -> AttendanceSession:
    return AttendanceSession(
        session_id=int(r["session_id"]),
        worker_id=r["worker_id"],
        field_id=r["field_id"],
        check_in_time=r["check_in_time"],
        check_in_method=CheckMethod(r["check_in_method"]),
        check_in_location=_coord(r.get("check_in_lat"), r.get("check_in_lon")),
        check_in_device_id=r.get("check_in_device_id"),
        check_in_event_id=r.get("check_in_event_id"),
        check_in_geofence=GeofenceStatus(r.get("check_in_geofence") or GeofenceStatus.UNVERIFIABLE.value),
        check_out_time=r.get("check_out_time"),
        check_out_location=_coord(r.get("check_out_lat"), r.get("check_out_lon")),
        check_out_method=CheckMethod(r["check_out_method"]) if r.get("check_out_method") else None,
        check_out_device_id=r.get("check_out_device_id"),
        check_out_event_id=r.get("check_out_event_id"),
        check_out_geofence=GeofenceStatus(r["check_out_geofence"]) if r.get("check_out_geofence") else None,
        status=AttendanceStatus(r["status"]),
        verified=bool(r.get("verified")),
        verified_at=r.get("verified_at"),
        verifier_id=r.get("verifier_id"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    """Attendance store backed by ``attendance_sessions``.

    The table's unique index on ``open_worker_id`` (worker id while open,
    NULL once closed) rejects a second open session for the same worker, so
    two near-simultaneous scans cannot both check in.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_open_session(self, worker_id: str) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE worker_id=%s AND check_out_time IS NULL
                ORDER BY check_in_time DESC
                """,
                (worker_id,),
            )
            rows = fetchall(cur)

        if len(rows) > 1:
            ids = [int(r["session_id"]) for r in rows]
            raise DataIntegrityError(f"worker {worker_id} has {len(rows)} open sessions: {ids}")
        return _to_session(rows[0]) if rows else None

    def find_session_for_event(self, event_id: str) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE check_in_event_id=%s OR check_out_event_id=%s
                LIMIT 1
                """,
                (event_id, event_id),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_sessions WHERE session_id=%s",
                (int(session_id),),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def create_session(self, session: AttendanceSession) -> int:
        lat, lon = _split(session.check_in_location)
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_sessions(
                        worker_id, field_id, check_in_time, check_in_lat, check_in_lon,
                        check_in_method, check_in_device_id, check_in_event_id,
                        check_in_geofence, status, verified
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        session.worker_id,
                        session.field_id,
                        session.check_in_time,
                        lat,
                        lon,
                        session.check_in_method.value,
                        session.check_in_device_id,
                        session.check_in_event_id,
                        session.check_in_geofence.value,
                        session.status.value,
                        int(session.verified),
                    ),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as exc:
            if is_duplicate_key(exc):
                raise OpenSessionExistsError(f"open session already stored for worker {session.worker_id}") from exc
            raise

    def close_session(self, session_id: int, close: SessionClose) -> None:
        lat, lon = _split(close.check_out_location)
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE attendance_sessions
                    SET check_out_time=%s, check_out_lat=%s, check_out_lon=%s,
                        check_out_method=%s, check_out_device_id=%s, check_out_event_id=%s,
                        check_out_geofence=%s, status=%s
                    WHERE session_id=%s AND check_out_time IS NULL
                    """,
                    (
                        close.check_out_time,
                        lat,
                        lon,
                        close.check_out_method.value,
                        close.check_out_device_id,
                        close.check_out_event_id,
                        close.check_out_geofence.value,
                        close.status.value,
                        int(session_id),
                    ),
                )
                updated = cur.rowcount
        except mysql.connector.IntegrityError as exc:
            if is_duplicate_key(exc):
                raise SessionAlreadyClosedError(f"event {close.check_out_event_id} already closed a session") from exc
            raise

        if updated == 0:
            raise SessionAlreadyClosedError(f"session {session_id} is not open")

    def set_verification(self, session_id: int, *, verified: bool, verifier_id: Optional[str], verified_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET verified=%s, verified_at=%s, verifier_id=%s
                WHERE session_id=%s
                """,
                (int(verified), verified_at, verifier_id, int(session_id)),
            )
            return cur.rowcount > 0

    def list_sessions(
        self,
        *,
        worker_id: Optional[str] = None,
        field_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 50,
    ) -> Sequence[AttendanceSession]:
        clauses = ["1=1"]
        params: list[object] = []

        if worker_id is not None:
            clauses.append("worker_id=%s")
            params.append(worker_id)
        if field_id is not None:
            clauses.append("field_id=%s")
            params.append(field_id)
        if start is not None:
            clauses.append("check_in_time >= %s")
            params.append(start)
        if end is not None:
            clauses.append("check_in_time <= %s")
            params.append(end)
        params.append(int(limit))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE {where}
                ORDER BY check_in_time DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_to_session(r) for r in fetchall(cur)]

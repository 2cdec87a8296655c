from __future__ import annotations

import json
import uuid
from typing import Any, Mapping, Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import QueuedPayload
from .repository import RawEventQueue


class MySQLEventQueue(RawEventQueue):
    """``iot_logs`` table used as a FIFO of raw reader payloads."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def next_event(self) -> Optional[QueuedPayload]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT event_id, payload, received_at
                FROM iot_logs
                ORDER BY received_at ASC, event_id ASC
                LIMIT 1
                """
            )
            r = fetchone(cur)
            if not r:
                return None

            payload = r["payload"]
            if isinstance(payload, (bytes, bytearray)):
                payload = payload.decode("utf-8")
            if isinstance(payload, str):
                try:
                    payload = json.loads(payload)
                except ValueError:
                    # Left for parse_raw_event to reject.
                    payload = {}
            return QueuedPayload(event_id=r["event_id"], payload=payload, received_at=r.get("received_at"))

    def delete_event(self, event_id: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM iot_logs WHERE event_id=%s", (event_id,))

    def push_event(self, payload: Mapping[str, Any]) -> str:
        event_id = uuid.uuid4().hex
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO iot_logs(event_id, payload) VALUES(%s,%s)",
                (event_id, json.dumps(dict(payload))),
            )
        return event_id

from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Worker
from .repository import IdentityRepository


class MySQLWorkerRepository(IdentityRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_worker_by_card_id(self, card_id: str) -> Optional[Worker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT worker_id, name, rfid_card_id, assigned_field_id
                FROM workers
                WHERE rfid_card_id=%s
                """,
                (card_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Worker(
                worker_id=r["worker_id"],
                name=r["name"],
                rfid_card_id=r.get("rfid_card_id"),
                assigned_field_id=r.get("assigned_field_id"),
            )

    def find_field_assignment(self, worker_id: str) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT assigned_field_id FROM workers WHERE worker_id=%s", (worker_id,))
            r = fetchone(cur)
            if not r:
                return None
            return r.get("assigned_field_id") or None

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceSession, SessionClose


class AttendanceRepository(Protocol):
    def find_open_session(self, worker_id: str) -> Optional[AttendanceSession]:
        """Most recent open session for the worker.

        Raises ``DataIntegrityError`` when more than one is open.
        """

        raise NotImplementedError

    def find_session_for_event(self, event_id: str) -> Optional[AttendanceSession]:
        """Session opened or closed by the given raw device event, if any."""

        raise NotImplementedError

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def create_session(self, session: AttendanceSession) -> int:
        """Persist an open session.

        Raises ``OpenSessionExistsError`` when the store already holds an
        open session for the worker (or the same event id).
        """

        raise NotImplementedError

    def close_session(self, session_id: int, close: SessionClose) -> None:
        """Write the check-out fields.

        Raises ``SessionAlreadyClosedError`` if the session is no longer open.
        """

        raise NotImplementedError

    def set_verification(self, session_id: int, *, verified: bool, verifier_id: Optional[str], verified_at: datetime) -> bool:
        raise NotImplementedError

    def list_sessions(
        self,
        *,
        worker_id: Optional[str] = None,
        field_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 50,
    ) -> Sequence[AttendanceSession]:
        raise NotImplementedError

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_utc
from ..core.constants import DEFAULT_HISTORY_LIMIT, MIN_POLYGON_POINTS, UNASSIGNED_FIELD
from ..core.enums import CheckMethod, ConflictReason, GeofenceStatus
from ..core.exceptions import (
    DataIntegrityError,
    OpenSessionExistsError,
    SessionAlreadyClosedError,
    ValidationError,
)
from ..fields.repository import FieldRepository
from ..geo.geometry import is_point_in_polygon, nearest_vertex_distance_meters
from ..geo.model import Coordinate
from ..workers.repository import IdentityRepository
from .model import AttendanceSession, GeofenceCheck, ReconcileOutcome, SessionClose
from .repository import AttendanceRepository
from .strategies.base import CloseStatusStrategy
from .strategies.present_strategy import PresentStrategy

logger = logging.getLogger(__name__)


class AttendanceService:
    """Keeps at most one open session per worker.

    Stateless between calls: every decision is a read of the attendance
    store followed by one write. The store's uniqueness rules back up the
    read, so a lost race comes back as a conflict instead of a duplicate.
    Storage errors (``StoreUnavailableError``) propagate untouched; retries
    belong to the caller.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        identities: IdentityRepository,
        fields: FieldRepository | None = None,
        *,
        status_strategy: CloseStatusStrategy | None = None,
    ):
        self._attendance = attendance
        self._identities = identities
        self._fields = fields
        self._status = status_strategy or PresentStrategy()

    # -- state machine ----------------------------------------------------

    def _find_open(self, worker_id: str) -> Optional[AttendanceSession]:
        try:
            return self._attendance.find_open_session(worker_id)
        except DataIntegrityError:
            logger.error("DATA INTEGRITY: multiple open sessions for worker %s, operator action required", worker_id)
            raise

    def check_in(
        self,
        worker_id: str,
        *,
        method: CheckMethod,
        location: Optional[Coordinate] = None,
        field_id: Optional[str] = None,
        device_id: Optional[str] = None,
        event_id: Optional[str] = None,
        now: datetime | None = None,
    ) -> ReconcileOutcome:
        now = now or now_utc()

        existing = self._find_open(worker_id)
        if existing:
            return ReconcileOutcome.conflict(ConflictReason.ALREADY_OPEN, worker_id=worker_id, session_id=existing.session_id)

        field_id = field_id or self._identities.find_field_assignment(worker_id) or UNASSIGNED_FIELD
        geofence = self.check_geofence(field_id, location)

        session = AttendanceSession(
            session_id=None,
            worker_id=worker_id,
            field_id=field_id,
            check_in_time=now,
            check_in_method=method,
            check_in_location=location,
            check_in_device_id=device_id,
            check_in_event_id=event_id,
            check_in_geofence=geofence.status,
            # Device scans are trusted; GPS self-reports wait for a supervisor.
            verified=method == CheckMethod.RFID,
        )
        try:
            session_id = self._attendance.create_session(session)
        except OpenSessionExistsError:
            logger.info("check-in for worker %s lost a race with a concurrent open", worker_id)
            return ReconcileOutcome.conflict(ConflictReason.ALREADY_OPEN, worker_id=worker_id)

        logger.info("worker %s checked in (session %s, %s, geofence=%s)", worker_id, session_id, method.value, geofence.status.value)
        return ReconcileOutcome.checked_in(session_id, worker_id, geofence)

    def check_out(
        self,
        worker_id: str,
        *,
        method: CheckMethod,
        location: Optional[Coordinate] = None,
        device_id: Optional[str] = None,
        event_id: Optional[str] = None,
        now: datetime | None = None,
    ) -> ReconcileOutcome:
        now = now or now_utc()

        session = self._find_open(worker_id)
        if not session:
            return ReconcileOutcome.conflict(ConflictReason.NO_OPEN_SESSION, worker_id=worker_id)

        geofence = self.check_geofence(session.field_id, location)
        decision = self._status.decide_checkout(session=session, now=now)
        close = SessionClose(
            check_out_time=now,
            check_out_method=method,
            status=decision.status,
            check_out_location=location,
            check_out_device_id=device_id,
            check_out_event_id=event_id,
            check_out_geofence=geofence.status,
        )
        try:
            self._attendance.close_session(session.session_id, close)
        except SessionAlreadyClosedError:
            logger.info("check-out for worker %s found session %s already closed", worker_id, session.session_id)
            return ReconcileOutcome.conflict(ConflictReason.NO_OPEN_SESSION, worker_id=worker_id, session_id=session.session_id)

        logger.info("worker %s checked out (session %s, %s)", worker_id, session.session_id, method.value)
        return ReconcileOutcome.checked_out(session.session_id, worker_id, geofence)

    def record_scan(
        self,
        worker_id: str,
        *,
        event_id: str,
        device_id: Optional[str] = None,
        field_id: Optional[str] = None,
        now: datetime | None = None,
    ) -> ReconcileOutcome:
        """Apply a card scan: close the open session, or open a new one.

        A scan carries no direction, so the worker's current state decides.
        Scans that were already applied (replays after a crash before queue
        cleanup) are reported as conflicts and change nothing.
        """
        applied = self._attendance.find_session_for_event(event_id)
        if applied:
            if applied.is_open and applied.check_in_event_id == event_id:
                reason = ConflictReason.ALREADY_OPEN
            else:
                reason = ConflictReason.EVENT_ALREADY_APPLIED
            logger.info("event %s already applied to session %s", event_id, applied.session_id)
            return ReconcileOutcome.conflict(reason, worker_id=worker_id, session_id=applied.session_id)

        if self._find_open(worker_id):
            return self.check_out(worker_id, method=CheckMethod.RFID, device_id=device_id, event_id=event_id, now=now)
        return self.check_in(
            worker_id,
            method=CheckMethod.RFID,
            field_id=field_id,
            device_id=device_id,
            event_id=event_id,
            now=now,
        )

    # -- GPS adapter ------------------------------------------------------

    def check_in_gps(self, worker_id: str, location: Coordinate, *, now: datetime | None = None) -> ReconcileOutcome:
        return self.check_in(worker_id, method=CheckMethod.GPS, location=location, now=now)

    def check_out_gps(self, worker_id: str, location: Coordinate, *, now: datetime | None = None) -> ReconcileOutcome:
        return self.check_out(worker_id, method=CheckMethod.GPS, location=location, now=now)

    # -- geofencing -------------------------------------------------------

    def check_geofence(self, field_id: str, location: Optional[Coordinate]) -> GeofenceCheck:
        """Flag (never reject) a location against the field polygon."""
        if location is None or self._fields is None or field_id == UNASSIGNED_FIELD:
            return GeofenceCheck(field_id=field_id, status=GeofenceStatus.UNVERIFIABLE)

        polygon = self._fields.get_field_boundary(field_id)
        if not polygon or len(polygon) < MIN_POLYGON_POINTS:
            return GeofenceCheck(field_id=field_id, status=GeofenceStatus.UNVERIFIABLE)

        if is_point_in_polygon(location, polygon):
            return GeofenceCheck(field_id=field_id, status=GeofenceStatus.INSIDE)
        return GeofenceCheck(
            field_id=field_id,
            status=GeofenceStatus.OUTSIDE,
            distance_m=nearest_vertex_distance_meters(location, polygon),
        )

    # -- supervisor workflow ----------------------------------------------

    def verify_session(
        self,
        session_id: int,
        *,
        approve: bool,
        verifier_id: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceSession:
        now = now or now_utc()
        if not self._attendance.set_verification(session_id, verified=approve, verifier_id=verifier_id, verified_at=now):
            raise ValidationError(f"Attendance session {session_id} not found")
        session = self._attendance.get_by_id(session_id)
        if session is None:
            raise ValidationError(f"Attendance session {session_id} not found")
        return session

    def get_open_session(self, worker_id: str) -> Optional[AttendanceSession]:
        return self._find_open(worker_id)

    def list_sessions(
        self,
        *,
        worker_id: Optional[str] = None,
        field_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> Sequence[AttendanceSession]:
        return self._attendance.list_sessions(worker_id=worker_id, field_id=field_id, start=start, end=end, limit=limit)

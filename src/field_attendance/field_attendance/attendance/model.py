from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceStatus, CheckMethod, ConflictReason, GeofenceStatus, OutcomeKind
from ..geo.model import Coordinate


@dataclass(frozen=True)
class AttendanceSession:
    """One worker's continuous presence at a field.

    Open while ``check_out_time`` is None; closed (terminal) once set.
    """

    session_id: Optional[int]
    worker_id: str
    field_id: str
    check_in_time: datetime
    check_in_method: CheckMethod
    check_in_location: Optional[Coordinate] = None
    check_in_device_id: Optional[str] = None
    check_in_event_id: Optional[str] = None
    check_in_geofence: GeofenceStatus = GeofenceStatus.UNVERIFIABLE
    check_out_time: Optional[datetime] = None
    check_out_location: Optional[Coordinate] = None
    check_out_method: Optional[CheckMethod] = None
    check_out_device_id: Optional[str] = None
    check_out_event_id: Optional[str] = None
    check_out_geofence: Optional[GeofenceStatus] = None
    status: AttendanceStatus = AttendanceStatus.PRESENT
    verified: bool = False
    verified_at: Optional[datetime] = None
    verifier_id: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None


@dataclass(frozen=True)
class SessionClose:
    """Fields written by the one and only check-out of a session."""

    check_out_time: datetime
    check_out_method: CheckMethod
    status: AttendanceStatus
    check_out_location: Optional[Coordinate] = None
    check_out_device_id: Optional[str] = None
    check_out_event_id: Optional[str] = None
    check_out_geofence: GeofenceStatus = GeofenceStatus.UNVERIFIABLE


@dataclass(frozen=True)
class GeofenceCheck:
    field_id: str
    status: GeofenceStatus
    # Closest boundary vertex, reported for supervisors when outside.
    distance_m: Optional[float] = None

    @property
    def mismatch(self) -> bool:
        return self.status == GeofenceStatus.OUTSIDE


@dataclass(frozen=True)
class ReconcileOutcome:
    """Result handed back to callers; conflicts are values, not exceptions."""

    kind: OutcomeKind
    session_id: Optional[int] = None
    worker_id: Optional[str] = None
    reason: Optional[ConflictReason] = None
    geofence: Optional[GeofenceCheck] = None

    @classmethod
    def checked_in(cls, session_id: int, worker_id: str, geofence: Optional[GeofenceCheck] = None) -> "ReconcileOutcome":
        return cls(OutcomeKind.CHECKED_IN, session_id=session_id, worker_id=worker_id, geofence=geofence)

    @classmethod
    def checked_out(cls, session_id: int, worker_id: str, geofence: Optional[GeofenceCheck] = None) -> "ReconcileOutcome":
        return cls(OutcomeKind.CHECKED_OUT, session_id=session_id, worker_id=worker_id, geofence=geofence)

    @classmethod
    def conflict(cls, reason: ConflictReason, worker_id: Optional[str] = None, session_id: Optional[int] = None) -> "ReconcileOutcome":
        return cls(OutcomeKind.CONFLICT, session_id=session_id, worker_id=worker_id, reason=reason)

    @classmethod
    def unresolved_identity(cls) -> "ReconcileOutcome":
        return cls(OutcomeKind.UNRESOLVED_IDENTITY)

    @property
    def ok(self) -> bool:
        return self.kind in (OutcomeKind.CHECKED_IN, OutcomeKind.CHECKED_OUT)

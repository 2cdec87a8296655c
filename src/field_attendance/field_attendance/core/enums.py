from __future__ import annotations

from enum import Enum


class CheckMethod(str, Enum):
    """How a check-in/check-out reached the engine."""

    GPS = "gps"
    RFID = "rfid"


class AttendanceStatus(str, Enum):
    """Status tag assigned to a session when it is closed."""

    PRESENT = "present"
    ABSENT = "absent"
    LEFT_EARLY = "left-early"


class GeofenceStatus(str, Enum):
    INSIDE = "inside"
    OUTSIDE = "outside"
    UNVERIFIABLE = "unverifiable"


class OutcomeKind(str, Enum):
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CONFLICT = "conflict"
    UNRESOLVED_IDENTITY = "unresolved_identity"


class ConflictReason(str, Enum):
    """Why a check-in/check-out was rejected."""

    ALREADY_OPEN = "already_open"
    NO_OPEN_SESSION = "no_open_session"
    EVENT_ALREADY_APPLIED = "event_already_applied"


class FieldState(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class DeviceStatus(str, Enum):
    UNASSIGNED = "unassigned"
    ACTIVE = "active"

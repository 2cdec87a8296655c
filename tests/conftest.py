from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import pytest

from field_attendance.attendance.model import AttendanceSession, SessionClose
from field_attendance.container import wire_container
from field_attendance.core.enums import DeviceStatus
from field_attendance.core.exceptions import (
    DataIntegrityError,
    OpenSessionExistsError,
    SessionAlreadyClosedError,
    StoreUnavailableError,
)
from field_attendance.devices.model import Device
from field_attendance.events.model import QueuedPayload
from field_attendance.fields.model import Field, FieldBoundary
from field_attendance.geo.model import Coordinate
from field_attendance.workers.model import Worker

METERS_PER_DEGREE = 6371000.0 * math.pi / 180


def make_square(lat: float, lon: float, side_m: float) -> tuple:
    """Square with its south-west corner at (lat, lon), counter-clockwise."""
    dlat = side_m / METERS_PER_DEGREE
    dlon = side_m / (METERS_PER_DEGREE * math.cos(math.radians(lat)))
    return (
        Coordinate(lat, lon),
        Coordinate(lat, lon + dlon),
        Coordinate(lat + dlat, lon + dlon),
        Coordinate(lat + dlat, lon),
    )


@dataclass
class InMemoryIdentities:
    workers: dict[str, Worker] = field(default_factory=dict)

    def find_worker_by_card_id(self, card_id: str) -> Optional[Worker]:
        for w in self.workers.values():
            if w.rfid_card_id == card_id:
                return w
        return None

    def find_field_assignment(self, worker_id: str) -> Optional[str]:
        w = self.workers.get(worker_id)
        return w.assigned_field_id if w else None


@dataclass
class InMemoryFields:
    fields: dict[str, Field] = field(default_factory=dict)

    def get_by_id(self, field_id: str) -> Optional[Field]:
        return self.fields.get(field_id)

    def get_field_boundary(self, field_id: str):
        f = self.fields.get(field_id)
        return f.boundary.polygon if f else None

    def list_all(self):
        return sorted(self.fields.values(), key=lambda f: f.name)

    def create(self, f: Field) -> str:
        self.fields[f.field_id] = f
        return f.field_id

    def update_boundary(self, field_id: str, boundary: FieldBoundary) -> bool:
        f = self.fields.get(field_id)
        if not f:
            return False
        self.fields[field_id] = replace(f, boundary=boundary)
        return True


@dataclass
class InMemoryDevices:
    devices: dict[str, Device] = field(default_factory=dict)

    def get_by_id(self, device_id: str) -> Optional[Device]:
        return self.devices.get(device_id)

    def register(self, device: Device) -> None:
        self.devices[device.device_id] = device

    def assign(self, device_id: str, field_id: str, gate_name: str) -> bool:
        d = self.devices.get(device_id)
        if d is None:
            return False
        self.devices[device_id] = replace(d, assigned_field_id=field_id, gate_name=gate_name, status=DeviceStatus.ACTIVE)
        return True

    def list_unassigned(self):
        return [d for d in self.devices.values() if d.status == DeviceStatus.UNASSIGNED]

    def list_all(self, *, field_id=None):
        return [d for d in self.devices.values() if field_id is None or d.assigned_field_id == field_id]


class InMemoryAttendance:
    """Mirrors the MySQL unique indexes: one open session per worker, one use per event id."""

    def __init__(self):
        self.sessions: dict[int, AttendanceSession] = {}
        self._id = 0

    def insert_raw(self, session: AttendanceSession) -> int:
        # Bypasses the uniqueness rules, for corrupt-data tests.
        self._id += 1
        self.sessions[self._id] = replace(session, session_id=self._id)
        return self._id

    def open_for(self, worker_id: str) -> list[AttendanceSession]:
        return [s for s in self.sessions.values() if s.worker_id == worker_id and s.is_open]

    def find_open_session(self, worker_id: str) -> Optional[AttendanceSession]:
        rows = sorted(self.open_for(worker_id), key=lambda s: s.check_in_time, reverse=True)
        if len(rows) > 1:
            raise DataIntegrityError(f"worker {worker_id} has {len(rows)} open sessions")
        return rows[0] if rows else None

    def find_session_for_event(self, event_id: str) -> Optional[AttendanceSession]:
        for s in self.sessions.values():
            if event_id in (s.check_in_event_id, s.check_out_event_id):
                return s
        return None

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        return self.sessions.get(session_id)

    def create_session(self, session: AttendanceSession) -> int:
        if self.open_for(session.worker_id):
            raise OpenSessionExistsError(session.worker_id)
        if session.check_in_event_id and self.find_session_for_event(session.check_in_event_id):
            raise OpenSessionExistsError(session.check_in_event_id)
        return self.insert_raw(session)

    def close_session(self, session_id: int, close: SessionClose) -> None:
        s = self.sessions.get(session_id)
        if s is None or not s.is_open:
            raise SessionAlreadyClosedError(str(session_id))
        self.sessions[session_id] = replace(
            s,
            check_out_time=close.check_out_time,
            check_out_location=close.check_out_location,
            check_out_method=close.check_out_method,
            check_out_device_id=close.check_out_device_id,
            check_out_event_id=close.check_out_event_id,
            check_out_geofence=close.check_out_geofence,
            status=close.status,
        )

    def set_verification(self, session_id: int, *, verified: bool, verifier_id, verified_at) -> bool:
        s = self.sessions.get(session_id)
        if s is None:
            return False
        self.sessions[session_id] = replace(s, verified=verified, verifier_id=verifier_id, verified_at=verified_at)
        return True

    def list_sessions(self, *, worker_id=None, field_id=None, start=None, end=None, limit: int = 50):
        rows = [
            s
            for s in self.sessions.values()
            if (worker_id is None or s.worker_id == worker_id)
            and (field_id is None or s.field_id == field_id)
            and (start is None or s.check_in_time >= start)
            and (end is None or s.check_in_time <= end)
        ]
        rows.sort(key=lambda s: s.check_in_time, reverse=True)
        return rows[:limit]


class InMemoryQueue:
    def __init__(self):
        self.entries: dict[str, QueuedPayload] = {}
        self.fail_deletes = False
        self._seq = 0

    def add(self, event_id: str, payload: Mapping[str, Any]) -> str:
        self.entries[event_id] = QueuedPayload(event_id=event_id, payload=payload)
        return event_id

    def next_event(self) -> Optional[QueuedPayload]:
        return next(iter(self.entries.values()), None)

    def delete_event(self, event_id: str) -> None:
        if self.fail_deletes:
            raise StoreUnavailableError("queue offline")
        self.entries.pop(event_id, None)

    def push_event(self, payload: Mapping[str, Any]) -> str:
        self._seq += 1
        return self.add(f"log-{self._seq}", payload)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 7, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def field_polygon() -> tuple:
    return make_square(12.0, 75.0, 100.0)


@pytest.fixture
def fields_repo(field_polygon) -> InMemoryFields:
    boundary = FieldBoundary.from_polygon(field_polygon)
    return InMemoryFields({"F": Field(field_id="F", name="North Paddy", boundary=boundary)})


@pytest.fixture
def identities() -> InMemoryIdentities:
    return InMemoryIdentities(
        {
            "W": Worker(worker_id="W", name="Ravi", rfid_card_id="CARD-W", assigned_field_id="F"),
            "V": Worker(worker_id="V", name="Asha", rfid_card_id="CARD-V", assigned_field_id=None),
        }
    )


@pytest.fixture
def devices_repo() -> InMemoryDevices:
    return InMemoryDevices({"D1": Device(device_id="D1", assigned_field_id="F", gate_name="Main gate", status=DeviceStatus.ACTIVE)})


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def queue() -> InMemoryQueue:
    return InMemoryQueue()


@pytest.fixture
def container(fields_repo, identities, devices_repo, attendance_repo, queue):
    return wire_container(
        fields_repo=fields_repo,
        workers_repo=identities,
        devices_repo=devices_repo,
        attendance_repo=attendance_repo,
        event_queue=queue,
    )


@pytest.fixture
def client(container, monkeypatch):
    from field_attendance.main import create_app

    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container)
    return app.test_client()


@pytest.fixture
def square_factory():
    return make_square

from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .attendance.strategies.present_strategy import PresentStrategy
from .database.connection import DBConfig, DatabaseConnection
from .devices.mysql_device_repository import MySQLDeviceRepository
from .devices.repository import DeviceRepository
from .devices.service import DeviceService
from .events.mysql_event_queue import MySQLEventQueue
from .events.processor import DeviceEventProcessor
from .events.repository import RawEventQueue
from .fields.mysql_field_repository import MySQLFieldRepository
from .fields.repository import FieldRepository
from .fields.service import FieldService
from .workers.mysql_worker_repository import MySQLWorkerRepository
from .workers.repository import IdentityRepository


@dataclass(frozen=True)
class Container:
    fields_repo: FieldRepository
    workers_repo: IdentityRepository
    devices_repo: DeviceRepository
    attendance_repo: AttendanceRepository
    event_queue: RawEventQueue

    field_service: FieldService
    device_service: DeviceService
    attendance_service: AttendanceService
    event_processor: DeviceEventProcessor


def wire_container(
    *,
    fields_repo: FieldRepository,
    workers_repo: IdentityRepository,
    devices_repo: DeviceRepository,
    attendance_repo: AttendanceRepository,
    event_queue: RawEventQueue,
) -> Container:
    """Build services over any set of repositories (MySQL or in-memory)."""
    field_service = FieldService(fields_repo)
    device_service = DeviceService(devices_repo, fields_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        workers_repo,
        fields_repo,
        status_strategy=PresentStrategy(),
    )
    event_processor = DeviceEventProcessor(attendance_service, workers_repo, event_queue, devices_repo)

    return Container(
        fields_repo=fields_repo,
        workers_repo=workers_repo,
        devices_repo=devices_repo,
        attendance_repo=attendance_repo,
        event_queue=event_queue,
        field_service=field_service,
        device_service=device_service,
        attendance_service=attendance_service,
        event_processor=event_processor,
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_container(
        fields_repo=MySQLFieldRepository(conn),
        workers_repo=MySQLWorkerRepository(conn),
        devices_repo=MySQLDeviceRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        event_queue=MySQLEventQueue(conn),
    )

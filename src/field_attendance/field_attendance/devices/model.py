from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import DeviceStatus


@dataclass(frozen=True)
class Device:
    """Gate reader (ESP32 RFID) and the field it is installed at.

    ``device_id`` is the reader's chip id. A reader registers itself as
    unassigned; a supervisor later pins it to a field and gate.
    """

    device_id: str
    assigned_field_id: Optional[str] = None
    gate_name: Optional[str] = None
    status: DeviceStatus = DeviceStatus.UNASSIGNED
    firmware: Optional[str] = None
    model: Optional[str] = None
    created_at: Optional[datetime] = None

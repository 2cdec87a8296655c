from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

from ..common.validators import require_non_empty
from ..core.exceptions import ValidationError
from ..fields.repository import FieldRepository
from .model import Device
from .repository import DeviceRepository

logger = logging.getLogger(__name__)


class DeviceService:
    """Reader registration and supervisor assignment to a field gate.

    Scans from a device only resolve to its field once it is assigned.
    """

    def __init__(self, devices: DeviceRepository, fields: FieldRepository):
        self._devices = devices
        self._fields = fields

    def register_device(self, chip_id, *, firmware: Optional[str] = None, model: Optional[str] = None) -> Tuple[Device, bool]:
        """Record a reader on first contact.

        Returns ``(device, created)``; registering again returns the stored device.
        """
        device_id = require_non_empty(chip_id, "chipId")
        existing = self._devices.get_by_id(device_id)
        if existing:
            return existing, False

        device = Device(device_id=device_id, firmware=firmware, model=model)
        self._devices.register(device)
        logger.info("registered device %s (%s, firmware %s)", device_id, model, firmware)
        return device, True

    def assign_device(self, device_id, field_id, gate_name) -> Device:
        device_id = require_non_empty(device_id, "deviceId")
        field_id = require_non_empty(field_id, "assignedFieldId")
        gate_name = require_non_empty(gate_name, "assignedGateName")

        if self._fields.get_by_id(field_id) is None:
            raise ValidationError(f"Field {field_id} not found")
        if not self._devices.assign(device_id, field_id, gate_name):
            raise ValidationError(f"Device {device_id} not found")

        logger.info("device %s assigned to field %s (%s)", device_id, field_id, gate_name)
        device = self._devices.get_by_id(device_id)
        if device is None:
            raise ValidationError(f"Device {device_id} not found")
        return device

    def list_unassigned(self) -> Sequence[Device]:
        return self._devices.list_unassigned()

    def list_devices(self, *, field_id: Optional[str] = None) -> Sequence[Device]:
        return self._devices.list_all(field_id=field_id)

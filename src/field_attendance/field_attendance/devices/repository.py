from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Device


class DeviceRepository(Protocol):
    def get_by_id(self, device_id: str) -> Optional[Device]:
        raise NotImplementedError

    def register(self, device: Device) -> None:
        raise NotImplementedError

    def assign(self, device_id: str, field_id: str, gate_name: str) -> bool:
        """Pin a device to a field and mark it active; False if it is unknown."""
        raise NotImplementedError

    def list_unassigned(self) -> Sequence[Device]:
        raise NotImplementedError

    def list_all(self, *, field_id: Optional[str] = None) -> Sequence[Device]:
        raise NotImplementedError

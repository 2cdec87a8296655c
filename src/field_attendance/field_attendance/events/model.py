from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.exceptions import MalformedEventError


@dataclass(frozen=True)
class QueuedPayload:
    """Untyped entry as it sits in the device log queue."""

    event_id: str
    payload: Mapping[str, Any]
    received_at: Optional[datetime] = None


@dataclass(frozen=True)
class RawDeviceEvent:
    """A validated card scan awaiting resolution to a worker."""

    event_id: str
    card_id: str
    device_id: Optional[str] = None
    received_at: Optional[datetime] = None


def _text(payload: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = payload.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise MalformedEventError(f"{key} must be a string, got {type(value).__name__}")
        value = str(value).strip()
        if value:
            return value
    return None


def parse_raw_event(entry: QueuedPayload) -> RawDeviceEvent:
    """Validate a queue payload; readers send ``cardId`` (or ``card_uid``) and ``deviceId``."""
    if not entry.event_id:
        raise MalformedEventError("queue entry has no id")
    if not isinstance(entry.payload, Mapping):
        raise MalformedEventError(f"payload of {entry.event_id} is not an object")

    card_id = _text(entry.payload, "cardId", "card_uid")
    if not card_id:
        raise MalformedEventError(f"payload of {entry.event_id} has no card id")

    return RawDeviceEvent(
        event_id=str(entry.event_id),
        card_id=card_id,
        device_id=_text(entry.payload, "deviceId", "device_id"),
        received_at=entry.received_at,
    )

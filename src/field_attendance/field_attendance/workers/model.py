from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Worker:
    """Field worker as seen by the attendance engine."""

    worker_id: str
    name: str
    rfid_card_id: Optional[str] = None
    assigned_field_id: Optional[str] = None

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from ..attendance.model import ReconcileOutcome
from ..attendance.service import AttendanceService
from ..core.constants import DEFAULT_DRAIN_LIMIT
from ..core.enums import OutcomeKind
from ..core.exceptions import MalformedEventError, StoreUnavailableError
from ..devices.repository import DeviceRepository
from ..workers.repository import IdentityRepository
from .model import QueuedPayload, RawDeviceEvent, parse_raw_event
from .repository import RawEventQueue

logger = logging.getLogger(__name__)


@dataclass
class DrainReport:
    processed: int = 0
    malformed: int = 0
    outcomes: dict = field(default_factory=dict)

    def count(self, outcome: ReconcileOutcome) -> None:
        key = outcome.kind.value
        self.outcomes[key] = self.outcomes.get(key, 0) + 1


class DeviceEventProcessor:
    """Adapter from RFID reader scans to the attendance engine.

    Queue entries are deleted only after the attendance write has returned,
    and deletion is best-effort: a failed delete means the scan is seen
    again next cycle, where the engine reports it as already applied.
    """

    def __init__(
        self,
        attendance: AttendanceService,
        identities: IdentityRepository,
        queue: RawEventQueue,
        devices: DeviceRepository | None = None,
    ):
        self._attendance = attendance
        self._identities = identities
        self._queue = queue
        self._devices = devices

    def _field_for_device(self, device_id: Optional[str]) -> Optional[str]:
        if not device_id or self._devices is None:
            return None
        device = self._devices.get_by_id(device_id)
        if device is None:
            return None
        return device.assigned_field_id or None

    def reconcile(self, event: RawDeviceEvent, *, now: datetime | None = None) -> ReconcileOutcome:
        worker = self._identities.find_worker_by_card_id(event.card_id)
        if worker is None:
            # Readers have no feedback channel; an unknown card is just dropped.
            logger.info("card %s (device %s) not assigned to any worker", event.card_id, event.device_id)
            return ReconcileOutcome.unresolved_identity()

        return self._attendance.record_scan(
            worker.worker_id,
            event_id=event.event_id,
            device_id=event.device_id,
            field_id=self._field_for_device(event.device_id),
            now=now,
        )

    def handle_scan(self, payload: Mapping[str, Any], *, now: datetime | None = None) -> ReconcileOutcome:
        """Reconcile a scan pushed straight to the API (no queue entry).

        ``scanId`` from the reader is used as the idempotency key when sent.
        """
        if not isinstance(payload, Mapping):
            raise MalformedEventError("scan payload must be a JSON object")
        event_id = str(payload.get("scanId") or uuid.uuid4().hex)
        event = parse_raw_event(QueuedPayload(event_id=event_id, payload=payload))
        return self.reconcile(event, now=now)

    def _discard(self, event_id: str) -> None:
        try:
            self._queue.delete_event(event_id)
        except StoreUnavailableError as exc:
            logger.warning("could not remove queue entry %s, it will be seen again: %s", event_id, exc)

    def process_entry(self, entry: QueuedPayload, *, now: datetime | None = None) -> Optional[ReconcileOutcome]:
        """Reconcile one queue entry and remove it.

        Returns None for malformed payloads, which are removed without
        reaching the engine.
        """
        try:
            event = parse_raw_event(entry)
        except MalformedEventError as exc:
            logger.warning("dropping malformed queue entry %s: %s", entry.event_id, exc)
            self._discard(entry.event_id)
            return None

        outcome = self.reconcile(event, now=now)
        self._discard(entry.event_id)
        if outcome.kind == OutcomeKind.CONFLICT:
            logger.info("scan %s for card %s rejected: %s", event.event_id, event.card_id, outcome.reason.value)
        return outcome

    def drain(self, limit: int = DEFAULT_DRAIN_LIMIT, *, now: datetime | None = None) -> DrainReport:
        """Process queued entries until empty, ``limit`` is hit, or an entry repeats."""
        report = DrainReport()
        seen: set[str] = set()

        while report.processed + report.malformed < limit:
            entry = self._queue.next_event()
            if entry is None:
                break
            if entry.event_id in seen:
                # Its delete failed earlier in this run; leave it for the next cycle.
                break
            seen.add(entry.event_id)

            outcome = self.process_entry(entry, now=now)
            if outcome is None:
                report.malformed += 1
                continue
            report.processed += 1
            report.count(outcome)

        return report

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from .model import QueuedPayload


class RawEventQueue(Protocol):
    """Transient queue of device scans; entries are deleted once consumed."""

    def next_event(self) -> Optional[QueuedPayload]:
        raise NotImplementedError

    def delete_event(self, event_id: str) -> None:
        raise NotImplementedError

    def push_event(self, payload: Mapping[str, Any]) -> str:
        raise NotImplementedError

from __future__ import annotations

from typing import Optional, Protocol

from .model import Worker


class IdentityRepository(Protocol):
    """Read-only identity lookups; card ids map 1:1 to workers."""

    def find_worker_by_card_id(self, card_id: str) -> Optional[Worker]:
        raise NotImplementedError

    def find_field_assignment(self, worker_id: str) -> Optional[str]:
        raise NotImplementedError

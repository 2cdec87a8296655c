from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ...core.enums import AttendanceStatus
from ..model import AttendanceSession


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus


class CloseStatusStrategy(ABC):
    """Strategy Pattern: decide the status tag written when a session closes."""

    @abstractmethod
    def decide_checkout(self, *, session: AttendanceSession, now: datetime) -> StatusDecision:
        raise NotImplementedError

from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ..model import AttendanceSession
from .base import CloseStatusStrategy, StatusDecision


class PresentStrategy(CloseStatusStrategy):
    """Every closed session is ``present``; no left-early rule is defined yet."""

    def decide_checkout(self, *, session: AttendanceSession, now: datetime) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

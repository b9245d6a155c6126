from __future__ import annotations

from datetime import date, datetime

from ...core.enums import AttendanceStatus
from ...settings.model import AttendanceSettings
from .base import AttendanceStrategy, StatusDecision


class PartialStrategy(AttendanceStrategy):
    """Time-out before the time-out window opens (early departure)."""

    def decide_time_in(self, *, now: datetime, today: date, settings: AttendanceSettings) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_time_out(
        self, *, now: datetime, today: date, settings: AttendanceSettings, current: AttendanceStatus
    ) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PARTIAL, note="Left before time-out window")

from __future__ import annotations

from datetime import date, datetime

from ...core.enums import AttendanceStatus
from ...settings.model import AttendanceSettings
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Time-in after the time-in window's end."""

    def decide_time_in(self, *, now: datetime, today: date, settings: AttendanceSettings) -> StatusDecision:
        expected = datetime.combine(today, settings.time_in_end)
        minutes = int((now - expected).total_seconds() // 60)
        return StatusDecision(status=AttendanceStatus.LATE, note=f"Late by {minutes} min")

    def decide_time_out(
        self, *, now: datetime, today: date, settings: AttendanceSettings, current: AttendanceStatus
    ) -> StatusDecision:
        return StatusDecision(status=current)

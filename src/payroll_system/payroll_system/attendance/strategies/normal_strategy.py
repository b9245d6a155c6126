from __future__ import annotations

from datetime import date, datetime

from ...core.enums import AttendanceStatus
from ...settings.model import AttendanceSettings
from .base import AttendanceStrategy, StatusDecision


class NormalStrategy(AttendanceStrategy):
    """Time-in within the window, time-out at or after the time-out window start."""

    def decide_time_in(self, *, now: datetime, today: date, settings: AttendanceSettings) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_time_out(
        self, *, now: datetime, today: date, settings: AttendanceSettings, current: AttendanceStatus
    ) -> StatusDecision:
        return StatusDecision(status=current)

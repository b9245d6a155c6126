from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from ..settings.model import AttendanceSettings
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy
from .strategies.partial_strategy import PartialStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on the configured windows."""

    def for_time_in(self, *, now: datetime, today: date, settings: AttendanceSettings) -> AttendanceStrategy:
        if not settings.time_in_end:
            return NormalStrategy()

        if now > datetime.combine(today, settings.time_in_end):
            return LateStrategy()
        return NormalStrategy()

    def for_time_out(self, *, now: datetime, today: date, settings: AttendanceSettings) -> AttendanceStrategy:
        if not settings.time_out_start:
            return NormalStrategy()

        if now < datetime.combine(today, settings.time_out_start):
            return PartialStrategy()
        return NormalStrategy()

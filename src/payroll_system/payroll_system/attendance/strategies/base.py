from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ...settings.model import AttendanceSettings


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    note: Optional[str] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide an attendance status."""

    @abstractmethod
    def decide_time_in(self, *, now: datetime, today: date, settings: AttendanceSettings) -> StatusDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_time_out(
        self, *, now: datetime, today: date, settings: AttendanceSettings, current: AttendanceStatus
    ) -> StatusDecision:
        raise NotImplementedError

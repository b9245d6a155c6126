from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time
from typing import Optional

from ..common.datetime_utils import Period, format_hhmm


@dataclass(frozen=True)
class AttendanceSettings:
    """Singleton row: current payroll period and the daily punch windows."""

    period_start: Optional[date] = None
    period_end: Optional[date] = None
    time_in_start: Optional[time] = None
    time_in_end: Optional[time] = None
    no_time_in_cutoff: bool = False
    time_out_start: Optional[time] = None
    time_out_end: Optional[time] = None
    no_time_out_cutoff: bool = False
    auto_mark_absent: bool = True
    updated_at: Optional[datetime] = None

    @property
    def period(self) -> Optional[Period]:
        if self.period_start and self.period_end:
            return Period(self.period_start, self.period_end)
        return None

    def with_changes(self, **changes) -> "AttendanceSettings":
        return replace(self, **changes)

    def cutoff_for(self, day: date) -> Optional[datetime]:
        """Moment after which no punch is accepted for `day` (None when disabled)."""
        if self.no_time_out_cutoff or not self.time_out_end:
            return None
        return datetime.combine(day, self.time_out_end)

    def to_dict(self) -> dict:
        return {
            "periodStart": self.period_start.isoformat() if self.period_start else None,
            "periodEnd": self.period_end.isoformat() if self.period_end else None,
            "timeInStart": format_hhmm(self.time_in_start),
            "timeInEnd": format_hhmm(self.time_in_end),
            "noTimeInCutoff": self.no_time_in_cutoff,
            "timeOutStart": format_hhmm(self.time_out_start),
            "timeOutEnd": format_hhmm(self.time_out_end),
            "noTimeOutCutoff": self.no_time_out_cutoff,
            "autoMarkAbsent": self.auto_mark_absent,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

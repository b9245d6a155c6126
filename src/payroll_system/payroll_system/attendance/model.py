from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance record per (person, calendar day)."""

    attendance_id: int
    user_id: int
    work_date: date
    time_in: Optional[datetime]
    time_out: Optional[datetime]
    status: AttendanceStatus
    note: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "userId": self.user_id,
            "date": self.work_date.isoformat(),
            "timeIn": self.time_in.isoformat() if self.time_in else None,
            "timeOut": self.time_out.isoformat() if self.time_out else None,
            "status": self.status.value,
            "note": self.note,
        }


@dataclass(frozen=True)
class AttendanceDayRow:
    """Read-model for the admin day view (record joined with the person's name)."""

    user_id: int
    name: str
    email: str
    record: Optional[AttendanceRecord]

    def to_dict(self) -> dict:
        rec = self.record
        return {
            "userId": self.user_id,
            "name": self.name,
            "email": self.email,
            "attendanceId": rec.attendance_id if rec else None,
            "timeIn": rec.time_in.isoformat() if rec and rec.time_in else None,
            "timeOut": rec.time_out.isoformat() if rec and rec.time_out else None,
            "status": rec.status.value if rec else None,
            "note": rec.note if rec else None,
        }


@dataclass(frozen=True)
class AbsenceSweepResult:
    configured: bool
    marked_past: int = 0
    marked_today: int = 0
    created_absent: int = 0
    created_on_leave: int = 0
    message: str = ""

    @property
    def total(self) -> int:
        return self.marked_past + self.marked_today + self.created_absent + self.created_on_leave

    def to_dict(self) -> dict:
        return {
            "configured": self.configured,
            "markedPast": self.marked_past,
            "markedToday": self.marked_today,
            "createdAbsent": self.created_absent,
            "createdOnLeave": self.created_on_leave,
            "total": self.total,
            "message": self.message,
        }

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceDayRow, AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user_between(self, user_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_day(self, work_date: date) -> Sequence[AttendanceDayRow]:
        """All active personnel with their record for the day (None when missing)."""

        raise NotImplementedError

    def create_record(
        self,
        *,
        user_id: int,
        work_date: date,
        status: AttendanceStatus,
        time_in: Optional[datetime] = None,
        note: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def create_pending(self, *, user_ids: Sequence[int], days: Sequence[date]) -> int:
        """Insert PENDING rows, skipping (user, day) pairs that already exist. Returns rows created."""

        raise NotImplementedError

    def record_time_in(
        self, *, attendance_id: int, time_in: datetime, status: AttendanceStatus, note: Optional[str] = None
    ) -> bool:
        raise NotImplementedError

    def record_time_out(
        self, *, attendance_id: int, time_out: datetime, status: AttendanceStatus, note: Optional[str] = None
    ) -> bool:
        raise NotImplementedError

    def list_pending_before(self, day: date) -> Sequence[AttendanceRecord]:
        """PENDING rows without a time-in dated before `day`."""

        raise NotImplementedError

    def mark_on_leave(self, *, user_id: int, start: date, end: date) -> int:
        """Turn the user's unpunched PENDING/ABSENT rows inside [start, end] into ON_LEAVE."""

        raise NotImplementedError

    def update_status(self, *, attendance_id: int, status: AttendanceStatus, note: Optional[str] = None) -> bool:
        """Admin-only override."""

        raise NotImplementedError

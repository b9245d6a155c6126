from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import is_working_day, now_local
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_TIMEZONE
from ..core.enums import AttendanceStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..leaves.repository import LeaveRepository
from ..settings.service import SettingsService
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .model import AbsenceSweepResult, AttendanceDayRow, AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

TIME_IN = "TIME_IN"
TIME_OUT = "TIME_OUT"


@dataclass(frozen=True)
class PunchResult:
    action: str
    record: AttendanceRecord

    def to_dict(self) -> dict:
        return {"action": self.action, "record": self.record.to_dict()}


class AttendanceService:
    """Attendance Recorder: punches, daily status and the absence sweep."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        settings: SettingsService,
        leaves: LeaveRepository,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        tz_name: str = DEFAULT_TIMEZONE,
    ):
        self._attendance = attendance
        self._users = users
        self._settings = settings
        self._leaves = leaves
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._tz_name = tz_name

    def now(self) -> datetime:
        return now_local(self._tz_name)

    def punch(self, user_id: int, *, now: datetime | None = None) -> PunchResult:
        """First punch of the day is the time-in, the second the time-out; a third is rejected."""
        now = now or self.now()
        today = now.date()

        user = self._users.get_by_id(int(user_id))
        if not user or not user.is_active:
            raise NotFoundError("User not found or inactive")

        leave = self._leaves.find_approved_covering(user.user_id, today)
        record = self._attendance.get_for_user_and_date(user.user_id, today)
        if leave or (record and record.status == AttendanceStatus.ON_LEAVE):
            raise AuthorizationError("You are on approved leave today. Attendance cannot be recorded during leave.")

        settings = self._settings.get()
        cutoff = settings.cutoff_for(today)
        if cutoff and now > cutoff:
            raise ValidationError("Attendance not allowed after daily cutoff")

        if record is None or record.time_in is None:
            strategy = self._factory.for_time_in(now=now, today=today, settings=settings)
            decision = strategy.decide_time_in(now=now, today=today, settings=settings)
            if record is None:
                self._attendance.create_record(
                    user_id=user.user_id,
                    work_date=today,
                    status=decision.status,
                    time_in=now,
                    note=decision.note,
                )
            elif not self._attendance.record_time_in(
                attendance_id=record.attendance_id, time_in=now, status=decision.status, note=decision.note
            ):
                raise ValidationError("Time-in was already recorded")
            action = TIME_IN
        elif record.time_out is None:
            strategy = self._factory.for_time_out(now=now, today=today, settings=settings)
            decision = strategy.decide_time_out(now=now, today=today, settings=settings, current=record.status)
            if not self._attendance.record_time_out(
                attendance_id=record.attendance_id,
                time_out=now,
                status=decision.status,
                note=decision.note or record.note,
            ):
                raise ValidationError("Time-out was already recorded")
            action = TIME_OUT
        else:
            raise ValidationError("Attendance for today is already complete")

        saved = self._attendance.get_for_user_and_date(user.user_id, today)
        logger.info("Punch %s for user %s at %s -> %s", action, user.user_id, now, saved.status.value)
        return PunchResult(action=action, record=saved)

    def auto_mark_absent(self, *, target_date: date | None = None, now: datetime | None = None) -> AbsenceSweepResult:
        """Turn unresolved days into ABSENT (or ON_LEAVE); calling it again changes nothing."""
        settings = self._settings.get()
        if not settings.auto_mark_absent or settings.no_time_out_cutoff or not settings.time_out_end:
            return AbsenceSweepResult(configured=False, message="Automatic absence marking is not configured")

        now = now or self.now()
        today = now.date()
        target = target_date or today

        marked_past = 0
        for rec in self._attendance.list_pending_before(today):
            if rec.work_date == target or not is_working_day(rec.work_date):
                continue
            marked_past += self._resolve_unpunched(rec.user_id, rec.work_date, rec)

        cutoff = settings.cutoff_for(target)
        if not is_working_day(target) or cutoff is None or now <= cutoff:
            result = AbsenceSweepResult(
                configured=True,
                marked_past=marked_past,
                message="Cutoff not reached for target day" if is_working_day(target) else "Sunday is not a working day",
            )
            self._log_sweep(target, result)
            return result

        marked_today = created_absent = created_on_leave = 0
        for row in self._attendance.list_day(target):
            rec = row.record
            if rec is not None and (rec.status != AttendanceStatus.PENDING or rec.time_in is not None):
                continue
            status = self._unpunched_status(row.user_id, target)
            if rec is None:
                self._attendance.create_record(user_id=row.user_id, work_date=target, status=status)
                if status == AttendanceStatus.ON_LEAVE:
                    created_on_leave += 1
                else:
                    created_absent += 1
            else:
                self._attendance.update_status(attendance_id=rec.attendance_id, status=status)
                marked_today += 1

        result = AbsenceSweepResult(
            configured=True,
            marked_past=marked_past,
            marked_today=marked_today,
            created_absent=created_absent,
            created_on_leave=created_on_leave,
            message="Absence sweep completed",
        )
        self._log_sweep(target, result)
        return result

    def _unpunched_status(self, user_id: int, day: date) -> AttendanceStatus:
        if self._leaves.find_approved_covering(user_id, day):
            return AttendanceStatus.ON_LEAVE
        return AttendanceStatus.ABSENT

    def _resolve_unpunched(self, user_id: int, day: date, rec: AttendanceRecord) -> int:
        status = self._unpunched_status(user_id, day)
        return 1 if self._attendance.update_status(attendance_id=rec.attendance_id, status=status) else 0

    @staticmethod
    def _log_sweep(target: date, result: AbsenceSweepResult) -> None:
        if result.total:
            logger.info("Absence sweep for %s changed %s record(s): %s", target, result.total, result.to_dict())

    def get_today_record(self, user_id: int, *, now: datetime | None = None) -> Optional[AttendanceRecord]:
        """Get today's attendance record for a user"""
        today = (now or self.now()).date()
        return self._attendance.get_for_user_and_date(int(user_id), today)

    def get_history(self, user_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        return self._attendance.get_recent_for_user(int(user_id), int(limit))

    def list_day(self, work_date: date) -> Sequence[AttendanceDayRow]:
        return self._attendance.list_day(work_date)

    def override_status(self, attendance_id: int, *, status: str, note: Optional[str] = None) -> AttendanceRecord:
        try:
            new_status = AttendanceStatus(str(status or "").upper())
        except ValueError:
            raise ValidationError("Invalid attendance status")

        rec = self._attendance.get_by_id(int(attendance_id))
        if not rec:
            raise NotFoundError("Attendance record not found")

        self._attendance.update_status(attendance_id=rec.attendance_id, status=new_status, note=(note or "").strip() or None)
        logger.info("Attendance %s status overridden %s -> %s", rec.attendance_id, rec.status.value, new_status.value)
        return self._attendance.get_by_id(rec.attendance_id)

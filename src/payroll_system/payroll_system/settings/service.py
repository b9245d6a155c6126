from __future__ import annotations

import logging
from typing import Any, Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import Period, now_local, parse_date_field, parse_hhmm, working_days
from ..core.constants import (
    DEFAULT_TIME_IN_END,
    DEFAULT_TIME_IN_START,
    DEFAULT_TIME_OUT_END,
    DEFAULT_TIME_OUT_START,
    DEFAULT_TIMEZONE,
)
from ..core.exceptions import ValidationError
from ..users.repository import UserRepository
from .model import AttendanceSettings
from .repository import SettingsRepository

logger = logging.getLogger(__name__)

_TIME_FIELDS = ("time_in_start", "time_in_end", "time_out_start", "time_out_end")
_FLAG_FIELDS = ("no_time_in_cutoff", "no_time_out_cutoff", "auto_mark_absent")


def default_settings() -> AttendanceSettings:
    return AttendanceSettings(
        time_in_start=parse_hhmm(DEFAULT_TIME_IN_START, "time_in_start"),
        time_in_end=parse_hhmm(DEFAULT_TIME_IN_END, "time_in_end"),
        time_out_start=parse_hhmm(DEFAULT_TIME_OUT_START, "time_out_start"),
        time_out_end=parse_hhmm(DEFAULT_TIME_OUT_END, "time_out_end"),
    )


class SettingsService:
    """Settings Store: the singleton read by every attendance and payroll computation."""

    def __init__(
        self,
        settings: SettingsRepository,
        users: UserRepository,
        attendance: AttendanceRepository,
        *,
        tz_name: str = DEFAULT_TIMEZONE,
    ):
        self._settings = settings
        self._users = users
        self._attendance = attendance
        self._tz_name = tz_name

    def get(self) -> AttendanceSettings:
        current = self._settings.get()
        if current is None:
            current = default_settings()
            self._settings.save(current)
            logger.info("Created default attendance settings")
        return current

    def current_period(self) -> Period:
        period = self.get().period
        if period is None:
            raise ValidationError("Attendance period is not configured")
        return period

    def update(self, **fields: Any) -> AttendanceSettings:
        """Apply a partial update.

        Times are "HH:MM" strings (empty string clears the window edge), dates are ISO dates.
        When both period dates are supplied, PENDING attendance rows are pre-created for every
        working day of the period and every active personnel user.
        """
        unknown = set(fields) - set(_TIME_FIELDS) - set(_FLAG_FIELDS) - {"period_start", "period_end"}
        if unknown:
            raise ValidationError(f"Unknown settings field(s): {', '.join(sorted(unknown))}")

        changes: dict[str, Any] = {}
        for name in _TIME_FIELDS:
            if name in fields:
                changes[name] = parse_hhmm(fields[name], name)
        for name in _FLAG_FIELDS:
            if name in fields:
                changes[name] = bool(fields[name])
        for name in ("period_start", "period_end"):
            if name in fields:
                changes[name] = parse_date_field(fields[name], name)

        updated = self.get().with_changes(**changes)

        if bool(updated.period_start) != bool(updated.period_end):
            raise ValidationError("period_start and period_end must be set together")
        if updated.period_start and updated.period_end and updated.period_end < updated.period_start:
            raise ValidationError("period_end must not be before period_start")
        for start_name, end_name in (("time_in_start", "time_in_end"), ("time_out_start", "time_out_end")):
            start, end = getattr(updated, start_name), getattr(updated, end_name)
            if start and end and end < start:
                raise ValidationError(f"{end_name} must not be before {start_name}")

        self._settings.save(updated.with_changes(updated_at=now_local(self._tz_name)))
        logger.info("Attendance settings updated: %s", ", ".join(sorted(changes)) or "no changes")

        if "period_start" in changes and "period_end" in changes:
            self.prepare_period(updated.period)

        return self.get()

    def prepare_period(self, period: Optional[Period]) -> int:
        if period is None:
            return 0
        user_ids = [u.user_id for u in self._users.list_active_personnel()]
        days = working_days(period.start, period.end)
        if not user_ids or not days:
            return 0
        created = self._attendance.create_pending(user_ids=user_ids, days=days)
        logger.info("Pre-created %s PENDING attendance records for %s..%s", created, period.start, period.end)
        return created

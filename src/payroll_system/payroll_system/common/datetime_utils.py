from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional
from zoneinfo import ZoneInfo

from ..core.constants import DEFAULT_TIMEZONE
from ..core.exceptions import ValidationError

SUNDAY = 6


@dataclass(frozen=True)
class Period:
    """Inclusive payroll period [start, end]."""

    start: date
    end: date

    def contains(self, value: date | datetime) -> bool:
        day = value.date() if isinstance(value, datetime) else value
        return self.start <= day <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def to_dict(self) -> dict:
        return {"periodStart": self.start.isoformat(), "periodEnd": self.end.isoformat()}


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_date_field(value, field_name: str) -> date:
    if isinstance(value, date):
        return value
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    try:
        return parse_iso_date(str(value).strip()[:10])
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")


def parse_hhmm(value: Optional[str], field_name: str) -> Optional[time]:
    v = (value or "").strip()
    if not v:
        return None
    try:
        return datetime.strptime(v[:5], "%H:%M").time()
    except ValueError:
        raise ValidationError(f"{field_name} must be a time (HH:MM)")


def format_hhmm(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M") if value else None


def now_local(tz_name: str = DEFAULT_TIMEZONE) -> datetime:
    """Current wall-clock time in the organization's timezone, as a naive datetime.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def is_working_day(day: date) -> bool:
    return day.weekday() != SUNDAY


def working_days(start: date, end: date) -> list[date]:
    return [d for d in iter_days(start, end) if is_working_day(d)]

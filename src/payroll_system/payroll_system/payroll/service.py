from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from ..common.datetime_utils import Period, now_local, parse_date_field
from ..common.money import ZERO, as_float, money_sum, to_money
from ..common.validators import require_int
from ..core.constants import DEFAULT_PERIOD_DAYS, DEFAULT_TIMEZONE
from ..core.enums import PayrollStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..deductions.engine import DeductionEngine
from ..deductions.service import DeductionService
from ..overload.service import OverloadPayService
from ..settings.model import AttendanceSettings
from ..settings.service import SettingsService
from ..users.model import User
from ..users.repository import UserRepository
from ..users.service import UserService
from .calculator.base import PayrollCalculator
from .model import ArchivedPeriodSummary, PayrollComputation, PayrollEntry, ReleaseInstruction
from .repository import PayrollRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerateResult:
    period: Period
    created: int = 0
    updated: int = 0
    skipped: int = 0
    archived_previous: int = 0

    def to_dict(self) -> dict:
        return {
            **self.period.to_dict(),
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "archivedPrevious": self.archived_previous,
        }


@dataclass(frozen=True)
class AutoReleaseResult:
    released: int
    message: str
    release_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "released": self.released,
            "message": self.message,
            "releaseAt": self.release_at.isoformat() if self.release_at else None,
        }


@dataclass(frozen=True)
class PayrollSummary:
    """Admin view of one period: stored entries when generated, else a live preview."""

    period: Period
    generated: bool
    rows: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        def total(key: str) -> float:
            return as_float(money_sum(Decimal(str(r[key])) for r in self.rows))

        return {
            **self.period.to_dict(),
            "generated": self.generated,
            "entries": self.rows,
            "totals": {
                "basicSalary": total("basicSalary"),
                "overtime": total("overtime"),
                "deductions": total("deductions"),
                "netPay": total("netPay"),
            },
        }


class PayrollService:
    """Payroll Generator + Lifecycle Manager (PENDING -> RELEASED -> ARCHIVED)."""

    def __init__(
        self,
        payroll: PayrollRepository,
        users: UserRepository,
        user_service: UserService,
        settings: SettingsService,
        deduction_service: DeductionService,
        overload_service: OverloadPayService,
        engine: DeductionEngine,
        calculator: PayrollCalculator,
        *,
        tz_name: str = DEFAULT_TIMEZONE,
    ):
        self._payroll = payroll
        self._users = users
        self._user_service = user_service
        self._settings = settings
        self._deduction_service = deduction_service
        self._overload_service = overload_service
        self._engine = engine
        self._calculator = calculator
        self._tz_name = tz_name

    def _now(self, now: Optional[datetime]) -> datetime:
        return now or now_local(self._tz_name)

    # ---------- computation ----------

    def compute(self, user: User, period: Period, settings: Optional[AttendanceSettings] = None) -> PayrollComputation:
        settings = settings or self._settings.get()
        monthly = self._user_service.monthly_salary(user)
        breakdown = self._engine.compute(
            user_id=user.user_id,
            monthly_salary=monthly,
            period=period,
            settings=settings,
        )
        overloads = list(self._overload_service.for_period(user.user_id, period))

        basic = to_money(self._calculator.period_salary(monthly))
        overtime = money_sum(o.amount for o in overloads)
        deductions = breakdown.total
        net = max(to_money(basic + overtime - deductions), ZERO)

        return PayrollComputation(
            user_id=user.user_id,
            user_name=user.name,
            period=period,
            monthly_salary=monthly,
            basic_salary=basic,
            overtime=overtime,
            deductions=deductions,
            net_pay=net,
            breakdown=breakdown,
            overloads=overloads,
            personnel_type=self._user_service.personnel_type_of(user),
        )

    def _user_of(self, entry: PayrollEntry) -> User:
        user = self._users.get_by_id(entry.user_id)
        if not user:
            raise NotFoundError(f"User {entry.user_id} not found")
        return user

    def preview(self) -> PayrollSummary:
        settings = self._settings.get()
        period = self._settings.current_period()
        entries = self._payroll.list_for_period(period)
        if entries:
            return PayrollSummary(period=period, generated=True, rows=[e.to_dict() for e in entries])

        rows = []
        for user in self._users.list_active_personnel():
            comp = self.compute(user, period, settings)
            rows.append(
                {
                    "id": None,
                    "userId": user.user_id,
                    "name": user.name,
                    **period.to_dict(),
                    "basicSalary": as_float(comp.basic_salary),
                    "overtime": as_float(comp.overtime),
                    "deductions": as_float(comp.deductions),
                    "netPay": as_float(comp.net_pay),
                    "status": None,
                }
            )
        return PayrollSummary(period=period, generated=False, rows=rows)

    # ---------- generation ----------

    def generate(self, *, regenerate: bool = False, now: Optional[datetime] = None) -> GenerateResult:
        """Create one PENDING entry per active personnel for the settings period.

        A period that already has live entries is rejected unless `regenerate` is set,
        in which case PENDING entries are recomputed in place and RELEASED ones are kept.
        """
        now = self._now(now)
        settings = self._settings.get()
        period = self._settings.current_period()

        existing = {e.user_id: e for e in self._payroll.list_for_period(period)}
        if existing and not regenerate:
            raise ConflictError(f"Payroll for {period.start} to {period.end} has already been generated")

        self._deduction_service.sync_mandatory(period=period)

        created = updated = skipped = 0
        for user in self._users.list_active_personnel():
            comp = self.compute(user, period, settings)
            entry = existing.get(user.user_id)
            if entry is None:
                self._payroll.create(
                    user_id=user.user_id,
                    period=period,
                    basic_salary=comp.basic_salary,
                    overtime=comp.overtime,
                    deductions=comp.deductions,
                    net_pay=comp.net_pay,
                    created_at=now,
                )
                created += 1
            elif entry.status == PayrollStatus.PENDING:
                self._payroll.update_pending_totals(
                    entry.entry_id,
                    basic_salary=comp.basic_salary,
                    overtime=comp.overtime,
                    deductions=comp.deductions,
                    net_pay=comp.net_pay,
                )
                updated += 1
            else:
                skipped += 1

        archived = self._payroll.archive_released(archived_at=now, ended_before=period.start)
        logger.info(
            "Generated payroll %s..%s: created=%s updated=%s skipped=%s archived_previous=%s",
            period.start,
            period.end,
            created,
            updated,
            skipped,
            archived,
        )
        return GenerateResult(period, created, updated, skipped, archived)

    # ---------- lifecycle ----------

    def _release_instruction(
        self, entry: PayrollEntry, settings: AttendanceSettings, released_at: datetime
    ) -> ReleaseInstruction:
        comp = self.compute(self._user_of(entry), entry.period, settings)
        return ReleaseInstruction(
            entry_id=entry.entry_id,
            basic_salary=comp.basic_salary,
            overtime=comp.overtime,
            deductions=comp.deductions,
            net_pay=comp.net_pay,
            snapshot=comp.snapshot_json(),
            released_at=released_at,
            deduction_ids=tuple(comp.breakdown.counted_deduction_ids),
            loan_payments=tuple((loan_id, to_money(amount)) for loan_id, amount in comp.breakdown.loan_payments),
        )

    def _pending_of(self, period: Period) -> list[PayrollEntry]:
        return [e for e in self._payroll.list_for_period(period) if e.status == PayrollStatus.PENDING]

    def release(self, entry_ids: Iterable[Any], *, now: Optional[datetime] = None) -> int:
        """Release the given PENDING entries. Every id is checked before anything is written."""
        ids = [require_int(v, "entry_id") for v in entry_ids or []]
        if not ids:
            raise ValidationError("Select at least one payroll entry")

        entries = []
        for entry_id in ids:
            entry = self._payroll.get_by_id(entry_id)
            if not entry or not entry.is_live or entry.status != PayrollStatus.PENDING:
                raise NotFoundError(f"Payroll entry {entry_id} not found or not pending")
            entries.append(entry)

        now = self._now(now)
        settings = self._settings.get()
        released = sum(
            1 for entry in entries if self._payroll.release(self._release_instruction(entry, settings, now))
        )
        logger.info("Released %s payroll entr%s", released, "y" if released == 1 else "ies")
        return released

    def release_period(self, next_start: Any, next_end: Any, *, now: Optional[datetime] = None) -> dict:
        """Release every PENDING entry of the current period and move the settings to the next period."""
        period = self._settings.current_period()
        next_period = Period(parse_date_field(next_start, "next_period_start"), parse_date_field(next_end, "next_period_end"))
        if next_period.end < next_period.start:
            raise ValidationError("next_period_end must not be before next_period_start")
        if next_period.start <= period.end:
            raise ValidationError("The next period must start after the current period ends")

        now = self._now(now)
        settings = self._settings.get()
        instructions = [self._release_instruction(e, settings, now) for e in self._pending_of(period)]
        released = self._payroll.release_period(instructions, next_period=next_period)
        logger.info(
            "Released %s entries for %s..%s, next period %s..%s",
            released,
            period.start,
            period.end,
            next_period.start,
            next_period.end,
        )
        self._settings.prepare_period(next_period)
        return {"released": released, "nextPeriod": next_period.to_dict()}

    def release_time(self, settings: AttendanceSettings) -> Optional[datetime]:
        period = settings.period
        if period is None:
            return None
        return datetime.combine(period.end, settings.time_out_end or time.max)

    def auto_release(self, *, now: Optional[datetime] = None) -> AutoReleaseResult:
        """Scheduled release: after `period_end + time_out_end`, release every PENDING entry of the period."""
        now = self._now(now)
        settings = self._settings.get()
        release_at = self.release_time(settings)
        if release_at is None:
            return AutoReleaseResult(0, "No payroll settings configured")
        if now < release_at:
            return AutoReleaseResult(0, "Not yet time to release payroll", release_at)

        pending = self._pending_of(settings.period)
        if not pending:
            return AutoReleaseResult(0, "No pending payroll to release", release_at)

        released = sum(
            1 for entry in pending if self._payroll.release(self._release_instruction(entry, settings, now))
        )
        logger.info("Auto-released %s payroll entries at %s", released, now)
        return AutoReleaseResult(released, f"Released {released} payroll entries", release_at)

    def archive_entry(self, entry_id: Any, *, now: Optional[datetime] = None) -> None:
        entry = self._payroll.get_by_id(require_int(entry_id, "entry_id"))
        if not entry or not entry.is_live or entry.status != PayrollStatus.RELEASED:
            raise NotFoundError("Payroll entry not found or not released")

        snapshot = None
        if not entry.breakdown_snapshot:
            snapshot = self.compute(self._user_of(entry), entry.period).snapshot_json()
        if not self._payroll.archive(entry.entry_id, archived_at=self._now(now), snapshot_if_missing=snapshot):
            raise NotFoundError("Payroll entry not found or not released")
        logger.info("Archived payroll entry %s", entry.entry_id)

    def archive_released(self, *, now: Optional[datetime] = None) -> int:
        archived = self._payroll.archive_released(archived_at=self._now(now))
        logger.info("Archived %s released payroll entries", archived)
        return archived

    def delete_pending(self, entry_id: Any) -> None:
        entry_id = require_int(entry_id, "entry_id")
        if not self._payroll.delete_pending(entry_id):
            raise NotFoundError("Payroll entry not found or not pending")
        logger.info("Deleted pending payroll entry %s", entry_id)

    def reset(self, *, next_start: Any = None, now: Optional[datetime] = None) -> dict:
        """Archive RELEASED entries, drop PENDING entries whose period ends before it starts, open a fresh period."""
        now = self._now(now)
        start = parse_date_field(next_start, "next_period_start") if next_start else now.date()
        next_period = Period(start, start + timedelta(days=DEFAULT_PERIOD_DAYS - 1))

        counts = self._payroll.reset(archived_at=now, next_period=next_period)
        logger.info(
            "Payroll reset: archived=%s deleted=%s, next period %s..%s",
            counts.get("archived"),
            counts.get("deleted"),
            next_period.start,
            next_period.end,
        )
        self._settings.prepare_period(next_period)
        return {**counts, "nextPeriod": next_period.to_dict()}

    # ---------- reads ----------

    def archived_periods(self) -> Sequence[ArchivedPeriodSummary]:
        return self._payroll.list_archived_periods()

    def personnel_entries(self, user_id: int) -> Sequence[PayrollEntry]:
        return self._payroll.list_for_user(
            int(user_id), statuses=(PayrollStatus.RELEASED, PayrollStatus.ARCHIVED)
        )

    def breakdown(self, entry_id: Any, *, viewer_id: int, viewer_role: Optional[Role]) -> dict:
        """Payslip detail: the frozen snapshot when present, else a live computation."""
        entry = self._payroll.get_by_id(require_int(entry_id, "entry_id"))
        if not entry:
            raise NotFoundError("Payroll entry not found")
        if viewer_role != Role.ADMIN:
            if entry.user_id != int(viewer_id):
                raise AuthorizationError("You can only view your own payslips")
            if entry.status == PayrollStatus.PENDING:
                raise NotFoundError("Payroll entry not found")

        snapshot = entry.snapshot()
        source = "snapshot"
        if snapshot is None:
            snapshot = self.compute(self._user_of(entry), entry.period).to_snapshot()
            source = "live"
        return {"entry": entry.to_dict(), "breakdown": snapshot, "source": source}

    def entries_for_period(self, period: Period) -> Sequence[PayrollEntry]:
        return self._payroll.list_for_period(period, live_only=False)


def period_or_current(settings: SettingsService, start: Optional[str], end: Optional[str]) -> Period:
    if start and end:
        period = Period(parse_date_field(start, "start"), parse_date_field(end, "end"))
        if period.end < period.start:
            raise ValidationError("end must not be before start")
        return period
    return settings.current_period()

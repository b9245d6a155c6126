from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import Period, working_days
from ..common.money import money_sum, to_money
from ..core.constants import RESERVED_ATTENDANCE_DEDUCTION_NAMES
from ..core.enums import AttendanceStatus
from ..leaves.repository import LeaveRepository
from ..payroll.calculator.base import PayrollCalculator
from ..settings.model import AttendanceSettings
from .loan_repository import LoanRepository
from .repository import DeductionRepository

ATTENDANCE = "ATTENDANCE"
STORED = "DEDUCTION"
LOAN = "LOAN"
UNPAID_LEAVE = "UNPAID_LEAVE"


@dataclass(frozen=True)
class DeductionLine:
    category: str
    label: str
    amount: Decimal
    source_id: Optional[int] = None
    day: Optional[date] = None
    detail: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "type": self.label,
            "amount": float(to_money(self.amount)),
            "sourceId": self.source_id,
            "date": self.day.isoformat() if self.day else None,
            "description": self.detail,
        }


@dataclass
class DeductionBreakdown:
    period: Period
    working_days: int
    daily_rate: Decimal
    attendance_records: list[AttendanceRecord] = field(default_factory=list)
    attendance_lines: list[DeductionLine] = field(default_factory=list)
    stored_lines: list[DeductionLine] = field(default_factory=list)
    loan_lines: list[DeductionLine] = field(default_factory=list)
    leave_lines: list[DeductionLine] = field(default_factory=list)

    @property
    def attendance_total(self) -> Decimal:
        return money_sum(line.amount for line in self.attendance_lines)

    @property
    def stored_total(self) -> Decimal:
        return money_sum(line.amount for line in self.stored_lines)

    @property
    def loan_total(self) -> Decimal:
        return money_sum(line.amount for line in self.loan_lines)

    @property
    def unpaid_leave_total(self) -> Decimal:
        return money_sum(line.amount for line in self.leave_lines)

    @property
    def total(self) -> Decimal:
        return money_sum([self.attendance_total, self.stored_total, self.loan_total, self.unpaid_leave_total])

    @property
    def lines(self) -> list[DeductionLine]:
        return [*self.attendance_lines, *self.stored_lines, *self.loan_lines, *self.leave_lines]

    @property
    def counted_deduction_ids(self) -> list[int]:
        return [line.source_id for line in self.stored_lines if line.source_id is not None]

    @property
    def loan_payments(self) -> list[tuple[int, Decimal]]:
        return [(line.source_id, line.amount) for line in self.loan_lines if line.source_id is not None]

    def attendance_amount_on(self, day: date) -> Decimal:
        return money_sum(line.amount for line in self.attendance_lines if line.day == day)


def is_reserved_attendance_name(name: str) -> bool:
    lowered = (name or "").lower()
    return any(reserved.lower() in lowered for reserved in RESERVED_ATTENDANCE_DEDUCTION_NAMES)


class DeductionEngine:
    """Per-person, per-period deductions.

    Combines attendance penalties, stored deduction rows, loan installments and unpaid leave.
    Attendance-type stored deductions are skipped so they are not counted twice.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        deductions: DeductionRepository,
        loans: LoanRepository,
        leaves: LeaveRepository,
        calculator: PayrollCalculator,
    ):
        self._attendance = attendance
        self._deductions = deductions
        self._loans = loans
        self._leaves = leaves
        self._calculator = calculator

    def compute(
        self,
        *,
        user_id: int,
        monthly_salary: Decimal,
        period: Period,
        settings: Optional[AttendanceSettings] = None,
    ) -> DeductionBreakdown:
        breakdown = DeductionBreakdown(
            period=period,
            working_days=self._calculator.working_days(period),
            daily_rate=self._calculator.daily_rate(monthly_salary, period),
        )
        breakdown.attendance_records = list(self._attendance.list_for_user_between(user_id, period.start, period.end))
        breakdown.attendance_lines = self._attendance_lines(breakdown.attendance_records, monthly_salary, period, settings)
        breakdown.stored_lines = self._stored_lines(user_id, period)
        breakdown.loan_lines = self._loan_lines(user_id, period)
        breakdown.leave_lines = self._leave_lines(user_id, period, breakdown.daily_rate)
        return breakdown

    def _attendance_lines(
        self,
        records: list[AttendanceRecord],
        monthly_salary: Decimal,
        period: Period,
        settings: Optional[AttendanceSettings],
    ) -> list[DeductionLine]:
        daily = self._calculator.daily_rate(monthly_salary, period)
        if daily <= 0:
            return []

        lines: list[DeductionLine] = []
        for rec in records:
            if not period.contains(rec.work_date):
                continue
            if rec.status == AttendanceStatus.ABSENT:
                lines.append(DeductionLine(ATTENDANCE, "Absent", daily, rec.attendance_id, rec.work_date, "Full day absence"))
            elif rec.status == AttendanceStatus.LATE and rec.time_in and settings and settings.time_in_end:
                seconds_late = _seconds_between(datetime.combine(rec.work_date, settings.time_in_end), rec.time_in)
                amount = self._calculator.late_deduction(monthly_salary, period, seconds_late)
                if amount > 0:
                    lines.append(
                        DeductionLine(
                            ATTENDANCE,
                            "Late",
                            amount,
                            rec.attendance_id,
                            rec.work_date,
                            f"Late by {seconds_late // 60} min",
                        )
                    )
            elif rec.status == AttendanceStatus.PARTIAL and rec.time_in and rec.time_out:
                worked = _seconds_between(rec.time_in, rec.time_out)
                amount = self._calculator.partial_deduction(monthly_salary, period, worked)
                if amount > 0:
                    lines.append(
                        DeductionLine(
                            ATTENDANCE,
                            "Partial",
                            amount,
                            rec.attendance_id,
                            rec.work_date,
                            f"Worked {worked / 3600:.2f} h",
                        )
                    )
        return lines

    def _stored_lines(self, user_id: int, period: Period) -> list[DeductionLine]:
        start = datetime.combine(period.start, time.min)
        end = datetime.combine(period.end, time.max)
        lines: list[DeductionLine] = []
        for d in self._deductions.list_live_for_user_between(user_id, start, end):
            if is_reserved_attendance_name(d.type_name):
                continue
            lines.append(DeductionLine(STORED, d.type_name, d.amount, d.deduction_id, d.applied_at.date(), d.notes))
        return lines

    def _loan_lines(self, user_id: int, period: Period) -> list[DeductionLine]:
        lines: list[DeductionLine] = []
        for loan in self._loans.list_due_for_user(user_id, period.end):
            amount = loan.due_amount()
            if amount <= 0:
                continue
            lines.append(DeductionLine(LOAN, "Loan payment", amount, loan.loan_id, None, loan.purpose))
        return lines

    def _leave_lines(self, user_id: int, period: Period, daily: Decimal) -> list[DeductionLine]:
        if daily <= 0:
            return []
        lines: list[DeductionLine] = []
        for leave in self._leaves.list_approved_overlapping(user_id, period.start, period.end):
            if leave.is_paid:
                continue
            start = max(leave.start_date, period.start)
            end = min(leave.end_date, period.end)
            days = len(working_days(start, end))
            if days <= 0:
                continue
            lines.append(
                DeductionLine(
                    UNPAID_LEAVE,
                    "Unpaid leave",
                    daily * days,
                    leave.leave_id,
                    start,
                    f"{days} working day(s) of unpaid leave",
                )
            )
        return lines


def _seconds_between(start: datetime, end: datetime) -> int:
    return max(int((end - start).total_seconds()), 0)

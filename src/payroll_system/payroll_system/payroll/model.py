from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import Period
from ..common.money import as_float
from ..core.enums import PayrollStatus
from ..deductions.engine import DeductionBreakdown
from ..overload.model import OverloadPay
from ..users.personnel_type_model import PersonnelType


@dataclass(frozen=True)
class PayrollEntry:
    """One payroll entry per (person, period). Live while `archived_at` is null."""

    entry_id: int
    user_id: int
    period_start: date
    period_end: date
    basic_salary: Decimal
    overtime: Decimal
    deductions: Decimal
    net_pay: Decimal
    status: PayrollStatus
    created_at: Optional[datetime] = None
    released_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    breakdown_snapshot: Optional[str] = None
    user_name: Optional[str] = None

    @property
    def period(self) -> Period:
        return Period(self.period_start, self.period_end)

    @property
    def is_live(self) -> bool:
        return self.archived_at is None

    def snapshot(self) -> Optional[dict]:
        if not self.breakdown_snapshot:
            return None
        return json.loads(self.breakdown_snapshot)

    def to_dict(self) -> dict:
        return {
            "id": self.entry_id,
            "userId": self.user_id,
            "name": self.user_name,
            "periodStart": self.period_start.isoformat(),
            "periodEnd": self.period_end.isoformat(),
            "basicSalary": as_float(self.basic_salary),
            "overtime": as_float(self.overtime),
            "deductions": as_float(self.deductions),
            "netPay": as_float(self.net_pay),
            "status": self.status.value,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "releasedAt": self.released_at.isoformat() if self.released_at else None,
            "archivedAt": self.archived_at.isoformat() if self.archived_at else None,
            "hasSnapshot": bool(self.breakdown_snapshot),
        }


@dataclass(frozen=True)
class PayrollComputation:
    """Live computation for (person, period): the numbers an entry stores plus how they were reached."""

    user_id: int
    user_name: str
    period: Period
    monthly_salary: Decimal
    basic_salary: Decimal
    overtime: Decimal
    deductions: Decimal
    net_pay: Decimal
    breakdown: DeductionBreakdown
    overloads: list[OverloadPay] = field(default_factory=list)
    personnel_type: Optional[PersonnelType] = None

    def to_snapshot(self) -> dict:
        b = self.breakdown
        return {
            "userId": self.user_id,
            "name": self.user_name,
            "periodStart": self.period.start.isoformat(),
            "periodEnd": self.period.end.isoformat(),
            "personnelType": (
                {"id": self.personnel_type.personnel_type_id, "name": self.personnel_type.name}
                if self.personnel_type
                else None
            ),
            "monthlyBasicSalary": as_float(self.monthly_salary),
            "periodSalary": as_float(self.basic_salary),
            "workingDays": b.working_days,
            "dailyRate": as_float(b.daily_rate),
            "totalAdditions": as_float(self.overtime),
            "overloadPayDetails": [
                {
                    "id": o.overload_id,
                    "amount": as_float(o.amount),
                    "notes": o.notes,
                    "appliedAt": o.applied_at.isoformat(),
                }
                for o in self.overloads
            ],
            "attendanceDeductions": as_float(b.attendance_total),
            "databaseDeductions": as_float(b.stored_total),
            "loanPayments": as_float(b.loan_total),
            "unpaidLeaveDeduction": as_float(b.unpaid_leave_total),
            "totalDeductions": as_float(self.deductions),
            "attendanceRecords": [
                {
                    "date": r.work_date.isoformat(),
                    "status": r.status.value,
                    "timeIn": r.time_in.isoformat() if r.time_in else None,
                    "timeOut": r.time_out.isoformat() if r.time_out else None,
                    "deduction": as_float(b.attendance_amount_on(r.work_date)),
                }
                for r in b.attendance_records
            ],
            "deductionDetails": [line.to_dict() for line in b.lines],
            "netPay": as_float(self.net_pay),
        }

    def snapshot_json(self) -> str:
        return json.dumps(self.to_snapshot(), sort_keys=True)


@dataclass(frozen=True)
class ReleaseInstruction:
    """Everything one release writes, applied atomically by the repository."""

    entry_id: int
    basic_salary: Decimal
    overtime: Decimal
    deductions: Decimal
    net_pay: Decimal
    snapshot: str
    released_at: datetime
    deduction_ids: tuple[int, ...] = ()
    loan_payments: tuple[tuple[int, Decimal], ...] = ()


@dataclass(frozen=True)
class ArchivedPeriodSummary:
    period_start: date
    period_end: date
    entries: int
    total_basic: Decimal
    total_overtime: Decimal
    total_deductions: Decimal
    total_net: Decimal
    archived_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "periodStart": self.period_start.isoformat(),
            "periodEnd": self.period_end.isoformat(),
            "entries": self.entries,
            "totalBasicSalary": as_float(self.total_basic),
            "totalOvertime": as_float(self.total_overtime),
            "totalDeductions": as_float(self.total_deductions),
            "totalNetPay": as_float(self.total_net),
            "archivedAt": self.archived_at.isoformat() if self.archived_at else None,
        }

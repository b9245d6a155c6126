from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.payroll_system.payroll_system.attendance.model import AttendanceDayRow, AttendanceRecord
from src.payroll_system.payroll_system.common.datetime_utils import Period
from src.payroll_system.payroll_system.container import Repositories, wire_services
from src.payroll_system.payroll_system.core.enums import (
    AttendanceStatus,
    CalculationType,
    LeaveStatus,
    LeaveType,
    LoanStatus,
    PayrollStatus,
    Role,
)
from src.payroll_system.payroll_system.core.exceptions import ConflictError
from src.payroll_system.payroll_system.deductions.model import Deduction, DeductionType, Loan
from src.payroll_system.payroll_system.leaves.model import LeaveRequest
from src.payroll_system.payroll_system.overload.model import OverloadPay
from src.payroll_system.payroll_system.payroll.model import ArchivedPeriodSummary, PayrollEntry
from src.payroll_system.payroll_system.settings.model import AttendanceSettings
from src.payroll_system.payroll_system.users.model import User
from src.payroll_system.payroll_system.users.personnel_type_model import PersonnelType

TZ = "Asia/Manila"


class _Ids:
    def __init__(self):
        self._next = 1

    def next(self) -> int:
        value = self._next
        self._next += 1
        return value


class InMemoryUsers:
    def __init__(self):
        self.rows: dict[int, User] = {}
        self._ids = _Ids()

    def get_by_id(self, user_id):
        return self.rows.get(int(user_id))

    def get_by_email(self, email):
        return next((u for u in self.rows.values() if u.email == email), None)

    def create_user(self, *, name, email, password_hash, role, personnel_type_id):
        uid = self._ids.next()
        self.rows[uid] = User(uid, name, email, password_hash, role, personnel_type_id, True)
        return uid

    def update_profile(self, user_id, *, name, personnel_type_id):
        u = self.rows.get(int(user_id))
        if not u:
            return False
        self.rows[u.user_id] = replace(u, name=name, personnel_type_id=personnel_type_id)
        return True

    def set_active(self, user_id, *, is_active):
        u = self.rows.get(int(user_id))
        if not u or u.is_active == is_active:
            return False
        self.rows[u.user_id] = replace(u, is_active=is_active)
        return True

    def list_all(self, *, role=None):
        return sorted((u for u in self.rows.values() if role is None or u.role == role), key=lambda u: u.name)

    def list_active_personnel(self):
        return [u for u in self.list_all(role=Role.PERSONNEL) if u.is_active]


class InMemoryPersonnelTypes:
    def __init__(self):
        self.rows: dict[int, PersonnelType] = {}
        self._ids = _Ids()

    def get_by_id(self, personnel_type_id):
        return self.rows.get(int(personnel_type_id))

    def get_by_name(self, name):
        return next((t for t in self.rows.values() if t.name == name), None)

    def list_all(self):
        return sorted(self.rows.values(), key=lambda t: t.name)

    def create(self, *, name, basic_salary):
        tid = self._ids.next()
        self.rows[tid] = PersonnelType(tid, name, Decimal(basic_salary))
        return tid

    def update(self, personnel_type_id, *, name, basic_salary):
        t = self.rows.get(int(personnel_type_id))
        if not t:
            return False
        self.rows[t.personnel_type_id] = replace(t, name=name, basic_salary=Decimal(basic_salary))
        return True

    def set_active(self, personnel_type_id, *, is_active):
        t = self.rows.get(int(personnel_type_id))
        if not t:
            return False
        self.rows[t.personnel_type_id] = replace(t, is_active=is_active)
        return True


class InMemorySettings:
    def __init__(self, current: Optional[AttendanceSettings] = None):
        self.current = current

    def get(self):
        return self.current

    def save(self, settings):
        self.current = settings


class InMemoryAttendance:
    def __init__(self, users: InMemoryUsers):
        self.rows: dict[int, AttendanceRecord] = {}
        self._users = users
        self._ids = _Ids()

    def _find(self, user_id, work_date):
        return next((r for r in self.rows.values() if r.user_id == int(user_id) and r.work_date == work_date), None)

    def get_by_id(self, attendance_id):
        return self.rows.get(int(attendance_id))

    def get_for_user_and_date(self, user_id, work_date):
        return self._find(user_id, work_date)

    def get_recent_for_user(self, user_id, limit):
        mine = [r for r in self.rows.values() if r.user_id == int(user_id)]
        return sorted(mine, key=lambda r: r.work_date, reverse=True)[:limit]

    def list_for_user_between(self, user_id, start, end):
        mine = [r for r in self.rows.values() if r.user_id == int(user_id) and start <= r.work_date <= end]
        return sorted(mine, key=lambda r: r.work_date)

    def list_day(self, work_date):
        return [
            AttendanceDayRow(u.user_id, u.name, u.email, self._find(u.user_id, work_date))
            for u in self._users.list_active_personnel()
        ]

    def create_record(self, *, user_id, work_date, status, time_in=None, note=None):
        if self._find(user_id, work_date):
            raise ConflictError("duplicate attendance record")
        rid = self._ids.next()
        self.rows[rid] = AttendanceRecord(rid, int(user_id), work_date, time_in, None, status, note)
        return rid

    def create_pending(self, *, user_ids, days):
        created = 0
        for uid in user_ids:
            for day in days:
                if not self._find(uid, day):
                    self.create_record(user_id=uid, work_date=day, status=AttendanceStatus.PENDING)
                    created += 1
        return created

    def record_time_in(self, *, attendance_id, time_in, status, note=None):
        r = self.rows.get(int(attendance_id))
        if not r or r.time_in is not None:
            return False
        self.rows[r.attendance_id] = replace(r, time_in=time_in, status=status, note=note)
        return True

    def record_time_out(self, *, attendance_id, time_out, status, note=None):
        r = self.rows.get(int(attendance_id))
        if not r or r.time_in is None or r.time_out is not None:
            return False
        self.rows[r.attendance_id] = replace(r, time_out=time_out, status=status, note=note)
        return True

    def list_pending_before(self, day):
        return [
            r
            for r in sorted(self.rows.values(), key=lambda r: r.work_date)
            if r.status == AttendanceStatus.PENDING and r.time_in is None and r.work_date < day
        ]

    def mark_on_leave(self, *, user_id, start, end):
        changed = 0
        for r in list(self.rows.values()):
            if (
                r.user_id == int(user_id)
                and start <= r.work_date <= end
                and r.time_in is None
                and r.status in (AttendanceStatus.PENDING, AttendanceStatus.ABSENT)
            ):
                self.rows[r.attendance_id] = replace(r, status=AttendanceStatus.ON_LEAVE)
                changed += 1
        return changed

    def update_status(self, *, attendance_id, status, note=None):
        r = self.rows.get(int(attendance_id))
        if not r:
            return False
        self.rows[r.attendance_id] = replace(r, status=status, note=note if note is not None else r.note)
        return True


class InMemoryLeaves:
    def __init__(self):
        self.rows: dict[int, LeaveRequest] = {}
        self._ids = _Ids()

    def create(self, *, user_id, leave_type, start_date, end_date, days, is_paid, reason, created_at):
        lid = self._ids.next()
        self.rows[lid] = LeaveRequest(
            lid, int(user_id), leave_type, start_date, end_date, days, is_paid, reason, LeaveStatus.PENDING, created_at
        )
        return lid

    def get_by_id(self, leave_id):
        return self.rows.get(int(leave_id))

    def list_requests(self, *, user_id=None, status=None, limit=200):
        items = [
            r
            for r in self.rows.values()
            if (user_id is None or r.user_id == int(user_id)) and (status is None or r.status == status)
        ]
        return sorted(items, key=lambda r: (r.created_at, r.leave_id), reverse=True)[:limit]

    def decide(self, *, leave_id, status, decided_by, decided_at, admin_note):
        r = self.rows.get(int(leave_id))
        if not r or r.status != LeaveStatus.PENDING:
            return False
        self.rows[r.leave_id] = replace(
            r, status=status, decided_by=decided_by, decided_at=decided_at, admin_note=admin_note
        )
        return True

    def find_approved_covering(self, user_id, day):
        return next(
            (
                r
                for r in self.rows.values()
                if r.user_id == int(user_id) and r.status == LeaveStatus.APPROVED and r.covers(day)
            ),
            None,
        )

    def list_approved_overlapping(self, user_id, start, end):
        return [
            r
            for r in self.rows.values()
            if r.user_id == int(user_id)
            and r.status == LeaveStatus.APPROVED
            and r.start_date <= end
            and r.end_date >= start
        ]


class InMemoryDeductionTypes:
    def __init__(self):
        self.rows: dict[int, DeductionType] = {}
        self._ids = _Ids()

    def get_by_id(self, deduction_type_id):
        return self.rows.get(int(deduction_type_id))

    def get_by_name(self, name):
        return next((t for t in self.rows.values() if t.name == name), None)

    def list_all(self, *, active_only=False):
        return sorted((t for t in self.rows.values() if t.is_active or not active_only), key=lambda t: t.name)

    def create(self, *, name, description, calculation_type, amount, percentage_value, is_mandatory):
        tid = self._ids.next()
        self.rows[tid] = DeductionType(
            tid, name, description, calculation_type, Decimal(amount), percentage_value, is_mandatory
        )
        return tid

    def update(self, deduction_type):
        if deduction_type.deduction_type_id not in self.rows:
            return False
        self.rows[deduction_type.deduction_type_id] = deduction_type
        return True


class InMemoryDeductions:
    def __init__(self, types: InMemoryDeductionTypes):
        self.rows: dict[int, Deduction] = {}
        self._types = types
        self._ids = _Ids()

    def get_by_id(self, deduction_id):
        return self.rows.get(int(deduction_id))

    def create(self, *, user_id, deduction_type_id, amount, notes, applied_at):
        did = self._ids.next()
        dtype = self._types.get_by_id(deduction_type_id)
        self.rows[did] = Deduction(
            did, int(user_id), int(deduction_type_id), dtype.name, Decimal(amount), notes, applied_at,
            is_mandatory=dtype.is_mandatory,
        )
        return did

    def list_live_for_user_between(self, user_id, start, end):
        return sorted(
            (
                d
                for d in self.rows.values()
                if d.user_id == int(user_id) and d.archived_at is None and start <= d.applied_at <= end
            ),
            key=lambda d: (d.applied_at, d.deduction_id),
        )

    def list_deductions(self, *, archived=False, user_id=None):
        return [
            d
            for d in self.rows.values()
            if (d.archived_at is not None) == archived and (user_id is None or d.user_id == int(user_id))
        ]

    def has_live_of_type(self, user_id, deduction_type_id):
        return any(
            d.user_id == int(user_id) and d.deduction_type_id == int(deduction_type_id) and d.archived_at is None
            for d in self.rows.values()
        )

    def update_amount(self, deduction_id, amount):
        d = self.rows.get(int(deduction_id))
        if not d or d.archived_at is not None:
            return False
        self.rows[d.deduction_id] = replace(d, amount=Decimal(amount))
        return True

    def archive(self, deduction_id, *, archived_at):
        d = self.rows.get(int(deduction_id))
        if not d or d.archived_at is not None:
            return False
        self.rows[d.deduction_id] = replace(d, archived_at=archived_at)
        return True


class InMemoryLoans:
    def __init__(self):
        self.rows: dict[int, Loan] = {}
        self._ids = _Ids()

    def get_by_id(self, loan_id):
        return self.rows.get(int(loan_id))

    def create(
        self, *, user_id, principal, monthly_payment_percent, term_months, installment, purpose, start_date, end_date
    ):
        lid = self._ids.next()
        self.rows[lid] = Loan(
            lid, int(user_id), principal, principal, monthly_payment_percent, term_months, installment,
            LoanStatus.ACTIVE, purpose, start_date, end_date,
        )
        return lid

    def list_loans(self, *, archived=False, user_id=None):
        return [
            loan
            for loan in self.rows.values()
            if (loan.archived_at is not None) == archived and (user_id is None or loan.user_id == int(user_id))
        ]

    def list_due_for_user(self, user_id, period_end):
        return [
            loan
            for loan in self.rows.values()
            if loan.user_id == int(user_id)
            and loan.status == LoanStatus.ACTIVE
            and loan.archived_at is None
            and loan.balance > 0
            and loan.start_date <= period_end
        ]

    def apply_payment(self, loan_id, amount):
        loan = self.rows.get(int(loan_id))
        if not loan or loan.archived_at is not None:
            return False
        balance = max(loan.balance - Decimal(amount), Decimal("0"))
        status = LoanStatus.PAID if balance <= 0 else loan.status
        self.rows[loan.loan_id] = replace(loan, balance=balance, status=status)
        return True

    def archive(self, loan_id, *, archived_at):
        loan = self.rows.get(int(loan_id))
        if not loan or loan.archived_at is not None:
            return False
        self.rows[loan.loan_id] = replace(loan, archived_at=archived_at)
        return True


class InMemoryOverloads:
    def __init__(self):
        self.rows: dict[int, OverloadPay] = {}
        self._ids = _Ids()

    def create(self, *, user_id, amount, notes, applied_at):
        oid = self._ids.next()
        self.rows[oid] = OverloadPay(oid, int(user_id), Decimal(amount), notes, applied_at)
        return oid

    def list_overload_pays(self, *, archived=False, user_id=None):
        return [
            o
            for o in self.rows.values()
            if (o.archived_at is not None) == archived and (user_id is None or o.user_id == int(user_id))
        ]

    def list_live_for_user_between(self, user_id, start, end):
        return [
            o
            for o in self.rows.values()
            if o.user_id == int(user_id) and o.archived_at is None and start <= o.applied_at <= end
        ]

    def archive(self, overload_id, *, archived_at):
        o = self.rows.get(int(overload_id))
        if not o or o.archived_at is not None:
            return False
        self.rows[o.overload_id] = replace(o, archived_at=archived_at)
        return True


class InMemoryPayroll:
    """Mirrors the MySQL repository, including the writes release and reset make to other tables."""

    def __init__(self, users, deductions, loans, settings):
        self.rows: dict[int, PayrollEntry] = {}
        self._users = users
        self._deductions = deductions
        self._loans = loans
        self._settings = settings
        self._ids = _Ids()

    def _named(self, e: PayrollEntry) -> PayrollEntry:
        u = self._users.get_by_id(e.user_id)
        return replace(e, user_name=u.name if u else None)

    def get_by_id(self, entry_id):
        e = self.rows.get(int(entry_id))
        return self._named(e) if e else None

    def list_for_period(self, period, *, live_only=True):
        return [
            self._named(e)
            for e in self.rows.values()
            if e.period == period and (e.is_live or not live_only)
        ]

    def list_for_user(self, user_id, *, statuses):
        return [
            self._named(e)
            for e in sorted(self.rows.values(), key=lambda e: e.period_start, reverse=True)
            if e.user_id == int(user_id) and e.status in statuses
        ]

    def create(self, *, user_id, period, basic_salary, overtime, deductions, net_pay, created_at):
        if any(e.user_id == user_id and e.period == period and e.is_live for e in self.rows.values()):
            raise ConflictError("live payroll entry exists")
        eid = self._ids.next()
        self.rows[eid] = PayrollEntry(
            eid, user_id, period.start, period.end, basic_salary, overtime, deductions, net_pay,
            PayrollStatus.PENDING, created_at,
        )
        return eid

    def update_pending_totals(self, entry_id, *, basic_salary, overtime, deductions, net_pay):
        e = self.rows.get(int(entry_id))
        if not e or e.status != PayrollStatus.PENDING or not e.is_live:
            return False
        self.rows[e.entry_id] = replace(
            e, basic_salary=basic_salary, overtime=overtime, deductions=deductions, net_pay=net_pay
        )
        return True

    def release(self, instruction):
        e = self.rows.get(instruction.entry_id)
        if not e or e.status != PayrollStatus.PENDING or not e.is_live:
            return False
        self.rows[e.entry_id] = replace(
            e,
            status=PayrollStatus.RELEASED,
            basic_salary=instruction.basic_salary,
            overtime=instruction.overtime,
            deductions=instruction.deductions,
            net_pay=instruction.net_pay,
            breakdown_snapshot=instruction.snapshot,
            released_at=instruction.released_at,
        )
        for did in instruction.deduction_ids:
            self._deductions.archive(did, archived_at=instruction.released_at)
        for loan_id, amount in instruction.loan_payments:
            self._loans.apply_payment(loan_id, amount)
        return True

    def _set_period(self, period: Period):
        self._settings.save(self._settings.get().with_changes(period_start=period.start, period_end=period.end))

    def release_period(self, instructions, *, next_period):
        released = sum(1 for i in instructions if self.release(i))
        self._set_period(next_period)
        return released

    def archive(self, entry_id, *, archived_at, snapshot_if_missing):
        e = self.rows.get(int(entry_id))
        if not e or e.status != PayrollStatus.RELEASED or not e.is_live:
            return False
        self.rows[e.entry_id] = replace(
            e,
            status=PayrollStatus.ARCHIVED,
            archived_at=archived_at,
            breakdown_snapshot=e.breakdown_snapshot or snapshot_if_missing,
        )
        return True

    def archive_released(self, *, archived_at, ended_before=None):
        count = 0
        for e in list(self.rows.values()):
            if e.status == PayrollStatus.RELEASED and e.is_live and (ended_before is None or e.period_end < ended_before):
                self.rows[e.entry_id] = replace(e, status=PayrollStatus.ARCHIVED, archived_at=archived_at)
                count += 1
        return count

    def delete_pending(self, entry_id):
        e = self.rows.get(int(entry_id))
        if not e or e.status != PayrollStatus.PENDING:
            return False
        del self.rows[e.entry_id]
        return True

    def reset(self, *, archived_at, next_period):
        archived = self.archive_released(archived_at=archived_at)
        broken = [
            eid
            for eid, e in self.rows.items()
            if e.period_end < e.period_start and e.status == PayrollStatus.PENDING
        ]
        for eid in broken:
            del self.rows[eid]
        self._set_period(next_period)
        return {"archived": archived, "deleted": len(broken)}

    def list_archived_periods(self):
        groups: dict[tuple[date, date], list[PayrollEntry]] = {}
        for e in self.rows.values():
            if e.status == PayrollStatus.ARCHIVED:
                groups.setdefault((e.period_start, e.period_end), []).append(e)
        return [
            ArchivedPeriodSummary(
                period_start=start,
                period_end=end,
                entries=len(items),
                total_basic=sum((e.basic_salary for e in items), Decimal("0")),
                total_overtime=sum((e.overtime for e in items), Decimal("0")),
                total_deductions=sum((e.deductions for e in items), Decimal("0")),
                total_net=sum((e.net_pay for e in items), Decimal("0")),
                archived_at=max(e.archived_at for e in items),
            )
            for (start, end), items in sorted(groups.items(), reverse=True)
        ]


def make_repos() -> Repositories:
    users = InMemoryUsers()
    types = InMemoryDeductionTypes()
    deductions = InMemoryDeductions(types)
    loans = InMemoryLoans()
    settings = InMemorySettings()
    return Repositories(
        users=users,
        personnel_types=InMemoryPersonnelTypes(),
        settings=settings,
        attendance=InMemoryAttendance(users),
        leaves=InMemoryLeaves(),
        deduction_types=types,
        deductions=deductions,
        loans=loans,
        overloads=InMemoryOverloads(),
        payroll=InMemoryPayroll(users, deductions, loans, settings),
    )


def standard_settings(period_start: date, period_end: date) -> AttendanceSettings:
    return AttendanceSettings(
        period_start=period_start,
        period_end=period_end,
        time_in_start=time(7, 0),
        time_in_end=time(9, 0),
        time_out_start=time(17, 0),
        time_out_end=time(19, 0),
    )


def add_person(repos: Repositories, name: str, salary: str = "20000", *, password: str = "personnel123") -> User:
    ptype = repos.personnel_types.get_by_name(f"{name} type")
    type_id = ptype.personnel_type_id if ptype else repos.personnel_types.create(
        name=f"{name} type", basic_salary=Decimal(salary)
    )
    uid = repos.users.create_user(
        name=name,
        email=f"{name.split()[0].lower()}@example.com",
        password_hash=generate_password_hash(password),
        role=Role.PERSONNEL,
        personnel_type_id=type_id,
    )
    return repos.users.get_by_id(uid)


def add_admin(repos: Repositories, *, password: str = "admin123") -> User:
    uid = repos.users.create_user(
        name="Admin Demo",
        email="admin@example.com",
        password_hash=generate_password_hash(password),
        role=Role.ADMIN,
        personnel_type_id=None,
    )
    return repos.users.get_by_id(uid)


def add_mandatory_type(repos: Repositories, name: str, amount: str) -> int:
    return repos.deduction_types.create(
        name=name,
        description=None,
        calculation_type=CalculationType.FIXED,
        amount=Decimal(amount),
        percentage_value=None,
        is_mandatory=True,
    )


def add_record(repos: Repositories, user: User, day: date, status: AttendanceStatus, *, time_in=None, time_out=None):
    rid = repos.attendance.create_record(user_id=user.user_id, work_date=day, status=status, time_in=time_in)
    if time_out is not None:
        repos.attendance.record_time_out(attendance_id=rid, time_out=time_out, status=status)
    return repos.attendance.get_by_id(rid)


def approved_leave(repos: Repositories, user: User, start: date, end: date, leave_type: LeaveType) -> LeaveRequest:
    lid = repos.leaves.create(
        user_id=user.user_id,
        leave_type=leave_type,
        start_date=start,
        end_date=end,
        days=(end - start).days + 1,
        is_paid=leave_type != LeaveType.UNPAID,
        reason="family matter",
        created_at=datetime(2025, 10, 20, 9, 0),
    )
    repos.leaves.decide(
        leave_id=lid, status=LeaveStatus.APPROVED, decided_by=1, decided_at=datetime(2025, 10, 21, 9, 0), admin_note=None
    )
    return repos.leaves.get_by_id(lid)


@pytest.fixture
def repos() -> Repositories:
    return make_repos()


@pytest.fixture
def services(repos):
    return wire_services(repos, tz_name=TZ)

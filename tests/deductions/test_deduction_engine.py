from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from conftest import add_person, add_record, approved_leave, standard_settings
from src.payroll_system.payroll_system.common.datetime_utils import Period
from src.payroll_system.payroll_system.core.enums import AttendanceStatus, CalculationType, LeaveType, Role
from src.payroll_system.payroll_system.deductions.engine import (
    ATTENDANCE,
    LOAN,
    STORED,
    UNPAID_LEAVE,
    DeductionEngine,
    is_reserved_attendance_name,
)
from src.payroll_system.payroll_system.payroll.calculator.standard_calculator import StandardPayrollCalculator

PERIOD = Period(date(2025, 11, 1), date(2025, 11, 13))
MONTHLY = Decimal("20000")


@pytest.fixture
def engine(repos):
    return DeductionEngine(
        repos.attendance, repos.deductions, repos.loans, repos.leaves, StandardPayrollCalculator()
    )


@pytest.fixture
def settings():
    return standard_settings(PERIOD.start, PERIOD.end)


def test_one_absence_costs_one_daily_rate(repos, engine, settings):
    maria = add_person(repos, "Maria Santos")
    add_record(repos, maria, date(2025, 11, 5), AttendanceStatus.ABSENT)
    add_record(repos, maria, date(2025, 11, 6), AttendanceStatus.PRESENT, time_in=datetime(2025, 11, 6, 8, 0))

    b = engine.compute(user_id=maria.user_id, monthly_salary=MONTHLY, period=PERIOD, settings=settings)

    assert b.working_days == 11
    assert b.attendance_total == Decimal("909.09")
    assert b.total == Decimal("909.09")
    assert [line.category for line in b.lines] == [ATTENDANCE]


def test_late_and_partial_days(repos, engine, settings):
    maria = add_person(repos, "Maria Santos")
    add_record(repos, maria, date(2025, 11, 3), AttendanceStatus.LATE, time_in=datetime(2025, 11, 3, 9, 30))
    add_record(
        repos,
        maria,
        date(2025, 11, 4),
        AttendanceStatus.PARTIAL,
        time_in=datetime(2025, 11, 4, 8, 0),
        time_out=datetime(2025, 11, 4, 12, 0),
    )

    b = engine.compute(user_id=maria.user_id, monthly_salary=MONTHLY, period=PERIOD, settings=settings)

    assert b.attendance_amount_on(date(2025, 11, 3)) == Decimal("56.82")
    assert b.attendance_amount_on(date(2025, 11, 4)) == Decimal("454.55")
    assert b.attendance_total == Decimal("511.36")


def test_records_outside_period_are_ignored(repos, engine, settings):
    maria = add_person(repos, "Maria Santos")
    add_record(repos, maria, date(2025, 10, 31), AttendanceStatus.ABSENT)

    b = engine.compute(user_id=maria.user_id, monthly_salary=MONTHLY, period=PERIOD, settings=settings)

    assert b.total == Decimal("0.00")


def test_stored_deductions_skip_attendance_types(repos, engine, settings):
    maria = add_person(repos, "Maria Santos")
    sss = repos.deduction_types.create(
        name="SSS", description=None, calculation_type=CalculationType.FIXED,
        amount=Decimal("450"), percentage_value=None, is_mandatory=True,
    )
    late = repos.deduction_types.create(
        name="Late Penalty", description=None, calculation_type=CalculationType.FIXED,
        amount=Decimal("100"), percentage_value=None, is_mandatory=False,
    )
    repos.deductions.create(
        user_id=maria.user_id, deduction_type_id=sss, amount=Decimal("450"), notes=None,
        applied_at=datetime(2025, 11, 1, 0, 0),
    )
    repos.deductions.create(
        user_id=maria.user_id, deduction_type_id=late, amount=Decimal("100"), notes=None,
        applied_at=datetime(2025, 11, 3, 10, 0),
    )
    # applied in the next period
    repos.deductions.create(
        user_id=maria.user_id, deduction_type_id=sss, amount=Decimal("450"), notes=None,
        applied_at=datetime(2025, 11, 14, 0, 0),
    )

    b = engine.compute(user_id=maria.user_id, monthly_salary=MONTHLY, period=PERIOD, settings=settings)

    assert b.stored_total == Decimal("450.00")
    assert [line.category for line in b.lines] == [STORED]
    assert b.counted_deduction_ids == [1]


def test_loan_installment_never_exceeds_balance(repos, engine, settings):
    maria = add_person(repos, "Maria Santos")
    repos.loans.create(
        user_id=maria.user_id, principal=Decimal("5000"), monthly_payment_percent=Decimal("10"), term_months=12,
        installment=Decimal("250"), purpose="Emergency", start_date=date(2025, 10, 1), end_date=date(2026, 10, 1),
    )
    repos.loans.apply_payment(1, Decimal("4900"))

    b = engine.compute(user_id=maria.user_id, monthly_salary=MONTHLY, period=PERIOD, settings=settings)

    assert [line.category for line in b.lines] == [LOAN]
    assert b.loan_total == Decimal("100.00")
    assert b.loan_payments == [(1, Decimal("100"))]


def test_only_unpaid_leave_is_deducted(repos, engine, settings):
    maria = add_person(repos, "Maria Santos")
    approved_leave(repos, maria, date(2025, 11, 7), date(2025, 11, 9), LeaveType.UNPAID)
    approved_leave(repos, maria, date(2025, 11, 11), date(2025, 11, 11), LeaveType.SICK)

    b = engine.compute(user_id=maria.user_id, monthly_salary=MONTHLY, period=PERIOD, settings=settings)

    # Friday and Saturday; Sunday the 9th is not a working day
    assert b.unpaid_leave_total == Decimal("1818.18")
    assert [line.category for line in b.lines] == [UNPAID_LEAVE]


def test_reserved_attendance_names():
    assert is_reserved_attendance_name("Late Penalty")
    assert is_reserved_attendance_name("absent deduction")
    assert not is_reserved_attendance_name("PhilHealth")


def test_no_personnel_type_skips_attendance_but_keeps_stored_and_loans(services, repos, settings):
    repos.settings.save(settings)
    uid = repos.users.create_user(
        name="Ana Cruz", email="ana@example.com", password_hash="x", role=Role.PERSONNEL, personnel_type_id=None
    )
    ana = repos.users.get_by_id(uid)
    add_record(repos, ana, date(2025, 11, 5), AttendanceStatus.ABSENT)
    add_record(repos, ana, date(2025, 11, 6), AttendanceStatus.LATE, time_in=datetime(2025, 11, 6, 10, 0))
    uniform = services.deduction_service.create_type(name="Uniform", calculation_type="FIXED", amount="250")
    services.deduction_service.assign(user_id=uid, deduction_type_id=uniform, applied_at=datetime(2025, 11, 3, 9, 0))
    services.loan_service.create_loan(
        user_id=uid, principal="12000", monthly_payment_percent="5", term_months=12, start_date="2025-11-01"
    )

    comp = services.payroll_service.compute(ana, PERIOD)

    assert comp.breakdown.daily_rate == Decimal("0")
    assert comp.breakdown.attendance_total == Decimal("0")
    assert comp.breakdown.stored_total == Decimal("250.00")
    assert comp.breakdown.loan_total == Decimal("300.00")
    assert comp.deductions == Decimal("550.00")
    assert comp.basic_salary == Decimal("0.00")
    assert comp.net_pay == Decimal("0.00")

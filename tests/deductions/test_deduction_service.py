from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from conftest import add_person
from src.payroll_system.payroll_system.common.datetime_utils import Period
from src.payroll_system.payroll_system.core.constants import AUTO_SYNC_NOTE
from src.payroll_system.payroll_system.core.enums import LoanStatus
from src.payroll_system.payroll_system.core.exceptions import NotFoundError, ValidationError

APPLIED = datetime(2025, 11, 1, 0, 0)


def test_sync_mandatory_is_idempotent_and_uses_percentages(services, repos):
    maria = add_person(repos, "Maria Santos", "20000")
    svc = services.deduction_service
    svc.create_type(name="SSS", calculation_type="FIXED", amount="450", is_mandatory=True)
    svc.create_type(name="PhilHealth", calculation_type="PERCENTAGE", percentage_value="2.5", is_mandatory=True)
    svc.create_type(name="Uniform", calculation_type="FIXED", amount="250")

    first = svc.sync_mandatory(applied_at=APPLIED)
    second = svc.sync_mandatory(applied_at=APPLIED)

    assert (first, second) == (2, 0)
    amounts = {d.type_name: d.amount for d in svc.list_deductions(user_id=maria.user_id)}
    assert amounts == {"SSS": Decimal("450.00"), "PhilHealth": Decimal("500.00")}
    assert all(d.notes == AUTO_SYNC_NOTE for d in svc.list_deductions(user_id=maria.user_id))


def test_sync_recreates_after_archive(services, repos):
    add_person(repos, "Maria Santos")
    svc = services.deduction_service
    svc.create_type(name="Pag-IBIG", calculation_type="FIXED", amount="100", is_mandatory=True)
    svc.sync_mandatory(applied_at=APPLIED)

    svc.archive(1, now=datetime(2025, 11, 13, 19, 0))

    assert svc.sync_mandatory(applied_at=datetime(2025, 11, 14, 0, 0)) == 1
    with pytest.raises(NotFoundError):
        svc.archive(1)


def test_type_validation(services):
    svc = services.deduction_service
    svc.create_type(name="SSS", calculation_type="FIXED", amount="450")

    with pytest.raises(ValidationError):
        svc.create_type(name="SSS", calculation_type="FIXED", amount="1")
    with pytest.raises(ValidationError):
        svc.create_type(name="Tax", calculation_type="PERCENTAGE", percentage_value="120")
    with pytest.raises(ValidationError):
        svc.create_type(name="Fee", calculation_type="HOURLY", amount="5")


def test_assign_uses_type_amount_unless_overridden(services, repos):
    maria = add_person(repos, "Maria Santos", "20000")
    svc = services.deduction_service
    type_id = svc.create_type(name="Uniform", calculation_type="FIXED", amount="250")

    default_id = svc.assign(user_id=maria.user_id, deduction_type_id=type_id, applied_at=APPLIED)
    custom_id = svc.assign(user_id=maria.user_id, deduction_type_id=type_id, amount="99.999", applied_at=APPLIED)

    assert repos.deductions.get_by_id(default_id).amount == Decimal("250.00")
    assert repos.deductions.get_by_id(custom_id).amount == Decimal("100.00")

    svc.deactivate_type(type_id)
    with pytest.raises(ValidationError):
        svc.assign(user_id=maria.user_id, deduction_type_id=type_id)


def test_loan_installment_is_per_semi_monthly_period(services, repos):
    maria = add_person(repos, "Maria Santos")

    loan_id = services.loan_service.create_loan(
        user_id=maria.user_id, principal="12000", monthly_payment_percent="5", term_months=12, start_date="2025-11-01"
    )
    loan = repos.loans.get_by_id(loan_id)

    assert loan.installment == Decimal("300.00")
    assert loan.end_date == date(2026, 11, 1)

    paid = services.loan_service.apply_payment(loan_id, "12000")
    assert paid.balance == Decimal("0")
    assert paid.status == LoanStatus.PAID


def test_overload_for_all_personnel(services, repos):
    add_person(repos, "Maria Santos")
    add_person(repos, "Jose Reyes")

    ids = services.overload_service.add(amount="750", all_personnel=True, applied_at=APPLIED)

    assert len(ids) == 2
    with pytest.raises(ValidationError):
        services.overload_service.add(amount="750", user_ids=[])
    with pytest.raises(ValidationError):
        services.overload_service.add(amount="0", all_personnel=True)


def test_update_type_recalculates_live_deductions_only(services, repos):
    maria = add_person(repos, "Maria Santos", "20000")
    jose = add_person(repos, "Jose Reyes", "15000")
    svc = services.deduction_service
    type_id = svc.create_type(name="PhilHealth", calculation_type="FIXED", amount="300")
    archived_id = svc.assign(user_id=maria.user_id, deduction_type_id=type_id, applied_at=APPLIED)
    svc.archive(archived_id, now=datetime(2025, 11, 13, 19, 0))
    live_maria = svc.assign(user_id=maria.user_id, deduction_type_id=type_id, applied_at=APPLIED)
    live_jose = svc.assign(user_id=jose.user_id, deduction_type_id=type_id, applied_at=APPLIED)

    updated = svc.update_type(type_id, calculation_type="PERCENTAGE", percentage_value="2.5")

    assert updated.amount_for(Decimal("20000")) == Decimal("500.00")
    assert repos.deductions.get_by_id(live_maria).amount == Decimal("500.00")
    assert repos.deductions.get_by_id(live_jose).amount == Decimal("375.00")
    assert repos.deductions.get_by_id(archived_id).amount == Decimal("300.00")


def test_update_type_syncs_mandatory_type_into_the_period(services, repos):
    maria = add_person(repos, "Maria Santos")
    svc = services.deduction_service
    type_id = svc.create_type(name="Pag-IBIG", calculation_type="FIXED", amount="100")
    period = Period(date(2025, 11, 1), date(2025, 11, 13))

    svc.update_type(type_id, is_mandatory=True, period=period)
    svc.update_type(type_id, amount="200", period=period)

    [deduction] = svc.list_deductions(user_id=maria.user_id)
    assert deduction.amount == Decimal("200.00")
    assert deduction.applied_at == datetime(2025, 11, 1, 0, 0)
    assert deduction.notes == AUTO_SYNC_NOTE


def test_period_sync_ignores_live_rows_from_an_earlier_period(services, repos):
    maria = add_person(repos, "Maria Santos")
    svc = services.deduction_service
    svc.create_type(name="SSS", calculation_type="FIXED", amount="450", is_mandatory=True)
    november = Period(date(2025, 11, 1), date(2025, 11, 13))
    december = Period(date(2025, 12, 1), date(2025, 12, 15))

    assert svc.sync_mandatory(period=november) == 1
    assert svc.sync_mandatory(period=november) == 0
    assert svc.sync_mandatory(period=december) == 1

    applied = sorted(d.applied_at for d in svc.list_deductions(user_id=maria.user_id))
    assert applied == [datetime(2025, 11, 1, 0, 0), datetime(2025, 12, 1, 0, 0)]

from __future__ import annotations

import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Optional, Sequence

from ..common.datetime_utils import Period, now_local, parse_date_field
from ..common.money import to_money
from ..common.validators import require_decimal, require_int, require_non_empty
from ..core.constants import AUTO_SYNC_NOTE, DEFAULT_TIMEZONE, SEMI_MONTHLY_DIVISOR
from ..core.enums import CalculationType
from ..core.exceptions import NotFoundError, ValidationError
from ..users.repository import UserRepository
from ..users.service import UserService
from .loan_repository import LoanRepository
from .model import Deduction, DeductionType, Loan
from .repository import DeductionRepository, DeductionTypeRepository

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def _parse_calculation_type(value: Any) -> CalculationType:
    try:
        return CalculationType(str(value or CalculationType.FIXED.value).upper())
    except ValueError:
        raise ValidationError("calculation_type must be FIXED or PERCENTAGE")


class DeductionService:
    """Deduction types, per-person deductions and the mandatory sync."""

    def __init__(
        self,
        types: DeductionTypeRepository,
        deductions: DeductionRepository,
        users: UserRepository,
        user_service: UserService,
        *,
        tz_name: str = DEFAULT_TIMEZONE,
    ):
        self._types = types
        self._deductions = deductions
        self._users = users
        self._user_service = user_service
        self._tz_name = tz_name

    def _now(self, now: Optional[datetime]) -> datetime:
        return now or now_local(self._tz_name)

    def list_types(self, *, active_only: bool = False) -> Sequence[DeductionType]:
        return self._types.list_all(active_only=active_only)

    def _validated_amounts(self, calculation_type: CalculationType, amount: Any, percentage_value: Any):
        if calculation_type == CalculationType.PERCENTAGE:
            pct = require_decimal(percentage_value, "percentage_value", allow_zero=False)
            if pct > HUNDRED:
                raise ValidationError("percentage_value must not exceed 100")
            return Decimal("0"), pct
        return to_money(require_decimal(amount, "amount")), None

    def create_type(
        self,
        *,
        name: str,
        description: Optional[str] = None,
        calculation_type: Any = None,
        amount: Any = None,
        percentage_value: Any = None,
        is_mandatory: bool = False,
    ) -> int:
        name = require_non_empty(name, "Name")
        if self._types.get_by_name(name):
            raise ValidationError("Deduction type already exists")
        ctype = _parse_calculation_type(calculation_type)
        fixed, pct = self._validated_amounts(ctype, amount, percentage_value)
        type_id = self._types.create(
            name=name,
            description=(description or "").strip() or None,
            calculation_type=ctype,
            amount=fixed,
            percentage_value=pct,
            is_mandatory=bool(is_mandatory),
        )
        logger.info("Created deduction type %s (%s, mandatory=%s)", name, ctype.value, bool(is_mandatory))
        return type_id

    def get_type(self, deduction_type_id: int) -> DeductionType:
        dtype = self._types.get_by_id(int(deduction_type_id))
        if not dtype:
            raise NotFoundError("Deduction type not found")
        return dtype

    def update_type(self, deduction_type_id: int, *, period: Optional[Period] = None, **fields: Any) -> DeductionType:
        """Partial update.

        An amount change is recomputed onto every live deduction of the type (archived ones and
        payroll snapshots keep what was charged). An active mandatory type is then synced so every
        active personnel has it for `period`.
        """
        current = self.get_type(deduction_type_id)
        ctype = _parse_calculation_type(fields.get("calculation_type", current.calculation_type.value))
        fixed, pct = self._validated_amounts(
            ctype,
            fields.get("amount", current.amount),
            fields.get("percentage_value", current.percentage_value),
        )
        updated = DeductionType(
            deduction_type_id=current.deduction_type_id,
            name=require_non_empty(fields.get("name", current.name), "Name"),
            description=fields.get("description", current.description),
            calculation_type=ctype,
            amount=fixed,
            percentage_value=pct,
            is_mandatory=bool(fields.get("is_mandatory", current.is_mandatory)),
            is_active=bool(fields.get("is_active", current.is_active)),
        )
        self._types.update(updated)

        recalculated = 0
        if (ctype, fixed, pct) != (current.calculation_type, current.amount, current.percentage_value):
            recalculated = self._recalculate_live(updated)
        synced = 0
        if updated.is_mandatory and updated.is_active:
            synced = self.sync_mandatory(period=period, type_ids=[updated.deduction_type_id])
        logger.info(
            "Updated deduction type %s (%s): recalculated=%s synced=%s",
            updated.deduction_type_id,
            updated.name,
            recalculated,
            synced,
        )
        return updated

    def _recalculate_live(self, dtype: DeductionType) -> int:
        count = 0
        for d in self._deductions.list_deductions(archived=False):
            if d.deduction_type_id != dtype.deduction_type_id:
                continue
            user = self._users.get_by_id(d.user_id)
            if not user:
                continue
            amount = dtype.amount_for(self._user_service.monthly_salary(user))
            if amount != d.amount and self._deductions.update_amount(d.deduction_id, amount):
                count += 1
        return count

    def deactivate_type(self, deduction_type_id: int) -> None:
        current = self.get_type(deduction_type_id)
        self.update_type(current.deduction_type_id, is_active=False)

    def assign(
        self,
        *,
        user_id: int,
        deduction_type_id: int,
        amount: Any = None,
        notes: Optional[str] = None,
        applied_at: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """Apply a deduction type to one person. `amount` overrides the type's computed amount."""
        user = self._users.get_by_id(require_int(user_id, "user_id"))
        if not user or not user.is_active:
            raise NotFoundError("User not found or inactive")
        dtype = self.get_type(require_int(deduction_type_id, "deduction_type_id"))
        if not dtype.is_active:
            raise ValidationError("Deduction type is inactive")

        if amount is None or str(amount).strip() == "":
            value = dtype.amount_for(self._user_service.monthly_salary(user))
        else:
            value = to_money(require_decimal(amount, "amount"))

        deduction_id = self._deductions.create(
            user_id=user.user_id,
            deduction_type_id=dtype.deduction_type_id,
            amount=value,
            notes=(notes or "").strip() or None,
            applied_at=applied_at or self._now(now),
        )
        logger.info("Assigned deduction %s (%s, %s) to user %s", deduction_id, dtype.name, value, user.user_id)
        return deduction_id

    def archive(self, deduction_id: int, *, now: Optional[datetime] = None) -> None:
        if not self._deductions.archive(int(deduction_id), archived_at=self._now(now)):
            raise NotFoundError("Deduction not found or already archived")
        logger.info("Archived deduction %s", deduction_id)

    def list_deductions(self, *, archived: bool = False, user_id: Optional[int] = None) -> Sequence[Deduction]:
        return self._deductions.list_deductions(archived=archived, user_id=user_id)

    def sync_mandatory(
        self,
        *,
        period: Optional[Period] = None,
        applied_at: Optional[datetime] = None,
        type_ids: Optional[Sequence[int]] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """Give every active personnel one live deduction per active mandatory type.

        With a `period`, a person is covered only by a live deduction applied inside it, and new
        rows are applied at the period start so the engine counts them. Without one, any live
        deduction of the type counts. Idempotent either way.
        """
        if applied_at is None:
            applied_at = datetime.combine(period.start, time.min) if period else self._now(now)
        mandatory = [
            t
            for t in self._types.list_all(active_only=True)
            if t.is_mandatory and (type_ids is None or t.deduction_type_id in type_ids)
        ]
        if not mandatory:
            return 0

        created = 0
        for user in self._users.list_active_personnel():
            monthly = self._user_service.monthly_salary(user)
            if period is not None:
                covered = {
                    d.deduction_type_id
                    for d in self._deductions.list_live_for_user_between(
                        user.user_id,
                        datetime.combine(period.start, time.min),
                        datetime.combine(period.end, time.max),
                    )
                }
            for dtype in mandatory:
                if period is not None:
                    if dtype.deduction_type_id in covered:
                        continue
                elif self._deductions.has_live_of_type(user.user_id, dtype.deduction_type_id):
                    continue
                self._deductions.create(
                    user_id=user.user_id,
                    deduction_type_id=dtype.deduction_type_id,
                    amount=dtype.amount_for(monthly),
                    notes=AUTO_SYNC_NOTE,
                    applied_at=applied_at,
                )
                created += 1

        if created:
            logger.info("Mandatory deduction sync created %s deduction(s) applied at %s", created, applied_at)
        return created


class LoanService:
    def __init__(self, loans: LoanRepository, users: UserRepository, *, tz_name: str = DEFAULT_TIMEZONE):
        self._loans = loans
        self._users = users
        self._tz_name = tz_name

    def create_loan(
        self,
        *,
        user_id: Any,
        principal: Any,
        monthly_payment_percent: Any,
        term_months: Any,
        start_date: Any,
        end_date: Any = None,
        purpose: Optional[str] = None,
    ) -> int:
        user = self._users.get_by_id(require_int(user_id, "user_id"))
        if not user or not user.is_active:
            raise NotFoundError("User not found or inactive")

        amount = to_money(require_decimal(principal, "principal", allow_zero=False))
        percent = require_decimal(monthly_payment_percent, "monthly_payment_percent", allow_zero=False)
        if percent > HUNDRED:
            raise ValidationError("monthly_payment_percent must not exceed 100")
        term = require_int(term_months, "term_months")
        if term <= 0:
            raise ValidationError("term_months must be greater than 0")

        start = parse_date_field(start_date, "start_date")
        end = parse_date_field(end_date, "end_date") if end_date else _add_months(start, term)
        if end < start:
            raise ValidationError("end_date must not be before start_date")

        # Installment is charged per semi-monthly period.
        installment = to_money(amount * percent / HUNDRED / SEMI_MONTHLY_DIVISOR)
        loan_id = self._loans.create(
            user_id=user.user_id,
            principal=amount,
            monthly_payment_percent=percent,
            term_months=term,
            installment=installment,
            purpose=(purpose or "").strip() or None,
            start_date=start,
            end_date=end,
        )
        logger.info("Created loan %s for user %s: principal=%s installment=%s", loan_id, user.user_id, amount, installment)
        return loan_id

    def list_loans(self, *, archived: bool = False, user_id: Optional[int] = None) -> Sequence[Loan]:
        return self._loans.list_loans(archived=archived, user_id=user_id)

    def apply_payment(self, loan_id: int, amount: Any) -> Loan:
        loan = self._loans.get_by_id(int(loan_id))
        if not loan or loan.archived_at is not None:
            raise NotFoundError("Loan not found")
        value = to_money(require_decimal(amount, "amount", allow_zero=False))
        self._loans.apply_payment(loan.loan_id, value)
        logger.info("Applied payment %s to loan %s", value, loan.loan_id)
        return self._loans.get_by_id(loan.loan_id)

    def archive(self, loan_id: int, *, now: Optional[datetime] = None) -> None:
        if not self._loans.archive(int(loan_id), archived_at=now or now_local(self._tz_name)):
            raise NotFoundError("Loan not found or already archived")
        logger.info("Archived loan %s", loan_id)


def _add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, 28 if month == 2 else 30 if month in (4, 6, 9, 11) else 31)
    return date(year, month, day)

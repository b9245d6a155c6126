from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..common.money import to_money
from ..core.enums import CalculationType, LoanStatus


@dataclass(frozen=True)
class DeductionType:
    deduction_type_id: int
    name: str
    description: Optional[str]
    calculation_type: CalculationType
    amount: Decimal
    percentage_value: Optional[Decimal]
    is_mandatory: bool
    is_active: bool = True

    def amount_for(self, monthly_salary: Decimal) -> Decimal:
        """FIXED amount, or a percentage of the monthly basic salary."""
        if self.calculation_type == CalculationType.PERCENTAGE:
            return to_money(Decimal(monthly_salary) * (self.percentage_value or Decimal("0")) / Decimal("100"))
        return to_money(self.amount)

    def to_dict(self) -> dict:
        return {
            "id": self.deduction_type_id,
            "name": self.name,
            "description": self.description,
            "calculationType": self.calculation_type.value,
            "amount": float(self.amount),
            "percentageValue": float(self.percentage_value) if self.percentage_value is not None else None,
            "isMandatory": self.is_mandatory,
            "isActive": self.is_active,
        }


@dataclass(frozen=True)
class Deduction:
    """A DeductionType applied to a person; `applied_at` decides which period it counts in."""

    deduction_id: int
    user_id: int
    deduction_type_id: int
    type_name: str
    amount: Decimal
    notes: Optional[str]
    applied_at: datetime
    archived_at: Optional[datetime] = None
    is_mandatory: bool = False

    @property
    def is_live(self) -> bool:
        return self.archived_at is None

    def to_dict(self) -> dict:
        return {
            "id": self.deduction_id,
            "userId": self.user_id,
            "deductionTypeId": self.deduction_type_id,
            "type": self.type_name,
            "amount": float(self.amount),
            "notes": self.notes,
            "isMandatory": self.is_mandatory,
            "appliedAt": self.applied_at.isoformat(),
            "archivedAt": self.archived_at.isoformat() if self.archived_at else None,
        }


@dataclass(frozen=True)
class Loan:
    loan_id: int
    user_id: int
    principal: Decimal
    balance: Decimal
    monthly_payment_percent: Decimal
    term_months: int
    installment: Decimal
    status: LoanStatus
    purpose: Optional[str]
    start_date: date
    end_date: date
    archived_at: Optional[datetime] = None

    def due_amount(self) -> Decimal:
        return min(self.installment, self.balance)

    def to_dict(self) -> dict:
        return {
            "id": self.loan_id,
            "userId": self.user_id,
            "principal": float(self.principal),
            "balance": float(self.balance),
            "monthlyPaymentPercent": float(self.monthly_payment_percent),
            "termMonths": self.term_months,
            "installment": float(self.installment),
            "status": self.status.value,
            "purpose": self.purpose,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "archivedAt": self.archived_at.isoformat() if self.archived_at else None,
        }

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from .model import Loan


class LoanRepository(Protocol):
    def get_by_id(self, loan_id: int) -> Optional[Loan]:
        raise NotImplementedError

    def create(
        self,
        *,
        user_id: int,
        principal: Decimal,
        monthly_payment_percent: Decimal,
        term_months: int,
        installment: Decimal,
        purpose: Optional[str],
        start_date: date,
        end_date: date,
    ) -> int:
        raise NotImplementedError

    def list_loans(self, *, archived: bool = False, user_id: Optional[int] = None) -> Sequence[Loan]:
        raise NotImplementedError

    def list_due_for_user(self, user_id: int, period_end: date) -> Sequence[Loan]:
        """ACTIVE, non-archived loans with balance > 0 that started on or before `period_end`."""

        raise NotImplementedError

    def apply_payment(self, loan_id: int, amount: Decimal) -> bool:
        """Reduce the balance (never below 0); the loan becomes PAID at 0."""

        raise NotImplementedError

    def archive(self, loan_id: int, *, archived_at: datetime) -> bool:
        raise NotImplementedError

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from ...common.datetime_utils import Period


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll rates)."""

    @abstractmethod
    def working_days(self, period: Period) -> int:
        raise NotImplementedError

    @abstractmethod
    def period_salary(self, monthly_salary: Decimal) -> Decimal:
        raise NotImplementedError

    @abstractmethod
    def daily_rate(self, monthly_salary: Decimal, period: Period) -> Decimal:
        raise NotImplementedError

    @abstractmethod
    def late_deduction(self, monthly_salary: Decimal, period: Period, seconds_late: int) -> Decimal:
        raise NotImplementedError

    @abstractmethod
    def partial_deduction(self, monthly_salary: Decimal, period: Period, worked_seconds: int) -> Decimal:
        raise NotImplementedError

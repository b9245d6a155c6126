from __future__ import annotations

from decimal import Decimal

from ...common.datetime_utils import Period, working_days
from ...core.constants import MAX_LATE_DEDUCTION_RATIO, SEMI_MONTHLY_DIVISOR, STANDARD_WORK_HOURS
from .base import PayrollCalculator

ZERO = Decimal("0")
SECONDS_PER_HOUR = 3600


class StandardPayrollCalculator(PayrollCalculator):
    """Semi-monthly rule: the period pays half the monthly salary, spread over its non-Sunday days.

    Rates are returned at full precision; callers quantize totals.
    """

    def working_days(self, period: Period) -> int:
        return len(working_days(period.start, period.end))

    def period_salary(self, monthly_salary: Decimal) -> Decimal:
        return Decimal(monthly_salary or 0) / SEMI_MONTHLY_DIVISOR

    def daily_rate(self, monthly_salary: Decimal, period: Period) -> Decimal:
        days = self.working_days(period)
        if not monthly_salary or days <= 0:
            return ZERO
        return self.period_salary(monthly_salary) / days

    def hourly_rate(self, monthly_salary: Decimal, period: Period) -> Decimal:
        return self.daily_rate(monthly_salary, period) / STANDARD_WORK_HOURS

    def late_deduction(self, monthly_salary: Decimal, period: Period, seconds_late: int) -> Decimal:
        if seconds_late <= 0:
            return ZERO
        daily = self.daily_rate(monthly_salary, period)
        per_second = daily / (STANDARD_WORK_HOURS * SECONDS_PER_HOUR)
        return min(per_second * seconds_late, daily * Decimal(MAX_LATE_DEDUCTION_RATIO))

    def partial_deduction(self, monthly_salary: Decimal, period: Period, worked_seconds: int) -> Decimal:
        short_seconds = STANDARD_WORK_HOURS * SECONDS_PER_HOUR - max(int(worked_seconds), 0)
        if short_seconds <= 0:
            return ZERO
        hourly = self.hourly_rate(monthly_salary, period)
        return min(hourly * Decimal(short_seconds) / SECONDS_PER_HOUR, self.daily_rate(monthly_salary, period))

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..common.datetime_utils import Period
from ..core.enums import PayrollStatus
from .model import ArchivedPeriodSummary, PayrollEntry, ReleaseInstruction


class PayrollRepository(Protocol):
    def get_by_id(self, entry_id: int) -> Optional[PayrollEntry]:
        raise NotImplementedError

    def list_for_period(self, period: Period, *, live_only: bool = True) -> Sequence[PayrollEntry]:
        raise NotImplementedError

    def list_for_user(self, user_id: int, *, statuses: Sequence[PayrollStatus]) -> Sequence[PayrollEntry]:
        raise NotImplementedError

    def create(
        self,
        *,
        user_id: int,
        period: Period,
        basic_salary: Decimal,
        overtime: Decimal,
        deductions: Decimal,
        net_pay: Decimal,
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def update_pending_totals(
        self, entry_id: int, *, basic_salary: Decimal, overtime: Decimal, deductions: Decimal, net_pay: Decimal
    ) -> bool:
        raise NotImplementedError

    def release(self, instruction: ReleaseInstruction) -> bool:
        """PENDING -> RELEASED with final totals and snapshot; archives the counted deductions
        and applies loan installments in the same transaction."""

        raise NotImplementedError

    def release_period(self, instructions: Sequence[ReleaseInstruction], *, next_period: Period) -> int:
        """Release every instruction and move the settings to `next_period` in one transaction."""

        raise NotImplementedError

    def archive(self, entry_id: int, *, archived_at: datetime, snapshot_if_missing: Optional[str]) -> bool:
        """RELEASED -> ARCHIVED. An existing snapshot is never overwritten."""

        raise NotImplementedError

    def archive_released(self, *, archived_at: datetime, ended_before: Optional[date] = None) -> int:
        raise NotImplementedError

    def delete_pending(self, entry_id: int) -> bool:
        raise NotImplementedError

    def reset(self, *, archived_at: datetime, next_period: Period) -> dict:
        """One transaction: archive RELEASED entries, delete PENDING entries with an inverted period, set the next period."""

        raise NotImplementedError

    def list_archived_periods(self) -> Sequence[ArchivedPeriodSummary]:
        raise NotImplementedError

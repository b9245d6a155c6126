from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveStatus, LeaveType
from .model import LeaveRequest


class LeaveRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        days: int,
        is_paid: bool,
        reason: str,
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_requests(
        self, *, user_id: Optional[int] = None, status: Optional[LeaveStatus] = None, limit: int = 200
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def decide(
        self,
        *,
        leave_id: int,
        status: LeaveStatus,
        decided_by: int,
        decided_at: datetime,
        admin_note: Optional[str],
    ) -> bool:
        """Only PENDING requests can be decided; returns False otherwise."""

        raise NotImplementedError

    def find_approved_covering(self, user_id: int, day: date) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_approved_overlapping(self, user_id: int, start: date, end: date) -> Sequence[LeaveRequest]:
        raise NotImplementedError

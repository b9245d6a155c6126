from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveStatus, LeaveType


@dataclass(frozen=True)
class LeaveRequest:
    leave_id: int
    user_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    days: int
    is_paid: bool
    reason: str
    status: LeaveStatus
    created_at: datetime
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    admin_note: Optional[str] = None

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def to_dict(self) -> dict:
        return {
            "id": self.leave_id,
            "userId": self.user_id,
            "leaveType": self.leave_type.value,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "days": self.days,
            "isPaid": self.is_paid,
            "reason": self.reason,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "decidedBy": self.decided_by,
            "decidedAt": self.decided_at.isoformat() if self.decided_at else None,
            "adminNote": self.admin_note,
        }

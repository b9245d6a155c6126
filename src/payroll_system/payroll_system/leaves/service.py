from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_TIMEZONE
from ..core.enums import LeaveStatus, LeaveType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import LeaveRequest
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


class LeaveService:
    def __init__(self, leaves: LeaveRepository, attendance: AttendanceRepository, *, tz_name: str = DEFAULT_TIMEZONE):
        self._leaves = leaves
        self._attendance = attendance
        self._tz_name = tz_name

    def create_leave(
        self,
        *,
        current_role: Role,
        user_id: int,
        leave_type: str,
        start_date: date,
        end_date: date,
        reason: str,
        now: Optional[datetime] = None,
    ) -> int:
        if current_role != Role.PERSONNEL:
            raise AuthorizationError("Only personnel can file leave requests")

        try:
            ltype = LeaveType(str(leave_type or "").upper())
        except ValueError:
            raise ValidationError("Leave type must be ANNUAL, SICK or UNPAID")

        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date")
        reason = require_non_empty(reason, "Reason")

        for existing in self._leaves.list_requests(user_id=int(user_id)):
            if existing.status == LeaveStatus.DENIED:
                continue
            if existing.start_date <= end_date and existing.end_date >= start_date:
                raise ValidationError("Leave request overlaps an existing request")

        days = (end_date - start_date).days + 1
        leave_id = self._leaves.create(
            user_id=int(user_id),
            leave_type=ltype,
            start_date=start_date,
            end_date=end_date,
            days=days,
            is_paid=ltype != LeaveType.UNPAID,
            reason=reason,
            created_at=now or now_local(self._tz_name),
        )
        logger.info("Leave request %s filed by user %s (%s, %s day(s))", leave_id, user_id, ltype.value, days)
        return leave_id

    def _decide(
        self,
        *,
        current_role: Role,
        admin_user_id: int,
        leave_id: int,
        status: LeaveStatus,
        admin_note: str,
        now: Optional[datetime],
    ) -> LeaveRequest:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can decide leave requests")

        req = self._leaves.get_by_id(int(leave_id))
        if not req:
            raise NotFoundError("Leave request not found")
        if req.status != LeaveStatus.PENDING:
            raise ValidationError("Leave request has already been decided")

        decided = self._leaves.decide(
            leave_id=req.leave_id,
            status=status,
            decided_by=int(admin_user_id),
            decided_at=now or now_local(self._tz_name),
            admin_note=(admin_note or "").strip() or None,
        )
        if not decided:
            raise ValidationError("Leave request has already been decided")
        logger.info("Leave request %s %s by admin %s", req.leave_id, status.value, admin_user_id)
        return req

    def approve(
        self, *, current_role: Role, admin_user_id: int, leave_id: int, admin_note: str = "", now: Optional[datetime] = None
    ) -> None:
        req = self._decide(
            current_role=current_role,
            admin_user_id=admin_user_id,
            leave_id=leave_id,
            status=LeaveStatus.APPROVED,
            admin_note=admin_note,
            now=now,
        )
        self._attendance.mark_on_leave(user_id=req.user_id, start=req.start_date, end=req.end_date)

    def deny(
        self, *, current_role: Role, admin_user_id: int, leave_id: int, admin_note: str = "", now: Optional[datetime] = None
    ) -> None:
        self._decide(
            current_role=current_role,
            admin_user_id=admin_user_id,
            leave_id=leave_id,
            status=LeaveStatus.DENIED,
            admin_note=admin_note,
            now=now,
        )

    def list_my_requests(self, *, user_id: int) -> Sequence[LeaveRequest]:
        return self._leaves.list_requests(user_id=int(user_id), limit=200)

    def list_admin(self, *, status: Optional[LeaveStatus] = None) -> Sequence[LeaveRequest]:
        return self._leaves.list_requests(status=status, limit=500)

    def approved_leave_on(self, user_id: int, day: date) -> Optional[LeaveRequest]:
        return self._leaves.find_approved_covering(int(user_id), day)

from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_date_field
from ..common.http import (
    admin_required,
    current_role,
    current_user_id,
    json_body,
    json_endpoint,
    login_required,
    ok,
    personnel_required,
)
from ..container import Container
from ..core.enums import LeaveStatus
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/leave-requests", methods=["GET"], endpoint="my_leave_requests")
    @login_required
    @json_endpoint
    def my_leave_requests():
        leaves = container.leave_service.list_my_requests(user_id=current_user_id())
        return ok({"leaveRequests": [lr.to_dict() for lr in leaves]})

    @app.route("/api/leave-requests", methods=["POST"], endpoint="new_leave_request")
    @personnel_required
    @json_endpoint
    def new_leave_request():
        data = json_body()
        leave_id = container.leave_service.create_leave(
            current_role=current_role(),
            user_id=current_user_id(),
            leave_type=data.get("leaveType", ""),
            start_date=parse_date_field(data.get("startDate"), "startDate"),
            end_date=parse_date_field(data.get("endDate"), "endDate"),
            reason=data.get("reason", ""),
        )
        return ok({"id": leave_id}, 201)

    @app.route("/api/admin/leave-requests", methods=["GET"], endpoint="admin_leave_requests")
    @admin_required
    @json_endpoint
    def admin_leave_requests():
        status_s = request.args.get("status")
        try:
            status = LeaveStatus(status_s.upper()) if status_s else None
        except ValueError:
            raise ValidationError("Invalid status")
        leaves = container.leave_service.list_admin(status=status)
        return ok({"leaveRequests": [lr.to_dict() for lr in leaves]})

    @app.route("/api/admin/leave-requests/<int:leave_id>", methods=["PATCH"], endpoint="decide_leave_request")
    @admin_required
    @json_endpoint
    def decide_leave_request(leave_id: int):
        data = json_body()
        action = str(data.get("status") or data.get("action") or "").upper()
        kwargs = dict(
            current_role=current_role(),
            admin_user_id=current_user_id(),
            leave_id=leave_id,
            admin_note=data.get("adminNote", ""),
        )
        if action in {"APPROVED", "APPROVE"}:
            container.leave_service.approve(**kwargs)
        elif action in {"DENIED", "DENY"}:
            container.leave_service.deny(**kwargs)
        else:
            raise ValidationError("status must be APPROVED or DENIED")
        return ok()

from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_date_field
from ..common.http import (
    admin_required,
    current_user_id,
    json_body,
    json_endpoint,
    login_required,
    ok,
    personnel_required,
)
from ..common.validators import require_int
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/punch", methods=["POST"], endpoint="attendance_punch")
    @personnel_required
    @json_endpoint
    def attendance_punch():
        result = container.attendance_service.punch(current_user_id())
        message = "Time-in recorded" if result.action == "TIME_IN" else "Time-out recorded"
        return ok({"message": message, **result.to_dict()})

    @app.route("/api/attendance/status", methods=["GET"], endpoint="attendance_status")
    @login_required
    @json_endpoint
    def attendance_status():
        record = container.attendance_service.get_today_record(current_user_id())
        settings = container.settings_service.get()
        return ok({"record": record.to_dict() if record else None, "settings": settings.to_dict()})

    @app.route("/api/personnel/attendance", methods=["GET"], endpoint="personnel_attendance")
    @login_required
    @json_endpoint
    def personnel_attendance():
        limit = require_int(request.args.get("limit", DEFAULT_HISTORY_LIMIT), "limit")
        records = container.attendance_service.get_history(current_user_id(), limit=max(1, min(limit, 366)))
        return ok({"records": [r.to_dict() for r in records]})

    @app.route("/api/admin/attendance", methods=["GET"], endpoint="admin_attendance")
    @admin_required
    @json_endpoint
    def admin_attendance():
        date_s = request.args.get("date")
        day = parse_date_field(date_s, "date") if date_s else container.attendance_service.now().date()
        rows = container.attendance_service.list_day(day)
        return ok({"date": day.isoformat(), "rows": [r.to_dict() for r in rows]})

    @app.route("/api/admin/attendance/auto-mark-absent", methods=["POST"], endpoint="admin_auto_mark_absent")
    @admin_required
    @json_endpoint
    def admin_auto_mark_absent():
        data = json_body()
        target = parse_date_field(data["date"], "date") if data.get("date") else None
        result = container.attendance_service.auto_mark_absent(target_date=target)
        return ok(result.to_dict())

    @app.route("/api/admin/attendance/<int:attendance_id>/status", methods=["PATCH"], endpoint="admin_attendance_status")
    @admin_required
    @json_endpoint
    def admin_attendance_status(attendance_id: int):
        data = json_body()
        record = container.attendance_service.override_status(
            attendance_id, status=data.get("status", ""), note=data.get("note")
        )
        return ok({"record": record.to_dict()})

from __future__ import annotations

from flask import Flask

from ..common.http import admin_required, json_body, json_endpoint, login_required, ok
from ..container import Container

# JSON key -> service field
_FIELD_MAP = {
    "periodStart": "period_start",
    "periodEnd": "period_end",
    "timeInStart": "time_in_start",
    "timeInEnd": "time_in_end",
    "noTimeInCutoff": "no_time_in_cutoff",
    "timeOutStart": "time_out_start",
    "timeOutEnd": "time_out_end",
    "noTimeOutCutoff": "no_time_out_cutoff",
    "autoMarkAbsent": "auto_mark_absent",
}


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/settings", methods=["GET"], endpoint="attendance_settings")
    @login_required
    @json_endpoint
    def attendance_settings():
        return ok({"settings": container.settings_service.get().to_dict()})

    @app.route("/api/admin/attendance-settings", methods=["GET"], endpoint="admin_attendance_settings")
    @admin_required
    @json_endpoint
    def admin_attendance_settings():
        return ok({"settings": container.settings_service.get().to_dict()})

    @app.route("/api/admin/attendance-settings", methods=["POST", "PUT"], endpoint="admin_update_attendance_settings")
    @admin_required
    @json_endpoint
    def admin_update_attendance_settings():
        data = json_body()
        fields = {_FIELD_MAP.get(k, k): v for k, v in data.items()}
        updated = container.settings_service.update(**fields)
        return ok({"settings": updated.to_dict()})

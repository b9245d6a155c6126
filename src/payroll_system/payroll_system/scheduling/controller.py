from __future__ import annotations

from flask import Flask

from ..common.http import cron_or_admin_required, json_endpoint, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    """Endpoints hit by the periodic trigger (`scripts/cron_tick.py`). Safe to call repeatedly."""

    @app.route("/api/cron/auto-mark-absent", methods=["POST"], endpoint="cron_auto_mark_absent")
    @cron_or_admin_required
    @json_endpoint
    def cron_auto_mark_absent():
        result = container.attendance_service.auto_mark_absent()
        return ok(result.to_dict())

    @app.route("/api/cron/auto-release-payroll", methods=["POST"], endpoint="cron_auto_release_payroll")
    @cron_or_admin_required
    @json_endpoint
    def cron_auto_release_payroll():
        result = container.payroll_service.auto_release()
        return ok(result.to_dict())

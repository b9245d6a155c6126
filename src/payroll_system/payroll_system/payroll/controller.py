from __future__ import annotations

from flask import Flask, request, send_file

from ..common.http import (
    admin_required,
    current_role,
    current_user_id,
    fail,
    json_body,
    json_endpoint,
    login_required,
    ok,
    personnel_required,
)
from ..container import Container
from .report import XLSX_MIMETYPE
from .service import period_or_current


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/payroll/summary", methods=["GET"], endpoint="admin_payroll_summary")
    @admin_required
    @json_endpoint
    def admin_payroll_summary():
        summary = container.payroll_service.preview()
        return ok(summary.to_dict())

    @app.route("/api/admin/payroll/generate", methods=["POST"], endpoint="admin_payroll_generate")
    @admin_required
    @json_endpoint
    def admin_payroll_generate():
        data = json_body()
        result = container.payroll_service.generate(regenerate=bool(data.get("regenerate")))
        return ok({"message": "Payroll generated", **result.to_dict()}, 201)

    @app.route("/api/admin/payroll/release", methods=["POST"], endpoint="admin_payroll_release")
    @admin_required
    @json_endpoint
    def admin_payroll_release():
        data = json_body()
        released = container.payroll_service.release(data.get("entryIds") or [])
        return ok({"released": released})

    @app.route("/api/admin/payroll/release-period", methods=["POST"], endpoint="admin_payroll_release_period")
    @admin_required
    @json_endpoint
    def admin_payroll_release_period():
        data = json_body()
        result = container.payroll_service.release_period(data.get("nextPeriodStart"), data.get("nextPeriodEnd"))
        return ok(result)

    @app.route("/api/admin/payroll/<int:entry_id>/archive", methods=["POST"], endpoint="admin_payroll_archive_entry")
    @admin_required
    @json_endpoint
    def admin_payroll_archive_entry(entry_id: int):
        container.payroll_service.archive_entry(entry_id)
        return ok({"message": "Payroll entry archived"})

    @app.route("/api/admin/payroll/archive", methods=["POST"], endpoint="admin_payroll_archive_released")
    @admin_required
    @json_endpoint
    def admin_payroll_archive_released():
        archived = container.payroll_service.archive_released()
        return ok({"archived": archived})

    @app.route("/api/admin/payroll/<int:entry_id>", methods=["DELETE"], endpoint="admin_payroll_delete")
    @admin_required
    @json_endpoint
    def admin_payroll_delete(entry_id: int):
        container.payroll_service.delete_pending(entry_id)
        return ok({"message": "Pending payroll entry deleted"})

    @app.route("/api/admin/payroll/reset", methods=["POST"], endpoint="admin_payroll_reset")
    @admin_required
    @json_endpoint
    def admin_payroll_reset():
        data = json_body()
        result = container.payroll_service.reset(next_start=data.get("nextPeriodStart"))
        return ok(result)

    @app.route("/api/admin/payroll/archived", methods=["GET"], endpoint="admin_payroll_archived")
    @admin_required
    @json_endpoint
    def admin_payroll_archived():
        periods = container.payroll_service.archived_periods()
        return ok({"periods": [p.to_dict() for p in periods]})

    @app.route("/api/admin/payroll/export", methods=["GET"], endpoint="admin_payroll_export")
    @admin_required
    @json_endpoint
    def admin_payroll_export():
        fmt = (request.args.get("format") or "xlsx").lower()
        if fmt not in {"xlsx", "csv"}:
            return fail("format must be xlsx or csv", 400)

        period = period_or_current(container.settings_service, request.args.get("start"), request.args.get("end"))
        reports = container.payroll_report_service
        data = reports.build_payroll_report(period)

        if fmt == "csv":
            return app.response_class(
                reports.to_csv(data),
                mimetype="text/csv",
                headers={"Content-Disposition": f"attachment; filename={data.filename('csv')}"},
            )
        return send_file(
            reports.to_xlsx(data),
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name=data.filename("xlsx"),
        )

    @app.route("/api/personnel/payroll", methods=["GET"], endpoint="personnel_payroll")
    @personnel_required
    @json_endpoint
    def personnel_payroll():
        entries = container.payroll_service.personnel_entries(current_user_id())
        return ok({"entries": [e.to_dict() for e in entries]})

    @app.route("/api/personnel/payroll/<int:entry_id>/breakdown", methods=["GET"], endpoint="payroll_breakdown")
    @login_required
    @json_endpoint
    def payroll_breakdown(entry_id: int):
        result = container.payroll_service.breakdown(
            entry_id, viewer_id=current_user_id(), viewer_role=current_role()
        )
        return ok(result)

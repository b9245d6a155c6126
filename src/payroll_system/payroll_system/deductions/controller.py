from __future__ import annotations

from flask import Flask, request

from ..common.http import admin_required, current_user_id, json_body, json_endpoint, login_required, ok
from ..container import Container

# JSON key -> service field
_TYPE_FIELDS = {
    "name": "name",
    "description": "description",
    "calculationType": "calculation_type",
    "amount": "amount",
    "percentageValue": "percentage_value",
    "isMandatory": "is_mandatory",
    "isActive": "is_active",
}


def _flag(name: str) -> bool:
    return request.args.get(name, "").lower() in {"1", "true", "yes"}


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/deduction-types", methods=["GET"], endpoint="admin_deduction_types")
    @admin_required
    @json_endpoint
    def admin_deduction_types():
        types = container.deduction_service.list_types(active_only=_flag("activeOnly"))
        return ok({"deductionTypes": [t.to_dict() for t in types]})

    @app.route("/api/admin/deduction-types", methods=["POST"], endpoint="admin_create_deduction_type")
    @admin_required
    @json_endpoint
    def admin_create_deduction_type():
        data = json_body()
        fields = {_TYPE_FIELDS[k]: v for k, v in data.items() if k in _TYPE_FIELDS and k != "isActive"}
        type_id = container.deduction_service.create_type(**fields)
        return ok({"id": type_id}, 201)

    @app.route("/api/admin/deduction-types/<int:type_id>", methods=["PATCH"], endpoint="admin_update_deduction_type")
    @admin_required
    @json_endpoint
    def admin_update_deduction_type(type_id: int):
        data = json_body()
        fields = {_TYPE_FIELDS[k]: v for k, v in data.items() if k in _TYPE_FIELDS}
        updated = container.deduction_service.update_type(
            type_id, period=container.settings_service.get().period, **fields
        )
        return ok({"deductionType": updated.to_dict()})

    @app.route(
        "/api/admin/deduction-types/<int:type_id>/deactivate",
        methods=["POST"],
        endpoint="admin_deactivate_deduction_type",
    )
    @admin_required
    @json_endpoint
    def admin_deactivate_deduction_type(type_id: int):
        container.deduction_service.deactivate_type(type_id)
        return ok()

    @app.route("/api/admin/deductions", methods=["GET"], endpoint="admin_deductions")
    @admin_required
    @json_endpoint
    def admin_deductions():
        items = container.deduction_service.list_deductions(
            archived=_flag("archived"), user_id=request.args.get("userId", type=int)
        )
        return ok({"deductions": [d.to_dict() for d in items]})

    @app.route("/api/admin/deductions", methods=["POST"], endpoint="admin_assign_deduction")
    @admin_required
    @json_endpoint
    def admin_assign_deduction():
        data = json_body()
        deduction_id = container.deduction_service.assign(
            user_id=data.get("userId"),
            deduction_type_id=data.get("deductionTypeId"),
            amount=data.get("amount"),
            notes=data.get("notes"),
        )
        return ok({"id": deduction_id}, 201)

    @app.route("/api/admin/deductions/<int:deduction_id>/archive", methods=["POST"], endpoint="admin_archive_deduction")
    @admin_required
    @json_endpoint
    def admin_archive_deduction(deduction_id: int):
        container.deduction_service.archive(deduction_id)
        return ok()

    @app.route("/api/admin/deductions/sync-mandatory", methods=["POST"], endpoint="admin_sync_mandatory")
    @admin_required
    @json_endpoint
    def admin_sync_mandatory():
        created = container.deduction_service.sync_mandatory(period=container.settings_service.get().period)
        return ok({"created": created})

    @app.route("/api/personnel/deductions", methods=["GET"], endpoint="personnel_deductions")
    @login_required
    @json_endpoint
    def personnel_deductions():
        items = container.deduction_service.list_deductions(user_id=current_user_id())
        loans = container.loan_service.list_loans(user_id=current_user_id())
        return ok({"deductions": [d.to_dict() for d in items], "loans": [ln.to_dict() for ln in loans]})

    @app.route("/api/admin/loans", methods=["GET"], endpoint="admin_loans")
    @admin_required
    @json_endpoint
    def admin_loans():
        loans = container.loan_service.list_loans(archived=_flag("archived"), user_id=request.args.get("userId", type=int))
        return ok({"loans": [ln.to_dict() for ln in loans]})

    @app.route("/api/admin/loans", methods=["POST"], endpoint="admin_create_loan")
    @admin_required
    @json_endpoint
    def admin_create_loan():
        data = json_body()
        loan_id = container.loan_service.create_loan(
            user_id=data.get("userId"),
            principal=data.get("principal", data.get("amount")),
            monthly_payment_percent=data.get("monthlyPaymentPercent"),
            term_months=data.get("termMonths"),
            start_date=data.get("startDate"),
            end_date=data.get("endDate"),
            purpose=data.get("purpose"),
        )
        return ok({"id": loan_id}, 201)

    @app.route("/api/admin/loans/<int:loan_id>/payments", methods=["POST"], endpoint="admin_loan_payment")
    @admin_required
    @json_endpoint
    def admin_loan_payment(loan_id: int):
        loan = container.loan_service.apply_payment(loan_id, json_body().get("amount"))
        return ok({"loan": loan.to_dict()})

    @app.route("/api/admin/loans/<int:loan_id>/archive", methods=["POST"], endpoint="admin_archive_loan")
    @admin_required
    @json_endpoint
    def admin_archive_loan(loan_id: int):
        container.loan_service.archive(loan_id)
        return ok()

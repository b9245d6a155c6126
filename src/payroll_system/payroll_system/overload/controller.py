from __future__ import annotations

from flask import Flask, request

from ..common.http import admin_required, json_body, json_endpoint, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/overload-pay", methods=["GET"], endpoint="admin_overload_pays")
    @admin_required
    @json_endpoint
    def admin_overload_pays():
        archived = request.args.get("archived", "").lower() in {"1", "true", "yes"}
        user_id = request.args.get("userId", type=int)
        items = container.overload_service.list_overload_pays(archived=archived, user_id=user_id)
        return ok({"overloadPays": [o.to_dict() for o in items]})

    @app.route("/api/admin/overload-pay", methods=["POST"], endpoint="admin_add_overload_pay")
    @admin_required
    @json_endpoint
    def admin_add_overload_pay():
        data = json_body()
        user_ids = data.get("userIds")
        if user_ids is None and data.get("userId") is not None:
            user_ids = [data["userId"]]
        ids = container.overload_service.add(
            amount=data.get("amount"),
            user_ids=user_ids,
            all_personnel=bool(data.get("allPersonnel")),
            notes=data.get("notes"),
        )
        return ok({"ids": ids}, 201)

    @app.route("/api/admin/overload-pay/<int:overload_id>/archive", methods=["POST"], endpoint="admin_archive_overload_pay")
    @admin_required
    @json_endpoint
    def admin_archive_overload_pay(overload_id: int):
        container.overload_service.archive(overload_id)
        return ok()

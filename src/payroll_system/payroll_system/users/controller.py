from __future__ import annotations

from datetime import timedelta

from flask import Flask, request, session

from ..common.http import admin_required, current_user_id, json_body, json_endpoint, login_required, ok
from ..container import Container
from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.enums import Role
from ..core.exceptions import ValidationError


def _type_to_dict(t) -> dict:
    return {
        "id": t.personnel_type_id,
        "name": t.name,
        "basicSalary": float(t.basic_salary),
        "isActive": t.is_active,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    @json_endpoint
    def login():
        data = json_body()
        s_user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))

        session.clear()
        session.permanent = bool(data.get("remember"))
        app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)

        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value

        return ok({"user": {"id": s_user.user_id, "name": s_user.name, "email": s_user.email, "role": s_user.role.value}})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok()

    @app.route("/api/auth/me", methods=["GET"], endpoint="me")
    @login_required
    @json_endpoint
    def me():
        user = container.user_service.get(current_user_id())
        payload = user.to_public_dict()
        ptype = container.user_service.personnel_type_of(user)
        payload["personnelType"] = _type_to_dict(ptype) if ptype else None
        return ok({"user": payload})

    @app.route("/api/admin/users", methods=["GET"], endpoint="admin_list_users")
    @admin_required
    @json_endpoint
    def admin_list_users():
        role_s = request.args.get("role")
        try:
            role = Role(role_s.upper()) if role_s else None
        except ValueError:
            raise ValidationError("Invalid role")
        users = container.user_service.list_users(role=role)
        return ok({"users": [u.to_public_dict() for u in users]})

    @app.route("/api/admin/users", methods=["POST"], endpoint="admin_create_user")
    @admin_required
    @json_endpoint
    def admin_create_user():
        data = json_body()
        user_id = container.user_service.create_personnel(
            name=data.get("name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
            personnel_type_id=data.get("personnelTypeId"),
        )
        return ok({"id": user_id}, 201)

    @app.route("/api/admin/users/<int:user_id>", methods=["PATCH"], endpoint="admin_update_user")
    @admin_required
    @json_endpoint
    def admin_update_user(user_id: int):
        data = json_body()
        user = container.user_service.get(user_id)
        container.user_service.update_profile(
            user_id,
            name=data.get("name", user.name),
            personnel_type_id=data.get("personnelTypeId", user.personnel_type_id),
        )
        return ok()

    @app.route("/api/admin/users/<int:user_id>/deactivate", methods=["POST"], endpoint="admin_deactivate_user")
    @admin_required
    @json_endpoint
    def admin_deactivate_user(user_id: int):
        container.user_service.deactivate(user_id)
        return ok()

    @app.route("/api/admin/personnel-types", methods=["GET"], endpoint="admin_list_personnel_types")
    @admin_required
    @json_endpoint
    def admin_list_personnel_types():
        return ok({"personnelTypes": [_type_to_dict(t) for t in container.personnel_type_service.list_all()]})

    @app.route("/api/admin/personnel-types", methods=["POST"], endpoint="admin_create_personnel_type")
    @admin_required
    @json_endpoint
    def admin_create_personnel_type():
        data = json_body()
        type_id = container.personnel_type_service.create(name=data.get("name", ""), basic_salary=data.get("basicSalary"))
        return ok({"id": type_id}, 201)

    @app.route("/api/admin/personnel-types/<int:type_id>", methods=["PATCH"], endpoint="admin_update_personnel_type")
    @admin_required
    @json_endpoint
    def admin_update_personnel_type(type_id: int):
        data = json_body()
        container.personnel_type_service.update(type_id, name=data.get("name"), basic_salary=data.get("basicSalary"))
        return ok()

    @app.route(
        "/api/admin/personnel-types/<int:type_id>/deactivate",
        methods=["POST"],
        endpoint="admin_deactivate_personnel_type",
    )
    @admin_required
    @json_endpoint
    def admin_deactivate_personnel_type(type_id: int):
        container.personnel_type_service.deactivate(type_id)
        return ok()

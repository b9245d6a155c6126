from __future__ import annotations

import hmac
import logging
from functools import wraps
from typing import Any, Optional

from flask import current_app, jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

CRON_TOKEN_HEADER = "X-Cron-Token"


def ok(payload: Optional[dict] = None, status: int = 200):
    body: dict[str, Any] = {"success": True}
    if payload:
        body.update(payload)
    return jsonify(body), status


def fail(message: str, status: int):
    return jsonify({"success": False, "error": message}), status


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Optional[Role]:
    role = session.get("role")
    try:
        return Role(role) if role else None
    except ValueError:
        return None


def json_endpoint(view):
    """Map domain exceptions raised by services to JSON error responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except AuthenticationError as e:
            return fail(str(e), 401)
        except AuthorizationError as e:
            return fail(str(e), 403)
        except ConflictError as e:
            return fail(str(e), 409)
        except ValidationError as e:
            return fail(str(e), 400)
        except NotFoundError as e:
            return fail(str(e), 404)
        except Exception:
            logger.exception("Unhandled error in %s %s", request.method, request.path)
            return fail("Internal server error", 500)

    return wrapper


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Authentication required", 401)
        return view(*args, **kwargs)

    return wrapper


def _role_required(role: Role):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return fail("Authentication required", 401)
            if current_role() != role:
                return fail("Forbidden", 403)
            return view(*args, **kwargs)

        return wrapper

    return decorator


admin_required = _role_required(Role.ADMIN)
personnel_required = _role_required(Role.PERSONNEL)


def cron_or_admin_required(view):
    """Allow the periodic trigger (shared token header) or an admin session."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        expected = current_app.config.get("CRON_TOKEN") or ""
        supplied = request.headers.get(CRON_TOKEN_HEADER, "")
        if expected and supplied and hmac.compare_digest(expected, supplied):
            return view(*args, **kwargs)
        if "user_id" not in session:
            return fail("Authentication required", 401)
        if current_role() != Role.ADMIN:
            return fail("Forbidden", 403)
        return view(*args, **kwargs)

    return wrapper

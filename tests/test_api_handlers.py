from __future__ import annotations

import io
from datetime import date

import pandas as pd
import pytest

from conftest import TZ, add_admin, add_person, make_repos, standard_settings
from src.payroll_system.payroll_system.container import wire_services
from src.payroll_system.payroll_system.main import create_app


@pytest.fixture
def api(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    repos = make_repos()
    repos.settings.save(standard_settings(date(2025, 11, 1), date(2025, 11, 13)))
    add_admin(repos)
    add_person(repos, "Maria Santos", "20000")
    add_person(repos, "Jose Reyes", "15000")
    app = create_app(wire_services(repos, tz_name=TZ))
    return app.test_client(), repos


def _login(client, email, password):
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return resp


def test_admin_routes_require_a_session(api):
    client, _ = api

    resp = client.get("/api/admin/payroll/summary")

    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "error": "Authentication required"}


def test_personnel_cannot_use_admin_routes(api):
    client, repos = api
    _login(client, "maria@example.com", "personnel123")

    resp = client.post("/api/admin/payroll/generate", json={})

    assert resp.status_code == 403
    assert repos.payroll.rows == {}


def test_wrong_password_is_401(api):
    client, _ = api

    resp = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "nope"})

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_generate_then_duplicate_is_conflict(api):
    client, repos = api
    _login(client, "admin@example.com", "admin123")

    first = client.post("/api/admin/payroll/generate", json={})
    second = client.post("/api/admin/payroll/generate", json={})

    assert first.status_code == 201
    assert first.get_json()["created"] == 2
    assert second.status_code == 409
    assert len(repos.payroll.rows) == 2


def test_release_unknown_entry_is_404(api):
    client, _ = api
    _login(client, "admin@example.com", "admin123")
    client.post("/api/admin/payroll/generate", json={})

    resp = client.post("/api/admin/payroll/release", json={"entryIds": [1, 42]})

    assert resp.status_code == 404


def test_personnel_sees_only_released_payslips(api):
    client, _ = api
    _login(client, "admin@example.com", "admin123")
    client.post("/api/admin/payroll/generate", json={})
    client.post("/api/admin/payroll/release", json={"entryIds": [1]})
    client.post("/api/auth/logout")

    _login(client, "jose@example.com", "personnel123")
    mine = client.get("/api/personnel/payroll").get_json()
    breakdown = client.get("/api/personnel/payroll/1/breakdown")

    # entry 1 belongs to Jose (personnel are listed by name)
    assert [e["status"] for e in mine["entries"]] == ["RELEASED"]
    assert breakdown.status_code == 200
    assert breakdown.get_json()["source"] == "snapshot"


def test_cron_endpoints_accept_token_or_admin(api):
    client, _ = api

    no_token = client.post("/api/cron/auto-release-payroll")
    bad_token = client.post("/api/cron/auto-release-payroll", headers={"X-Cron-Token": "wrong"})
    with_token = client.post("/api/cron/auto-release-payroll", headers={"X-Cron-Token": "test-cron-token"})
    sweep = client.post("/api/cron/auto-mark-absent", headers={"X-Cron-Token": "test-cron-token"})

    assert no_token.status_code == 401
    assert bad_token.status_code == 401
    assert with_token.status_code == 200
    assert with_token.get_json()["success"] is True
    assert sweep.status_code == 200


def test_cron_endpoints_reject_get(api):
    client, _ = api

    for path in ("/api/cron/auto-mark-absent", "/api/cron/auto-release-payroll"):
        resp = client.get(path, headers={"X-Cron-Token": "test-cron-token"})
        assert resp.status_code == 405


def test_export_csv_and_xlsx(api):
    client, _ = api
    _login(client, "admin@example.com", "admin123")
    client.post("/api/admin/payroll/generate", json={})

    csv_resp = client.get("/api/admin/payroll/export?format=csv")
    xlsx_resp = client.get("/api/admin/payroll/export?format=xlsx")
    bad = client.get("/api/admin/payroll/export?format=pdf")

    assert csv_resp.status_code == 200
    assert csv_resp.mimetype == "text/csv"
    assert csv_resp.data.startswith(b"\xef\xbb\xbfname,period_start")
    assert "payroll_20251101_20251113.csv" in csv_resp.headers["Content-Disposition"]

    df = pd.read_excel(io.BytesIO(xlsx_resp.data), engine="openpyxl")
    assert sorted(df["name"]) == ["Jose Reyes", "Maria Santos"]
    assert sorted(df["net_pay"]) == [7500.0, 10000.0]

    assert bad.status_code == 400


def test_leave_request_round_trip(api):
    client, repos = api
    _login(client, "maria@example.com", "personnel123")

    created = client.post(
        "/api/leave-requests",
        json={"leaveType": "SICK", "startDate": "2025-11-10", "endDate": "2025-11-11", "reason": "flu"},
    )
    bad = client.post(
        "/api/leave-requests",
        json={"leaveType": "SICK", "startDate": "2025-11-12", "endDate": "2025-11-10", "reason": "flu"},
    )

    assert created.status_code == 201
    assert bad.status_code == 400
    client.post("/api/auth/logout")

    _login(client, "admin@example.com", "admin123")
    decided = client.patch(f"/api/admin/leave-requests/{created.get_json()['id']}", json={"status": "APPROVED"})
    assert decided.status_code == 200
    assert repos.leaves.get_by_id(created.get_json()["id"]).status.value == "APPROVED"

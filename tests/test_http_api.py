from __future__ import annotations

import pytest

from src.time_bank.time_bank.integrations.clockify.schemas import ClockifyUser
from src.time_bank.time_bank.main import create_app

from tests.fakes import clockify_entry

HR_HEADERS = {"X-Tenant-ID": "1", "X-User-ID": "900", "X-User-Role": "hr"}
ALICE_HEADERS = {"X-Tenant-ID": "1", "X-User-ID": "101", "X-User-Role": "employee"}


@pytest.fixture
def client(container):
    app = create_app(container, settings_module="config.testing")
    return app.test_client()


def test_missing_identity_headers(client):
    resp = client.post("/time-entries/clock-in", json={})
    assert resp.status_code == 401
    body = resp.get_json()
    assert body["success"] is False
    assert body["error"] == "unauthenticated"

    resp = client.get("/time-entries/me", headers={**ALICE_HEADERS, "X-User-Role": "janitor"})
    assert resp.status_code == 401


def test_clock_in_and_out_over_http(client):
    resp = client.post("/time-entries/clock-in", json={"note": "morning"}, headers=ALICE_HEADERS)
    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["end_at"] is None
    assert data["source"] == "internal"
    assert data["start_at"].endswith("Z")

    again = client.post("/time-entries/clock-in", json={}, headers=ALICE_HEADERS)
    assert again.status_code == 409
    assert again.get_json()["error"] == "already_open"

    resp = client.post("/time-entries/clock-out", json={}, headers=ALICE_HEADERS)
    assert resp.status_code == 200
    assert resp.get_json()["data"]["end_at"] is not None

    mine = client.get("/time-entries/me", headers=ALICE_HEADERS).get_json()["data"]
    assert mine["open_entry"] is None
    assert len(mine["entries"]) == 1


def test_invalid_timestamp_and_body(client):
    resp = client.post("/time-entries/clock-in", json={"timestamp": "later"}, headers=ALICE_HEADERS)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"

    resp = client.post(
        "/time-entries/clock-in", data="[1, 2]", content_type="application/json", headers=ALICE_HEADERS
    )
    assert resp.status_code == 400


def test_hr_endpoints_reject_employees(client):
    for path in ("/time-entries", "/hr/time-bank/summary", "/hr/time-bank/closures", "/integrations/clockify/status"):
        resp = client.get(path, headers=ALICE_HEADERS)
        assert resp.status_code == 403, path
        assert resp.get_json()["error"] == "forbidden"


def test_settings_roundtrip(client):
    resp = client.get("/hr/time-bank/settings", headers=HR_HEADERS)
    assert resp.get_json()["data"]["target_daily_minutes"] == 480

    resp = client.post(
        "/hr/time-bank/settings", json={"target_daily_minutes": 360, "include_saturday": True}, headers=HR_HEADERS
    )
    data = resp.get_json()["data"]
    assert data["target_daily_minutes"] == 360
    assert data["include_saturday"] is True
    assert data["updated_by"] == 900

    resp = client.post("/hr/time-bank/settings", json={"target_daily_minutes": 961}, headers=HR_HEADERS)
    assert resp.status_code == 400


def test_adjustment_flow_and_summary(client):
    resp = client.post(
        "/hr/time-bank/adjustments",
        json={"employee_id": 1, "effective_date": "2026-03-03", "minutes_delta": 30, "reason": "forgot"},
        headers=HR_HEADERS,
    )
    assert resp.status_code == 201
    adjustment = resp.get_json()["data"]
    assert adjustment["seconds_delta"] == 1800
    assert adjustment["status"] == "pending"

    resp = client.post(f"/hr/time-bank/adjustments/{adjustment['adjustment_id']}/approve", json={}, headers=HR_HEADERS)
    assert resp.get_json()["data"]["status"] == "approved"

    resp = client.post(f"/hr/time-bank/adjustments/{adjustment['adjustment_id']}/reject", json={}, headers=HR_HEADERS)
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "already_reviewed"

    resp = client.get(
        "/hr/time-bank/summary?start_date=2026-03-02&end_date=2026-03-08&employee_id=1", headers=HR_HEADERS
    )
    data = resp.get_json()["data"]
    assert data["totals"]["adjustment_seconds"] == 1800
    assert data["employees"][0]["expected_seconds"] == 5 * 8 * 3600

    resp = client.post(
        "/hr/time-bank/adjustments",
        json={"employee_id": 1, "effective_date": "2026-03-03", "seconds_delta": 60, "minutes_delta": 1},
        headers=HR_HEADERS,
    )
    assert resp.get_json()["error"] == "invalid_delta"


def test_closure_endpoints(client):
    resp = client.post(
        "/hr/time-bank/closures",
        json={"start_date": "2026-03-02", "end_date": "2026-03-08", "note": "week 10"},
        headers=HR_HEADERS,
    )
    assert resp.status_code == 201
    closure = resp.get_json()["data"]
    assert closure["status"] == "closed"
    assert closure["employees_count"] == 2

    resp = client.post(
        "/hr/time-bank/closures", json={"period_start": "2026-03-05", "period_end": "2026-03-06"}, headers=HR_HEADERS
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "invalid_range"

    items = client.get(f"/hr/time-bank/closures/{closure['closure_id']}/employees", headers=HR_HEADERS)
    assert [i["employee_name"] for i in items.get_json()["data"]] == ["Alice Santos", "Bruno Lima"]

    resp = client.post(
        "/time-entries/clock-in", json={"timestamp": "2026-03-03T09:00:00Z"}, headers=ALICE_HEADERS
    )
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "period_closed"

    resp = client.post(f"/hr/time-bank/closures/{closure['closure_id']}/reopen", json={}, headers=HR_HEADERS)
    assert resp.get_json()["data"]["status"] == "reopened"
    resp = client.post(f"/hr/time-bank/closures/{closure['closure_id']}/reopen", json={}, headers=HR_HEADERS)
    assert resp.status_code == 409

    listed = client.get("/hr/time-bank/closures", headers=HR_HEADERS).get_json()["data"]
    assert len(listed) == 1


def test_clockify_endpoints(client, clockify_client):
    clockify_client.users = [ClockifyUser(id="u-alice", email="alice@example.com")]
    clockify_client.entries = {"u-alice": [clockify_entry("A1", "2026-03-02T09:00:00Z", "2026-03-02T10:00:00Z")]}

    resp = client.get("/integrations/clockify/config", headers=HR_HEADERS)
    assert resp.get_json()["data"]["configured"] is False

    resp = client.post("/integrations/clockify/config", json={"workspace_id": "ws-1"}, headers=HR_HEADERS)
    assert resp.status_code == 400

    resp = client.post(
        "/integrations/clockify/config", json={"api_key": "abcd1234efgh", "workspace_id": "ws-1"}, headers=HR_HEADERS
    )
    data = resp.get_json()["data"]
    assert data["api_key_masked"] == "abcd****efgh"
    assert "api_key" not in data

    resp = client.post(
        "/integrations/clockify/sync", json={"start_date": "2026-03-02", "end_date": "2026-03-08"}, headers=HR_HEADERS
    )
    summary = resp.get_json()["data"]
    assert summary["entries_upserted"] == 1
    assert summary["range_start"] == "2026-03-02"

    resp = client.post(
        "/integrations/clockify/sync",
        json={"start_date": "2026-03-02", "end_date": "2026-03-08", "allow_closed_period": True},
        headers={**HR_HEADERS, "X-User-Role": "admin"},
    )
    assert resp.status_code == 403

    status = client.get("/integrations/clockify/status", headers=HR_HEADERS).get_json()["data"]
    assert status["configured"] is True
    assert status["entries_total"] == 1
    assert status["mapped_employees"] == 1
    assert [e["name"] for e in status["unmapped_employees_preview"]] == ["Bruno Lima"]

"""HTTP API の結合テスト（TestClient + 一時 SQLite）。"""

import json
from datetime import datetime
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from review_planner.main import create_app
from review_planner.planner import ReviewPlanner
from review_planner.store import create_repository

FIXED_NOW = datetime(2024, 5, 15, 9, 30)


@pytest.fixture()
def client(tmp_path: Path) -> TestClient:
    planner = ReviewPlanner.load(
        create_repository(str(tmp_path / "api.sqlite3")), clock=lambda: FIXED_NOW
    )
    return TestClient(create_app(planner))


def _create_task(client: TestClient, **overrides) -> dict:
    payload = {"title": "TOEIC Part 5", "initial_time_required": 300, "category_id": "1"}
    payload.update(overrides)
    resp = client.post("/api/tasks", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert resp.headers["X-Request-ID"]


def test_readiness_reports_store_records(client):
    assert client.get("/readyz").json() == {"status": "ok", "records": [], "tasks": 0}

    _create_task(client)

    body = client.get("/readyz").json()
    assert body["tasks"] == 1
    assert body["records"] == [
        "learning-management-categories",
        "learning-management-custom-time-settings",
        "learning-management-tasks",
        "learning-management-time-limits",
    ]


def test_request_id_is_echoed(client):
    resp = client.get("/healthz", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"


def test_runtime_config(client):
    body = client.get("/api/config").json()

    assert len(body["time_options"]) == 16
    assert body["time_options"][0] == {"value": 30, "label": "30分"}
    assert body["time_options"][1] == {"value": 60, "label": "1時間"}
    assert body["time_options"][2] == {"value": 90, "label": "1時間30分"}
    assert body["time_options"][-1] == {"value": 480, "label": "8時間"}
    assert body["default_time_limits"] == {"weekday": 120, "weekend": 240}
    assert body["review_intervals_minutes"][:3] == [20, 1440, 4320]
    assert body["time_multipliers"][0] == 0.25
    assert body["week_starts_on"] == 0


def test_task_lifecycle(client):
    task = _create_task(client)

    assert len(task["review_dates"]) == 9
    assert task["created_at"] == "2024-05-15T09:30:00"
    assert task["review_dates"][0] == "2024-05-15T09:50:00"

    listed = client.get("/api/tasks").json()
    assert [t["id"] for t in listed] == [task["id"]]

    resp = client.patch(f"/api/tasks/{task['id']}", json={"title": "TOEIC Part 6"})
    assert resp.status_code == 200
    assert resp.json()["title"] == "TOEIC Part 6"
    assert resp.json()["review_dates"] == task["review_dates"]

    assert client.get(f"/api/tasks/{task['id']}").status_code == 200
    assert client.get("/api/tasks/missing").status_code == 404
    assert client.patch("/api/tasks/missing", json={"title": "x"}).status_code == 404


def test_create_task_validation(client):
    base = {"title": "x", "initial_time_required": 60, "category_id": "1"}

    assert client.post("/api/tasks", json={**base, "initial_time_required": 0}).status_code == 422
    assert client.post("/api/tasks", json={**base, "title": ""}).status_code == 422
    assert (
        client.post("/api/tasks", json={**base, "started_on": "9999-01-01"}).status_code == 422
    )
    # 注入された時計（2024-05-15）より後の実施日も拒否する
    assert (
        client.post("/api/tasks", json={**base, "started_on": "2024-05-16"}).status_code == 422
    )

    started = client.post("/api/tasks", json={**base, "started_on": "2024-05-10"})
    assert started.status_code == 201
    assert started.json()["created_at"] == "2024-05-10T09:30:00"


def test_review_completion_roundtrip(client):
    task = _create_task(client)
    task_id = task["id"]

    resp = client.put(f"/api/tasks/{task_id}/reviews/2024-05-15")
    assert resp.status_code == 200
    [record] = resp.json()["completed_reviews"]
    assert record["time_spent"] == 75
    assert record["actual_time"] == 75

    resp = client.put(f"/api/tasks/{task_id}/reviews/2024-05-15", json={"actual_time": 40})
    assert [r["actual_time"] for r in resp.json()["completed_reviews"]] == [40]

    required = client.get(
        f"/api/tasks/{task_id}/required-time", params={"at": "2024-05-16T09:30:00"}
    ).json()
    assert required["completed_before"] == 1
    assert required["multiplier"] == 0.17
    assert required["required_time"] == 51

    resp = client.delete(f"/api/tasks/{task_id}/reviews/2024-05-15")
    assert resp.status_code == 200
    assert resp.json()["completed_reviews"] == []

    assert client.put("/api/tasks/missing/reviews/2024-05-15").status_code == 404
    assert client.put(f"/api/tasks/{task_id}/reviews/not-a-date").status_code == 422


def test_delete_task_requires_confirmation(client):
    task = _create_task(client)

    assert client.delete(f"/api/tasks/{task['id']}").status_code == 409
    assert client.get(f"/api/tasks/{task['id']}").status_code == 200

    assert client.delete(f"/api/tasks/{task['id']}", params={"confirm": "true"}).status_code == 204
    assert client.get(f"/api/tasks/{task['id']}").status_code == 404
    assert client.delete(f"/api/tasks/{task['id']}", params={"confirm": "true"}).status_code == 404


def test_categories(client):
    listed = client.get("/api/categories").json()
    assert [c["name"] for c in listed] == ["語学", "プログラミング", "資格", "趣味", "その他"]

    assert client.post("/api/categories", json={"name": "音楽", "color": "red"}).status_code == 422
    created = client.post("/api/categories", json={"name": "音楽", "color": "#112233"})
    assert created.status_code == 201
    category_id = created.json()["id"]

    patched = client.patch(f"/api/categories/{category_id}", json={"color": "#445566"})
    assert patched.json() == {"id": category_id, "name": "音楽", "color": "#445566"}

    assert client.delete(f"/api/categories/{category_id}").status_code == 409
    assert (
        client.delete(f"/api/categories/{category_id}", params={"confirm": "true"}).status_code
        == 204
    )
    assert client.delete(f"/api/categories/{category_id}").status_code == 404
    assert client.patch("/api/categories/missing", json={"name": "x"}).status_code == 404


def test_time_settings(client):
    body = client.get("/api/time-settings").json()
    assert body == {"limits": {"weekday": 120, "weekend": 240}, "custom": []}

    resp = client.put("/api/time-settings/custom/2024-05-18", json={"time_limit": 90})
    assert resp.json() == {"date": "2024-05-18", "time_limit": 90}
    client.put("/api/time-settings/custom/2024-05-18", json={"time_limit": 100})
    assert client.get("/api/time-settings").json()["custom"] == [
        {"date": "2024-05-18", "time_limit": 100}
    ]

    resolved = client.get("/api/time-settings/limit/2024-05-18").json()
    assert resolved == {"date": "2024-05-18", "time_limit": 100, "source": "custom"}

    assert client.delete("/api/time-settings/custom/2024-05-18").status_code == 204
    assert client.delete("/api/time-settings/custom/2024-05-18").status_code == 404
    resolved = client.get("/api/time-settings/limit/2024-05-18").json()
    assert resolved["source"] == "weekend"
    assert resolved["time_limit"] == 240

    resp = client.put("/api/time-settings/limits", json={"weekday": 60, "weekend": 180})
    assert resp.json() == {"weekday": 60, "weekend": 180}
    assert client.get("/api/time-settings/limit/2024-05-15").json()["time_limit"] == 60
    assert (
        client.put("/api/time-settings/custom/2024-05-18", json={"time_limit": -1}).status_code
        == 422
    )


def test_overview_endpoints(client):
    task = _create_task(client)

    day = client.get("/api/overview/day/2024-05-15").json()
    assert day["total_required_time"] == 75
    assert day["remaining_time"] == 75
    assert day["tasks"][0]["task"]["id"] == task["id"]
    assert day["tasks"][0]["category"]["name"] == "語学"

    grid = client.get("/api/overview/calendar/2024/5").json()
    assert grid["leading_blank_days"] == 3
    assert len(grid["days"]) == 31
    assert client.get("/api/overview/calendar/2024/13").status_code == 422

    weeks = client.get("/api/overview/weeks").json()
    assert len(weeks) == 4
    assert weeks[0]["start"] == "2024-05-12"
    assert weeks[0]["total_time"] == 225

    groups = client.get("/api/overview/categories").json()
    assert groups[0]["task_count"] == 1
    assert groups[0]["total_time"] == 75

    analysis = client.get("/api/overview/analysis").json()
    assert len(analysis["months"]) == 6
    assert analysis["months"][-1]["month"] == "2024-05"
    assert analysis["months"][-1]["hours"]["1"] == 6.3
    assert analysis["y_axis_max"] == 8


def test_access_log_is_json(client, capsys):
    app = create_app(client.app.state.planner)
    capsys.readouterr()

    TestClient(app).get("/healthz", headers={"X-Request-ID": "log-check"})

    lines = [line for line in capsys.readouterr().err.splitlines() if line.strip()]
    events = [json.loads(line) for line in lines if line.startswith("{")]
    [access] = [e for e in events if e.get("event") == "request_complete"]
    assert access["path"] == "/healthz"
    assert access["status_code"] == 200
    assert access["request_id"] == "log-check"
    assert access["level"] == "info"


def test_overview_windows_outside_calendar_are_rejected(client):
    resp = client.get("/api/overview/analysis", params={"anchor": "0001-03-01"})
    assert resp.status_code == 422

    resp = client.get("/api/overview/weeks", params={"start": "9999-12-20"})
    assert resp.status_code == 422

    resp = client.get("/api/overview/analysis", params={"anchor": "0001-06-01"})
    assert resp.status_code == 200
    assert resp.json()["months"][0]["month"] == "0001-01"

from datetime import date, datetime, timezone

import pytest

from services.goal_service import GoalService, days_remaining, progress_percentage
from conftest import USER_ID


def create_goal(client, headers, **overrides):
    payload = {"title": "Run 100 km", "metric": "km", "target_value": 100}
    payload.update(overrides)
    resp = client.post("/api/v1/goals", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_progress_percentage():
    assert progress_percentage(33, 90) == 36.67
    assert progress_percentage(5, 0) == 0.0
    assert progress_percentage(5, None) == 0.0
    assert progress_percentage(None, 10) == 0.0


def test_days_remaining():
    now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert days_remaining(date(2024, 1, 3), now) == 2
    assert days_remaining(datetime(2024, 1, 2, 13, 0, tzinfo=timezone.utc), now) == 2
    assert days_remaining(date(2023, 12, 1), now) == 0
    assert days_remaining(None, now) == 0


@pytest.mark.parametrize("payload", [
    {"title": "", "metric": "km", "target_value": 10},
    {"title": "x", "metric": "", "target_value": 10},
    {"title": "x", "metric": "km", "target_value": 0},
    {"title": "x", "metric": "km", "target_value": 10, "start_date": "2024-02-01", "deadline": "2024-01-01"},
])
def test_goal_validation(client, auth_headers, payload):
    assert client.post("/api/v1/goals", json=payload, headers=auth_headers).status_code == 400


def test_logs_drive_current_value(client, auth_headers):
    goal = create_goal(client, auth_headers)
    url = f"/api/v1/goals/{goal['id']}/logs"

    first = client.post(url, json={"value": 30}, headers=auth_headers).json()["data"]
    assert first["goal"]["current_value"] == 30
    second = client.post(url, json={"value": 70, "log_date": "2024-01-02"}, headers=auth_headers).json()["data"]
    assert second["goal"]["current_value"] == 100
    assert second["goal"]["is_completed"] is True

    resp = client.delete(f"{url}/{first['log']['id']}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["current_value"] == 70
    assert resp.json()["data"]["is_completed"] is False

    assert [l["value"] for l in client.get(url, headers=auth_headers).json()] == [70]


def test_negative_log_rejected(client, auth_headers):
    goal = create_goal(client, auth_headers)
    resp = client.post(f"/api/v1/goals/{goal['id']}/logs", json={"value": -1}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Value cannot be negative"


def test_progress_endpoint(client, auth_headers):
    goal = create_goal(client, auth_headers, target_value=90)
    client.post(f"/api/v1/goals/{goal['id']}/logs", json={"value": 33}, headers=auth_headers)
    resp = client.post("/api/v1/goals/progress", json={"goal_uuid": goal["id"]}, headers=auth_headers)
    assert resp.json() == {"progress_percentage": 36.67}
    resp = client.post("/api/v1/goals/progress", json={"goal_uuid": "missing"}, headers=auth_headers)
    assert resp.status_code == 404


def test_milestones(client, auth_headers):
    goal = create_goal(client, auth_headers)
    base = f"/api/v1/goals/{goal['id']}/milestones"
    m = client.post(base, json={"title": "Halfway", "target_value": 50}, headers=auth_headers).json()["data"]
    client.post(base, json={"title": "Quarter", "target_value": 25}, headers=auth_headers)

    assert [x["title"] for x in client.get(base, headers=auth_headers).json()] == ["Quarter", "Halfway"]

    toggled = client.put(f"{base}/{m['id']}/toggle", headers=auth_headers).json()["data"]
    assert toggled["is_completed"] is True

    stats = client.get("/api/v1/goals/stats", headers=auth_headers).json()
    assert stats[0]["milestone_completion_rate"] == 50.0

    assert client.post(base, json={"title": "Bad", "target_value": 0}, headers=auth_headers).status_code == 400
    assert client.delete(f"{base}/{m['id']}", headers=auth_headers).status_code == 200
    assert len(client.get(base, headers=auth_headers).json()) == 1


def test_update_target_recomputes_completion(db):
    goal = GoalService.create(db, USER_ID, {"title": "Save", "metric": "usd", "target_value": 100})
    GoalService.add_log(db, USER_ID, goal.id, {"value": 60})
    updated = GoalService.update(db, USER_ID, goal.id, {"target_value": 50})
    assert updated.current_value == 60
    assert updated.is_completed is True


def test_stats_only_active_goals(db):
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    GoalService.create(db, USER_ID, {"title": "A", "metric": "km", "target_value": 10, "deadline": date(2024, 1, 11)})
    paused = GoalService.create(db, USER_ID, {"title": "B", "metric": "km", "target_value": 10})
    GoalService.update(db, USER_ID, paused.id, {"is_active": False})

    stats = GoalService.get_stats(db, USER_ID, now)
    assert len(stats) == 1
    assert stats[0]["goal_title"] == "A"
    assert stats[0]["days_remaining"] == 10
    assert stats[0]["progress_percentage"] == 0
    assert stats[0]["milestone_completion_rate"] == 0

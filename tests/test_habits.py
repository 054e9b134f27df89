from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from models.habit_log import HabitLog
from services.habit_service import HabitService
from services.reminder_service import ReminderService
from conftest import USER_ID


def create_habit(client, headers, **overrides):
    payload = {"name": "Drink water", "frequency": "daily"}
    payload.update(overrides)
    resp = client.post("/api/v1/habits", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_requires_authentication(client):
    resp = client.get("/api/v1/habits")
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"


def test_rejects_bad_token(client):
    resp = client.get("/api/v1/habits", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_crud_round_trip(client, auth_headers):
    habit = create_habit(client, auth_headers, frequency="custom", frequency_days=[5, 1, 1, 3])
    assert habit["frequency_days"] == [1, 3, 5]

    resp = client.put(f"/api/v1/habits/{habit['id']}", json={"name": "Drink more water"}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["name"] == "Drink more water"
    assert resp.json()["data"]["frequency_days"] == [1, 3, 5]

    assert len(client.get("/api/v1/habits", headers=auth_headers).json()) == 1
    assert client.delete(f"/api/v1/habits/{habit['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/v1/habits/{habit['id']}", headers=auth_headers).status_code == 404


@pytest.mark.parametrize("payload", [
    {"name": "   "},
    {"name": "x", "frequency": "hourly"},
    {"name": "x", "frequency": "custom", "frequency_days": []},
    {"name": "x", "frequency": "custom", "frequency_days": [7]},
    {"name": "x", "frequency": "weekly", "frequency_days": [1, 2]},
])
def test_validation_errors(client, auth_headers, payload):
    resp = client.post("/api/v1/habits", json=payload, headers=auth_headers)
    assert resp.status_code == 400


def test_habits_are_scoped_to_owner(client, auth_headers, other_headers):
    habit = create_habit(client, auth_headers)
    assert client.get(f"/api/v1/habits/{habit['id']}", headers=other_headers).status_code == 404
    resp = client.post("/api/v1/habits/complete", json={"habit_id": habit["id"]}, headers=other_headers)
    assert resp.status_code == 404


def test_toggle_completion_round_trip(client, auth_headers):
    habit = create_habit(client, auth_headers)
    body = {"habit_id": habit["id"], "timezone": "UTC"}

    first = client.post("/api/v1/habits/complete", json=body, headers=auth_headers).json()
    assert first["success"] is True
    assert first["action"] == "completed"

    streak = client.post("/api/v1/habits/streak", json={"habit_uuid": habit["id"], "timezone": "UTC"},
                         headers=auth_headers)
    assert streak.json() == {"streak": 1}

    second = client.post("/api/v1/habits/complete", json=body, headers=auth_headers).json()
    assert second["action"] == "removed"
    assert second["date"] == first["date"]

    history = client.get(f"/api/v1/habits/{habit['id']}/history", headers=auth_headers).json()
    assert history == []


def test_complete_rejects_other_status(client, auth_headers):
    habit = create_habit(client, auth_headers)
    resp = client.post("/api/v1/habits/complete", json={"habit_id": habit["id"], "status": "skipped"},
                       headers=auth_headers)
    assert resp.status_code == 400


def test_unknown_timezone_is_bad_request(client, auth_headers):
    resp = client.get("/api/v1/habits/stats?timezone=Nowhere/Special", headers=auth_headers)
    assert resp.status_code == 400


def test_streak_for_missing_habit(client, auth_headers):
    resp = client.post("/api/v1/habits/streak", json={"habit_uuid": "missing"}, headers=auth_headers)
    assert resp.status_code == 404
    resp = client.post("/api/v1/habits/streak", json={}, headers=auth_headers)
    assert resp.status_code == 400


def test_stats_endpoint(client, auth_headers):
    habit = create_habit(client, auth_headers)
    client.post("/api/v1/habits/complete", json={"habit_id": habit["id"]}, headers=auth_headers)
    stats = client.get("/api/v1/habits/stats?timezone=UTC", headers=auth_headers).json()
    assert stats == [{
        "habit_id": habit["id"],
        "habit_name": "Drink water",
        "current_streak": 1,
        "longest_streak": 1,
        "completion_rate": 100.0,
        "total_completions": 1,
        "total_days": 1,
    }]


def test_toggle_uses_the_users_local_day(db):
    h = HabitService.create(db, USER_ID, {"name": "Stretch"})
    now = datetime(2024, 1, 1, 3, 30, tzinfo=timezone.utc)

    result = HabitService.toggle_completion(db, USER_ID, h.id, tz_name="America/Los_Angeles", now=now)
    assert result["date"] == "2023-12-31"

    result = HabitService.toggle_completion(db, USER_ID, h.id, tz_name="UTC", now=now)
    assert result["date"] == "2024-01-01"
    assert result["action"] == "completed"

    days = sorted(str(l.completion_date) for l in db.query(HabitLog).filter_by(habit_id=h.id))
    assert days == ["2023-12-31", "2024-01-01"]


def test_one_log_per_habit_per_day(db):
    h = HabitService.create(db, USER_ID, {"name": "Read"})
    db.add(HabitLog(habit_id=h.id, completion_date=date(2024, 1, 1)))
    db.commit()
    db.add(HabitLog(habit_id=h.id, completion_date=date(2024, 1, 1)))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_deleting_habit_removes_its_logs(db):
    h = HabitService.create(db, USER_ID, {"name": "Walk"})
    HabitService.toggle_completion(db, USER_ID, h.id, now=datetime(2024, 1, 1, tzinfo=timezone.utc))
    HabitService.delete(db, USER_ID, h.id)
    assert db.query(HabitLog).count() == 0


def test_completion_closes_linked_reminders_and_undo_reopens(db):
    h = HabitService.create(db, USER_ID, {"name": "Meditate"})
    now = datetime(2024, 5, 1, 18, 0, tzinfo=timezone.utc)
    due_today = ReminderService.create(db, USER_ID, {
        "title": "Meditate", "habit_id": h.id, "due_date": now - timedelta(hours=2)})
    due_later = ReminderService.create(db, USER_ID, {
        "title": "Meditate again", "habit_id": h.id, "due_date": now + timedelta(days=3)})

    HabitService.toggle_completion(db, USER_ID, h.id, now=now)
    db.refresh(due_today)
    db.refresh(due_later)
    assert due_today.status == "completed"
    assert due_later.status == "active"

    result = HabitService.toggle_completion(db, USER_ID, h.id, now=now + timedelta(minutes=5))
    assert result["action"] == "removed"
    db.refresh(due_today)
    assert due_today.status == "active"
    assert due_today.completed_at is None


def test_today_and_upcoming(db):
    # 2024-01-10 is a Wednesday (weekday index 3)
    now = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)
    daily = HabitService.create(db, USER_ID, {"name": "Daily"})
    HabitService.create(db, USER_ID, {"name": "Fridays", "frequency": "weekly", "frequency_days": [5]})
    HabitService.create(db, USER_ID, {"name": "Paused", "frequency": "daily", "is_active": False})

    today = HabitService.get_today(db, USER_ID, "UTC", now)
    assert [t["habit"]["id"] for t in today] == [daily.id]
    assert today[0]["completed_today"] is False

    upcoming = HabitService.get_upcoming(db, USER_ID, "UTC", now)
    assert [(u["habit"]["name"], u["days_until"], u["next_occurrence"]) for u in upcoming] == [
        ("Daily", 0, "Today"),
        ("Fridays", 2, "In 2 days"),
    ]


def _stale_lookups(monkeypatch, on_reread=None):
    """Make the first day lookup miss, as if another request inserted after it ran."""
    real = HabitService._log_for_day
    calls = []

    def lookup(db, habit_id, day):
        calls.append(day)
        if len(calls) == 1:
            return None
        if len(calls) == 2 and on_reread:
            on_reread(db, habit_id, day)
        return real(db, habit_id, day)

    monkeypatch.setattr(HabitService, "_log_for_day", staticmethod(lookup))
    return calls


def test_concurrent_insert_recovers_existing_row(db, monkeypatch):
    h = HabitService.create(db, USER_ID, {"name": "Journal"})
    now = datetime(2024, 1, 1, 18, 0, tzinfo=timezone.utc)
    reminder = ReminderService.create(db, USER_ID, {
        "title": "Journal", "habit_id": h.id, "due_date": now - timedelta(hours=1)})
    db.add(HabitLog(habit_id=h.id, completion_date=date(2024, 1, 1)))
    db.commit()
    _stale_lookups(monkeypatch)

    result = HabitService.toggle_completion(db, USER_ID, h.id, now=now)

    assert result == {"success": True, "action": "completed", "date": "2024-01-01"}
    assert db.query(HabitLog).filter_by(habit_id=h.id).count() == 1
    db.refresh(reminder)
    assert reminder.status == "completed"


def test_concurrent_insert_then_undo_inserts_again(db, monkeypatch):
    h = HabitService.create(db, USER_ID, {"name": "Journal"})
    now = datetime(2024, 1, 1, 18, 0, tzinfo=timezone.utc)
    reminder = ReminderService.create(db, USER_ID, {
        "title": "Journal", "habit_id": h.id, "due_date": now - timedelta(hours=1)})
    db.add(HabitLog(habit_id=h.id, completion_date=date(2024, 1, 1)))
    db.commit()

    def undone_elsewhere(session, habit_id, day):
        session.query(HabitLog).filter_by(habit_id=habit_id, completion_date=day).delete()
        session.commit()

    _stale_lookups(monkeypatch, on_reread=undone_elsewhere)

    result = HabitService.toggle_completion(db, USER_ID, h.id, now=now)

    assert result["action"] == "completed"
    logs = db.query(HabitLog).filter_by(habit_id=h.id).all()
    assert [str(l.completion_date) for l in logs] == ["2024-01-01"]
    db.refresh(reminder)
    assert reminder.status == "completed"

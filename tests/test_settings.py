import supabase_client
from models.goal import Goal
from models.habit import Habit
from models.habit_log import HabitLog
from models.profile import Profile
from services.goal_service import GoalService
from services.habit_service import HabitService
from services.profile_service import ProfileService
from conftest import USER_ID, OTHER_USER_ID


def test_profile_defaults_and_update(client, auth_headers):
    profile = client.get("/api/v1/settings/profile", headers=auth_headers).json()["data"]
    assert profile["id"] == USER_ID
    assert profile["timezone"] == "UTC"

    resp = client.put("/api/v1/settings/profile", json={"full_name": "Sam", "timezone": "Europe/Berlin"},
                      headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["timezone"] == "Europe/Berlin"

    bad = client.put("/api/v1/settings/profile", json={"timezone": "Europe/Atlantis"}, headers=auth_headers)
    assert bad.status_code == 400


def test_stored_timezone_is_used_when_none_is_sent(db):
    ProfileService.update(db, USER_ID, {"timezone": "Asia/Tokyo"})
    assert ProfileService.resolve_timezone(db, USER_ID) == "Asia/Tokyo"
    assert ProfileService.resolve_timezone(db, USER_ID, "UTC") == "UTC"
    assert ProfileService.resolve_timezone(db, OTHER_USER_ID) == "UTC"


def test_appearance(client, auth_headers):
    assert client.get("/api/v1/settings/appearance", headers=auth_headers).json() == {
        "fontSize": "default", "colorTheme": "default", "displayMode": "system",
    }
    resp = client.put("/api/v1/settings/appearance", json={"fontSize": "large", "displayMode": "dark"},
                      headers=auth_headers)
    assert resp.json() == {"fontSize": "large", "colorTheme": "default", "displayMode": "dark"}

    assert client.put("/api/v1/settings/appearance", json={"fontSize": "huge"},
                      headers=auth_headers).json()["detail"] == "Invalid font size"
    assert client.put("/api/v1/settings/appearance", json={},
                      headers=auth_headers).status_code == 400


def test_avatar_requires_storage(client, auth_headers):
    resp = client.post("/api/v1/settings/avatar", files={"file": ("me.png", b"\x89PNG", "image/png")},
                       headers=auth_headers)
    assert resp.status_code == 500


def test_avatar_upload(client, auth_headers, monkeypatch):
    uploads = []
    monkeypatch.setattr(supabase_client, "is_supabase_configured", lambda: True)
    monkeypatch.setattr(supabase_client, "upload_avatar",
                        lambda user_id, filename, content, content_type:
                        uploads.append((user_id, filename)) or f"https://cdn.test/avatars/{user_id}/avatar.png")

    resp = client.post("/api/v1/settings/avatar", files={"file": ("me.png", b"\x89PNG", "image/png")},
                       headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["avatar_url"].endswith(f"{USER_ID}/avatar.png")
    assert uploads == [(USER_ID, "me.png")]

    not_image = client.post("/api/v1/settings/avatar", files={"file": ("a.txt", b"hi", "text/plain")},
                            headers=auth_headers)
    assert not_image.status_code == 400


def test_delete_account_removes_only_own_data(db):
    mine = HabitService.create(db, USER_ID, {"name": "Mine"})
    HabitService.create(db, OTHER_USER_ID, {"name": "Theirs"})
    GoalService.create(db, USER_ID, {"title": "G", "metric": "km", "target_value": 5})
    db.add(HabitLog(habit_id=mine.id, completion_date=mine.created_at.date()))
    db.commit()
    ProfileService.get_or_create(db, USER_ID)

    result = ProfileService.delete_account(db, USER_ID)
    assert result == {"data_deleted": True, "auth_user_deleted": False}
    assert db.query(Habit).filter_by(user_id=USER_ID).count() == 0
    assert db.query(Habit).filter_by(user_id=OTHER_USER_ID).count() == 1
    assert db.query(HabitLog).count() == 0
    assert db.query(Goal).count() == 0
    assert db.get(Profile, USER_ID) is None


def test_delete_account_calls_auth_admin(client, auth_headers, monkeypatch):
    deleted = []
    monkeypatch.setattr(supabase_client, "is_supabase_configured", lambda: True)
    monkeypatch.setattr(supabase_client, "delete_auth_user", deleted.append)
    resp = client.delete("/api/v1/settings/account", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["auth_user_deleted"] is True
    assert deleted == [USER_ID]

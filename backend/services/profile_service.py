"""
profile_service.py: User profile & settings
Timezone, display name, appearance preferences, avatar and account deletion.
"""

import logging

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

import supabase_client
from models.profile import Profile
from models.habit import Habit
from models.goal import Goal
from models.metric_template import MetricTemplate
from models.reminder import Reminder
from services.calendar_service import get_zone, is_valid_timezone

logger = logging.getLogger(__name__)

FONT_SIZES = ("default", "small", "medium", "large", "xlarge")
DISPLAY_MODES = ("light", "dark", "system")

APPEARANCE_DEFAULTS = {"fontSize": "default", "colorTheme": "default", "displayMode": "system"}


class ProfileService:
    @staticmethod
    def get_or_create(db: Session, user_id: str) -> Profile:
        profile = db.get(Profile, user_id)
        if profile is None:
            try:
                profile = Profile(id=user_id, timezone="UTC")
                db.add(profile)
                db.commit()
                db.refresh(profile)
            except SQLAlchemyError:
                db.rollback()
                logger.exception("Failed to create profile for %s", user_id)
                raise
        return profile

    @staticmethod
    def get_timezone(db: Session, user_id: str) -> str:
        profile = db.get(Profile, user_id)
        return (profile.timezone if profile else None) or "UTC"

    @staticmethod
    def resolve_timezone(db: Session, user_id: str, tz_name: str | None = None) -> str:
        """An explicit timezone wins over the stored one; unknown names raise ValueError."""
        tz_name = tz_name or ProfileService.get_timezone(db, user_id)
        get_zone(tz_name)
        return tz_name

    @staticmethod
    def update(db: Session, user_id: str, data: dict) -> Profile:
        if "timezone" in data and not is_valid_timezone(data["timezone"]):
            raise ValueError(f"Unknown timezone: {data['timezone']}")
        profile = ProfileService.get_or_create(db, user_id)
        try:
            for k in ("full_name", "timezone"):
                if k in data:
                    setattr(profile, k, data[k])
            db.commit()
            db.refresh(profile)
            return profile
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to update profile for %s", user_id)
            raise

    # ------------------------------------------------------------------
    @staticmethod
    def get_appearance(db: Session, user_id: str) -> dict:
        profile = db.get(Profile, user_id)
        if not profile:
            return dict(APPEARANCE_DEFAULTS)
        return {
            "fontSize": profile.font_size or APPEARANCE_DEFAULTS["fontSize"],
            "colorTheme": profile.color_theme or APPEARANCE_DEFAULTS["colorTheme"],
            "displayMode": profile.display_mode or APPEARANCE_DEFAULTS["displayMode"],
        }

    @staticmethod
    def update_appearance(db: Session, user_id: str, data: dict) -> dict:
        updates = {}
        if data.get("fontSize") is not None:
            if data["fontSize"] not in FONT_SIZES:
                raise ValueError("Invalid font size")
            updates["font_size"] = data["fontSize"]
        if data.get("displayMode") is not None:
            if data["displayMode"] not in DISPLAY_MODES:
                raise ValueError("Invalid display mode")
            updates["display_mode"] = data["displayMode"]
        if data.get("colorTheme") is not None:
            if not isinstance(data["colorTheme"], str) or not data["colorTheme"].strip():
                raise ValueError("Invalid color theme")
            updates["color_theme"] = data["colorTheme"].strip()
        if not updates:
            raise ValueError("No valid fields provided for update")

        profile = ProfileService.get_or_create(db, user_id)
        try:
            for k, v in updates.items():
                setattr(profile, k, v)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to save appearance for %s", user_id)
            raise
        return ProfileService.get_appearance(db, user_id)

    # ------------------------------------------------------------------
    @staticmethod
    def set_avatar(db: Session, user_id: str, filename: str, content: bytes, content_type: str) -> Profile:
        if not content_type or not content_type.startswith("image/"):
            raise ValueError("Avatar must be an image")
        url = supabase_client.upload_avatar(user_id, filename, content, content_type)
        profile = ProfileService.get_or_create(db, user_id)
        try:
            profile.avatar_url = url
            db.commit()
            db.refresh(profile)
            return profile
        except SQLAlchemyError:
            db.rollback()
            raise

    @staticmethod
    def delete_account(db: Session, user_id: str) -> dict:
        """Remove every row the user owns, their avatar, then the auth user."""
        profile = db.get(Profile, user_id)
        avatar_url = profile.avatar_url if profile else None
        try:
            # child rows go with their parents through ORM cascades
            for model in (Reminder, Habit, Goal, MetricTemplate):
                for row in db.query(model).filter_by(user_id=user_id).all():
                    db.delete(row)
            if profile:
                db.delete(profile)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to delete data for %s", user_id)
            raise

        if avatar_url and supabase_client.is_supabase_configured():
            try:
                supabase_client.remove_avatar(avatar_url)
            except Exception as e:
                # orphaned file only; the account data is already gone
                logger.warning("Could not remove avatar for %s: %s", user_id, e)

        if supabase_client.is_supabase_configured():
            supabase_client.delete_auth_user(user_id)
            auth_deleted = True
        else:
            logger.warning("Supabase not configured; auth user %s left in place", user_id)
            auth_deleted = False
        return {"data_deleted": True, "auth_user_deleted": auth_deleted}

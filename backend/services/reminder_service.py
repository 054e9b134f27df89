"""
reminder_service.py: Reminders & due scans
Reminder CRUD, the active → completed | dismissed status machine, the
habit-linked completion side effects, and the periodic due-reminder scan.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from models.habit import Habit
from models.habit_log import HabitLog
from models.reminder import Reminder, PRIORITIES, STATUSES
from services.calendar_service import (
    today_in_timezone, local_day, local_day_bounds_utc, parse_timestamp, to_utc,
)

logger = logging.getLogger(__name__)

TRANSITIONS = {
    "active": ("completed", "dismissed"),
    "completed": (),
    "dismissed": (),
}


def _naive_utc(value) -> datetime:
    if isinstance(value, str):
        value = parse_timestamp(value)
    return to_utc(value).replace(tzinfo=None)


class ReminderService:
    @staticmethod
    def _check_habit(db: Session, user_id: str, habit_id: str | None):
        if habit_id and not db.query(Habit).filter_by(id=habit_id, user_id=user_id).first():
            raise ValueError("Linked habit not found")

    @staticmethod
    def create(db: Session, user_id: str, data: dict) -> Reminder:
        title = (data.get("title") or "").strip()
        if not title:
            raise ValueError("Reminder title is required")
        if not data.get("due_date"):
            raise ValueError("due_date is required")
        priority = data.get("priority") or "Medium"
        if priority not in PRIORITIES:
            raise ValueError(f"priority must be one of {', '.join(PRIORITIES)}")
        ReminderService._check_habit(db, user_id, data.get("habit_id"))

        try:
            r = Reminder(
                user_id=user_id,
                habit_id=data.get("habit_id"),
                title=title,
                description=data.get("description"),
                due_date=_naive_utc(data["due_date"]),
                priority=priority,
            )
            db.add(r)
            db.commit()
            db.refresh(r)
            return r
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to create reminder for user %s", user_id)
            raise

    @staticmethod
    def get_all(db: Session, user_id: str, status: str | None = None) -> list[Reminder]:
        if status and status not in STATUSES:
            raise ValueError(f"status must be one of {', '.join(STATUSES)}")
        query = db.query(Reminder).filter_by(user_id=user_id)
        if status:
            query = query.filter_by(status=status)
        return query.order_by(Reminder.due_date.asc()).all()

    @staticmethod
    def get_by_id(db: Session, user_id: str, reminder_id: str) -> Reminder | None:
        return db.query(Reminder).filter_by(id=reminder_id, user_id=user_id).first()

    @staticmethod
    def update(db: Session, user_id: str, reminder_id: str, data: dict) -> Reminder | None:
        r = ReminderService.get_by_id(db, user_id, reminder_id)
        if not r:
            return None
        if "priority" in data and data["priority"] not in PRIORITIES:
            raise ValueError(f"priority must be one of {', '.join(PRIORITIES)}")
        if "title" in data and not (data["title"] or "").strip():
            raise ValueError("Reminder title is required")
        if data.get("habit_id"):
            ReminderService._check_habit(db, user_id, data["habit_id"])
        try:
            for k in ("title", "description", "priority", "habit_id"):
                if k in data:
                    setattr(r, k, data[k])
            if data.get("due_date"):
                r.due_date = _naive_utc(data["due_date"])
            db.commit()
            db.refresh(r)
            return r
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to update reminder %s", reminder_id)
            raise

    @staticmethod
    def delete(db: Session, user_id: str, reminder_id: str) -> bool:
        r = ReminderService.get_by_id(db, user_id, reminder_id)
        if not r:
            return False
        try:
            db.delete(r)
            db.commit()
            return True
        except SQLAlchemyError:
            db.rollback()
            raise

    @staticmethod
    def set_status(db: Session, user_id: str, reminder_id: str, status: str,
                   now: datetime = None) -> Reminder | None:
        r = ReminderService.get_by_id(db, user_id, reminder_id)
        if not r:
            return None
        if status not in TRANSITIONS.get(r.status, ()):
            raise ValueError(f"Cannot move reminder from {r.status} to {status}")
        try:
            r.status = status
            r.completed_at = _naive_utc(now or datetime.now(timezone.utc)) if status == "completed" else None
            db.commit()
            db.refresh(r)
            return r
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to set reminder %s to %s", reminder_id, status)
            raise

    # ------------------------------------------------------------------
    # Habit side effects. These never commit: the caller's transaction owns them.
    @staticmethod
    def complete_for_habit(db: Session, user_id: str, habit_id: str, tz_name: str,
                           now: datetime) -> int:
        """Complete the habit's active reminders that are due by the end of today."""
        _, day_end = local_day_bounds_utc(today_in_timezone(tz_name, now), tz_name)
        reminders = db.query(Reminder).filter(
            Reminder.user_id == user_id,
            Reminder.habit_id == habit_id,
            Reminder.status == "active",
            Reminder.due_date < day_end,
        ).all()
        for r in reminders:
            r.status = "completed"
            r.completed_at = _naive_utc(now)
        return len(reminders)

    @staticmethod
    def reopen_for_habit(db: Session, user_id: str, habit_id: str, tz_name: str,
                         now: datetime) -> int:
        """Undo of a completion: reminders completed today become active again."""
        day_start, day_end = local_day_bounds_utc(today_in_timezone(tz_name, now), tz_name)
        reminders = db.query(Reminder).filter(
            Reminder.user_id == user_id,
            Reminder.habit_id == habit_id,
            Reminder.status == "completed",
            Reminder.completed_at >= day_start,
            Reminder.completed_at < day_end,
        ).all()
        for r in reminders:
            r.status = "active"
            r.completed_at = None
        return len(reminders)

    # ------------------------------------------------------------------
    @staticmethod
    def check_due(db: Session, user_id: str, tz_name: str = "UTC", now: datetime = None) -> list[Reminder]:
        """
        Due scan: active reminders whose due date has passed. Habit-linked
        reminders whose habit is already completed today are closed instead
        of being returned.
        """
        now = now or datetime.now(timezone.utc)
        today = today_in_timezone(tz_name, now)
        due = db.query(Reminder).filter(
            Reminder.user_id == user_id,
            Reminder.status == "active",
            Reminder.due_date <= _naive_utc(now),
        ).order_by(Reminder.due_date.asc()).all()

        pending = []
        closed = 0
        try:
            for r in due:
                if r.habit_id:
                    done = db.query(HabitLog).filter_by(
                        habit_id=r.habit_id, completion_date=today, status="completed"
                    ).first()
                    if done:
                        r.status = "completed"
                        r.completed_at = _naive_utc(now)
                        closed += 1
                        continue
                pending.append(r)
            if closed:
                db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Reminder scan failed for user %s", user_id)
            raise

        logger.info("Reminder scan for %s: %d due, %d auto-completed", user_id, len(pending), closed)
        return pending

    @staticmethod
    def get_summary(db: Session, user_id: str, tz_name: str = "UTC", now: datetime = None) -> dict:
        now = now or datetime.now(timezone.utc)
        today = today_in_timezone(tz_name, now)
        reminders = ReminderService.get_all(db, user_id)
        active = [r for r in reminders if r.status == "active"]
        due_days = [local_day(r.due_date, tz_name) for r in active]
        return {
            "active": len(active),
            "completed": sum(1 for r in reminders if r.status == "completed"),
            "dismissed": sum(1 for r in reminders if r.status == "dismissed"),
            "due_today": sum(1 for d in due_days if d == today),
            "overdue": sum(1 for d in due_days if d < today),
            "upcoming": sum(1 for d in due_days if d >= today),
        }

    @staticmethod
    def users_with_active_reminders(db: Session) -> list[str]:
        rows = db.query(Reminder.user_id).filter(Reminder.status == "active").distinct().all()
        return [r.user_id for r in rows]

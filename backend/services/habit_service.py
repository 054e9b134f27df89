"""
habit_service.py: Habits, completion logs & streaks
CRUD over habits, the one-log-per-day completion toggle, and per-habit
statistics computed by streak_service.
"""

import json
import logging
from datetime import datetime, timezone, timedelta

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.habit import Habit, FREQUENCIES
from models.habit_log import HabitLog
from services.calendar_service import today_in_timezone, weekday_index
from services.reminder_service import ReminderService
from services.streak_service import calculate_habit_stats, calculate_current_streak

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "description", "category", "frequency", "frequency_days",
                   "time_of_day", "start_date", "is_active")


class HabitService:
    @staticmethod
    def validate(data: dict, current: Habit | None = None) -> dict:
        """Normalise habit fields; raises ValueError on bad input."""
        clean = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}

        if "name" in clean or current is None:
            name = (clean.get("name") or "").strip()
            if not name:
                raise ValueError("Habit name is required")
            clean["name"] = name

        frequency = clean.get("frequency") or (current.frequency if current else "daily")
        if frequency not in FREQUENCIES:
            raise ValueError(f"frequency must be one of {', '.join(FREQUENCIES)}")
        clean["frequency"] = frequency

        days = clean.get("frequency_days")
        if days is None:
            days = current.days if current else []
        if any(not isinstance(d, int) or isinstance(d, bool) or d < 0 or d > 6 for d in days):
            raise ValueError("frequency_days must contain weekday numbers 0-6")
        days = sorted(set(days))
        if frequency == "custom" and not days:
            raise ValueError("Custom habits need at least one day in frequency_days")
        if frequency == "weekly" and len(days) > 1:
            raise ValueError("Weekly habits are scheduled on a single day")
        if frequency == "daily":
            days = []
        clean["frequency_days"] = json.dumps(days)
        return clean

    @staticmethod
    def create(db: Session, user_id: str, data: dict) -> Habit:
        clean = HabitService.validate(data)
        try:
            h = Habit(user_id=user_id, **clean)
            db.add(h)
            db.commit()
            db.refresh(h)
            return h
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to create habit for user %s", user_id)
            raise

    @staticmethod
    def get_all(db: Session, user_id: str, active: bool | None = None) -> list[Habit]:
        query = db.query(Habit).filter_by(user_id=user_id)
        if active is not None:
            query = query.filter_by(is_active=active)
        return query.order_by(Habit.created_at.desc()).all()

    @staticmethod
    def get_by_id(db: Session, user_id: str, habit_id: str) -> Habit | None:
        return db.query(Habit).filter_by(id=habit_id, user_id=user_id).first()

    @staticmethod
    def update(db: Session, user_id: str, habit_id: str, data: dict) -> Habit | None:
        h = HabitService.get_by_id(db, user_id, habit_id)
        if not h:
            return None
        clean = HabitService.validate(data, current=h)
        try:
            for k, v in clean.items():
                setattr(h, k, v)
            db.commit()
            db.refresh(h)
            return h
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to update habit %s", habit_id)
            raise

    @staticmethod
    def delete(db: Session, user_id: str, habit_id: str) -> bool:
        h = HabitService.get_by_id(db, user_id, habit_id)
        if not h:
            return False
        try:
            db.delete(h)
            db.commit()
            return True
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to delete habit %s", habit_id)
            raise

    # ------------------------------------------------------------------
    @staticmethod
    def _log_for_day(db: Session, habit_id: str, day) -> HabitLog | None:
        return db.query(HabitLog).filter_by(habit_id=habit_id, completion_date=day).first()

    @staticmethod
    def toggle_completion(db: Session, user_id: str, habit_id: str, status: str = "completed",
                          tz_name: str = "UTC", now: datetime = None) -> dict | None:
        """
        Three-way toggle for today's log: insert, delete when the same status
        is sent again, update when a different one is. The linked reminders
        change in the same transaction.
        """
        if status != "completed":
            raise ValueError("Only completed status is supported")

        now = now or datetime.now(timezone.utc)
        today = today_in_timezone(tz_name, now)

        h = HabitService.get_by_id(db, user_id, habit_id)
        if not h:
            return None

        try:
            log = HabitService._log_for_day(db, habit_id, today)
            if log is None:
                log = HabitLog(habit_id=habit_id, completion_date=today, status=status)
                db.add(log)
                try:
                    db.flush()
                except IntegrityError:
                    # a concurrent request inserted today's row first; nothing else
                    # has been written in this transaction yet
                    db.rollback()
                    logger.info("Concurrent completion for habit %s on %s", habit_id, today)
                    log = HabitService._log_for_day(db, habit_id, today)
                    if log is None:
                        # the other request undid its row before we re-read
                        log = HabitLog(habit_id=habit_id, completion_date=today, status=status)
                        db.add(log)
                        db.flush()
                action = "completed"
            elif log.status == status:
                db.delete(log)
                action = "removed"
            else:
                log.status = status
                action = "completed"

            if action == "completed":
                ReminderService.complete_for_habit(db, user_id, habit_id, tz_name, now)
            else:
                ReminderService.reopen_for_habit(db, user_id, habit_id, tz_name, now)

            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to toggle completion for habit %s", habit_id)
            raise

        logger.info("Habit %s %s for %s (tz=%s)", habit_id, action, today, tz_name)
        return {"success": True, "action": action, "date": today.isoformat()}

    # ------------------------------------------------------------------
    @staticmethod
    def _log_rows(db: Session, habit_id: str) -> list[tuple]:
        rows = db.query(HabitLog.completion_date, HabitLog.status)\
                 .filter(HabitLog.habit_id == habit_id)\
                 .order_by(HabitLog.completion_date.desc()).all()
        return [(r.completion_date, r.status) for r in rows]

    @staticmethod
    def get_stats(db: Session, user_id: str, tz_name: str = "UTC", now: datetime = None) -> list[dict]:
        stats = []
        for h in HabitService.get_all(db, user_id):
            result = calculate_habit_stats(HabitService._log_rows(db, h.id), h.frequency, tz_name, now)
            stats.append({"habit_id": h.id, "habit_name": h.name, **result})
        return stats

    @staticmethod
    def get_streak(db: Session, user_id: str, habit_id: str, tz_name: str = "UTC",
                   now: datetime = None) -> int | None:
        h = HabitService.get_by_id(db, user_id, habit_id)
        if not h:
            return None
        dates = [d for d, status in HabitService._log_rows(db, habit_id) if status == "completed"]
        return calculate_current_streak(dates, h.frequency, tz_name, now)

    @staticmethod
    def get_history(db: Session, user_id: str, habit_id: str, days: int = 30,
                    tz_name: str = "UTC", now: datetime = None) -> list | None:
        if not HabitService.get_by_id(db, user_id, habit_id):
            return None
        start_date = today_in_timezone(tz_name, now) - timedelta(days=days)
        logs = db.query(HabitLog).filter(
            HabitLog.habit_id == habit_id,
            HabitLog.completion_date >= start_date
        ).order_by(HabitLog.completion_date.asc()).all()
        return [l.to_dict() for l in logs]

    # ------------------------------------------------------------------
    @staticmethod
    def scheduled_days(h: Habit) -> list[int]:
        if h.frequency == "daily":
            return list(range(7))
        if h.frequency == "weekly":
            return h.days or [0]  # weekly habits default to Sunday
        return h.days

    @staticmethod
    def days_until_next(h: Habit, today) -> int | None:
        days = HabitService.scheduled_days(h)
        if not days:
            return None
        todays = weekday_index(today)
        return min((d - todays) % 7 for d in days)

    @staticmethod
    def get_today(db: Session, user_id: str, tz_name: str = "UTC", now: datetime = None) -> list[dict]:
        """Active habits scheduled for today with today's status."""
        today = today_in_timezone(tz_name, now)
        result = []
        for h in HabitService.get_all(db, user_id, active=True):
            if HabitService.days_until_next(h, today) != 0:
                continue
            log = HabitService._log_for_day(db, h.id, today)
            result.append({
                "habit": h.to_dict(),
                "completed_today": bool(log and log.status == "completed"),
            })
        return result

    @staticmethod
    def get_upcoming(db: Session, user_id: str, tz_name: str = "UTC", now: datetime = None) -> list[dict]:
        """Active habits with an occurrence in the next 7 days."""
        today = today_in_timezone(tz_name, now)
        upcoming = []
        for h in HabitService.get_all(db, user_id, active=True):
            n = HabitService.days_until_next(h, today)
            if n is None:
                continue
            label = "Today" if n == 0 else f"In {n} day{'s' if n > 1 else ''}"
            upcoming.append({"habit": h.to_dict(), "days_until": n, "next_occurrence": label})
        upcoming.sort(key=lambda item: item["days_until"])
        return upcoming

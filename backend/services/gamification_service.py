"""
gamification_service.py: Points, badges & levels
Everything here is derived from the user's habit logs and current streaks;
nothing is stored.
"""

from datetime import datetime

from sqlalchemy.orm import Session

from models.habit import Habit
from models.habit_log import HabitLog
from services.habit_service import HabitService

POINTS_PER_LOG = 10
POINTS_PER_STREAK_DAY = 5
LEVELS = [100, 250, 500, 1000, 2000, 3500, 5000, 7500, 10000]

# (name, description, measure, threshold)
BADGES = [
    ("First Log", "Logged your first habit", "logs", 1),
    ("Habit Collector", "Created 3 habits", "habits", 3),
    ("Triple Streak", "Maintained a 3-day streak", "streak", 3),
    ("Week Warrior", "Maintained a 7-day streak", "streak", 7),
    ("10 Log Milestone", "Completed 10 habit logs", "logs", 10),
    ("Habit Master", "Created 5 habits", "habits", 5),
    ("Monthly Mastery", "Maintained a 30-day streak", "streak", 30),
    ("50 Log Champion", "Completed 50 habit logs", "logs", 50),
    ("Century Club", "Completed 100 habit logs", "logs", 100),
    ("Quarter Legend", "Maintained a 90-day streak", "streak", 90),
    ("Habit Architect", "Created 10 habits", "habits", 10),
]


def level_for(points: int) -> dict:
    """Level is the number of thresholds already passed."""
    level = next((i for i, threshold in enumerate(LEVELS) if points < threshold), len(LEVELS))
    floor = LEVELS[level - 1] if level > 0 else 0
    if level == len(LEVELS):
        return {"level": level, "next_level_points": None, "level_progress": 100.0}
    ceiling = LEVELS[level]
    return {
        "level": level,
        "next_level_points": ceiling,
        "level_progress": round((points - floor) / (ceiling - floor) * 100, 2),
    }


def summarize(log_count: int, habit_count: int, streaks: list[int]) -> dict:
    points = log_count * POINTS_PER_LOG + sum(streaks) * POINTS_PER_STREAK_DAY
    longest = max(streaks, default=0)
    measures = {"logs": log_count, "habits": habit_count, "streak": longest}

    badges = []
    for name, description, measure, threshold in BADGES:
        value = measures[measure]
        badges.append({
            "name": name,
            "description": description,
            "threshold": threshold,
            "earned": value >= threshold,
            "progress": round(min(value / threshold, 1) * 100, 2),
        })

    return {
        "total_points": points,
        "longest_streak": longest,
        "badges": badges,
        "earned_badges": sum(1 for b in badges if b["earned"]),
        **level_for(points),
    }


class GamificationService:
    @staticmethod
    def get_summary(db: Session, user_id: str, tz_name: str = "UTC", now: datetime = None) -> dict:
        habits = HabitService.get_all(db, user_id)
        log_count = db.query(HabitLog).join(Habit).filter(Habit.user_id == user_id).count()
        streaks = [s["current_streak"] for s in HabitService.get_stats(db, user_id, tz_name, now)]
        return summarize(log_count, len(habits), streaks)

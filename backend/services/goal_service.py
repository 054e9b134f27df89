"""
goal_service.py: Goals, progress logs & milestones
current_value is always derived from the goal's logs, and is rewritten in
the same transaction as the log that changes it.
"""

import logging
import math
from datetime import date, datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from models.goal import Goal
from models.goal_log import GoalLog
from models.goal_milestone import GoalMilestone

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "category", "metric", "target_value",
                   "start_date", "deadline", "is_active")


def progress_percentage(current_value, target_value) -> float:
    if not target_value:
        return 0.0
    pct = round((current_value or 0.0) / target_value * 100, 2)
    return pct if math.isfinite(pct) else 0.0


def days_remaining(deadline, now: datetime = None) -> int:
    if not deadline:
        return 0
    now = now or datetime.now(timezone.utc)
    if isinstance(deadline, date) and not isinstance(deadline, datetime):
        deadline = datetime(deadline.year, deadline.month, deadline.day, tzinfo=timezone.utc)
    elif deadline.tzinfo is None:
        deadline = deadline.replace(tzinfo=timezone.utc)
    seconds = (deadline - now).total_seconds()
    return max(0, math.ceil(seconds / 86400))


class GoalService:
    @staticmethod
    def validate(data: dict, current: Goal | None = None) -> dict:
        clean = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
        if "title" in clean or current is None:
            if not (clean.get("title") or "").strip():
                raise ValueError("Goal title is required")
            clean["title"] = clean["title"].strip()
        if "metric" in clean or current is None:
            if not (clean.get("metric") or "").strip():
                raise ValueError("Goal metric is required")
        if "target_value" in clean or current is None:
            target = clean.get("target_value")
            if target is None or target <= 0:
                raise ValueError("target_value must be greater than zero")
        start = clean.get("start_date", current.start_date if current else None)
        deadline = clean.get("deadline", current.deadline if current else None)
        if start and deadline and deadline < start:
            raise ValueError("deadline cannot be before start_date")
        return clean

    @staticmethod
    def create(db: Session, user_id: str, data: dict) -> Goal:
        clean = GoalService.validate(data)
        try:
            goal = Goal(user_id=user_id, current_value=0.0, **clean)
            db.add(goal)
            db.commit()
            db.refresh(goal)
            return goal
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to create goal for user %s", user_id)
            raise

    @staticmethod
    def get_all(db: Session, user_id: str, active: bool | None = None) -> list[Goal]:
        query = db.query(Goal).filter_by(user_id=user_id)
        if active is not None:
            query = query.filter_by(is_active=active)
        return query.order_by(Goal.created_at.desc()).all()

    @staticmethod
    def get_by_id(db: Session, user_id: str, goal_id: str) -> Goal | None:
        return db.query(Goal).filter_by(id=goal_id, user_id=user_id).first()

    @staticmethod
    def update(db: Session, user_id: str, goal_id: str, data: dict) -> Goal | None:
        goal = GoalService.get_by_id(db, user_id, goal_id)
        if not goal:
            return None
        clean = GoalService.validate(data, current=goal)
        try:
            for k, v in clean.items():
                setattr(goal, k, v)
            GoalService._refresh_progress(db, goal)
            db.commit()
            db.refresh(goal)
            return goal
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to update goal %s", goal_id)
            raise

    @staticmethod
    def delete(db: Session, user_id: str, goal_id: str) -> bool:
        goal = GoalService.get_by_id(db, user_id, goal_id)
        if not goal:
            return False
        try:
            db.delete(goal)
            db.commit()
            return True
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to delete goal %s", goal_id)
            raise

    # ------------------------------------------------------------------
    @staticmethod
    def _refresh_progress(db: Session, goal: Goal):
        db.flush()
        total = db.query(func.coalesce(func.sum(GoalLog.value), 0.0))\
                  .filter(GoalLog.goal_id == goal.id).scalar()
        goal.current_value = float(total)
        goal.is_completed = goal.current_value >= goal.target_value

    @staticmethod
    def add_log(db: Session, user_id: str, goal_id: str, data: dict) -> dict | None:
        goal = GoalService.get_by_id(db, user_id, goal_id)
        if not goal:
            return None
        value = data.get("value")
        if value is None or value < 0:
            raise ValueError("Value cannot be negative")
        try:
            log = GoalLog(
                goal_id=goal.id,
                log_date=data.get("log_date") or datetime.now(timezone.utc).date(),
                value=value,
                notes=data.get("notes"),
            )
            db.add(log)
            GoalService._refresh_progress(db, goal)
            db.commit()
            db.refresh(log)
            db.refresh(goal)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to log progress for goal %s", goal_id)
            raise
        return {"log": log.to_dict(), "goal": goal.to_dict()}

    @staticmethod
    def get_logs(db: Session, user_id: str, goal_id: str) -> list | None:
        goal = GoalService.get_by_id(db, user_id, goal_id)
        if not goal:
            return None
        return [l.to_dict() for l in goal.logs]

    @staticmethod
    def delete_log(db: Session, user_id: str, goal_id: str, log_id: str) -> bool:
        goal = GoalService.get_by_id(db, user_id, goal_id)
        if not goal:
            return False
        log = db.query(GoalLog).filter_by(id=log_id, goal_id=goal.id).first()
        if not log:
            return False
        try:
            db.delete(log)
            GoalService._refresh_progress(db, goal)
            db.commit()
            return True
        except SQLAlchemyError:
            db.rollback()
            raise

    # ------------------------------------------------------------------
    @staticmethod
    def get_milestones(db: Session, user_id: str, goal_id: str) -> list | None:
        goal = GoalService.get_by_id(db, user_id, goal_id)
        if not goal:
            return None
        return [m.to_dict() for m in goal.milestones]

    @staticmethod
    def add_milestone(db: Session, user_id: str, goal_id: str, data: dict) -> GoalMilestone | None:
        goal = GoalService.get_by_id(db, user_id, goal_id)
        if not goal:
            return None
        if not (data.get("title") or "").strip():
            raise ValueError("Milestone title is required")
        if data.get("target_value") is None or data["target_value"] <= 0:
            raise ValueError("Target value must be greater than zero")
        try:
            m = GoalMilestone(
                goal_id=goal.id,
                title=data["title"].strip(),
                description=data.get("description"),
                target_date=data.get("target_date"),
                target_value=data["target_value"],
            )
            db.add(m)
            db.commit()
            db.refresh(m)
            return m
        except SQLAlchemyError:
            db.rollback()
            raise

    @staticmethod
    def toggle_milestone(db: Session, user_id: str, goal_id: str, milestone_id: str) -> GoalMilestone | None:
        goal = GoalService.get_by_id(db, user_id, goal_id)
        if not goal:
            return None
        m = db.query(GoalMilestone).filter_by(id=milestone_id, goal_id=goal.id).first()
        if not m:
            return None
        try:
            m.is_completed = not m.is_completed
            db.commit()
            db.refresh(m)
            return m
        except SQLAlchemyError:
            db.rollback()
            raise

    @staticmethod
    def delete_milestone(db: Session, user_id: str, goal_id: str, milestone_id: str) -> bool:
        goal = GoalService.get_by_id(db, user_id, goal_id)
        if not goal:
            return False
        m = db.query(GoalMilestone).filter_by(id=milestone_id, goal_id=goal.id).first()
        if not m:
            return False
        try:
            db.delete(m)
            db.commit()
            return True
        except SQLAlchemyError:
            db.rollback()
            raise

    # ------------------------------------------------------------------
    @staticmethod
    def get_progress(db: Session, user_id: str, goal_id: str) -> float | None:
        goal = GoalService.get_by_id(db, user_id, goal_id)
        if not goal:
            return None
        return progress_percentage(goal.current_value, goal.target_value)

    @staticmethod
    def get_stats(db: Session, user_id: str, now: datetime = None) -> list[dict]:
        stats = []
        for goal in GoalService.get_all(db, user_id, active=True):
            milestones = goal.milestones
            done = sum(1 for m in milestones if m.is_completed)
            stats.append({
                "goal_id": goal.id,
                "goal_title": goal.title,
                "progress_percentage": progress_percentage(goal.current_value, goal.target_value),
                "days_remaining": days_remaining(goal.deadline, now),
                "milestone_completion_rate": round(done / len(milestones) * 100, 2) if milestones else 0,
            })
        return stats

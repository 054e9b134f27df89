"""
metric_service.py: Health metrics
User-defined metric templates (plain number, blood pressure, blood sugar),
their readings, and a trend classification comparing two equal windows.
"""

import logging
import math
from datetime import datetime, timezone, timedelta

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from models.metric_template import MetricTemplate, VALUE_TYPES
from models.metric_log import MetricLog
from services.calendar_service import parse_timestamp, to_utc

logger = logging.getLogger(__name__)

# column that carries the headline value of each template type
TREND_COLUMNS = {
    "number": "value_numeric",
    "bloodpressure": "value_systolic",
    "bloodsugar": "value_bloodsugar",
}
REQUIRED_COLUMNS = {
    "number": ("value_numeric",),
    "bloodpressure": ("value_systolic", "value_diastolic"),
    "bloodsugar": ("value_bloodsugar",),
}
VALUE_COLUMNS = ("value_numeric", "value_systolic", "value_diastolic", "value_bloodsugar")
STEADY_THRESHOLD = 0.01  # relative change at or below 1% counts as steady


def _naive_utc(value) -> datetime:
    if isinstance(value, str):
        value = parse_timestamp(value)
    return to_utc(value).replace(tzinfo=None)


def average(values) -> float | None:
    valid = [v for v in values if v is not None and math.isfinite(v)]
    if not valid:
        return None
    avg = sum(valid) / len(valid)
    return avg if math.isfinite(avg) else None


def classify_trend(current_avg: float | None, previous_avg: float | None) -> str:
    if current_avg is None or previous_avg is None or previous_avg == 0:
        return "unknown"
    change = abs(current_avg - previous_avg) / abs(previous_avg)
    if not math.isfinite(change):
        return "unknown"
    if change <= STEADY_THRESHOLD:
        return "steady"
    return "increase" if current_avg > previous_avg else "decrease"


class MetricService:
    @staticmethod
    def create_template(db: Session, user_id: str, data: dict) -> MetricTemplate:
        if not (data.get("name") or "").strip():
            raise ValueError("Metric name is required")
        value_type = data.get("value_type") or "number"
        if value_type not in VALUE_TYPES:
            raise ValueError(f"value_type must be one of {', '.join(VALUE_TYPES)}")
        try:
            t = MetricTemplate(
                user_id=user_id,
                name=data["name"].strip(),
                unit=data.get("unit"),
                value_type=value_type,
                description=data.get("description"),
            )
            db.add(t)
            db.commit()
            db.refresh(t)
            return t
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to create metric template for user %s", user_id)
            raise

    @staticmethod
    def get_templates(db: Session, user_id: str) -> list[MetricTemplate]:
        return db.query(MetricTemplate).filter_by(user_id=user_id)\
                 .order_by(MetricTemplate.created_at.desc()).all()

    @staticmethod
    def get_template(db: Session, user_id: str, template_id: str) -> MetricTemplate | None:
        return db.query(MetricTemplate).filter_by(id=template_id, user_id=user_id).first()

    @staticmethod
    def update_template(db: Session, user_id: str, template_id: str, data: dict) -> MetricTemplate | None:
        t = MetricService.get_template(db, user_id, template_id)
        if not t:
            return None
        if "name" in data and not (data["name"] or "").strip():
            raise ValueError("Metric name is required")
        if "value_type" in data and data["value_type"] != t.value_type and t.logs:
            raise ValueError("Cannot change value_type of a metric that already has readings")
        if "value_type" in data and data["value_type"] not in VALUE_TYPES:
            raise ValueError(f"value_type must be one of {', '.join(VALUE_TYPES)}")
        try:
            for k in ("name", "unit", "value_type", "description"):
                if k in data:
                    setattr(t, k, data[k])
            db.commit()
            db.refresh(t)
            return t
        except SQLAlchemyError:
            db.rollback()
            raise

    @staticmethod
    def delete_template(db: Session, user_id: str, template_id: str) -> bool:
        t = MetricService.get_template(db, user_id, template_id)
        if not t:
            return False
        try:
            db.delete(t)
            db.commit()
            return True
        except SQLAlchemyError:
            db.rollback()
            raise

    # ------------------------------------------------------------------
    @staticmethod
    def add_log(db: Session, user_id: str, template_id: str, data: dict) -> MetricLog | None:
        t = MetricService.get_template(db, user_id, template_id)
        if not t:
            return None
        missing = [c for c in REQUIRED_COLUMNS[t.value_type] if data.get(c) is None]
        if missing:
            raise ValueError(f"{', '.join(missing)} required for {t.value_type} metrics")
        try:
            log = MetricLog(
                metric_template_id=t.id,
                measurement_date=_naive_utc(data.get("measurement_date") or datetime.now(timezone.utc)),
                notes=data.get("notes"),
                **{c: data.get(c) for c in VALUE_COLUMNS},
            )
            db.add(log)
            db.commit()
            db.refresh(log)
            return log
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to log reading for metric %s", template_id)
            raise

    @staticmethod
    def get_logs(db: Session, user_id: str, template_id: str, days: int | None = None,
                 now: datetime = None) -> list | None:
        t = MetricService.get_template(db, user_id, template_id)
        if not t:
            return None
        query = db.query(MetricLog).filter(MetricLog.metric_template_id == t.id)
        if days:
            start = _naive_utc(now or datetime.now(timezone.utc)) - timedelta(days=days)
            query = query.filter(MetricLog.measurement_date >= start)
        return [l.to_dict() for l in query.order_by(MetricLog.measurement_date.asc()).all()]

    @staticmethod
    def delete_log(db: Session, user_id: str, template_id: str, log_id: str) -> bool:
        t = MetricService.get_template(db, user_id, template_id)
        if not t:
            return False
        log = db.query(MetricLog).filter_by(id=log_id, metric_template_id=t.id).first()
        if not log:
            return False
        try:
            db.delete(log)
            db.commit()
            return True
        except SQLAlchemyError:
            db.rollback()
            raise

    # ------------------------------------------------------------------
    @staticmethod
    def _window_average(db: Session, template: MetricTemplate, start: datetime, end: datetime,
                        include_end: bool = True) -> float | None:
        column = getattr(MetricLog, TREND_COLUMNS[template.value_type])
        rows = db.query(column).filter(
            MetricLog.metric_template_id == template.id,
            MetricLog.measurement_date >= start,
            MetricLog.measurement_date <= end if include_end else MetricLog.measurement_date < end,
            column.isnot(None),
        ).all()
        return average(r[0] for r in rows)

    @staticmethod
    def get_trend(db: Session, user_id: str, template_id: str, days_back: int = 7,
                  now: datetime = None) -> dict | None:
        """Average of [now - d, now] against [now - 2d, now - d)."""
        if not isinstance(days_back, int) or days_back < 1 or days_back > 365:
            raise ValueError("days_back must be a number between 1 and 365")
        t = MetricService.get_template(db, user_id, template_id)
        if not t:
            return None

        current_end = _naive_utc(now or datetime.now(timezone.utc))
        current_start = current_end - timedelta(days=days_back)
        previous_start = current_start - timedelta(days=days_back)

        current_avg = MetricService._window_average(db, t, current_start, current_end)
        previous_avg = MetricService._window_average(db, t, previous_start, current_start, include_end=False)
        trend = classify_trend(current_avg, previous_avg)

        logger.info("Metric trend %s: %s (current=%s previous=%s days_back=%d)",
                    template_id, trend, current_avg, previous_avg, days_back)
        return {"trend": trend, "current_average": current_avg, "previous_average": previous_avg}

import json
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, Date, DateTime, Boolean
from sqlalchemy.orm import relationship
from database import Base

FREQUENCIES = ("daily", "weekly", "custom")


class Habit(Base):
    __tablename__ = "habits"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=True)  # health/fitness/mindfulness/productivity
    frequency = Column(String(20), default="daily")  # daily/weekly/custom
    frequency_days = Column(Text, nullable=True)  # JSON array of weekday ints, 0 = Sunday
    time_of_day = Column(String(10), nullable=True)  # e.g. "08:00"
    start_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    logs = relationship("HabitLog", back_populates="habit", cascade="all, delete-orphan")
    reminders = relationship("Reminder", back_populates="habit")

    @property
    def days(self) -> list[int]:
        return json.loads(self.frequency_days) if self.frequency_days else []

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "frequency": self.frequency,
            "frequency_days": self.days,
            "time_of_day": self.time_of_day,
            "start_date": str(self.start_date) if self.start_date else None,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

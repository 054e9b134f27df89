import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, Date, DateTime, Float, Boolean
from sqlalchemy.orm import relationship
from database import Base


class Goal(Base):
    __tablename__ = "goals"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=True)  # fitness/nutrition/sleep/mental/other
    metric = Column(String(50), nullable=False)  # unit being tracked, e.g. "km" or "kg"
    target_value = Column(Float, nullable=False)
    current_value = Column(Float, default=0.0)  # always the sum of goal_logs.value
    start_date = Column(Date, nullable=True)
    deadline = Column(Date, nullable=True)
    is_completed = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    logs = relationship("GoalLog", back_populates="goal", cascade="all, delete-orphan",
                        order_by="GoalLog.log_date")
    milestones = relationship("GoalMilestone", back_populates="goal", cascade="all, delete-orphan",
                              order_by="GoalMilestone.target_value")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "metric": self.metric,
            "target_value": self.target_value,
            "current_value": self.current_value or 0.0,
            "start_date": str(self.start_date) if self.start_date else None,
            "deadline": str(self.deadline) if self.deadline else None,
            "is_completed": self.is_completed,
            "is_active": self.is_active,
        }

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, Date, DateTime, Float, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from database import Base


class GoalMilestone(Base):
    __tablename__ = "goal_milestones"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    goal_id = Column(String(36), ForeignKey("goals.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    target_date = Column(Date, nullable=True)
    target_value = Column(Float, nullable=False)
    is_completed = Column(Boolean, default=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    goal = relationship("Goal", back_populates="milestones")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "goal_id": self.goal_id,
            "title": self.title,
            "description": self.description,
            "target_date": str(self.target_date) if self.target_date else None,
            "target_value": self.target_value,
            "is_completed": self.is_completed,
        }

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, Date, DateTime, Float, ForeignKey
from sqlalchemy.orm import relationship
from database import Base


class GoalLog(Base):
    __tablename__ = "goal_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    goal_id = Column(String(36), ForeignKey("goals.id", ondelete="CASCADE"), nullable=False)
    log_date = Column(Date, nullable=False)
    value = Column(Float, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    goal = relationship("Goal", back_populates="logs")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "goal_id": self.goal_id,
            "log_date": str(self.log_date),
            "value": self.value,
            "notes": self.notes,
        }

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import relationship
from database import Base

VALUE_TYPES = ("number", "bloodpressure", "bloodsugar")


class MetricTemplate(Base):
    __tablename__ = "metric_templates"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    unit = Column(String(30), nullable=True)  # kg, mmHg, mg/dL ...
    value_type = Column(String(20), nullable=False, default="number")
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    logs = relationship("MetricLog", back_populates="template", cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "unit": self.unit,
            "value_type": self.value_type,
            "description": self.description,
        }

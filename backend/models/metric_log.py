import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Float, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database import Base


class MetricLog(Base):
    __tablename__ = "metric_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    metric_template_id = Column(String(36), ForeignKey("metric_templates.id", ondelete="CASCADE"), nullable=False)
    measurement_date = Column(DateTime, nullable=False, index=True)  # stored as naive UTC
    value_numeric = Column(Float, nullable=True)
    value_systolic = Column(Float, nullable=True)
    value_diastolic = Column(Float, nullable=True)
    value_bloodsugar = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    template = relationship("MetricTemplate", back_populates="logs")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "metric_template_id": self.metric_template_id,
            "measurement_date": self.measurement_date.isoformat(),
            "value_numeric": self.value_numeric,
            "value_systolic": self.value_systolic,
            "value_diastolic": self.value_diastolic,
            "value_bloodsugar": self.value_bloodsugar,
            "notes": self.notes,
        }

from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime
from database import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)  # same id as the Supabase auth user
    full_name = Column(String(200), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    timezone = Column(String(64), default="UTC")  # IANA name
    font_size = Column(String(20), nullable=True)
    color_theme = Column(String(30), nullable=True)
    display_mode = Column(String(20), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "full_name": self.full_name,
            "avatar_url": self.avatar_url,
            "timezone": self.timezone or "UTC",
        }

"""Notification model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from scheduler.database import Base


class Notification(Base):
    """An in-app message for a doctor or patient."""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    recipient_id = Column(String, nullable=False, index=True)
    recipient_type = Column(String, nullable=False)  # doctor/patient
    message = Column(String, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc).replace(tzinfo=None))

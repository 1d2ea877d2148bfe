"""Doctor model definitions."""

from uuid import uuid4

from sqlalchemy import Boolean, Column, String
from sqlalchemy.orm import relationship

from scheduler.database import Base


class Doctor(Base):
    """A doctor who publishes weekly working hours."""
    __tablename__ = "doctors"

    id = Column(String, primary_key=True, default=lambda: uuid4().hex)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True)
    avatar_url = Column(String)
    is_deleted = Column(Boolean, default=False, nullable=False)

    working_hours = relationship("WorkingHour", back_populates="doctor", cascade="all, delete-orphan")

"""Working-hour rule definitions."""

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from scheduler.database import Base


class WorkingHour(Base):
    """A recurring weekly start time at which a doctor takes appointments."""
    __tablename__ = "working_hours"
    __table_args__ = (
        UniqueConstraint("doctor_id", "day_of_week", "hour", "minute", name="uq_working_hours_rule"),
    )

    id = Column(Integer, primary_key=True)
    doctor_id = Column(String, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    hour = Column(Integer, nullable=False)
    minute = Column(Integer, nullable=False, default=0)

    doctor = relationship("Doctor", back_populates="working_hours")

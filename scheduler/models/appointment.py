"""Appointment model definitions."""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Index, Integer, String, text
from scheduler.database import Base


def _utc_naive_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    DONE = "done"


class ExaminationMethod(str, Enum):
    AT_CLINIC = "at_clinic"
    AT_HOME = "at_home"
    ONLINE = "online"


# Statuses that occupy a slot for availability purposes.
ACTIVE_STATUSES = (
    AppointmentStatus.PENDING.value,
    AppointmentStatus.CONFIRMED.value,
    AppointmentStatus.DONE.value,
)


class Appointment(Base):
    """Represents a booked doctor/patient appointment at a date and HH:MM time."""
    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointments_doctor_date", "doctor_id", "date"),
        # At most one pending appointment per doctor slot.
        Index(
            "uq_appointments_pending_slot",
            "doctor_id",
            "date",
            "time",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id = Column(Integer, primary_key=True)
    doctor_id = Column(String, ForeignKey("doctors.id"), nullable=False)
    patient_id = Column(String, nullable=False, index=True)
    patient_model = Column(String, default="User")  # User/Doctor
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)
    status = Column(String, nullable=False, default=AppointmentStatus.PENDING.value)
    examination_method = Column(String, default=ExaminationMethod.AT_CLINIC.value)
    reason = Column(String)
    notes = Column(String)
    total_cost = Column(Float)
    location = Column(String)
    created_at = Column(DateTime, default=_utc_naive_now)
    updated_at = Column(DateTime, default=_utc_naive_now, onupdate=_utc_naive_now)

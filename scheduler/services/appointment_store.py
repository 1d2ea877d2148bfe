from datetime import date

from sqlalchemy import update
from sqlalchemy.orm import Session

from scheduler.core.errors import ValidationError, database_read
from scheduler.models.appointment import ACTIVE_STATUSES, Appointment, AppointmentStatus
from scheduler.schemas.availability import BookedSlot

REVIVABLE_FIELDS = ('examination_method', 'reason', 'notes', 'total_cost', 'location')


class AppointmentStore:
    """SQLAlchemy access to the appointments table.

    Writes flush but never commit; the booking service owns the transaction.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_booked_slots(self, doctor_id: str, start_date: date, end_date: date) -> list[BookedSlot]:
        """(date, time) pairs held by active appointments in ``[start_date, end_date)``."""
        if end_date <= start_date:
            raise ValidationError('end_date must be after start_date.')

        with database_read('load booked appointments'):
            rows = self.db.query(Appointment.date, Appointment.time).filter(
                Appointment.doctor_id == doctor_id,
                Appointment.date >= start_date,
                Appointment.date < end_date,
                Appointment.status.in_(ACTIVE_STATUSES),
            ).order_by(Appointment.date.asc(), Appointment.time.asc()).all()

        return [BookedSlot(date=slot_date, time=slot_time) for slot_date, slot_time in rows]

    def get(self, appointment_id: int) -> Appointment | None:
        with database_read('load the appointment'):
            return self.db.get(Appointment, appointment_id)

    def find_pending(self, doctor_id: str, slot_date: date, slot_time: str) -> Appointment | None:
        with database_read('check the slot for a pending appointment'):
            return self.db.query(Appointment).filter(
                Appointment.doctor_id == doctor_id,
                Appointment.date == slot_date,
                Appointment.time == slot_time,
                Appointment.status == AppointmentStatus.PENDING.value,
            ).first()

    def find_cancelled(self, doctor_id: str, patient_id: str, slot_date: date, slot_time: str) -> Appointment | None:
        with database_read('look up a cancelled appointment'):
            return self.db.query(Appointment).filter(
                Appointment.doctor_id == doctor_id,
                Appointment.patient_id == patient_id,
                Appointment.date == slot_date,
                Appointment.time == slot_time,
                Appointment.status == AppointmentStatus.CANCELLED.value,
            ).order_by(Appointment.id.asc()).first()

    def insert(self, appointment: Appointment) -> Appointment:
        self.db.add(appointment)
        with database_read('save the appointment'):
            self.db.flush()
        return appointment

    def revive_cancelled(self, appointment_id: int, fields: dict) -> bool:
        """Move a cancelled appointment back to pending.

        The update only matches while the row is still cancelled, so a
        concurrent revive of the same row affects zero rows here.
        """
        values = {name: fields.get(name) for name in REVIVABLE_FIELDS}
        values['status'] = AppointmentStatus.PENDING.value
        result = self.db.execute(
            update(Appointment)
            .where(
                Appointment.id == appointment_id,
                Appointment.status == AppointmentStatus.CANCELLED.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        self.db.flush()
        return result.rowcount == 1

    def set_status(self, appointment_id: int, current_status: str, new_status: str) -> bool:
        result = self.db.execute(
            update(Appointment)
            .where(Appointment.id == appointment_id, Appointment.status == current_status)
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        self.db.flush()
        return result.rowcount == 1

    def list_for_doctor(self, doctor_id: str) -> list[Appointment]:
        with database_read('load doctor appointments'):
            return self.db.query(Appointment).filter(
                Appointment.doctor_id == doctor_id,
            ).order_by(Appointment.date.desc(), Appointment.time.desc(), Appointment.id.desc()).all()

    def list_for_patient(self, patient_id: str) -> list[Appointment]:
        with database_read('load patient appointments'):
            return self.db.query(Appointment).filter(
                Appointment.patient_id == patient_id,
            ).order_by(Appointment.date.desc(), Appointment.time.desc(), Appointment.id.desc()).all()

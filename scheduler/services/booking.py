"""Appointment booking, status transitions and cached appointment listings.

Slot ownership is enforced by the database: a partial unique index allows a
single pending appointment per (doctor, date, time). The explicit pending
lookup below only gives callers a clear error in the common case; the index
is what keeps two concurrent bookings from both succeeding.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scheduler.core import config
from scheduler.core.errors import ConflictError, NotFoundError, SchedulingError
from scheduler.models.appointment import Appointment, AppointmentStatus, ExaminationMethod
from scheduler.schemas.appointment import (
    AppointmentListItem,
    AppointmentResponse,
    BookAppointmentRequest,
    BookingResult,
    PartySummary,
)
from scheduler.services.appointment_store import AppointmentStore
from scheduler.services.doctor_store import DoctorStore
from scheduler.services.notifications import RECIPIENT_DOCTOR, RECIPIENT_PATIENT, Notifier

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = 'This time slot is already booked.'

ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING.value: {
        AppointmentStatus.CONFIRMED.value,
        AppointmentStatus.CANCELLED.value,
        AppointmentStatus.DONE.value,
    },
    AppointmentStatus.CONFIRMED.value: {
        AppointmentStatus.CANCELLED.value,
        AppointmentStatus.DONE.value,
    },
    # Cancelled appointments return to pending only by being re-booked.
    AppointmentStatus.CANCELLED.value: set(),
    AppointmentStatus.DONE.value: set(),
}

STATUS_MESSAGES = {
    AppointmentStatus.CONFIRMED.value: (
        'You confirmed an appointment.',
        'Your appointment has been confirmed.',
    ),
    AppointmentStatus.CANCELLED.value: (
        'A patient appointment has been cancelled.',
        'Your appointment has been cancelled.',
    ),
    AppointmentStatus.DONE.value: (
        'The patient appointment has been completed.',
        'Your appointment has been completed.',
    ),
}


def doctor_appointments_cache_key(doctor_id: str) -> str:
    return f'all_doctor_appointments_{doctor_id}'


def patient_appointments_cache_key(patient_id: str) -> str:
    return f'all_patient_appointments_{patient_id}'


class BookingService:
    def __init__(
        self,
        db: Session,
        cache,
        doctors: DoctorStore | None = None,
        appointments: AppointmentStore | None = None,
        notifier: Notifier | None = None,
        listing_ttl_seconds: int = config.APPOINTMENT_CACHE_TTL_SECONDS,
    ) -> None:
        self.db = db
        self.cache = cache
        self.doctors = doctors or DoctorStore(db)
        self.appointments = appointments or AppointmentStore(db)
        self.notifier = notifier or Notifier(db)
        self.listing_ttl_seconds = listing_ttl_seconds

    def book_appointment(self, request: BookAppointmentRequest) -> BookingResult:
        if request.doctor_id == request.patient_id:
            raise ConflictError('You cannot book an appointment for yourself.')

        if self.doctors.get_doctor(request.doctor_id) is None:
            raise NotFoundError('Doctor not found.')

        if self.appointments.find_pending(request.doctor_id, request.date, request.time):
            raise ConflictError(SLOT_TAKEN_MESSAGE)

        fields = {
            'examination_method': request.examination_method or ExaminationMethod.AT_CLINIC.value,
            'reason': request.reason,
            'notes': request.notes,
            'total_cost': request.total_cost,
            'location': request.location,
        }

        revived = False
        try:
            cancelled = self.appointments.find_cancelled(
                request.doctor_id,
                request.patient_id,
                request.date,
                request.time,
            )
            if cancelled is not None:
                if not self.appointments.revive_cancelled(cancelled.id, fields):
                    raise ConflictError(SLOT_TAKEN_MESSAGE)
                appointment_id = cancelled.id
                revived = True
            else:
                appointment = self.appointments.insert(
                    Appointment(
                        doctor_id=request.doctor_id,
                        patient_id=request.patient_id,
                        patient_model=request.patient_model,
                        date=request.date,
                        time=request.time,
                        status=request.status or AppointmentStatus.PENDING.value,
                        **fields,
                    )
                )
                appointment_id = appointment.id
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.info(
                'Lost booking race for doctor %s at %s %s',
                request.doctor_id,
                request.date,
                request.time,
            )
            raise ConflictError(SLOT_TAKEN_MESSAGE) from exc
        except SchedulingError:
            self.db.rollback()
            raise

        appointment = self.appointments.get(appointment_id)
        result = BookingResult(
            message='Appointment booked successfully',
            revived=revived,
            appointment=AppointmentResponse.model_validate(appointment),
        )
        logger.info(
            '%s appointment %s for doctor %s at %s %s',
            'Revived' if revived else 'Created',
            appointment_id,
            request.doctor_id,
            request.date,
            request.time,
        )

        self.notifier.notify_many([
            (request.doctor_id, RECIPIENT_DOCTOR, 'You have a new appointment!'),
            (request.patient_id, RECIPIENT_PATIENT, 'Your appointment has been booked successfully!'),
        ])
        self.invalidate_listings(request.doctor_id, request.patient_id)

        return result

    def change_status(self, appointment_id: int, new_status: str) -> AppointmentResponse:
        appointment = self.appointments.get(appointment_id)
        if appointment is None:
            raise NotFoundError('Appointment not found.')

        current_status = appointment.status
        if new_status not in ALLOWED_TRANSITIONS.get(current_status, set()):
            raise ConflictError(f'Cannot change appointment status from {current_status} to {new_status}.')

        doctor_id = appointment.doctor_id
        patient_id = appointment.patient_id

        if not self.appointments.set_status(appointment_id, current_status, new_status):
            self.db.rollback()
            raise ConflictError('Appointment status changed concurrently. Reload and try again.')
        self.db.commit()

        response = AppointmentResponse.model_validate(self.appointments.get(appointment_id))

        doctor_message, patient_message = STATUS_MESSAGES[new_status]
        self.notifier.notify_many([
            (doctor_id, RECIPIENT_DOCTOR, doctor_message),
            (patient_id, RECIPIENT_PATIENT, patient_message),
        ])
        self.invalidate_listings(doctor_id, patient_id)

        return response

    def invalidate_listings(self, doctor_id: str, patient_id: str) -> None:
        self.cache.delete(doctor_appointments_cache_key(doctor_id))
        self.cache.delete(patient_appointments_cache_key(patient_id))

    def list_doctor_appointments(self, doctor_id: str) -> list[AppointmentListItem]:
        if self.doctors.get_doctor(doctor_id) is None:
            raise NotFoundError('Doctor not found.')

        cache_key = doctor_appointments_cache_key(doctor_id)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return [AppointmentListItem.model_validate(item) for item in cached]

        items = [
            item for item in self._populate(self.appointments.list_for_doctor(doctor_id))
            if item.patient is not None
        ]
        self.cache.set(cache_key, [item.model_dump(mode='json') for item in items], self.listing_ttl_seconds)
        return items

    def list_patient_appointments(self, patient_id: str) -> list[AppointmentListItem]:
        cache_key = patient_appointments_cache_key(patient_id)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return [AppointmentListItem.model_validate(item) for item in cached]

        items = [
            item for item in self._populate(self.appointments.list_for_patient(patient_id))
            if item.doctor is not None
        ]
        self.cache.set(cache_key, [item.model_dump(mode='json') for item in items], self.listing_ttl_seconds)
        return items

    def _populate(self, appointments: list[Appointment]) -> list[AppointmentListItem]:
        """Attach doctor and patient summaries with one query per table."""
        doctor_ids = {appointment.doctor_id for appointment in appointments}
        doctor_ids.update(
            appointment.patient_id for appointment in appointments if appointment.patient_model == 'Doctor'
        )
        user_ids = {
            appointment.patient_id for appointment in appointments if appointment.patient_model != 'Doctor'
        }

        doctors = self.doctors.get_doctors_by_ids(doctor_ids)
        users = self.doctors.get_users_by_ids(user_ids)

        items: list[AppointmentListItem] = []
        for appointment in appointments:
            doctor = doctors.get(appointment.doctor_id)
            patient = (
                doctors.get(appointment.patient_id)
                if appointment.patient_model == 'Doctor'
                else users.get(appointment.patient_id)
            )
            item = AppointmentListItem.model_validate(appointment)
            item.doctor = (
                PartySummary(id=doctor.id, name=doctor.name, avatar_url=doctor.avatar_url) if doctor else None
            )
            item.patient = PartySummary(id=patient.id, name=patient.name) if patient else None
            items.append(item)
        return items

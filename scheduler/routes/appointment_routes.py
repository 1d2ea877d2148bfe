from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduler.core.errors import SchedulingError
from scheduler.dependencies import (
    database_unavailable,
    ensure_database_ready,
    get_cache,
    get_db,
    to_http_exception,
)
from scheduler.schemas.appointment import (
    AppointmentListItem,
    AppointmentResponse,
    BookAppointmentRequest,
    BookingResult,
    StatusUpdateRequest,
)
from scheduler.schemas.availability import BookedSlot
from scheduler.services.appointment_store import AppointmentStore
from scheduler.services.booking import BookingService
from scheduler.services.timeutils import parse_date

router = APIRouter(tags=['appointments'])


@router.post('', response_model=BookingResult, status_code=status.HTTP_201_CREATED)
def book_appointment(
    data: BookAppointmentRequest,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
):
    ensure_database_ready()

    try:
        return BookingService(db, cache).book_appointment(data)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/booked-slots', response_model=list[BookedSlot])
def list_booked_slots(
    doctor_id: str = Query(...),
    start_date: str = Query(...),
    end_date: str = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        window_start = parse_date(start_date, 'start_date')
        window_end = parse_date(end_date, 'end_date')
        return AppointmentStore(db).get_booked_slots(doctor_id, window_start, window_end)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.patch('/{appointment_id}/status', response_model=AppointmentResponse)
def change_appointment_status(
    appointment_id: int,
    data: StatusUpdateRequest,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
):
    ensure_database_ready()

    try:
        return BookingService(db, cache).change_status(appointment_id, data.status)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/doctor/{doctor_id}', response_model=list[AppointmentListItem])
def list_doctor_appointments(
    doctor_id: str,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
):
    ensure_database_ready()

    try:
        return BookingService(db, cache).list_doctor_appointments(doctor_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/patient/{patient_id}', response_model=list[AppointmentListItem])
def list_patient_appointments(
    patient_id: str,
    db: Session = Depends(get_db),
    cache=Depends(get_cache),
):
    ensure_database_ready()

    try:
        return BookingService(db, cache).list_patient_appointments(patient_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from scheduler.core import config
from scheduler.core.errors import SchedulingError
from scheduler.dependencies import (
    database_unavailable,
    ensure_database_ready,
    get_booked_slot_source,
    get_db,
    to_http_exception,
)
from scheduler.schemas.availability import AvailabilityReport, MergeWorkingHoursRequest, WorkingHoursResponse
from scheduler.services.doctor_store import DoctorStore
from scheduler.services.slot_query import SlotQueryService

router = APIRouter(tags=['doctors'])


@router.get('/{doctor_id}/available-working-hours', response_model=AvailabilityReport)
def get_available_working_hours(
    doctor_id: str,
    days: int = Query(default=config.DEFAULT_SEARCH_DAYS, ge=1),
    specific_date: str | None = Query(default=None, alias='date'),
    db: Session = Depends(get_db),
    bookings=Depends(get_booked_slot_source),
):
    ensure_database_ready()

    service = SlotQueryService(DoctorStore(db), bookings)
    try:
        return service.get_available_working_hours(doctor_id, number_of_days=days, specific_date=specific_date)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/{doctor_id}/working-hours', response_model=WorkingHoursResponse)
def merge_working_hours(
    doctor_id: str,
    data: MergeWorkingHoursRequest,
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        working_hours, added = DoctorStore(db).merge_working_hours(doctor_id, data.working_hours)
    except SchedulingError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='Working hours were updated concurrently. Retry the request.',
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    return WorkingHoursResponse(doctor_id=doctor_id, working_hours=working_hours, added=added)

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduler.core.errors import SchedulingError
from scheduler.database import SessionLocal, ensure_appointment_schema, ensure_working_hours_schema
from scheduler.services.appointment_store import AppointmentStore

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def ensure_database_ready() -> None:
    try:
        ensure_working_hours_schema()
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def to_http_exception(exc: SchedulingError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.detail)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_cache(request: Request):
    return request.app.state.cache


def get_booked_slot_source(request: Request, db: Session = Depends(get_db)):
    """Remote appointment client when one is configured, else the local table."""
    client = getattr(request.app.state, 'appointment_client', None)
    if client is not None:
        return client
    return AppointmentStore(db)

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from scheduler.core import errors
from scheduler.models.appointment import AppointmentStatus, ExaminationMethod
from scheduler.services.timeutils import format_hhmm, parse_hhmm

MAX_APPOINTMENT_TEXT_LENGTH = 600
INITIAL_STATUSES = {AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value}
PATIENT_MODELS = {'User', 'Doctor'}


def _normalize_text(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > MAX_APPOINTMENT_TEXT_LENGTH:
        raise ValueError(f'Text fields must be {MAX_APPOINTMENT_TEXT_LENGTH} characters or fewer.')

    return normalized


class BookAppointmentRequest(BaseModel):
    doctor_id: str
    patient_id: str
    patient_model: str = 'User'
    date: date
    time: str
    status: str | None = None
    examination_method: str | None = None
    reason: str | None = None
    notes: str | None = None
    total_cost: float | None = Field(default=None, ge=0)
    location: str | None = None

    @field_validator('doctor_id', 'patient_id')
    @classmethod
    def validate_ids(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Doctor and patient ids are required.')
        return normalized

    @field_validator('patient_model')
    @classmethod
    def validate_patient_model(cls, value: str) -> str:
        if value not in PATIENT_MODELS:
            raise ValueError('patient_model must be User or Doctor.')
        return value

    @field_validator('time')
    @classmethod
    def validate_time(cls, value: str) -> str:
        try:
            hour, minute = parse_hhmm(value)
        except errors.ValidationError as exc:
            raise ValueError('Time must use the HH:MM format.') from exc
        return format_hhmm(hour, minute)

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        if normalized not in INITIAL_STATUSES:
            raise ValueError('New appointments must be pending or confirmed.')
        return normalized

    @field_validator('examination_method')
    @classmethod
    def validate_examination_method(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        normalized = value.strip().lower()
        if normalized not in {method.value for method in ExaminationMethod}:
            raise ValueError('Invalid examination method.')
        return normalized

    @field_validator('reason', 'notes', 'location')
    @classmethod
    def validate_text(cls, value: str | None) -> str | None:
        return _normalize_text(value)


class AppointmentResponse(BaseModel):
    id: int
    doctor_id: str
    patient_id: str
    patient_model: str | None = None
    date: date
    time: str
    status: str
    examination_method: str | None = None
    reason: str | None = None
    notes: str | None = None
    total_cost: float | None = None
    location: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class BookingResult(BaseModel):
    message: str
    revived: bool
    appointment: AppointmentResponse


class StatusUpdateRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {status.value for status in AppointmentStatus}:
            raise ValueError('Invalid appointment status.')
        return normalized


class PartySummary(BaseModel):
    id: str
    name: str | None = None
    avatar_url: str | None = None


class AppointmentListItem(AppointmentResponse):
    doctor: PartySummary | None = None
    patient: PartySummary | None = None

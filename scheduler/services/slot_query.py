import logging
from collections.abc import Callable
from datetime import date, datetime, timedelta
from typing import Protocol

from scheduler.core import config
from scheduler.core.errors import NotFoundError, ValidationError
from scheduler.schemas.availability import AvailabilityReport, BookedSlot, SearchPeriod
from scheduler.services.availability import compute_availability, index_booked_slots
from scheduler.services.doctor_store import DoctorStore, working_hour_rules
from scheduler.services.timeutils import as_utc, parse_date, utc_now

logger = logging.getLogger(__name__)

NO_WORKING_HOURS_MESSAGE = 'Doctor has not set working hours'


class BookedSlotSource(Protocol):
    def get_booked_slots(self, doctor_id: str, start_date: date, end_date: date) -> list[BookedSlot]:
        ...


class SlotQueryService:
    """Builds a doctor's open-slot report for a window of days."""

    def __init__(
        self,
        doctors: DoctorStore,
        bookings: BookedSlotSource,
        clock: Callable[[], datetime] = utc_now,
        weekday_encoding: str = config.WEEKDAY_ENCODING,
        lead_time_minutes: int = config.BOOKING_LEAD_TIME_MINUTES,
        max_days: int = config.MAX_SEARCH_DAYS,
    ) -> None:
        self.doctors = doctors
        self.bookings = bookings
        self.clock = clock
        self.weekday_encoding = weekday_encoding
        self.lead_time_minutes = lead_time_minutes
        self.max_days = max_days

    def get_available_working_hours(
        self,
        doctor_id: str,
        number_of_days: int = config.DEFAULT_SEARCH_DAYS,
        specific_date: str | date | None = None,
    ) -> AvailabilityReport:
        if not doctor_id or not doctor_id.strip():
            raise ValidationError('doctor_id is required.')
        if number_of_days < 1 or number_of_days > self.max_days:
            raise ValidationError(f'number_of_days must be between 1 and {self.max_days}.')

        pinned_date = parse_date(specific_date, 'specific date') if specific_date is not None else None

        doctor = self.doctors.get_doctor(doctor_id)
        if doctor is None:
            raise NotFoundError('Doctor not found.')

        rules = working_hour_rules(doctor)
        if not rules:
            return AvailabilityReport(
                doctor_id=doctor_id,
                doctor_name=doctor.name,
                message=NO_WORKING_HOURS_MESSAGE,
            )

        now = as_utc(self.clock())
        start_date = pinned_date or now.date()
        window_days = 1 if pinned_date else number_of_days
        end_date = start_date + timedelta(days=window_days)

        booked = index_booked_slots(self.bookings.get_booked_slots(doctor_id, start_date, end_date))

        available_days = compute_availability(
            rules,
            booked,
            start_date,
            end_date,
            now,
            pinned_date=pinned_date is not None,
            weekday_encoding=self.weekday_encoding,
            lead_time_minutes=self.lead_time_minutes,
        )

        logger.debug(
            'Doctor %s has %s open days between %s and %s',
            doctor_id,
            len(available_days),
            start_date,
            end_date,
        )

        return AvailabilityReport(
            doctor_id=doctor_id,
            doctor_name=doctor.name,
            search_period=SearchPeriod(
                from_date=start_date,
                to_date=end_date - timedelta(days=1),
                number_of_days=window_days,
            ),
            available_slots=available_days,
            total_available_days=len(available_days),
            total_available_slots=sum(day.total_slots for day in available_days),
        )


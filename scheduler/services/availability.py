"""Open-slot computation for a doctor's recurring weekly working hours.

Everything here is pure: the caller supplies the rules, the booked slots and
the reference time, so identical inputs always give identical output.
"""

from collections import defaultdict
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta

from scheduler.core import config
from scheduler.schemas.availability import AvailableDay, BookedSlot, TimeSlot, WorkingHourRule
from scheduler.services.timeutils import (
    DAY_NAMES,
    as_utc,
    date_range,
    encode_weekday,
    format_display_date,
    format_hhmm,
    native_weekday,
    slot_instant,
)


def index_booked_slots(booked_slots: Iterable[BookedSlot]) -> dict[date, set[str]]:
    booked: dict[date, set[str]] = defaultdict(set)
    for slot in booked_slots:
        booked[slot.date].add(slot.time)
    return dict(booked)


def rules_for_day(working_hours: Iterable[WorkingHourRule], day_code: int) -> list[tuple[int, int]]:
    """Distinct (hour, minute) start times for an encoded weekday, ascending."""
    return sorted({(rule.hour, rule.minute) for rule in working_hours if rule.day_of_week == day_code})


def compute_availability(
    working_hours: list[WorkingHourRule],
    booked_slots: Mapping[date, set[str]],
    start_date: date,
    end_date: date,
    reference_now: datetime,
    *,
    pinned_date: bool = False,
    weekday_encoding: str = config.WEEKDAY_ENCODING_LEGACY,
    lead_time_minutes: int = config.BOOKING_LEAD_TIME_MINUTES,
) -> list[AvailableDay]:
    now = as_utc(reference_now)
    today = now.date()
    earliest_bookable = now + timedelta(minutes=lead_time_minutes)

    available_days: list[AvailableDay] = []

    for current_day in date_range(start_date, end_date):
        if not pinned_date and current_day < today:
            continue

        day_code = encode_weekday(current_day, weekday_encoding)
        candidates = rules_for_day(working_hours, day_code)
        if not candidates:
            continue

        booked_times = booked_slots.get(current_day, set())
        slots: list[TimeSlot] = []

        for hour, minute in candidates:
            slot_time = format_hhmm(hour, minute)
            if slot_time in booked_times:
                continue
            if current_day == today and slot_instant(current_day, hour, minute) <= earliest_bookable:
                continue

            slots.append(
                TimeSlot(
                    working_hour_id=f'{day_code}-{hour}-{minute}',
                    time=slot_time,
                    hour=hour,
                    minute=minute,
                    display_time=slot_time,
                )
            )

        if slots:
            weekday = native_weekday(current_day)
            available_days.append(
                AvailableDay(
                    date=current_day,
                    day_of_week=weekday,
                    day_name=DAY_NAMES[weekday],
                    display_date=format_display_date(current_day),
                    slots=slots,
                    total_slots=len(slots),
                )
            )

    return available_days

from datetime import date, datetime, timezone

import pytest

from scheduler.core import config
from scheduler.schemas.availability import BookedSlot, WorkingHourRule
from scheduler.services.availability import compute_availability, index_booked_slots, rules_for_day
from scheduler.services.timeutils import encode_weekday, format_display_date

# 2026-01-05 is a Monday.
MONDAY_MORNING = datetime(2026, 1, 5, 8, 0, tzinfo=timezone.utc)
NEXT_MONDAY = date(2026, 1, 12)
FOLLOWING_MONDAY = date(2026, 1, 19)
NEXT_TUESDAY = date(2026, 1, 13)


def rule(day_of_week: int, hour: int, minute: int = 0) -> WorkingHourRule:
    return WorkingHourRule(day_of_week=day_of_week, hour=hour, minute=minute)


def test_single_tuesday_rule_yields_one_slot_for_the_tuesday() -> None:
    result = compute_availability([rule(2, 9)], {}, NEXT_MONDAY, FOLLOWING_MONDAY, MONDAY_MORNING)

    assert len(result) == 1
    day = result[0]
    assert day.date == NEXT_TUESDAY
    assert day.day_of_week == 2
    assert day.day_name == 'Tuesday'
    assert day.display_date == 'Tuesday, January 13, 2026'
    assert day.total_slots == 1
    assert day.slots[0].time == '09:00'
    assert day.slots[0].display_time == '09:00'
    assert day.slots[0].working_hour_id == '2-9-0'
    assert (day.slots[0].hour, day.slots[0].minute) == (9, 0)


def test_fully_booked_day_is_omitted() -> None:
    booked = {NEXT_TUESDAY: {'09:00'}}

    result = compute_availability([rule(2, 9)], booked, NEXT_MONDAY, FOLLOWING_MONDAY, MONDAY_MORNING)

    assert result == []


def test_booked_slots_are_never_returned() -> None:
    rules = [rule(2, 9), rule(2, 9, 30), rule(2, 10), rule(3, 9)]
    booked = {NEXT_TUESDAY: {'09:30'}, date(2026, 1, 14): {'09:00'}}

    result = compute_availability(rules, booked, NEXT_MONDAY, FOLLOWING_MONDAY, MONDAY_MORNING)

    returned = {(day.date, slot.time) for day in result for slot in day.slots}
    assert returned == {(NEXT_TUESDAY, '09:00'), (NEXT_TUESDAY, '10:00')}


def test_slots_inside_lead_time_buffer_are_excluded_today() -> None:
    now = datetime(2026, 1, 6, 9, 0, tzinfo=timezone.utc)
    rules = [rule(2, 9, 10), rule(2, 9, 30), rule(2, 9, 40)]

    result = compute_availability(rules, {}, now.date(), date(2026, 1, 7), now, pinned_date=True)

    assert [slot.time for slot in result[0].slots] == ['09:40']


def test_lead_time_buffer_does_not_apply_to_future_days() -> None:
    now = datetime(2026, 1, 5, 23, 50, tzinfo=timezone.utc)

    result = compute_availability([rule(2, 0, 0)], {}, date(2026, 1, 5), date(2026, 1, 7), now)

    assert [(day.date, day.slots[0].time) for day in result] == [(date(2026, 1, 6), '00:00')]


def test_past_days_are_skipped_in_multi_day_mode() -> None:
    now = datetime(2026, 1, 7, 6, 0, tzinfo=timezone.utc)
    rules = [rule(code, 12) for code in range(2, 9)]

    result = compute_availability(rules, {}, date(2026, 1, 5), date(2026, 1, 12), now)

    assert [day.date for day in result] == [date(2026, 1, d) for d in range(7, 12)]


def test_pinned_past_date_is_not_skipped() -> None:
    now = datetime(2026, 1, 7, 6, 0, tzinfo=timezone.utc)

    result = compute_availability([rule(2, 12)], {}, date(2026, 1, 6), date(2026, 1, 7), now, pinned_date=True)

    assert [day.date for day in result] == [date(2026, 1, 6)]


def test_legacy_encoding_maps_sunday_and_monday_to_seven_and_eight() -> None:
    rules = [rule(7, 8), rule(8, 9), rule(0, 10), rule(1, 11)]

    result = compute_availability(rules, {}, date(2026, 1, 11), date(2026, 1, 13), MONDAY_MORNING)

    assert [(day.date, day.day_name, [s.time for s in day.slots]) for day in result] == [
        (date(2026, 1, 11), 'Sunday', ['08:00']),
        (date(2026, 1, 12), 'Monday', ['09:00']),
    ]
    assert result[0].slots[0].working_hour_id == '7-8-0'
    assert result[0].day_of_week == 0


def test_uniform_encoding_uses_native_weekday() -> None:
    rules = [rule(7, 8), rule(0, 10), rule(1, 11)]

    result = compute_availability(
        rules,
        {},
        date(2026, 1, 11),
        date(2026, 1, 13),
        MONDAY_MORNING,
        weekday_encoding=config.WEEKDAY_ENCODING_UNIFORM,
    )

    assert [(day.date, [s.time for s in day.slots]) for day in result] == [
        (date(2026, 1, 11), ['10:00']),
        (date(2026, 1, 12), ['11:00']),
    ]


def test_slots_are_sorted_and_duplicate_rules_collapse() -> None:
    rules = [rule(2, 14, 30), rule(2, 9), rule(2, 14, 0), rule(2, 9)]

    result = compute_availability(rules, {}, NEXT_TUESDAY, date(2026, 1, 14), MONDAY_MORNING)

    assert [slot.time for slot in result[0].slots] == ['09:00', '14:00', '14:30']
    assert result[0].total_slots == 3


def test_days_are_returned_in_ascending_order() -> None:
    rules = [rule(6, 9), rule(3, 9), rule(5, 9)]

    result = compute_availability(rules, {}, NEXT_MONDAY, FOLLOWING_MONDAY, MONDAY_MORNING)

    assert [day.date for day in result] == [date(2026, 1, 14), date(2026, 1, 16), date(2026, 1, 17)]


def test_compute_availability_is_idempotent() -> None:
    rules = [rule(2, 9), rule(3, 10, 15), rule(8, 7, 45)]
    booked = {NEXT_TUESDAY: {'09:00'}}

    first = compute_availability(rules, booked, NEXT_MONDAY, FOLLOWING_MONDAY, MONDAY_MORNING)
    second = compute_availability(rules, booked, NEXT_MONDAY, FOLLOWING_MONDAY, MONDAY_MORNING)

    assert first == second
    assert booked == {NEXT_TUESDAY: {'09:00'}}


def test_naive_reference_time_is_treated_as_utc() -> None:
    naive_now = datetime(2026, 1, 6, 9, 0)
    rules = [rule(2, 9, 20), rule(2, 9, 45)]

    result = compute_availability(rules, {}, date(2026, 1, 6), date(2026, 1, 7), naive_now)

    assert [slot.time for slot in result[0].slots] == ['09:45']


def test_no_rules_yields_no_days() -> None:
    assert compute_availability([], {}, NEXT_MONDAY, FOLLOWING_MONDAY, MONDAY_MORNING) == []


def test_index_booked_slots_groups_times_by_date() -> None:
    slots = [
        BookedSlot(date=NEXT_TUESDAY, time='09:00'),
        BookedSlot(date=NEXT_TUESDAY, time='10:00'),
        BookedSlot(date=NEXT_MONDAY, time='09:00'),
    ]

    assert index_booked_slots(slots) == {
        NEXT_TUESDAY: {'09:00', '10:00'},
        NEXT_MONDAY: {'09:00'},
    }


def test_rules_for_day_filters_by_code() -> None:
    assert rules_for_day([rule(2, 10), rule(3, 9), rule(2, 8, 15)], 2) == [(8, 15), (10, 0)]


@pytest.mark.parametrize(
    ('day', 'legacy_code', 'uniform_code'),
    [
        (date(2026, 1, 4), 7, 0),
        (date(2026, 1, 5), 8, 1),
        (date(2026, 1, 6), 2, 2),
        (date(2026, 1, 10), 6, 6),
    ],
)
def test_encode_weekday(day: date, legacy_code: int, uniform_code: int) -> None:
    assert encode_weekday(day) == legacy_code
    assert encode_weekday(day, config.WEEKDAY_ENCODING_UNIFORM) == uniform_code


def test_format_display_date() -> None:
    assert format_display_date(date(2026, 3, 1)) == 'Sunday, March 1, 2026'

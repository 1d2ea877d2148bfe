import re
from datetime import date, datetime, time, timedelta, timezone

from scheduler.core import config
from scheduler.core.errors import ValidationError

TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')

DAY_NAMES = ('Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday')

# Sunday and Monday are stored as 7 and 8 in existing working-hour data.
LEGACY_WEEKDAY_CODES = {0: 7, 1: 8, 2: 2, 3: 3, 4: 4, 5: 5, 6: 6}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def native_weekday(day: date) -> int:
    """Weekday index with 0=Sunday through 6=Saturday."""
    return (day.weekday() + 1) % 7


def encode_weekday(day: date, encoding: str = config.WEEKDAY_ENCODING_LEGACY) -> int:
    weekday = native_weekday(day)
    if encoding == config.WEEKDAY_ENCODING_UNIFORM:
        return weekday
    return LEGACY_WEEKDAY_CODES[weekday]


def format_hhmm(hour: int, minute: int) -> str:
    return f'{hour:02d}:{minute:02d}'


def parse_hhmm(value: str) -> tuple[int, int]:
    match = TIME_PATTERN.match((value or '').strip())
    if not match:
        raise ValidationError('Time must use the HH:MM format.')
    return int(match.group(1)), int(match.group(2))


def parse_date(value: str | date | None, field_name: str = 'date') -> date:
    if isinstance(value, datetime):
        return as_utc(value).date()
    if isinstance(value, date):
        return value
    if not value or not str(value).strip():
        raise ValidationError(f'{field_name} is required.')

    raw = str(value).strip()
    try:
        if len(raw) == 10:
            return date.fromisoformat(raw)
        # Timestamps are reduced to their UTC calendar day.
        return as_utc(datetime.fromisoformat(raw)).date()
    except ValueError as exc:
        raise ValidationError(f'Invalid {field_name} format.') from exc


def slot_instant(day: date, hour: int, minute: int) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)


def format_display_date(day: date) -> str:
    return f'{DAY_NAMES[native_weekday(day)]}, {day:%B} {day.day}, {day.year}'


def date_range(start: date, end: date):
    current = start
    while current < end:
        yield current
        current += timedelta(days=1)

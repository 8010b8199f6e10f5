from datetime import date, datetime, time, timedelta, timezone
from typing import Union

DateLike = Union[date, datetime]


def now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_naive_utc(value: datetime) -> datetime:
    """Storage form: naive UTC, the way the tables keep timestamps."""
    return as_utc(value).replace(tzinfo=None)


def calendar_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return as_utc(value).date()
    return value


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(as_utc(value).date(), time.min, tzinfo=timezone.utc)


def is_midnight(value: datetime) -> bool:
    return as_utc(value).time() == time.min


def days_until(target: DateLike, reference: DateLike) -> int:
    """Signed calendar-day count from ``reference`` to ``target``."""
    return (calendar_date(target) - calendar_date(reference)).days


def days_between(first: DateLike, second: DateLike) -> int:
    return abs(days_until(first, second))


def inclusive_end(value: datetime) -> datetime:
    """A date-only end (midnight) covers the whole of that day."""
    end = as_utc(value)
    if is_midnight(end):
        return end + timedelta(days=1) - timedelta(microseconds=1)
    return end


def format_amount(value: float) -> str:
    """15.0 -> "15", 12.5 -> "12.50"."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"

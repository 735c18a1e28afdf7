"""Calendar-day helpers.

All components work on UTC calendar dates. Aware datetimes are converted to
UTC before truncation; naive datetimes and ISO strings without an offset are
taken to already be UTC.
"""

from collections.abc import Iterator
from datetime import date, datetime, timedelta, timezone

from stayhub.booking.errors import BookingError, ErrorKind


def normalize_to_day(value: date | datetime | str) -> date:
    """Truncate a date, datetime, or ISO-8601 string to its UTC calendar date."""
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            value = date.fromisoformat(text)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _iter_nights(start: date, end: date) -> Iterator[date]:
    current = start
    while current < end:
        yield current
        current += timedelta(days=1)


def enumerate_nights(start: date | datetime | str, end: date | datetime | str) -> list[date]:
    """Return every night of a stay: ``start`` inclusive to ``end`` exclusive.

    Raises:
        BookingError: ``InvalidRange`` when ``start >= end``.
    """
    first = normalize_to_day(start)
    last = normalize_to_day(end)
    if first >= last:
        raise BookingError(ErrorKind.INVALID_RANGE, "Check-out must be after check-in.")
    return list(_iter_nights(first, last))


def count_nights(start: date | datetime | str, end: date | datetime | str) -> int:
    return len(enumerate_nights(start, end))


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Half-open overlap test; back-to-back stays do not overlap."""
    return start_a < end_b and start_b < end_a


def is_weekend(day: date) -> bool:
    # Saturday=5, Sunday=6
    return day.weekday() >= 5

"""Availability checker: range validity, host rules, conflicts, blocked days.

Pure function over supplied snapshots. Callers re-run it at payment
confirmation because time passes between quote and capture.
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta

from stayhub.booking.dates import enumerate_nights, normalize_to_day, ranges_overlap, utc_today
from stayhub.booking.errors import BookingError, ErrorKind
from stayhub.booking.lifecycle import BookingStatus
from stayhub.schemas.pricing import AdjustmentData, BookedRange, BookingRulesData


@dataclass(frozen=True)
class AvailabilityResult:
    ok: bool
    reason: ErrorKind | None = None
    message: str | None = None

    @classmethod
    def available(cls) -> "AvailabilityResult":
        return cls(ok=True)

    @classmethod
    def rejected(cls, reason: ErrorKind, message: str) -> "AvailabilityResult":
        return cls(ok=False, reason=reason, message=message)

    def raise_for_status(self) -> None:
        if not self.ok:
            raise BookingError(self.reason, self.message)


def check_availability(
    property_id: uuid.UUID,
    start: date,
    end: date,
    existing_bookings: Iterable[BookedRange],
    rules: BookingRulesData | None = None,
    adjustments: Iterable[AdjustmentData] = (),
    today: date | None = None,
) -> AvailabilityResult:
    """Decide whether ``[start, end)`` can be booked on ``property_id``.

    Checks run in a fixed order and the first failure wins: range validity,
    advance notice, stay length, overlap with confirmed bookings, blocked
    days.
    """
    start = normalize_to_day(start)
    end = normalize_to_day(end)

    if start >= end:
        return AvailabilityResult.rejected(ErrorKind.INVALID_RANGE, "Check-out must be after check-in.")

    if rules is not None and rules.advance_notice > 0:
        earliest = normalize_to_day(today or utc_today()) + timedelta(days=rules.advance_notice)
        if start < earliest:
            return AvailabilityResult.rejected(
                ErrorKind.INSUFFICIENT_NOTICE,
                f"Check-in must be at least {rules.advance_notice} day(s) in advance.",
            )

    nights = enumerate_nights(start, end)

    if rules is not None:
        if len(nights) < rules.min_stay:
            return AvailabilityResult.rejected(
                ErrorKind.BELOW_MIN_STAY,
                f"This property requires a minimum stay of {rules.min_stay} nights.",
            )
        if len(nights) > rules.max_stay:
            return AvailabilityResult.rejected(
                ErrorKind.ABOVE_MAX_STAY,
                f"This property allows a maximum stay of {rules.max_stay} nights.",
            )

    for booking in existing_bookings:
        if booking.property_id != property_id or booking.status != BookingStatus.CONFIRMED:
            continue
        if ranges_overlap(start, end, booking.start_date, booking.end_date):
            return AvailabilityResult.rejected(
                ErrorKind.DATE_CONFLICT,
                "The selected dates overlap an existing booking.",
            )

    blocked = {adj.date for adj in adjustments if adj.blocked}
    for night in nights:
        if night in blocked:
            return AvailabilityResult.rejected(
                ErrorKind.DATE_BLOCKED,
                f"{night.isoformat()} is not available for booking.",
            )

    return AvailabilityResult.available()

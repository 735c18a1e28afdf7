"""Booking state machine, reference generation, and cancellation policy text."""

import secrets
import string
from enum import Enum

from stayhub.booking.errors import BookingError, ErrorKind

BOOKING_REFERENCE_PREFIX = "BKG-"
BOOKING_REFERENCE_LENGTH = 8
_REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.REJECTED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.REJECTED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return BookingStatus(target) in ALLOWED_TRANSITIONS[BookingStatus(current)]


def ensure_transition(current: str, target: str) -> None:
    """Raise ``StaleState`` if ``current -> target`` is not a legal move."""
    if not can_transition(current, target):
        raise BookingError(
            ErrorKind.STALE_STATE,
            f"Booking is {BookingStatus(current).value} and cannot become {BookingStatus(target).value}.",
        )


def generate_booking_reference() -> str:
    """Return ``BKG-`` followed by 8 random uppercase alphanumerics."""
    suffix = "".join(secrets.choice(_REFERENCE_ALPHABET) for _ in range(BOOKING_REFERENCE_LENGTH))
    return f"{BOOKING_REFERENCE_PREFIX}{suffix}"


class CancellationPolicy(str, Enum):
    FLEXIBLE = "flexible"
    FIRM = "firm"
    STRICT = "strict"
    NON_REFUNDABLE = "non_refundable"


CANCELLATION_POLICY_TEXT: dict[CancellationPolicy, str] = {
    CancellationPolicy.FLEXIBLE: "Flexible cancellation with minimal fees. Please review our policy details.",
    CancellationPolicy.FIRM: "Full refund up to 7 days before check-in. After that, cancellations will incur a fee.",
    CancellationPolicy.STRICT: (
        "Free cancellation until 24 hours before check-in. After that, cancellations will incur a fee."
    ),
    CancellationPolicy.NON_REFUNDABLE: "This booking is non-refundable.",
}


def describe_cancellation_policy(policy: str | None) -> str:
    try:
        return CANCELLATION_POLICY_TEXT[CancellationPolicy(policy)]
    except ValueError:
        return CANCELLATION_POLICY_TEXT[CancellationPolicy.FLEXIBLE]

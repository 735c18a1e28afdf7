"""Error taxonomy for availability, pricing, and booking lifecycle failures."""

from enum import Enum


class ErrorKind(str, Enum):
    # Availability validation (guest-correctable)
    INVALID_RANGE = "InvalidRange"
    INSUFFICIENT_NOTICE = "InsufficientNotice"
    BELOW_MIN_STAY = "BelowMinStay"
    ABOVE_MAX_STAY = "AboveMaxStay"
    DATE_CONFLICT = "DateConflict"
    DATE_BLOCKED = "DateBlocked"

    # Configuration (host/operator)
    MISSING_PRICE_RULES = "MissingPriceRules"

    # Lifecycle
    LOST_AVAILABILITY_RACE = "LostAvailabilityRace"
    STALE_STATE = "StaleState"
    BOOKING_NOT_FOUND = "BookingNotFound"
    PROPERTY_NOT_FOUND = "PropertyNotFound"

    # Internal / collaborator
    SERIALIZED_BREAKDOWN_TOO_LARGE = "SerializedBreakdownTooLarge"
    MALFORMED_PAYLOAD = "MalformedPayload"
    UPSTREAM_TIMEOUT = "UpstreamTimeout"


AVAILABILITY_KINDS = frozenset(
    {
        ErrorKind.INVALID_RANGE,
        ErrorKind.INSUFFICIENT_NOTICE,
        ErrorKind.BELOW_MIN_STAY,
        ErrorKind.ABOVE_MAX_STAY,
        ErrorKind.DATE_CONFLICT,
        ErrorKind.DATE_BLOCKED,
    }
)

_RETRYABLE_KINDS = frozenset({ErrorKind.UPSTREAM_TIMEOUT})


class BookingError(Exception):
    """A typed booking failure.

    ``kind`` identifies the failure for callers; ``message`` is safe to show
    to the person who can correct it (guest for availability kinds, host for
    configuration kinds).
    """

    def __init__(self, kind: ErrorKind, message: str | None = None) -> None:
        self.kind = kind
        self.message = message or kind.value
        super().__init__(self.message)

    @property
    def user_correctable(self) -> bool:
        return self.kind in AVAILABILITY_KINDS

    @property
    def retryable(self) -> bool:
        return self.kind in _RETRYABLE_KINDS

    def __repr__(self) -> str:
        return f"BookingError(kind={self.kind.value!r}, message={self.message!r})"

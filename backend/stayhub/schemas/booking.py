"""Pydantic v2 request/response schemas for availability, quote, and booking endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, model_validator

from stayhub.schemas.pricing import GuestInfo, PriceBreakdown

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class StayRequest(BaseModel):
    """A candidate stay: property, half-open date range, and guests."""

    property_id: uuid.UUID
    check_in: date
    check_out: date
    guests: GuestInfo = Field(default_factory=GuestInfo)

    @model_validator(mode="after")
    def check_dates(self) -> "StayRequest":
        """Validate that check_out is strictly after check_in."""
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class CheckoutRequest(StayRequest):
    """Start payment for a stay."""

    success_url: HttpUrl
    cancel_url: HttpUrl
    customer_email: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AvailabilityResponse(BaseModel):
    ok: bool
    reason: str | None = None
    message: str | None = None


class QuoteResponse(BaseModel):
    """Availability plus the full price breakdown; nothing is persisted."""

    property_id: uuid.UUID
    check_in: date
    check_out: date
    nights: int
    breakdown: PriceBreakdown
    cancellation_policy: str
    cancellation_policy_text: str


class CheckoutResponse(BaseModel):
    booking_reference: str
    checkout_session_id: str
    checkout_url: str | None = None
    total_price: Decimal
    currency: str
    breakdown: PriceBreakdown


class BookingResponse(BaseModel):
    """Standard booking response."""

    id: uuid.UUID
    property_id: uuid.UUID
    user_id: str
    booking_reference: str
    start_date: date
    end_date: date
    adults: int
    children: int
    babies: int
    pets: int
    status: str
    currency: str
    total_price: Decimal
    nightly_cost: Decimal
    discount_percent: Decimal
    cleaning_fee: Decimal
    cancellation_policy: str
    payment_id: str | None = None
    rejection_reason: str | None = None
    refund_required: bool = False
    created_at: datetime
    updated_at: datetime
    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class BookingDetailResponse(BookingResponse):
    """Booking with its frozen price breakdown."""

    breakdown: PriceBreakdown

    @classmethod
    def from_booking(cls, booking) -> "BookingDetailResponse":
        """Build from an ORM booking, parsing its stored breakdown JSON."""
        base = BookingResponse.model_validate(booking)
        return cls(**base.model_dump(), breakdown=PriceBreakdown.model_validate_json(booking.breakdown))


class BookingListResponse(BaseModel):
    """Paginated list of bookings."""

    items: list[BookingResponse]
    total: int


class CancellationResponse(BaseModel):
    booking: BookingResponse
    cancellation_policy_text: str

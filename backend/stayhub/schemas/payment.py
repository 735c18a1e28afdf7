"""Schemas for data exchanged with the payment processor and the reporting export."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class CheckoutMetadata(BaseModel):
    """Metadata attached to a checkout session and echoed back by the processor."""

    booking_reference: str = Field(..., alias="bookingReference", pattern=r"^BKG-[A-Z0-9]{8}$")
    user_id: str = Field(..., alias="userId")
    property_id: str = Field(..., alias="propertyId")
    check_in: date = Field(..., alias="checkIn")
    check_out: date = Field(..., alias="checkOut")

    model_config = ConfigDict(populate_by_name=True)


class PaymentConfirmation(BaseModel):
    """A verified payment-success notification."""

    booking_reference: str = Field(..., pattern=r"^BKG-[A-Z0-9]{8}$")
    payment_id: str | None = None
    amount_captured: Decimal = Field(..., ge=0)
    customer_email: str | None = None
    timestamp: datetime


class BookingExportRecord(BaseModel):
    """Booking fields pushed to the host-facing reporting table."""

    booking_reference: str
    status: str
    user_id: str
    cancellation_policy: str
    start_date: date
    end_date: date
    created_at: datetime
    updated_at: datetime
    total_price: Decimal
    adults: int
    children: int
    babies: int
    pets: int
    property_id: str
    host_id: str | None = None
    payment_id: str | None = None
    customer_email: str | None = None

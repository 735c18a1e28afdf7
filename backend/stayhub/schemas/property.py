"""Pydantic v2 request/response schemas for property configuration endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from stayhub.booking.lifecycle import CancellationPolicy
from stayhub.schemas.pricing import AdjustmentData, BookingRulesData, PriceRulesData

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PropertyCreate(BaseModel):
    """Schema for creating a new property."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    address: str | None = Field(None, max_length=255)
    max_guests: int | None = Field(None, ge=1)
    price_per_night: Decimal | None = Field(None, ge=0)
    status: str = Field("active", pattern="^(active|pending|delisted)$")


class PriceRulesUpdate(PriceRulesData):
    """Replace the property's price rules."""


class AdjustmentsUpdate(BaseModel):
    """Upsert per-day adjustments; at most one entry per date."""

    adjustments: list[AdjustmentData] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_unique_dates(self) -> "AdjustmentsUpdate":
        dates = [adj.date for adj in self.adjustments]
        if len(dates) != len(set(dates)):
            raise ValueError("adjustments must not repeat a date")
        return self


class BookingRulesUpdate(BookingRulesData):
    """Replace the property's booking rules."""

    cancellation_policy: CancellationPolicy = CancellationPolicy.FLEXIBLE.value

    model_config = ConfigDict(use_enum_values=True)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PriceRulesResponse(PriceRulesData):
    property_id: uuid.UUID


class AdjustmentResponse(AdjustmentData):
    property_id: uuid.UUID


class AdjustmentListResponse(BaseModel):
    items: list[AdjustmentResponse]
    total: int


class BookingRulesResponse(BookingRulesData):
    property_id: uuid.UUID


class PropertyResponse(BaseModel):
    """Property information returned from the API."""

    id: uuid.UUID
    host_id: str
    name: str
    description: str | None = None
    address: str | None = None
    max_guests: int | None = None
    price_per_night: Decimal | None = None
    status: str
    price_rules: PriceRulesData | None = None
    booking_rules: BookingRulesData | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CalendarDay(BaseModel):
    """One night as a calendar widget renders it."""

    date: date
    status: str  # available, booked, blocked
    rate: Decimal | None = None


class CalendarResponse(BaseModel):
    property_id: uuid.UUID
    start: date
    end: date
    days: list[CalendarDay]

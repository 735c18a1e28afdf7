"""Pydantic v2 schemas for pricing inputs and the persisted price breakdown."""

import uuid
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Pricing inputs (snapshots of persisted configuration)
# ---------------------------------------------------------------------------


class PriceRulesData(BaseModel):
    """Rates, fees, and length-of-stay discounts configured for a property."""

    base_price_per_night: Decimal = Field(..., ge=0)
    base_price_per_night_weekend: Decimal = Field(..., ge=0)
    cleaning_fee: Decimal = Field(Decimal("0"), ge=0)
    pet_fee: Decimal = Field(Decimal("0"), ge=0)
    weekly_discount: Decimal = Field(Decimal("0"), ge=0, le=100)
    monthly_discount: Decimal = Field(Decimal("0"), ge=0, le=100)

    model_config = ConfigDict(from_attributes=True)


class AdjustmentData(BaseModel):
    """A per-day override. ``blocked`` takes precedence over ``override_price``."""

    date: date
    override_price: Decimal | None = Field(None, ge=0)
    blocked: bool = False

    model_config = ConfigDict(from_attributes=True)


class BookingRulesData(BaseModel):
    """Host stay-length and lead-time rules."""

    min_stay: int = Field(1, ge=1)
    max_stay: int = Field(365, ge=1)
    advance_notice: int = Field(0, ge=0)
    cancellation_policy: str = "flexible"

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="after")
    def check_stay_bounds(self) -> "BookingRulesData":
        if self.min_stay > self.max_stay:
            raise ValueError("min_stay must not exceed max_stay")
        return self


class BookedRange(BaseModel):
    """An existing booking's occupancy, as seen by the availability checker."""

    id: uuid.UUID | None = None
    property_id: uuid.UUID
    start_date: date
    end_date: date
    status: str

    model_config = ConfigDict(from_attributes=True)


class ServiceFeesData(BaseModel):
    """Platform fee schedule, read at breakdown time."""

    guest_booking_fee_percent: Decimal = Field(..., ge=0)
    host_service_fee_percent: Decimal = Field(Decimal("0"), ge=0)

    model_config = ConfigDict(from_attributes=True)


class GuestInfo(BaseModel):
    """Guest composition for a stay."""

    adults: int = Field(1, ge=1)
    children: int = Field(0, ge=0)
    babies: int = Field(0, ge=0)
    pets: int = Field(0, ge=0)


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


class NightlyRate(BaseModel):
    date: date
    rate: Decimal


class PriceBreakdown(BaseModel):
    """Itemized, reproducible derivation of a booking's total price.

    Stored verbatim with the booking; never recomputed once confirmed.
    """

    currency: str
    nights: int
    nightly_rates: list[NightlyRate] | None = None
    sub_total: Decimal
    discount_percent: Decimal
    discount: Decimal
    discounted_sub_total: Decimal
    cleaning_fee: Decimal
    pet_fee: Decimal
    booking_fee_percent: Decimal
    booking_fee: Decimal
    vat_percent: Decimal
    vat: Decimal
    total: Decimal
    guest_info: GuestInfo
    service_fees: ServiceFeesData

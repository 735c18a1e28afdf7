"""Pricing service: loads persisted configuration and runs the single pricing path.

Quote, checkout, and confirmation all price through ``price_stay`` so a stay
is never priced two different ways.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.booking.availability import AvailabilityResult, check_availability
from stayhub.booking.breakdown import compute_storable_breakdown
from stayhub.booking.dates import enumerate_nights
from stayhub.booking.errors import BookingError, ErrorKind
from stayhub.booking.lifecycle import BookingStatus
from stayhub.booking.rates import resolve_nightly_rates
from stayhub.config import settings
from stayhub.models.booking import Booking
from stayhub.models.pricing import PriceAdjustment, ServiceFees
from stayhub.models.property import Property
from stayhub.schemas.pricing import (
    AdjustmentData,
    BookedRange,
    BookingRulesData,
    GuestInfo,
    PriceBreakdown,
    PriceRulesData,
    ServiceFeesData,
)

logger = logging.getLogger(__name__)


@dataclass
class PricingSnapshot:
    """Everything needed to validate and price one stay, read at one point in time."""

    property: Property
    price_rules: PriceRulesData | None
    booking_rules: BookingRulesData | None
    service_fees: ServiceFeesData
    adjustments: list[AdjustmentData] = field(default_factory=list)
    confirmed_bookings: list[BookedRange] = field(default_factory=list)


@dataclass
class Quote:
    availability: AvailabilityResult
    breakdown: PriceBreakdown | None = None

    @property
    def ok(self) -> bool:
        return self.availability.ok and self.breakdown is not None


async def get_property(db: AsyncSession, property_id: uuid.UUID) -> Property:
    result = await db.execute(select(Property).where(Property.id == property_id))
    prop = result.scalar_one_or_none()
    if prop is None:
        raise BookingError(ErrorKind.PROPERTY_NOT_FOUND, "Property not found")
    return prop


async def get_confirmed_bookings(
    db: AsyncSession,
    property_id: uuid.UUID,
    start: date,
    end: date,
    exclude_booking_id: uuid.UUID | None = None,
) -> list[BookedRange]:
    """Confirmed bookings on the property whose range overlaps ``[start, end)``."""
    query = select(Booking).where(
        Booking.property_id == property_id,
        Booking.status == BookingStatus.CONFIRMED.value,
        Booking.start_date < end,
        Booking.end_date > start,
    )
    if exclude_booking_id is not None:
        query = query.where(Booking.id != exclude_booking_id)
    result = await db.execute(query)
    return [BookedRange.model_validate(b) for b in result.scalars().all()]


async def get_adjustments(
    db: AsyncSession,
    property_id: uuid.UUID,
    start: date,
    end: date,
) -> list[AdjustmentData]:
    """Adjustments for the nights in ``[start, end)``, ordered by date."""
    result = await db.execute(
        select(PriceAdjustment)
        .where(
            PriceAdjustment.property_id == property_id,
            PriceAdjustment.date >= start,
            PriceAdjustment.date < end,
        )
        .order_by(PriceAdjustment.date)
    )
    return [AdjustmentData.model_validate(a) for a in result.scalars().all()]


async def get_service_fees(db: AsyncSession, property_id: uuid.UUID) -> ServiceFeesData:
    """Property fee schedule, else the platform schedule, else configured defaults."""
    result = await db.execute(select(ServiceFees).where(ServiceFees.property_id == property_id))
    fees = result.scalar_one_or_none()
    if fees is None:
        result = await db.execute(
            select(ServiceFees)
            .where(ServiceFees.property_id.is_(None))
            .order_by(ServiceFees.created_at.desc())
            .limit(1)
        )
        fees = result.scalar_one_or_none()
    if fees is None:
        return ServiceFeesData(
            guest_booking_fee_percent=settings.default_guest_booking_fee_percent,
            host_service_fee_percent=settings.default_host_service_fee_percent,
        )
    return ServiceFeesData.model_validate(fees)


async def load_snapshot(
    db: AsyncSession,
    property_id: uuid.UUID,
    start: date,
    end: date,
    exclude_booking_id: uuid.UUID | None = None,
) -> PricingSnapshot:
    prop = await get_property(db, property_id)
    return PricingSnapshot(
        property=prop,
        price_rules=PriceRulesData.model_validate(prop.price_rules) if prop.price_rules else None,
        booking_rules=BookingRulesData.model_validate(prop.booking_rules) if prop.booking_rules else None,
        service_fees=await get_service_fees(db, property_id),
        adjustments=await get_adjustments(db, property_id, start, end),
        confirmed_bookings=await get_confirmed_bookings(db, property_id, start, end, exclude_booking_id),
    )


def snapshot_availability(
    snapshot: PricingSnapshot,
    start: date,
    end: date,
    today: date | None = None,
) -> AvailabilityResult:
    return check_availability(
        snapshot.property.id,
        start,
        end,
        snapshot.confirmed_bookings,
        rules=snapshot.booking_rules,
        adjustments=snapshot.adjustments,
        today=today,
    )


def price_stay(
    snapshot: PricingSnapshot,
    start: date,
    end: date,
    guests: GuestInfo,
    today: date | None = None,
) -> Quote:
    """Validate availability, resolve nightly rates, and compose the breakdown.

    Availability failures come back in ``Quote.availability``; configuration
    failures (``MissingPriceRules``) raise ``BookingError``.
    """
    availability = snapshot_availability(snapshot, start, end, today)
    if not availability.ok:
        return Quote(availability=availability)

    nightly_rates = resolve_nightly_rates(
        enumerate_nights(start, end),
        snapshot.price_rules,
        snapshot.adjustments,
        price_per_night=snapshot.property.price_per_night,
    )
    breakdown = compute_storable_breakdown(
        nightly_rates,
        snapshot.price_rules,
        guests,
        snapshot.service_fees,
        vat_percent=settings.vat_percent,
        currency=settings.currency,
        max_bytes=settings.breakdown_max_bytes,
    )
    return Quote(availability=availability, breakdown=breakdown)


async def check_stay_availability(
    db: AsyncSession,
    property_id: uuid.UUID,
    start: date,
    end: date,
    today: date | None = None,
) -> AvailabilityResult:
    snapshot = await load_snapshot(db, property_id, start, end)
    return snapshot_availability(snapshot, start, end, today)


async def quote_stay(
    db: AsyncSession,
    property_id: uuid.UUID,
    start: date,
    end: date,
    guests: GuestInfo,
    today: date | None = None,
) -> tuple[PricingSnapshot, PriceBreakdown]:
    """Price a stay, raising ``BookingError`` with the availability reason if it cannot be booked."""
    snapshot = await load_snapshot(db, property_id, start, end)
    quote = price_stay(snapshot, start, end, guests, today)
    quote.availability.raise_for_status()
    return snapshot, quote.breakdown

"""Property service: host-side pricing and booking-rule configuration."""

import logging
import uuid
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.booking.dates import enumerate_nights
from stayhub.booking.errors import BookingError, ErrorKind
from stayhub.booking.rates import resolve_nightly_rates
from stayhub.models.pricing import BookingRules, PriceAdjustment, PriceRules
from stayhub.models.property import Property
from stayhub.schemas.pricing import AdjustmentData, BookingRulesData, PriceRulesData
from stayhub.schemas.property import CalendarDay, PropertyCreate
from stayhub.services.pricing_service import get_adjustments, get_confirmed_bookings, get_property

logger = logging.getLogger(__name__)


async def create_property(db: AsyncSession, host_id: str, body: PropertyCreate) -> Property:
    prop = Property(host_id=host_id, **body.model_dump())
    db.add(prop)
    await db.flush()
    await db.refresh(prop)
    logger.info("Host %s created property %s", host_id, prop.id)
    return prop


async def get_owned_property(db: AsyncSession, property_id: uuid.UUID, host_id: str) -> Property:
    """Fetch a property and verify the caller is its host.

    Raises:
        BookingError: ``PropertyNotFound`` when the property does not exist or
            belongs to another host.
    """
    prop = await get_property(db, property_id)
    if prop.host_id != host_id:
        raise BookingError(ErrorKind.PROPERTY_NOT_FOUND, "Property not found")
    return prop


async def upsert_price_rules(db: AsyncSession, prop: Property, data: PriceRulesData) -> PriceRules:
    values = data.model_dump()
    if prop.price_rules is None:
        prop.price_rules = PriceRules(property_id=prop.id, **values)
    else:
        for field, value in values.items():
            setattr(prop.price_rules, field, value)
    await db.flush()
    return prop.price_rules


async def upsert_booking_rules(db: AsyncSession, prop: Property, data: BookingRulesData) -> BookingRules:
    values = data.model_dump()
    if prop.booking_rules is None:
        prop.booking_rules = BookingRules(property_id=prop.id, **values)
    else:
        for field, value in values.items():
            setattr(prop.booking_rules, field, value)
    await db.flush()
    return prop.booking_rules


async def upsert_adjustments(
    db: AsyncSession,
    prop: Property,
    adjustments: list[AdjustmentData],
) -> list[PriceAdjustment]:
    """Insert or replace one adjustment per date."""
    dates = [adj.date for adj in adjustments]
    result = await db.execute(
        select(PriceAdjustment).where(
            PriceAdjustment.property_id == prop.id,
            PriceAdjustment.date.in_(dates),
        )
    )
    existing = {adj.date: adj for adj in result.scalars().all()}

    saved = []
    for data in adjustments:
        row = existing.get(data.date)
        if row is None:
            row = PriceAdjustment(property_id=prop.id, date=data.date)
            db.add(row)
        row.override_price = data.override_price
        row.blocked = data.blocked
        saved.append(row)
    await db.flush()
    logger.info("Saved %d price adjustments for property %s", len(saved), prop.id)
    return saved


async def list_adjustments(
    db: AsyncSession,
    property_id: uuid.UUID,
    start: date | None = None,
    end: date | None = None,
) -> list[PriceAdjustment]:
    query = select(PriceAdjustment).where(PriceAdjustment.property_id == property_id)
    if start is not None:
        query = query.where(PriceAdjustment.date >= start)
    if end is not None:
        query = query.where(PriceAdjustment.date < end)
    result = await db.execute(query.order_by(PriceAdjustment.date))
    return list(result.scalars().all())


async def build_calendar(db: AsyncSession, property_id: uuid.UUID, start: date, end: date) -> list[CalendarDay]:
    """Per-night status and rate for ``[start, end)``.

    A night is ``booked`` when a confirmed booking holds it, ``blocked`` when
    the host blocked it, and ``available`` otherwise. Rates are omitted when
    the property has no pricing configured.
    """
    prop = await get_property(db, property_id)
    nights = enumerate_nights(start, end)
    adjustments = await get_adjustments(db, property_id, start, end)
    bookings = await get_confirmed_bookings(db, property_id, start, end)

    price_rules = PriceRulesData.model_validate(prop.price_rules) if prop.price_rules else None
    if price_rules is None and prop.price_per_night is None:
        rates = {night: None for night in nights}
    else:
        resolved = resolve_nightly_rates(nights, price_rules, adjustments, price_per_night=prop.price_per_night)
        rates = {r.date: r.rate for r in resolved}

    blocked = {adj.date for adj in adjustments if adj.blocked}
    days = []
    for night in nights:
        if any(b.start_date <= night < b.end_date for b in bookings):
            status = "booked"
        elif night in blocked:
            status = "blocked"
        else:
            status = "available"
        days.append(CalendarDay(date=night, status=status, rate=None if status == "blocked" else rates[night]))
    return days

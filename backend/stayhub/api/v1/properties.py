"""Property configuration API routes: host-scoped pricing, rules, and calendar."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.api.deps import Identity, get_current_identity, get_db
from stayhub.booking.errors import BookingError, ErrorKind
from stayhub.schemas.property import (
    AdjustmentListResponse,
    AdjustmentResponse,
    AdjustmentsUpdate,
    BookingRulesResponse,
    BookingRulesUpdate,
    CalendarResponse,
    PriceRulesResponse,
    PriceRulesUpdate,
    PropertyCreate,
    PropertyResponse,
)
from stayhub.services import property_service
from stayhub.services.pricing_service import get_property as fetch_property

router = APIRouter(prefix="/api/v1/properties", tags=["properties"])

MAX_CALENDAR_NIGHTS = 366


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new property",
)
async def create_property(
    body: PropertyCreate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> PropertyResponse:
    """Create a property hosted by the authenticated user."""
    prop = await property_service.create_property(db, identity.user_id, body)
    return PropertyResponse.model_validate(prop)


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Get a property by ID",
)
async def get_property(
    property_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> PropertyResponse:
    """Public property details including its price and booking rules."""
    prop = await fetch_property(db, property_id)
    return PropertyResponse.model_validate(prop)


@router.put(
    "/{property_id}/price-rules",
    response_model=PriceRulesResponse,
    summary="Replace the property's price rules",
)
async def put_price_rules(
    property_id: uuid.UUID,
    body: PriceRulesUpdate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> PriceRulesResponse:
    prop = await property_service.get_owned_property(db, property_id, identity.user_id)
    rules = await property_service.upsert_price_rules(db, prop, body)
    return PriceRulesResponse.model_validate(rules)


@router.put(
    "/{property_id}/booking-rules",
    response_model=BookingRulesResponse,
    summary="Replace the property's booking rules",
)
async def put_booking_rules(
    property_id: uuid.UUID,
    body: BookingRulesUpdate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> BookingRulesResponse:
    prop = await property_service.get_owned_property(db, property_id, identity.user_id)
    rules = await property_service.upsert_booking_rules(db, prop, body)
    return BookingRulesResponse.model_validate(rules)


@router.put(
    "/{property_id}/adjustments",
    response_model=AdjustmentListResponse,
    summary="Upsert per-day price overrides and blocks",
)
async def put_adjustments(
    property_id: uuid.UUID,
    body: AdjustmentsUpdate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> AdjustmentListResponse:
    prop = await property_service.get_owned_property(db, property_id, identity.user_id)
    saved = await property_service.upsert_adjustments(db, prop, body.adjustments)
    return AdjustmentListResponse(
        items=[AdjustmentResponse.model_validate(adj) for adj in saved],
        total=len(saved),
    )


@router.get(
    "/{property_id}/adjustments",
    response_model=AdjustmentListResponse,
    summary="List per-day adjustments",
)
async def get_adjustments(
    property_id: uuid.UUID,
    start: date | None = Query(None),
    end: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> AdjustmentListResponse:
    await property_service.get_owned_property(db, property_id, identity.user_id)
    items = await property_service.list_adjustments(db, property_id, start, end)
    return AdjustmentListResponse(
        items=[AdjustmentResponse.model_validate(adj) for adj in items],
        total=len(items),
    )


@router.get(
    "/{property_id}/calendar",
    response_model=CalendarResponse,
    summary="Per-night availability and rates",
)
async def get_calendar(
    property_id: uuid.UUID,
    start: date = Query(...),
    end: date = Query(...),
    db: AsyncSession = Depends(get_db),
) -> CalendarResponse:
    """Public calendar for ``[start, end)``: booked, blocked, or available with the nightly rate."""
    if (end - start).days > MAX_CALENDAR_NIGHTS:
        raise BookingError(
            ErrorKind.INVALID_RANGE,
            f"Calendar range cannot exceed {MAX_CALENDAR_NIGHTS} nights.",
        )
    days = await property_service.build_calendar(db, property_id, start, end)
    return CalendarResponse(property_id=property_id, start=start, end=end, days=days)

"""Bookings API router: availability, quotes, checkout, and the guest's bookings.

Ownership rule: a guest can only see and cancel bookings they made. Every
booking lookup filters through ``Booking.user_id``.
"""

from __future__ import annotations

import logging
import uuid

import stripe
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.api.deps import Identity, get_current_identity, get_db
from stayhub.billing.stripe_client import create_checkout_session
from stayhub.booking.dates import count_nights
from stayhub.booking.lifecycle import CancellationPolicy, describe_cancellation_policy
from stayhub.schemas.booking import (
    AvailabilityResponse,
    BookingDetailResponse,
    BookingListResponse,
    BookingResponse,
    CancellationResponse,
    CheckoutRequest,
    CheckoutResponse,
    QuoteResponse,
    StayRequest,
)
from stayhub.services import booking_service
from stayhub.services.pricing_service import PricingSnapshot, check_stay_availability, quote_stay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _cancellation_policy(snapshot: PricingSnapshot) -> str:
    if snapshot.booking_rules is None:
        return CancellationPolicy.FLEXIBLE.value
    return snapshot.booking_rules.cancellation_policy


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/availability",
    response_model=AvailabilityResponse,
    summary="Check whether a stay can be booked",
)
async def check_availability(
    body: StayRequest,
    db: AsyncSession = Depends(get_db),
) -> AvailabilityResponse:
    """Run the availability rules; an unavailable stay is a normal ``ok=false`` answer."""
    result = await check_stay_availability(db, body.property_id, body.check_in, body.check_out)
    return AvailabilityResponse(
        ok=result.ok,
        reason=result.reason.value if result.reason else None,
        message=result.message,
    )


@router.post(
    "/quote",
    response_model=QuoteResponse,
    summary="Price a stay without booking it",
)
async def quote(
    body: StayRequest,
    db: AsyncSession = Depends(get_db),
) -> QuoteResponse:
    snapshot, breakdown = await quote_stay(db, body.property_id, body.check_in, body.check_out, body.guests)
    policy = _cancellation_policy(snapshot)
    return QuoteResponse(
        property_id=body.property_id,
        check_in=body.check_in,
        check_out=body.check_out,
        nights=count_nights(body.check_in, body.check_out),
        breakdown=breakdown,
        cancellation_policy=policy,
        cancellation_policy_text=describe_cancellation_policy(policy),
    )


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a pending booking and start payment",
)
async def checkout(
    body: CheckoutRequest,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> CheckoutResponse:
    """Price the stay, hold it as ``pending``, and open a checkout session.

    The booking is only confirmed by the payment webhook. If the payment
    processor cannot be reached, the pending booking is rolled back.
    """
    snapshot, breakdown = await quote_stay(db, body.property_id, body.check_in, body.check_out, body.guests)
    policy = _cancellation_policy(snapshot)
    customer_email = body.customer_email or identity.email

    booking = await booking_service.create_pending_booking(
        db,
        property_id=body.property_id,
        user_id=identity.user_id,
        start=body.check_in,
        end=body.check_out,
        guests=body.guests,
        breakdown=breakdown,
        cancellation_policy=policy,
        customer_email=customer_email,
    )

    try:
        session = await create_checkout_session(
            booking_reference=booking.booking_reference,
            property_id=str(body.property_id),
            property_name=snapshot.property.name,
            user_id=identity.user_id,
            check_in=body.check_in.isoformat(),
            check_out=body.check_out.isoformat(),
            total_price=breakdown.total,
            currency=breakdown.currency,
            success_url=str(body.success_url),
            cancel_url=str(body.cancel_url),
            customer_email=customer_email,
            metadata={
                "totalPrice": str(breakdown.total),
                "currency": breakdown.currency,
                "adults": str(body.guests.adults),
                "children": str(body.guests.children),
                "babies": str(body.guests.babies),
                "pets": str(body.guests.pets),
                "cancellationPolicy": policy,
            },
        )
    except stripe.StripeError as e:
        logger.exception("Checkout session for booking %s failed", booking.booking_reference)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Payment processor error. Please retry.",
        ) from e

    await booking_service.attach_checkout_session(db, booking, session.id)
    return CheckoutResponse(
        booking_reference=booking.booking_reference,
        checkout_session_id=session.id,
        checkout_url=session.url,
        total_price=breakdown.total,
        currency=breakdown.currency,
        breakdown=breakdown,
    )


@router.get(
    "",
    response_model=BookingListResponse,
    summary="List the current guest's bookings",
)
async def list_bookings(
    status_filter: str | None = Query(None, alias="status"),
    property_id: uuid.UUID | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> BookingListResponse:
    items, total = await booking_service.list_bookings(
        db,
        user_id=identity.user_id,
        property_id=property_id,
        status=status_filter,
        skip=skip,
        limit=limit,
    )
    return BookingListResponse(
        items=[BookingResponse.model_validate(b) for b in items],
        total=total,
    )


@router.get(
    "/{reference}",
    response_model=BookingDetailResponse,
    summary="Get a booking with its price breakdown",
)
async def get_booking(
    reference: str,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> BookingDetailResponse:
    booking = await booking_service.get_booking_by_reference(db, reference, user_id=identity.user_id)
    return BookingDetailResponse.from_booking(booking)


@router.post(
    "/{reference}/cancel",
    response_model=CancellationResponse,
    summary="Cancel a confirmed booking",
)
async def cancel_booking(
    reference: str,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> CancellationResponse:
    """Cancel and release the nights; the response carries the policy terms."""
    booking = await booking_service.cancel_booking(db, reference, identity.user_id)
    return CancellationResponse(
        booking=BookingResponse.model_validate(booking),
        cancellation_policy_text=describe_cancellation_policy(booking.cancellation_policy),
    )

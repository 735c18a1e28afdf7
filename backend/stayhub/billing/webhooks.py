"""Stripe webhook event handlers: drive the booking lifecycle from payment events."""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.billing.stripe_client import create_refund, from_minor_units
from stayhub.booking.errors import BookingError, ErrorKind
from stayhub.booking.payloads import decode_payload
from stayhub.schemas.payment import CheckoutMetadata, PaymentConfirmation
from stayhub.services.booking_service import (
    ConfirmationOutcome,
    confirm_booking,
    record_refund,
    reject_booking,
)

logger = logging.getLogger(__name__)


def _ts_to_utc(ts: int | None) -> datetime:
    """Convert a Stripe Unix timestamp to an aware UTC datetime."""
    if ts is None:
        return datetime.now(timezone.utc)
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def _session_metadata(session: Mapping[str, Any]) -> CheckoutMetadata:
    return decode_payload(session.get("metadata") or {}, CheckoutMetadata)


def build_payment_confirmation(event: Mapping[str, Any]) -> PaymentConfirmation:
    """Turn a ``checkout.session.completed`` event into a payment confirmation.

    Raises:
        BookingError: ``MalformedPayload`` when the session metadata does not
            identify a booking.
    """
    session = event["data"]["object"]
    metadata = _session_metadata(session)
    customer_details = session.get("customer_details") or {}
    return PaymentConfirmation(
        booking_reference=metadata.booking_reference,
        payment_id=session.get("payment_intent"),
        amount_captured=from_minor_units(session.get("amount_total")),
        customer_email=session.get("customer_email") or customer_details.get("email"),
        timestamp=_ts_to_utc(event.get("created")),
    )


async def _refund_lost_booking(db: AsyncSession, outcome: ConfirmationOutcome) -> None:
    booking = outcome.booking
    if not booking.payment_id:
        logger.error("Booking %s needs a refund but has no payment id", booking.booking_reference)
        return
    try:
        refund = await create_refund(booking.payment_id, booking.booking_reference)
    except (stripe.StripeError, BookingError):
        # Left flagged refund_required for the operator to settle.
        logger.exception("Refund for booking %s failed", booking.booking_reference)
        return
    await record_refund(db, booking, refund.id)


async def handle_checkout_session_completed(
    db: AsyncSession, event: Mapping[str, Any]
) -> ConfirmationOutcome | None:
    """Handle checkout.session.completed: confirm the booking or compensate."""
    session = event["data"]["object"]
    if session.get("mode", "payment") != "payment":
        logger.info("Checkout session %s is not a one-off payment, skipping", session.get("id"))
        return None
    if session.get("payment_status", "paid") != "paid":
        logger.info("Checkout session %s completed without payment, waiting", session.get("id"))
        return None

    confirmation = build_payment_confirmation(event)
    try:
        outcome = await confirm_booking(db, confirmation)
    except BookingError as e:
        if e.kind not in (ErrorKind.STALE_STATE, ErrorKind.BOOKING_NOT_FOUND):
            raise
        logger.error(
            "Payment %s for booking %s cannot be applied: %s",
            confirmation.payment_id,
            confirmation.booking_reference,
            e.message,
        )
        return None

    if outcome.error is not None:
        await _refund_lost_booking(db, outcome)
    return outcome


async def handle_checkout_session_expired(db: AsyncSession, event: Mapping[str, Any]) -> None:
    """Handle checkout.session.expired: release the abandoned pending booking."""
    session = event["data"]["object"]
    metadata = _session_metadata(session)
    try:
        await reject_booking(db, metadata.booking_reference, "checkout_expired")
    except BookingError as e:
        if e.kind not in (ErrorKind.STALE_STATE, ErrorKind.BOOKING_NOT_FOUND):
            raise
        logger.info("Ignoring expiry of booking %s: %s", metadata.booking_reference, e.message)

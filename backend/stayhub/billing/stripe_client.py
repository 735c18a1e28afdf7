"""Async Stripe API wrapper for booking payments and compensating refunds."""

import asyncio
import logging
from collections.abc import Awaitable
from decimal import Decimal
from typing import TypeVar

import stripe
from stripe import StripeClient

from stayhub.booking.breakdown import to_cents
from stayhub.booking.errors import BookingError, ErrorKind
from stayhub.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_stripe_client() -> StripeClient:
    """Create a StripeClient instance with async HTTP support."""
    return StripeClient(
        settings.stripe_secret_key,
        http_client=stripe.HTTPXClient(),
    )


def to_minor_units(amount: Decimal) -> int:
    """Convert a decimal amount to integer cents."""
    return int(to_cents(amount) * 100)


def from_minor_units(amount: int | None) -> Decimal:
    return (Decimal(amount or 0) / 100).quantize(Decimal("0.01"))


async def _with_timeout(call: Awaitable[T], operation: str) -> T:
    try:
        return await asyncio.wait_for(call, timeout=settings.payment_timeout_seconds)
    except asyncio.TimeoutError as e:
        logger.warning("Stripe %s timed out after %ss", operation, settings.payment_timeout_seconds)
        raise BookingError(
            ErrorKind.UPSTREAM_TIMEOUT,
            "The payment processor did not respond in time. Please retry.",
        ) from e


async def create_checkout_session(
    *,
    booking_reference: str,
    property_id: str,
    property_name: str,
    user_id: str,
    check_in: str,
    check_out: str,
    total_price: Decimal,
    currency: str,
    success_url: str,
    cancel_url: str,
    customer_email: str | None = None,
    metadata: dict[str, str] | None = None,
) -> stripe.checkout.Session:
    """Create a one-off payment Checkout Session for a pending booking.

    The booking reference travels in the session metadata and is the key the
    webhook uses to find the booking again.
    """
    client = get_stripe_client()
    logger.info(
        "Creating checkout session for booking %s (%s %s)",
        booking_reference,
        total_price,
        currency,
    )
    params = {
        "mode": "payment",
        "payment_method_types": ["card"],
        "line_items": [
            {
                "quantity": 1,
                "price_data": {
                    "currency": currency,
                    "unit_amount": to_minor_units(total_price),
                    "product_data": {"name": f"{property_name} ({check_in} to {check_out})"},
                },
            }
        ],
        "success_url": success_url,
        "cancel_url": cancel_url,
        "client_reference_id": booking_reference,
        "metadata": {
            "bookingReference": booking_reference,
            "userId": user_id,
            "propertyId": property_id,
            "checkIn": check_in,
            "checkOut": check_out,
            **(metadata or {}),
        },
        "payment_intent_data": {"metadata": {"bookingReference": booking_reference}},
    }
    if customer_email:
        params["customer_email"] = customer_email
    return await _with_timeout(client.v1.checkout.sessions.create_async(params=params), "checkout session")


async def create_refund(payment_intent_id: str, booking_reference: str) -> stripe.Refund:
    """Refund a captured payment in full (compensation for a lost booking)."""
    client = get_stripe_client()
    logger.info("Requesting refund of %s for booking %s", payment_intent_id, booking_reference)
    return await _with_timeout(
        client.v1.refunds.create_async(
            params={
                "payment_intent": payment_intent_id,
                "metadata": {"bookingReference": booking_reference},
            }
        ),
        "refund",
    )


def construct_webhook_event(payload: bytes, sig_header: str) -> stripe.Event:
    """Verify and construct a Stripe webhook event (synchronous)."""
    client = get_stripe_client()
    return client.construct_event(payload, sig_header, settings.stripe_webhook_secret)

"""Stripe webhook endpoint: receives and processes Stripe events."""

import json
import logging

import stripe
from fastapi import APIRouter, BackgroundTasks, HTTPException, Request, status

from stayhub.billing.stripe_client import construct_webhook_event
from stayhub.billing.webhooks import (
    handle_checkout_session_completed,
    handle_checkout_session_expired,
)
from stayhub.booking.errors import BookingError, ErrorKind
from stayhub.config import settings
from stayhub.database import sessionmanager
from stayhub.exports.booking_export import build_export_record, push_booking

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])

# Map event types to handler functions
EVENT_HANDLERS = {
    "checkout.session.completed": handle_checkout_session_completed,
    "checkout.session.expired": handle_checkout_session_expired,
}


@router.post("/stripe")
async def stripe_webhook(request: Request, background_tasks: BackgroundTasks) -> dict[str, str]:
    """Receive and process Stripe webhook events."""
    # Raw bytes are required for signature verification
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature", "")

    try:
        construct_webhook_event(payload, sig_header)
        event = json.loads(payload)
    except stripe.SignatureVerificationError as e:
        logger.warning("Webhook signature verification failed")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid signature",
        ) from e
    except ValueError as e:
        logger.warning("Invalid webhook payload")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid payload",
        ) from e

    event_type = event.get("type")
    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        logger.debug("Unhandled webhook event type: %s", event_type)
        return {"status": "ignored"}

    logger.info("Processing webhook event: %s (id=%s)", event_type, event.get("id"))

    # Webhooks have no auth context, so they open their own session
    async with sessionmanager.session() as db:
        try:
            outcome = await handler(db, event)
            await db.commit()
        except BookingError as e:
            if e.kind is not ErrorKind.MALFORMED_PAYLOAD:
                logger.exception("Error processing webhook event %s", event.get("id"))
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="Webhook processing failed",
                ) from e
            logger.warning("Malformed webhook event %s: %s", event.get("id"), e.message)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=e.message,
            ) from e
        except Exception as e:
            logger.exception("Error processing webhook event %s", event.get("id"))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Webhook processing failed",
            ) from e

        if outcome is not None and outcome.newly_confirmed and settings.export_enabled:
            background_tasks.add_task(push_booking, build_export_record(outcome.booking))

    return {"status": "processed"}

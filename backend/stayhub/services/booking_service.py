"""Booking service: persistence of the booking lifecycle.

Every state change is a conditional write guarded by the expected current
status, so confirmation, rejection, and cancellation of the same booking
cannot both succeed. Confirmation additionally claims one ``booked_nights``
row per night; the unique ``(property_id, night)`` constraint means two
overlapping confirmations can never both commit.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.booking.dates import enumerate_nights
from stayhub.booking.errors import BookingError, ErrorKind
from stayhub.booking.lifecycle import BookingStatus, ensure_transition, generate_booking_reference
from stayhub.models.booking import BookedNight, Booking
from stayhub.schemas.payment import PaymentConfirmation
from stayhub.schemas.pricing import GuestInfo, PriceBreakdown
from stayhub.services.pricing_service import load_snapshot, snapshot_availability

logger = logging.getLogger(__name__)

_MAX_REFERENCE_ATTEMPTS = 5


@dataclass
class ConfirmationOutcome:
    """Result of applying a payment-success notification to a booking."""

    booking: Booking
    error: BookingError | None = None
    # False when a redelivered notification found the booking already confirmed.
    newly_confirmed: bool = False

    @property
    def confirmed(self) -> bool:
        return self.error is None and self.booking.status == BookingStatus.CONFIRMED.value


def _utcnow() -> datetime:
    """Naive UTC timestamp, matching the DB columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


async def _find_by_reference(db: AsyncSession, reference: str) -> Booking | None:
    result = await db.execute(
        select(Booking).where(Booking.booking_reference == reference).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_booking_by_reference(
    db: AsyncSession,
    reference: str,
    user_id: str | None = None,
) -> Booking:
    """Fetch a booking by reference, optionally scoped to the guest who made it.

    Raises:
        BookingError: ``BookingNotFound`` when missing or owned by someone else.
    """
    booking = await _find_by_reference(db, reference)
    if booking is None or (user_id is not None and booking.user_id != user_id):
        raise BookingError(ErrorKind.BOOKING_NOT_FOUND, "Booking not found")
    return booking


async def list_bookings(
    db: AsyncSession,
    *,
    user_id: str | None = None,
    property_id: uuid.UUID | None = None,
    status: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Booking], int]:
    """Return a page of bookings matching every given equality filter, plus the total."""
    filters = []
    if user_id is not None:
        filters.append(Booking.user_id == user_id)
    if property_id is not None:
        filters.append(Booking.property_id == property_id)
    if status is not None:
        filters.append(Booking.status == status)

    total_result = await db.execute(select(func.count()).select_from(Booking).where(*filters))
    total = total_result.scalar_one()

    result = await db.execute(
        select(Booking).where(*filters).order_by(Booking.created_at.desc()).offset(skip).limit(limit)
    )
    return list(result.scalars().all()), total


async def _unused_reference(db: AsyncSession) -> str:
    for _ in range(_MAX_REFERENCE_ATTEMPTS):
        reference = generate_booking_reference()
        result = await db.execute(select(Booking.id).where(Booking.booking_reference == reference))
        if result.scalar_one_or_none() is None:
            return reference
    raise RuntimeError("Could not generate an unused booking reference")


async def create_pending_booking(
    db: AsyncSession,
    *,
    property_id: uuid.UUID,
    user_id: str,
    start: date,
    end: date,
    guests: GuestInfo,
    breakdown: PriceBreakdown,
    cancellation_policy: str,
    customer_email: str | None = None,
) -> Booking:
    """Create a ``pending`` booking carrying its provisional breakdown.

    The caller owns the transaction: if starting payment fails, rolling back
    leaves no booking behind.
    """
    booking = Booking(
        property_id=property_id,
        user_id=user_id,
        customer_email=customer_email,
        start_date=start,
        end_date=end,
        adults=guests.adults,
        children=guests.children,
        babies=guests.babies,
        pets=guests.pets,
        status=BookingStatus.PENDING.value,
        currency=breakdown.currency,
        total_price=breakdown.total,
        nightly_cost=breakdown.sub_total,
        discount_percent=breakdown.discount_percent,
        cleaning_fee=breakdown.cleaning_fee,
        breakdown=breakdown.model_dump_json(),
        cancellation_policy=cancellation_policy,
        booking_reference=await _unused_reference(db),
    )
    db.add(booking)
    await db.flush()
    await db.refresh(booking)
    logger.info(
        "Created pending booking %s on property %s (%s to %s, total %s)",
        booking.booking_reference,
        property_id,
        start,
        end,
        breakdown.total,
    )
    return booking


async def attach_checkout_session(db: AsyncSession, booking: Booking, session_id: str) -> Booking:
    booking.checkout_session_id = session_id
    await db.flush()
    await db.refresh(booking)
    return booking


async def _transition(
    db: AsyncSession,
    reference: str,
    expected: BookingStatus,
    target: BookingStatus,
    values: dict,
    user_id: str | None = None,
) -> bool:
    """Conditionally move a booking ``expected -> target``; True if this call won."""
    ensure_transition(expected.value, target.value)
    query = update(Booking).where(
        Booking.booking_reference == reference,
        Booking.status == expected.value,
    )
    if user_id is not None:
        query = query.where(Booking.user_id == user_id)
    result = await db.execute(query.values(status=target.value, **values))
    return result.rowcount == 1


async def _stale_state_error(
    db: AsyncSession,
    reference: str,
    target: BookingStatus,
    user_id: str | None = None,
) -> BookingError:
    booking = await _find_by_reference(db, reference)
    if booking is None or (user_id is not None and booking.user_id != user_id):
        return BookingError(ErrorKind.BOOKING_NOT_FOUND, "Booking not found")
    return BookingError(
        ErrorKind.STALE_STATE,
        f"Booking {reference} is {booking.status} and cannot become {target.value}.",
    )


async def reject_booking(
    db: AsyncSession,
    reference: str,
    reason: str,
    *,
    payment_id: str | None = None,
    amount_captured: Decimal | None = None,
) -> Booking:
    """Move a ``pending`` booking to ``rejected`` and commit.

    When a payment was already captured the booking is flagged
    ``refund_required`` for the payment processor to compensate.

    Raises:
        BookingError: ``StaleState`` or ``BookingNotFound``.
    """
    captured = payment_id is not None or bool(amount_captured)
    values = {"rejection_reason": reason, "refund_required": captured}
    if captured:
        values.update(payment_id=payment_id, amount_captured=amount_captured)
    if not await _transition(db, reference, BookingStatus.PENDING, BookingStatus.REJECTED, values):
        await db.rollback()
        raise await _stale_state_error(db, reference, BookingStatus.REJECTED)
    await db.commit()
    booking = await _find_by_reference(db, reference)
    logger.info("Booking %s rejected (%s)", reference, reason)
    return booking


async def confirm_booking(
    db: AsyncSession,
    confirmation: PaymentConfirmation,
    today: date | None = None,
) -> ConfirmationOutcome:
    """Confirm a ``pending`` booking on verified payment, atomically.

    Within one transaction: claim the booking (``pending -> confirmed``),
    re-check availability against the latest confirmed bookings, and insert
    the night rows. If the re-check fails or the night insert collides with
    a concurrent confirmation, the transaction rolls back and the booking is
    rejected with ``LostAvailabilityRace`` and flagged for refund.

    A redelivered notification for an already-confirmed booking with the
    same payment id returns the booking unchanged.

    Raises:
        BookingError: ``BookingNotFound``, or ``StaleState`` when the booking
            was already cancelled or rejected.
    """
    reference = confirmation.booking_reference
    claimed = await _transition(
        db,
        reference,
        BookingStatus.PENDING,
        BookingStatus.CONFIRMED,
        {
            "payment_id": confirmation.payment_id,
            "amount_captured": confirmation.amount_captured,
            "confirmed_at": _utcnow(),
        },
    )
    if not claimed:
        await db.rollback()
        booking = await _find_by_reference(db, reference)
        if (
            booking is not None
            and booking.status == BookingStatus.CONFIRMED.value
            and booking.payment_id == confirmation.payment_id
        ):
            logger.info("Booking %s already confirmed for payment %s", reference, confirmation.payment_id)
            return ConfirmationOutcome(booking=booking)
        raise await _stale_state_error(db, reference, BookingStatus.CONFIRMED)

    booking = await _find_by_reference(db, reference)
    snapshot = await load_snapshot(
        db, booking.property_id, booking.start_date, booking.end_date, exclude_booking_id=booking.id
    )
    # Host stay rules were enforced at quote time; only occupancy is re-checked.
    snapshot.booking_rules = None
    availability = snapshot_availability(snapshot, booking.start_date, booking.end_date, today)

    if availability.ok:
        db.add_all(
            BookedNight(property_id=booking.property_id, night=night, booking_id=booking.id)
            for night in enumerate_nights(booking.start_date, booking.end_date)
        )
        try:
            await db.flush()
            await db.commit()
        except IntegrityError:
            logger.warning("Booking %s lost the night claim to a concurrent confirmation", reference)
            await db.rollback()
        else:
            booking = await _find_by_reference(db, reference)
            logger.info("Booking %s confirmed (payment %s)", reference, confirmation.payment_id)
            if booking.total_price != confirmation.amount_captured:
                logger.warning(
                    "Booking %s captured %s but was priced at %s",
                    reference,
                    confirmation.amount_captured,
                    booking.total_price,
                )
            return ConfirmationOutcome(booking=booking, newly_confirmed=True)
    else:
        logger.warning("Booking %s no longer available at confirmation: %s", reference, availability.reason.value)
        await db.rollback()

    rejected = await reject_booking(
        db,
        reference,
        ErrorKind.LOST_AVAILABILITY_RACE.value,
        payment_id=confirmation.payment_id,
        amount_captured=confirmation.amount_captured,
    )
    return ConfirmationOutcome(
        booking=rejected,
        error=BookingError(ErrorKind.LOST_AVAILABILITY_RACE, "These dates are no longer available."),
    )


async def cancel_booking(db: AsyncSession, reference: str, user_id: str) -> Booking:
    """Cancel a ``confirmed`` booking and release its nights, atomically.

    Raises:
        BookingError: ``BookingNotFound`` or ``StaleState``.
    """
    cancelled = await _transition(
        db,
        reference,
        BookingStatus.CONFIRMED,
        BookingStatus.CANCELLED,
        {"cancelled_at": _utcnow()},
        user_id=user_id,
    )
    if not cancelled:
        await db.rollback()
        raise await _stale_state_error(db, reference, BookingStatus.CANCELLED, user_id=user_id)

    booking_id = select(Booking.id).where(Booking.booking_reference == reference).scalar_subquery()
    await db.execute(
        delete(BookedNight)
        .where(BookedNight.booking_id == booking_id)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    booking = await _find_by_reference(db, reference)
    logger.info("Booking %s cancelled by %s", reference, user_id)
    return booking


async def record_refund(db: AsyncSession, booking: Booking, refund_id: str) -> Booking:
    """Store the processor's refund id and clear the refund flag."""
    booking.refund_id = refund_id
    booking.refund_required = False
    await db.flush()
    await db.commit()
    await db.refresh(booking)
    logger.info("Booking %s refunded (%s)", booking.booking_reference, refund_id)
    return booking

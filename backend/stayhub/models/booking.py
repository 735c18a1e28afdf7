"""Booking model and the per-night occupancy ledger."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stayhub.database import Base, UUIDPrimaryKeyMixin


class Booking(UUIDPrimaryKeyMixin, Base):
    """A guest's stay at a property, from payment initiation to a terminal state."""

    __tablename__ = "bookings"

    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    customer_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)  # exclusive
    adults: Mapped[int] = mapped_column(Integer, default=1)
    children: Mapped[int] = mapped_column(Integer, default=0)
    babies: Mapped[int] = mapped_column(Integer, default=0)
    pets: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(
        String(50),
        default="pending",
        index=True,
    )  # pending, confirmed, cancelled, rejected
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="eur")
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    nightly_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=0)
    cleaning_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    # Serialized PriceBreakdown, frozen when the booking is created.
    breakdown: Mapped[str] = mapped_column(Text, nullable=False)
    cancellation_policy: Mapped[str] = mapped_column(String(50), nullable=False, default="flexible")
    booking_reference: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    checkout_session_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    payment_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    amount_captured: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(String(100), nullable=True)
    refund_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    refund_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )
    confirmed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Relationships
    property: Mapped["Property"] = relationship(lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    __table_args__ = (Index("ix_bookings_property_dates", "property_id", "start_date", "end_date"),)

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, reference={self.booking_reference!r}, "
            f"property_id={self.property_id}, status={self.status})>"
        )


class BookedNight(Base):
    """One row per night held by a confirmed booking.

    The unique ``(property_id, night)`` constraint makes a second confirmation
    for any overlapping night fail at write time.
    """

    __tablename__ = "booked_nights"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
    )
    night: Mapped[date] = mapped_column(Date, nullable=False)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    __table_args__ = (UniqueConstraint("property_id", "night", name="uq_booked_nights_property_night"),)

    def __repr__(self) -> str:
        return f"<BookedNight(property_id={self.property_id}, night={self.night}, booking_id={self.booking_id})>"

"""Pricing configuration models: price rules, per-day adjustments, booking rules, fees."""

import datetime
import uuid
from decimal import Decimal

from sqlalchemy import Boolean, Date, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stayhub.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class PriceRules(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Weekday/weekend rates, fees, and length-of-stay discounts for a property."""

    __tablename__ = "price_rules"

    # One set of rules per property (UNIQUE enforces one-to-one)
    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    base_price_per_night: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    base_price_per_night_weekend: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    cleaning_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, server_default="0")
    pet_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, server_default="0")
    weekly_discount: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=0, server_default="0")
    monthly_discount: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=0, server_default="0")

    property: Mapped["Property"] = relationship(back_populates="price_rules")  # type: ignore[name-defined]  # noqa: F821

    def __repr__(self) -> str:
        return (
            f"<PriceRules(property_id={self.property_id}, weekday={self.base_price_per_night}, "
            f"weekend={self.base_price_per_night_weekend})>"
        )


class PriceAdjustment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A per-day override; ``blocked`` excludes the day regardless of price."""

    __tablename__ = "price_adjustments"

    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    override_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    blocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    property: Mapped["Property"] = relationship(back_populates="adjustments")  # type: ignore[name-defined]  # noqa: F821

    __table_args__ = (UniqueConstraint("property_id", "date", name="uq_price_adjustments_property_date"),)

    def __repr__(self) -> str:
        return f"<PriceAdjustment(property_id={self.property_id}, date={self.date}, blocked={self.blocked})>"


class BookingRules(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Host stay-length, lead-time, and cancellation rules for a property."""

    __tablename__ = "booking_rules"

    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    min_stay: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    max_stay: Mapped[int] = mapped_column(Integer, nullable=False, default=365, server_default="365")
    advance_notice: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    cancellation_policy: Mapped[str] = mapped_column(String(50), nullable=False, server_default="flexible")

    property: Mapped["Property"] = relationship(back_populates="booking_rules")  # type: ignore[name-defined]  # noqa: F821

    def __repr__(self) -> str:
        return (
            f"<BookingRules(property_id={self.property_id}, min_stay={self.min_stay}, "
            f"max_stay={self.max_stay}, advance_notice={self.advance_notice})>"
        )


class ServiceFees(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Platform fee schedule. A row with ``property_id`` set overrides the platform row."""

    __tablename__ = "service_fees"

    property_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        unique=True,
        nullable=True,
    )
    guest_booking_fee_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    host_service_fee_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, server_default="0")

    def __repr__(self) -> str:
        return (
            f"<ServiceFees(property_id={self.property_id}, guest={self.guest_booking_fee_percent}, "
            f"host={self.host_service_fee_percent})>"
        )

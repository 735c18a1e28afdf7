"""Property model: a listing owned by a host."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stayhub.database import Base, UUIDPrimaryKeyMixin


class Property(UUIDPrimaryKeyMixin, Base):
    """A holiday rental listed by a host."""

    __tablename__ = "properties"

    # Host identity comes from the external identity provider; stored as an opaque id.
    host_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    address: Mapped[str | None] = mapped_column(String(255), default=None)
    max_guests: Mapped[int | None] = mapped_column(default=None)
    # Flat nightly price used when no price rules are configured.
    price_per_night: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), default=None)
    status: Mapped[str] = mapped_column(String(50), server_default="active")  # active, pending, delisted
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    # Relationships
    price_rules: Mapped["PriceRules | None"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="property", uselist=False, lazy="selectin", cascade="all, delete-orphan"
    )
    booking_rules: Mapped["BookingRules | None"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="property", uselist=False, lazy="selectin", cascade="all, delete-orphan"
    )
    adjustments: Mapped[list["PriceAdjustment"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="property", lazy="raise", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, name={self.name!r}, host_id={self.host_id!r})>"

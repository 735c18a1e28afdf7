"""Shared test configuration and fixtures.

Each test gets a fresh SQLite database file (via aiosqlite) with the schema
created from ``Base.metadata``. The process-wide ``sessionmanager`` is
pointed at it, so the app, webhook handlers, and services under test all
share one real database, including across concurrent sessions.
"""

from collections.abc import AsyncGenerator
from datetime import date, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.auth.jwt import create_access_token
from stayhub.booking.dates import utc_today
from stayhub.database import DatabaseSessionManager, sessionmanager
from stayhub.main import app
from stayhub.models.pricing import BookingRules, PriceAdjustment, PriceRules, ServiceFees
from stayhub.models.property import Property

HOST_ID = "host-0001"
GUEST_ID = "guest-0001"
OTHER_GUEST_ID = "guest-0002"


def next_monday(offset_days: int = 30) -> date:
    """First Monday at least ``offset_days`` from today (UTC)."""
    day = utc_today() + timedelta(days=offset_days)
    return day + timedelta(days=(7 - day.weekday()) % 7)


def bearer(user_id: str, email: str | None = None) -> dict[str, str]:
    data = {"sub": user_id}
    if email:
        data["email"] = email
    return {"Authorization": f"Bearer {create_access_token(data)}"}


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_manager(tmp_path) -> AsyncGenerator[DatabaseSessionManager, None]:
    """Initialize the shared session manager against a throwaway SQLite file."""
    sessionmanager.init(f"sqlite+aiosqlite:///{tmp_path / 'stayhub-test.db'}")
    await sessionmanager.create_all()
    yield sessionmanager
    await sessionmanager.close()


@pytest_asyncio.fixture
async def db_session(db_manager: DatabaseSessionManager) -> AsyncGenerator[AsyncSession, None]:
    async with db_manager.session() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_manager: DatabaseSessionManager) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Identities
# ---------------------------------------------------------------------------


@pytest.fixture
def host_headers() -> dict[str, str]:
    return bearer(HOST_ID, "host@stayhub.test")


@pytest.fixture
def guest_headers() -> dict[str, str]:
    return bearer(GUEST_ID, "guest@stayhub.test")


@pytest.fixture
def other_guest_headers() -> dict[str, str]:
    return bearer(OTHER_GUEST_ID, "other@stayhub.test")


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


@pytest.fixture
def make_property(db_manager: DatabaseSessionManager):
    """Factory that commits a property with optional pricing configuration."""

    async def _make(
        *,
        host_id: str = HOST_ID,
        price_per_night: Decimal | None = None,
        price_rules: dict | None = None,
        booking_rules: dict | None = None,
        adjustments: list[dict] | None = None,
        guest_fee_percent: Decimal | None = Decimal("7"),
    ) -> Property:
        async with db_manager.session() as session:
            prop = Property(host_id=host_id, name="Seaside Villa", price_per_night=price_per_night)
            session.add(prop)
            await session.flush()
            if price_rules is not None:
                session.add(PriceRules(property_id=prop.id, **price_rules))
            if booking_rules is not None:
                session.add(BookingRules(property_id=prop.id, **booking_rules))
            for adjustment in adjustments or []:
                session.add(PriceAdjustment(property_id=prop.id, **adjustment))
            if guest_fee_percent is not None:
                session.add(
                    ServiceFees(
                        property_id=prop.id,
                        guest_booking_fee_percent=guest_fee_percent,
                        host_service_fee_percent=Decimal("3"),
                    )
                )
            await session.commit()
            return prop

    return _make


@pytest.fixture
def standard_rules() -> dict:
    """100/night every day, 50 cleaning, 20 pets, 10% weekly and 20% monthly."""
    return {
        "base_price_per_night": Decimal("100"),
        "base_price_per_night_weekend": Decimal("100"),
        "cleaning_fee": Decimal("50"),
        "pet_fee": Decimal("20"),
        "weekly_discount": Decimal("10"),
        "monthly_discount": Decimal("20"),
    }


@pytest_asyncio.fixture
async def listing(make_property, standard_rules) -> Property:
    return await make_property(price_rules=standard_rules)

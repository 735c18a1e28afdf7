"""Tests for availability, quote, checkout, and guest booking endpoints."""

from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
import stripe
from httpx import AsyncClient

from stayhub.booking.errors import BookingError, ErrorKind
from stayhub.schemas.payment import PaymentConfirmation
from stayhub.services.booking_service import confirm_booking
from tests.conftest import next_monday

pytestmark = pytest.mark.asyncio

CHECKOUT_PATH = "stayhub.api.v1.bookings.create_checkout_session"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _stay(property_id, offset: int = 0, nights: int = 3, **extra) -> dict:
    start = next_monday() + timedelta(days=offset)
    body = {
        "property_id": str(property_id),
        "check_in": start.isoformat(),
        "check_out": (start + timedelta(days=nights)).isoformat(),
        "guests": {"adults": 2},
    }
    body.update(extra)
    return body


def _checkout_body(property_id, **kwargs) -> dict:
    return _stay(
        property_id,
        success_url="https://stayhub.test/success",
        cancel_url="https://stayhub.test/cancel",
        **kwargs,
    )


def _session(session_id: str = "cs_test_123") -> SimpleNamespace:
    return SimpleNamespace(id=session_id, url=f"https://checkout.stripe.test/{session_id}")


async def _checkout(client: AsyncClient, headers: dict, property_id, **kwargs) -> dict:
    with patch(CHECKOUT_PATH, new=AsyncMock(return_value=_session())):
        response = await client.post("/api/v1/bookings/checkout", json=_checkout_body(property_id, **kwargs), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def _confirm(db_manager, reference: str, total: str, payment_id: str = "pi_test_1"):
    async with db_manager.session() as db:
        return await confirm_booking(
            db,
            PaymentConfirmation(
                booking_reference=reference,
                payment_id=payment_id,
                amount_captured=Decimal(total),
                timestamp="2025-01-01T00:00:00Z",
            ),
        )


# ---------------------------------------------------------------------------
# Availability and quotes
# ---------------------------------------------------------------------------


class TestAvailability:
    async def test_available(self, client: AsyncClient, listing) -> None:
        response = await client.post("/api/v1/bookings/availability", json=_stay(listing.id))
        assert response.status_code == 200
        assert response.json() == {"ok": True, "reason": None, "message": None}

    async def test_min_stay_reported(self, client: AsyncClient, make_property, standard_rules) -> None:
        prop = await make_property(price_rules=standard_rules, booking_rules={"min_stay": 5})
        response = await client.post("/api/v1/bookings/availability", json=_stay(prop.id, nights=2))
        data = response.json()
        assert response.status_code == 200
        assert data["ok"] is False
        assert data["reason"] == "BelowMinStay"

    async def test_inverted_dates_fail_validation(self, client: AsyncClient, listing) -> None:
        body = _stay(listing.id)
        body["check_in"], body["check_out"] = body["check_out"], body["check_in"]
        response = await client.post("/api/v1/bookings/availability", json=body)
        assert response.status_code == 422


class TestQuote:
    async def test_full_breakdown(self, client: AsyncClient, listing) -> None:
        response = await client.post("/api/v1/bookings/quote", json=_stay(listing.id))
        assert response.status_code == 200, response.text
        data = response.json()
        assert data["nights"] == 3
        assert data["breakdown"]["total"] == "430.68"
        assert data["breakdown"]["booking_fee"] == "24.50"
        assert data["cancellation_policy"] == "flexible"
        assert data["cancellation_policy_text"].startswith("Flexible cancellation")

    async def test_conflict_is_typed_error(self, client: AsyncClient, db_manager, listing, guest_headers) -> None:
        booked = await _checkout(client, guest_headers, listing.id)
        await _confirm(db_manager, booked["booking_reference"], booked["total_price"])

        response = await client.post("/api/v1/bookings/quote", json=_stay(listing.id, offset=1))
        assert response.status_code == 409
        assert response.json() == {
            "error": "DateConflict",
            "detail": "The selected dates overlap an existing booking.",
            "retryable": False,
        }

    async def test_missing_price_rules(self, client: AsyncClient, make_property) -> None:
        prop = await make_property()
        response = await client.post("/api/v1/bookings/quote", json=_stay(prop.id))
        assert response.status_code == 422
        assert response.json()["error"] == "MissingPriceRules"


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


class TestCheckout:
    async def test_creates_pending_booking(self, client: AsyncClient, listing, guest_headers) -> None:
        mock = AsyncMock(return_value=_session())
        with patch(CHECKOUT_PATH, new=mock):
            response = await client.post(
                "/api/v1/bookings/checkout", json=_checkout_body(listing.id), headers=guest_headers
            )
        assert response.status_code == 201, response.text
        data = response.json()
        assert data["booking_reference"].startswith("BKG-")
        assert data["checkout_session_id"] == "cs_test_123"
        assert data["checkout_url"].endswith("cs_test_123")
        assert data["total_price"] == "430.68"

        kwargs = mock.await_args.kwargs
        assert kwargs["booking_reference"] == data["booking_reference"]
        assert kwargs["total_price"] == Decimal("430.68")
        assert kwargs["metadata"]["totalPrice"] == "430.68"
        assert kwargs["customer_email"] == "guest@stayhub.test"

        detail = await client.get(f"/api/v1/bookings/{data['booking_reference']}", headers=guest_headers)
        assert detail.json()["status"] == "pending"
        assert detail.json()["breakdown"]["total"] == "430.68"

    async def test_requires_identity(self, client: AsyncClient, listing) -> None:
        response = await client.post("/api/v1/bookings/checkout", json=_checkout_body(listing.id))
        assert response.status_code in (401, 403)

    async def test_unavailable_dates_create_nothing(self, client: AsyncClient, make_property, standard_rules, guest_headers) -> None:
        prop = await make_property(price_rules=standard_rules, booking_rules={"max_stay": 2})
        mock = AsyncMock(return_value=_session())
        with patch(CHECKOUT_PATH, new=mock):
            response = await client.post("/api/v1/bookings/checkout", json=_checkout_body(prop.id), headers=guest_headers)
        assert response.status_code == 422
        assert response.json()["error"] == "AboveMaxStay"
        mock.assert_not_awaited()

        listed = await client.get("/api/v1/bookings", headers=guest_headers)
        assert listed.json()["total"] == 0

    async def test_payment_timeout_rolls_back(self, client: AsyncClient, listing, guest_headers) -> None:
        timeout = BookingError(ErrorKind.UPSTREAM_TIMEOUT, "The payment processor did not respond in time.")
        with patch(CHECKOUT_PATH, new=AsyncMock(side_effect=timeout)):
            response = await client.post("/api/v1/bookings/checkout", json=_checkout_body(listing.id), headers=guest_headers)
        assert response.status_code == 503
        assert response.headers["retry-after"]
        assert response.json()["retryable"] is True

        listed = await client.get("/api/v1/bookings", headers=guest_headers)
        assert listed.json()["total"] == 0

    async def test_processor_error_is_bad_gateway(self, client: AsyncClient, listing, guest_headers) -> None:
        error = stripe.APIConnectionError("connection reset")
        with patch(CHECKOUT_PATH, new=AsyncMock(side_effect=error)):
            response = await client.post("/api/v1/bookings/checkout", json=_checkout_body(listing.id), headers=guest_headers)
        assert response.status_code == 502


# ---------------------------------------------------------------------------
# Guest bookings
# ---------------------------------------------------------------------------


class TestGuestBookings:
    async def test_list_only_own(self, client: AsyncClient, listing, guest_headers, other_guest_headers) -> None:
        await _checkout(client, guest_headers, listing.id)
        await _checkout(client, other_guest_headers, listing.id, offset=10)

        response = await client.get("/api/v1/bookings", headers=guest_headers)
        assert response.json()["total"] == 1

    async def test_other_guest_gets_404(self, client: AsyncClient, listing, guest_headers, other_guest_headers) -> None:
        booked = await _checkout(client, guest_headers, listing.id)
        response = await client.get(f"/api/v1/bookings/{booked['booking_reference']}", headers=other_guest_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "BookingNotFound"

    async def test_cancel_confirmed(self, client: AsyncClient, db_manager, make_property, standard_rules, guest_headers) -> None:
        prop = await make_property(price_rules=standard_rules, booking_rules={"cancellation_policy": "strict"})
        booked = await _checkout(client, guest_headers, prop.id)
        await _confirm(db_manager, booked["booking_reference"], booked["total_price"])

        response = await client.post(f"/api/v1/bookings/{booked['booking_reference']}/cancel", headers=guest_headers)
        assert response.status_code == 200, response.text
        data = response.json()
        assert data["booking"]["status"] == "cancelled"
        assert data["cancellation_policy_text"].startswith("Free cancellation until 24 hours")

        again = await client.post(f"/api/v1/bookings/{booked['booking_reference']}/cancel", headers=guest_headers)
        assert again.status_code == 409
        assert again.json()["error"] == "StaleState"

    async def test_cancel_pending_is_stale(self, client: AsyncClient, listing, guest_headers) -> None:
        booked = await _checkout(client, guest_headers, listing.id)
        response = await client.post(f"/api/v1/bookings/{booked['booking_reference']}/cancel", headers=guest_headers)
        assert response.status_code == 409

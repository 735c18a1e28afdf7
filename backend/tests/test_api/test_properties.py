"""Tests for property configuration endpoints."""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from tests.conftest import next_monday

pytestmark = pytest.mark.asyncio


async def _create(client: AsyncClient, headers: dict, **overrides) -> dict:
    body = {"name": "Seaside Villa", "address": "1 Beach Road", "max_guests": 6}
    body.update(overrides)
    response = await client.post("/api/v1/properties", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateProperty:
    async def test_create_success(self, client: AsyncClient, host_headers: dict) -> None:
        data = await _create(client, host_headers, price_per_night="120.00")
        assert data["host_id"] == "host-0001"
        assert data["price_per_night"] == "120.00"
        assert data["price_rules"] is None

    async def test_requires_identity(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/properties", json={"name": "Nope"})
        assert response.status_code in (401, 403)

    async def test_invalid_token(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/properties",
            json={"name": "Nope"},
            headers={"Authorization": "Bearer not-a-token"},
        )
        assert response.status_code == 401

    async def test_get_is_public(self, client: AsyncClient, host_headers: dict) -> None:
        created = await _create(client, host_headers)
        response = await client.get(f"/api/v1/properties/{created['id']}")
        assert response.status_code == 200
        assert response.json()["name"] == "Seaside Villa"

    async def test_get_unknown(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/properties/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404
        assert response.json()["error"] == "PropertyNotFound"


class TestPricingConfiguration:
    async def test_put_price_rules(self, client: AsyncClient, host_headers: dict) -> None:
        created = await _create(client, host_headers)
        response = await client.put(
            f"/api/v1/properties/{created['id']}/price-rules",
            json={
                "base_price_per_night": "100",
                "base_price_per_night_weekend": "140",
                "cleaning_fee": "50",
                "weekly_discount": "10",
                "monthly_discount": "20",
            },
            headers=host_headers,
        )
        assert response.status_code == 200, response.text
        assert response.json()["property_id"] == created["id"]

        detail = await client.get(f"/api/v1/properties/{created['id']}")
        assert detail.json()["price_rules"]["base_price_per_night_weekend"] == "140.00"

    async def test_other_host_cannot_configure(
        self, client: AsyncClient, host_headers: dict, guest_headers: dict
    ) -> None:
        created = await _create(client, host_headers)
        response = await client.put(
            f"/api/v1/properties/{created['id']}/price-rules",
            json={"base_price_per_night": "1", "base_price_per_night_weekend": "1"},
            headers=guest_headers,
        )
        assert response.status_code == 404

    async def test_booking_rules_validation(self, client: AsyncClient, host_headers: dict) -> None:
        created = await _create(client, host_headers)
        url = f"/api/v1/properties/{created['id']}/booking-rules"

        bad = await client.put(url, json={"min_stay": 5, "max_stay": 3}, headers=host_headers)
        assert bad.status_code == 422

        bad_policy = await client.put(url, json={"cancellation_policy": "whenever"}, headers=host_headers)
        assert bad_policy.status_code == 422

        ok = await client.put(
            url,
            json={"min_stay": 2, "max_stay": 14, "advance_notice": 1, "cancellation_policy": "strict"},
            headers=host_headers,
        )
        assert ok.status_code == 200, ok.text
        assert ok.json()["cancellation_policy"] == "strict"
        assert set(ok.json()) == {"property_id", "min_stay", "max_stay", "advance_notice", "cancellation_policy"}

    async def test_adjustments_and_calendar(self, client: AsyncClient, host_headers: dict) -> None:
        created = await _create(client, host_headers, price_per_night="90")
        start = next_monday()
        blocked_day = (start + timedelta(days=1)).isoformat()

        response = await client.put(
            f"/api/v1/properties/{created['id']}/adjustments",
            json={
                "adjustments": [
                    {"date": start.isoformat(), "override_price": "150"},
                    {"date": blocked_day, "blocked": True},
                ]
            },
            headers=host_headers,
        )
        assert response.status_code == 200, response.text
        assert response.json()["total"] == 2

        listed = await client.get(f"/api/v1/properties/{created['id']}/adjustments", headers=host_headers)
        assert listed.json()["total"] == 2

        calendar = await client.get(
            f"/api/v1/properties/{created['id']}/calendar",
            params={"start": start.isoformat(), "end": (start + timedelta(days=3)).isoformat()},
        )
        assert calendar.status_code == 200
        days = calendar.json()["days"]
        assert [d["status"] for d in days] == ["available", "blocked", "available"]
        assert days[0]["rate"] == "150.00"
        assert days[2]["rate"] == "90.00"

    async def test_duplicate_adjustment_dates_rejected(self, client: AsyncClient, host_headers: dict) -> None:
        created = await _create(client, host_headers)
        day = next_monday().isoformat()
        response = await client.put(
            f"/api/v1/properties/{created['id']}/adjustments",
            json={"adjustments": [{"date": day, "blocked": True}, {"date": day, "override_price": "10"}]},
            headers=host_headers,
        )
        assert response.status_code == 422

    async def test_calendar_rejects_inverted_range(self, client: AsyncClient, host_headers: dict) -> None:
        created = await _create(client, host_headers)
        start = next_monday()
        response = await client.get(
            f"/api/v1/properties/{created['id']}/calendar",
            params={"start": start.isoformat(), "end": start.isoformat()},
        )
        assert response.status_code == 422
        assert response.json()["error"] == "InvalidRange"

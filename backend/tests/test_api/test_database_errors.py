"""Tests for database timeouts and outages at the HTTP boundary."""

import sqlite3
import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from tests.conftest import next_monday

pytestmark = pytest.mark.asyncio

AVAILABILITY_PATH = "stayhub.api.v1.bookings.check_stay_availability"


def _stay() -> dict:
    start = next_monday()
    return {
        "property_id": str(uuid.uuid4()),
        "check_in": start.isoformat(),
        "check_out": (start + timedelta(days=3)).isoformat(),
    }


async def _post_availability(client: AsyncClient, error: Exception):
    body = _stay()
    with patch(AVAILABILITY_PATH, new=AsyncMock(side_effect=error)):
        return await client.post("/api/v1/bookings/availability", json=body)


async def test_statement_timeout_is_retryable(client: AsyncClient) -> None:
    response = await _post_availability(client, TimeoutError())

    assert response.status_code == 503
    assert response.headers["retry-after"] == "5"
    assert response.json()["error"] == "ServiceUnavailable"
    assert response.json()["retryable"] is True


async def test_locked_database_is_retryable(client: AsyncClient) -> None:
    error = OperationalError("UPDATE bookings", {}, sqlite3.OperationalError("database is locked"))
    response = await _post_availability(client, error)

    assert response.status_code == 503
    assert response.headers["retry-after"] == "5"

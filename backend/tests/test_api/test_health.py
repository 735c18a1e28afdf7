"""Tests for the service metadata endpoints."""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "StayHub"}


async def test_root(client: AsyncClient) -> None:
    response = await client.get("/")
    assert response.json()["docs"] == "/docs"

"""
Tests for the host process endpoints and domain error responses.
"""

import json

import pytest
from httpx import AsyncClient

from ticketing.api.middleware import domain_error_handler
from ticketing.core.errors import InvalidInputError, StoreUnavailableError, TicketNotFoundError
from ticketing.core.metrics import record_reservation


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "ok"
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
async def test_metrics(client: AsyncClient):
    record_reservation("reserved")

    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "ticket_reservation_attempts_total" in response.text


@pytest.mark.asyncio
async def test_root(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["docs"] == "/docs"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, status_code, code",
    [
        (InvalidInputError("bad date"), 422, "INVALID_INPUT"),
        (TicketNotFoundError("lumpinee", 7), 404, "TICKET_NOT_FOUND"),
        (StoreUnavailableError("connection refused"), 503, "STORE_UNAVAILABLE"),
    ],
)
async def test_domain_errors_map_to_status(error, status_code, code):
    response = await domain_error_handler(None, error)
    assert response.status_code == status_code
    assert json.loads(response.body)["code"] == code

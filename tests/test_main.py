"""
Test suite for the application entry point.

Covers health and readiness endpoints, request correlation headers and the
error envelope shared by every failing request.
"""

from unittest.mock import AsyncMock

from purrfect_glow import main
from purrfect_glow.core.exceptions import ERROR_STATUS_CODES, CheckoutError


async def test_health_check(api_client):
    response = await api_client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "Purrfect Glow Checkout API"


async def test_readiness_with_database(api_client, monkeypatch):
    monkeypatch.setattr(main, "check_database_health", AsyncMock(return_value=True))

    response = await api_client.get("/ready")

    assert response.status_code == 200
    assert response.json()["database"] == "healthy"


async def test_readiness_without_database(api_client, monkeypatch):
    monkeypatch.setattr(main, "check_database_health", AsyncMock(return_value=False))

    response = await api_client.get("/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


async def test_request_id_is_echoed(api_client):
    response = await api_client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


async def test_request_id_is_generated(api_client):
    response = await api_client.get("/health")

    assert response.headers["X-Request-ID"]


async def test_validation_errors_use_error_envelope(api_client):
    response = await api_client.post("/api/v1/orders", json={})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "validation_error"
    assert body["retryable"] is False
    assert body["details"]


def test_every_error_kind_has_a_status_code():
    kinds = {cls.kind for cls in _subclasses(CheckoutError)}

    assert kinds <= set(ERROR_STATUS_CODES)


def _subclasses(cls):
    for sub in cls.__subclasses__():
        yield sub
        yield from _subclasses(sub)

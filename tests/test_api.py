"""
Integration tests for the REST API endpoints.

Uses the SQLite-backed lifecycle engine from ``conftest`` and overrides the
``get_engine`` dependency so the routes never touch PostgreSQL or Redis.
"""

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from errandhub.api.app import create_app
from errandhub.api.dependencies import get_engine
from errandhub.api.middleware import limiter


# ── Fixture ───────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def client(lifecycle):
    """AsyncClient wired to the test lifecycle engine."""
    limiter.reset()
    app = create_app()
    app.dependency_overrides[get_engine] = lambda: lifecycle

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def _as(user_id: int, user_type: str = "customer") -> dict:
    return {"X-User-Id": str(user_id), "X-User-Type": user_type}


ERRAND_BODY = {
    "title": "Pick up lunch",
    "category": "food_delivery",
    "urgency": "standard",
    "location_from": "Cafeteria",
    "location_to": "Hall 5",
    "budget": "20",
    "distance": 5.2,
}


# ── Tests ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_create_errand_returns_201(client: AsyncClient, make_user):
    customer_id = await make_user()
    resp = await client.post("/api/v1/errands", json=ERRAND_BODY, headers=_as(customer_id))

    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "pending"
    assert data["id"] is not None
    assert data["final_price"] == "27.06"
    assert data["runner_earnings"] == "22.14"
    assert data["customer"]["id"] == customer_id


@pytest.mark.asyncio
async def test_create_requires_identity(client: AsyncClient):
    resp = await client.post("/api/v1/errands", json=ERRAND_BODY)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_rejects_bad_category(client: AsyncClient, make_user):
    customer_id = await make_user()
    body = dict(ERRAND_BODY, category="laundry")
    resp = await client.post("/api/v1/errands", json=body, headers=_as(customer_id))
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_unknown_customer(client: AsyncClient):
    resp = await client.post("/api/v1/errands", json=ERRAND_BODY, headers=_as(9999))
    assert resp.status_code == 404
    assert resp.json() == {"code": "CUSTOMER_NOT_FOUND", "message": "Customer not found"}


@pytest.mark.asyncio
async def test_preview_pricing(client: AsyncClient):
    resp = await client.post(
        "/api/v1/errands/preview-pricing",
        json={"budget": "100", "category": "food_delivery", "urgency": "urgent", "distance": 5},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["final_price"] == "154.00"
    assert data["platform_fee"] == "14.00"
    assert data["runner_earnings"] == "126.00"


@pytest.mark.asyncio
async def test_full_lifecycle(client: AsyncClient, make_user, make_runner):
    customer_id = await make_user()
    runner_id = await make_runner()
    errand_id = (
        await client.post("/api/v1/errands", json=ERRAND_BODY, headers=_as(customer_id))
    ).json()["id"]

    for action, status in (
        ("accept", "accepted"),
        ("start", "in_progress"),
        ("complete", "completed"),
    ):
        resp = await client.post(
            f"/api/v1/errands/{errand_id}/{action}", headers=_as(runner_id, "runner")
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["status"] == status

    resp = await client.get(f"/api/v1/errands/{errand_id}", headers=_as(customer_id))
    assert resp.status_code == 200
    data = resp.json()
    assert data["runner"]["id"] == runner_id
    assert data["transaction"]["amount"] == "27.06"
    assert data["transaction"]["payment_status"] == "pending"


@pytest.mark.asyncio
async def test_customer_header_cannot_accept(client: AsyncClient, make_user, make_runner):
    customer_id = await make_user()
    runner_id = await make_runner()
    errand_id = (
        await client.post("/api/v1/errands", json=ERRAND_BODY, headers=_as(customer_id))
    ).json()["id"]

    resp = await client.post(f"/api/v1/errands/{errand_id}/accept", headers=_as(runner_id))
    assert resp.status_code == 403
    assert resp.json()["code"] == "NOT_AUTHORIZED"


@pytest.mark.asyncio
async def test_second_accept_conflicts(client: AsyncClient, make_user, make_runner):
    customer_id = await make_user()
    first = await make_runner("First")
    second = await make_runner("Second")
    errand_id = (
        await client.post("/api/v1/errands", json=ERRAND_BODY, headers=_as(customer_id))
    ).json()["id"]

    await client.post(f"/api/v1/errands/{errand_id}/accept", headers=_as(first, "runner"))
    resp = await client.post(
        f"/api/v1/errands/{errand_id}/accept", headers=_as(second, "runner")
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "ERRAND_UNAVAILABLE"


@pytest.mark.asyncio
async def test_get_errand_not_found(client: AsyncClient, make_user):
    customer_id = await make_user()
    resp = await client.get("/api/v1/errands/9999", headers=_as(customer_id))
    assert resp.status_code == 404
    assert resp.json()["code"] == "ERRAND_NOT_FOUND"


@pytest.mark.asyncio
async def test_get_errand_forbidden_for_stranger(client: AsyncClient, make_user):
    customer_id = await make_user()
    stranger_id = await make_user("Stranger")
    errand_id = (
        await client.post("/api/v1/errands", json=ERRAND_BODY, headers=_as(customer_id))
    ).json()["id"]

    resp = await client.get(f"/api/v1/errands/{errand_id}", headers=_as(stranger_id))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_cancel_with_reason(client: AsyncClient, make_user):
    customer_id = await make_user()
    errand_id = (
        await client.post("/api/v1/errands", json=ERRAND_BODY, headers=_as(customer_id))
    ).json()["id"]

    resp = await client.post(
        f"/api/v1/errands/{errand_id}/cancel",
        json={"reason": "Found it myself"},
        headers=_as(customer_id),
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"
    assert resp.json()["cancellation_reason"] == "Found it myself"


@pytest.mark.asyncio
async def test_cancel_already_cancelled_errand_fails(client: AsyncClient, make_user):
    customer_id = await make_user()
    errand_id = (
        await client.post("/api/v1/errands", json=ERRAND_BODY, headers=_as(customer_id))
    ).json()["id"]

    await client.post(f"/api/v1/errands/{errand_id}/cancel", headers=_as(customer_id))
    resp = await client.post(f"/api/v1/errands/{errand_id}/cancel", headers=_as(customer_id))
    assert resp.status_code == 403
    assert resp.json()["code"] == "CANCELLATION_NOT_ALLOWED"


@pytest.mark.asyncio
async def test_fraud_warnings_endpoint(client: AsyncClient, make_user):
    user_id = await make_user()
    resp = await client.get(f"/api/v1/admin/users/{user_id}/fraud-warnings")
    assert resp.status_code == 200
    assert resp.json() == {"user_id": user_id, "warnings": []}

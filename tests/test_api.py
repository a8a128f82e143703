"""
Integration tests for the REST API endpoints.

Uses the shared in-memory SQLite engine from ``conftest``.  The DB session
and clock dependencies are overridden so routes see the test database and a
fixed "now"; the caller is identified by the ``X-User-Id`` header.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.api.app import create_app
from src.api.dependencies import get_clock, get_db
from src.api.middleware import limiter
from src.domain.enums import RideStatus
from tests.conftest import NOW, make_ride


def as_user(user) -> dict[str, str]:
    return {"X-User-Id": user.id}


def ride_body(**overrides) -> dict:
    body = {
        "pickup_location": "123 Main Street, Downtown",
        "drop_location": "Airport Terminal 1",
        "scheduled_time": (NOW + timedelta(days=1)).isoformat(),
        "purpose": "Client Meeting",
    }
    body.update(overrides)
    return body


# ── Fixture ───────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def client(session_factory, clock, people):
    """AsyncClient backed by the test engine."""

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db] = _test_db
    app.dependency_overrides[get_clock] = lambda: clock
    limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ── Health & identity ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_missing_identity_is_401(client: AsyncClient):
    resp = await client.post("/api/v1/rides", json=ride_body())
    assert resp.status_code == 401
    assert resp.json()["code"] == "UNAUTHENTICATED"


@pytest.mark.asyncio
async def test_unknown_identity_is_401(client: AsyncClient):
    resp = await client.get("/api/v1/rides/my-rides", headers={"X-User-Id": "nobody"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_admin_routes_require_admin(client: AsyncClient, people):
    for path in ("/api/v1/admin/rides", "/api/v1/admin/dashboard"):
        resp = await client.get(path, headers=as_user(people.alice))
        assert resp.status_code == 403
        assert resp.json() == {"detail": "Admin access required", "code": "UNAUTHORIZED"}


# ── Requester flow ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_ride_returns_201(client: AsyncClient, people):
    resp = await client.post(
        "/api/v1/rides", json=ride_body(), headers=as_user(people.alice)
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "PENDING"
    assert data["user_id"] == people.alice.id
    assert data["user"]["email"] == "alice@techcorp.com"
    assert data["admin_actions"] == []


@pytest.mark.asyncio
async def test_create_in_the_past_is_400(client: AsyncClient, people):
    resp = await client.post(
        "/api/v1/rides",
        json=ride_body(scheduled_time=(NOW - timedelta(hours=2)).isoformat()),
        headers=as_user(people.alice),
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_SCHEDULE"


@pytest.mark.asyncio
async def test_create_validates_body(client: AsyncClient, people):
    resp = await client.post(
        "/api/v1/rides",
        json=ride_body(pickup_location="abc"),
        headers=as_user(people.alice),
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_get_ride(client: AsyncClient, people):
    create_resp = await client.post(
        "/api/v1/rides", json=ride_body(), headers=as_user(people.alice)
    )
    ride_id = create_resp.json()["id"]
    resp = await client.get(f"/api/v1/rides/{ride_id}", headers=as_user(people.alice))
    assert resp.status_code == 200
    assert resp.json()["id"] == ride_id


@pytest.mark.asyncio
async def test_other_users_ride_is_404(client: AsyncClient, people):
    create_resp = await client.post(
        "/api/v1/rides", json=ride_body(), headers=as_user(people.alice)
    )
    ride_id = create_resp.json()["id"]
    resp = await client.get(f"/api/v1/rides/{ride_id}", headers=as_user(people.bob))
    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_update_pending_ride(client: AsyncClient, people):
    create_resp = await client.post(
        "/api/v1/rides", json=ride_body(), headers=as_user(people.alice)
    )
    ride_id = create_resp.json()["id"]
    resp = await client.put(
        f"/api/v1/rides/{ride_id}",
        json={"notes": "Two bags"},
        headers=as_user(people.alice),
    )
    assert resp.status_code == 200
    assert resp.json()["notes"] == "Two bags"
    assert resp.json()["purpose"] == "Client Meeting"


@pytest.mark.asyncio
async def test_cancel_and_cancel_again(client: AsyncClient, people):
    create_resp = await client.post(
        "/api/v1/rides", json=ride_body(), headers=as_user(people.alice)
    )
    ride_id = create_resp.json()["id"]

    resp = await client.delete(f"/api/v1/rides/{ride_id}", headers=as_user(people.alice))
    assert resp.status_code == 200
    assert resp.json()["status"] == "CANCELLED"

    resp = await client.delete(f"/api/v1/rides/{ride_id}", headers=as_user(people.alice))
    assert resp.status_code == 409
    assert resp.json()["code"] == "INVALID_STATE"


@pytest.mark.asyncio
async def test_my_rides_pagination(client: AsyncClient, people):
    for day in range(1, 4):
        await client.post(
            "/api/v1/rides",
            json=ride_body(scheduled_time=(NOW + timedelta(days=day)).isoformat()),
            headers=as_user(people.alice),
        )
    await client.post("/api/v1/rides", json=ride_body(), headers=as_user(people.bob))

    resp = await client.get(
        "/api/v1/rides/my-rides",
        params={"page": 2, "limit": 2},
        headers=as_user(people.alice),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}
    assert len(data["rides"]) == 1


# ── Admin flow ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_approve_then_approve_again(client: AsyncClient, people):
    create_resp = await client.post(
        "/api/v1/rides", json=ride_body(), headers=as_user(people.alice)
    )
    ride_id = create_resp.json()["id"]
    url = f"/api/v1/admin/rides/{ride_id}/action"

    resp = await client.post(
        url,
        json={"action": "APPROVE", "reason": "Valid business purpose"},
        headers=as_user(people.admin),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "APPROVED"
    assert len(data["admin_actions"]) == 1
    assert data["admin_actions"][0]["admin"]["email"] == "admin@rapido.com"

    resp = await client.post(url, json={"action": "APPROVE"}, headers=as_user(people.admin))
    assert resp.status_code == 409

    # requester cancel after approval leaves the audit trail unchanged
    resp = await client.delete(f"/api/v1/rides/{ride_id}", headers=as_user(people.alice))
    assert resp.json()["status"] == "CANCELLED"
    assert len(resp.json()["admin_actions"]) == 1


@pytest.mark.asyncio
async def test_invalid_action_is_400(client: AsyncClient, people):
    create_resp = await client.post(
        "/api/v1/rides", json=ride_body(), headers=as_user(people.alice)
    )
    resp = await client.post(
        f"/api/v1/admin/rides/{create_resp.json()['id']}/action",
        json={"action": "ESCALATE"},
        headers=as_user(people.admin),
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_ACTION"


@pytest.mark.asyncio
async def test_invalid_action_is_400_whatever_the_ride(
    client: AsyncClient, people, db_session
):
    approved = await make_ride(db_session, people.alice, status=RideStatus.APPROVED)

    for ride_id in (approved.id, "missing"):
        resp = await client.post(
            f"/api/v1/admin/rides/{ride_id}/action",
            json={"action": "ESCALATE"},
            headers=as_user(people.admin),
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "INVALID_ACTION"


@pytest.mark.asyncio
async def test_action_on_missing_ride_is_404(client: AsyncClient, people):
    resp = await client.post(
        "/api/v1/admin/rides/missing/action",
        json={"action": "REJECT"},
        headers=as_user(people.admin),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_admin_list_filters(client: AsyncClient, people, db_session):
    await make_ride(db_session, people.alice, scheduled_time=NOW + timedelta(days=1))
    await make_ride(
        db_session,
        people.bob,
        status=RideStatus.APPROVED,
        scheduled_time=NOW + timedelta(days=10),
    )

    resp = await client.get(
        "/api/v1/admin/rides",
        params={"search": "innovation"},
        headers=as_user(people.admin),
    )
    assert resp.json()["pagination"]["total"] == 1
    assert resp.json()["rides"][0]["user"]["company"] == "Innovation Inc"

    resp = await client.get(
        "/api/v1/admin/rides",
        params={"start_date": "2026-03-19", "end_date": "2026-03-19"},
        headers=as_user(people.admin),
    )
    assert resp.json()["pagination"]["total"] == 1

    resp = await client.get(
        "/api/v1/admin/rides",
        params={"status": "APPROVED"},
        headers=as_user(people.admin),
    )
    assert [r["user_id"] for r in resp.json()["rides"]] == [people.bob.id]


@pytest.mark.asyncio
async def test_analytics_empty_range(client: AsyncClient, people, db_session):
    await make_ride(db_session, people.alice)

    resp = await client.get(
        "/api/v1/admin/analytics",
        params={"start_date": "2025-01-01", "end_date": "2025-01-31"},
        headers=as_user(people.admin),
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "total_rides": 0,
        "rides_by_status": [],
        "rides_per_day": [],
        "top_users": [],
        "recent_admin_actions": [],
    }


@pytest.mark.asyncio
async def test_analytics_unknown_timezone_is_422(client: AsyncClient, people):
    resp = await client.get(
        "/api/v1/admin/analytics",
        params={"tz": "Mars/Olympus_Mons"},
        headers=as_user(people.admin),
    )
    assert resp.status_code == 422
    assert resp.json() == {
        "detail": "Unknown timezone: 'Mars/Olympus_Mons'",
        "code": "INVALID_TIMEZONE",
    }


@pytest.mark.asyncio
async def test_dashboard(client: AsyncClient, people, db_session):
    await make_ride(db_session, people.alice, scheduled_time=NOW + timedelta(hours=2))
    await make_ride(db_session, people.bob, status=RideStatus.APPROVED)

    resp = await client.get("/api/v1/admin/dashboard", headers=as_user(people.admin))
    assert resp.status_code == 200
    data = resp.json()
    assert data["summary"] == {
        "today_rides": 1,
        "week_rides": 2,
        "month_rides": 2,
        "total_rides": 2,
        "pending_rides": 1,
        "approved_rides": 1,
    }
    assert len(data["recent_rides"]) == 2
    assert data["recent_actions"] == []


# ── Simulation ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_eligible_and_single_complete(client: AsyncClient, people, db_session):
    overdue = await make_ride(
        db_session,
        people.alice,
        status=RideStatus.APPROVED,
        scheduled_time=NOW - timedelta(hours=1),
    )
    pending = await make_ride(db_session, people.alice)

    resp = await client.get(
        "/api/v1/simulation/rides/eligible-for-completion",
        headers=as_user(people.admin),
    )
    assert resp.json()["count"] == 1
    assert resp.json()["eligible_rides"][0]["id"] == overdue.id

    resp = await client.post(
        f"/api/v1/simulation/rides/{overdue.id}/complete",
        headers=as_user(people.admin),
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "COMPLETED"

    resp = await client.post(
        f"/api/v1/simulation/rides/{pending.id}/complete",
        headers=as_user(people.admin),
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_bulk_complete(client: AsyncClient, people, db_session):
    approved = await make_ride(db_session, people.alice, status=RideStatus.APPROVED)
    pending = await make_ride(db_session, people.bob)

    resp = await client.post(
        "/api/v1/simulation/rides/bulk-complete",
        json={"ride_ids": [approved.id, pending.id]},
        headers=as_user(people.admin),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["count"] == 1
    assert data["completed_rides"][0]["id"] == approved.id
    assert data["skipped"] == [pending.id]

    resp = await client.post(
        "/api/v1/simulation/rides/bulk-complete",
        json={"ride_ids": [pending.id]},
        headers=as_user(people.admin),
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "NO_ELIGIBLE_RIDES"


@pytest.mark.asyncio
async def test_bulk_complete_requires_ids(client: AsyncClient, people):
    resp = await client.post(
        "/api/v1/simulation/rides/bulk-complete",
        json={"ride_ids": []},
        headers=as_user(people.admin),
    )
    assert resp.status_code == 422

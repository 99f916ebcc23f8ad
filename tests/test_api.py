"""
HTTP-level tests: routing, identity, status codes and error bodies
"""
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from cinema.api.deps import get_audit_log, get_payment
from cinema.core.database import get_db
from cinema.core.redis import redis_client
from cinema.main import app
from cinema.services import ActionLogService

API = "/api/v1"

PAYMENT = {
    "payment": {
        "card_number": "4111 1111 1111 1111",
        "expiry": "2032-12-31",
        "cvc": "123",
        "name_on_card": "John Doe",
    }
}

DECLINED_PAYMENT = {"payment": {**PAYMENT["payment"], "card_number": "4000 0000 0000 0002"}}


@pytest_asyncio.fixture
async def client(session_factory, gateway):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_audit_log] = lambda: ActionLogService(session_factory)
    app.dependency_overrides[get_payment] = lambda: gateway

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def login(client, email, password):
    response = await client.post(f"{API}/auth/token", json={"email": email, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest_asyncio.fixture
async def user_headers(client, user):
    return await login(client, "john@example.com", "password123")


@pytest_asyncio.fixture
async def admin_headers(client, admin):
    return await login(client, "admin@example.com", "admin12345")


async def place_hold(client, showtime_id, seat_ids, headers):
    return await client.post(
        f"{API}/holds", json={"showtime_id": showtime_id, "seat_ids": seat_ids}, headers=headers
    )


# ==================== Health ====================

@pytest.mark.asyncio
async def test_health_and_metrics(client):
    health = await client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "healthy"

    metrics = await client.get("/metrics")
    assert metrics.status_code == 200
    assert "holds_placed_total" in metrics.text


# ==================== Auth ====================

@pytest.mark.asyncio
async def test_register_login_and_me(client):
    response = await client.post(
        f"{API}/auth/register",
        json={"email": "Jane@Example.com", "password": "password123", "full_name": "Jane Doe"},
    )
    assert response.status_code == 201
    assert response.json()["role"] == "USER"

    headers = await login(client, "jane@example.com", "password123")
    me = await client.get(f"{API}/auth/me", headers=headers)

    assert me.status_code == 200
    assert me.json()["email"] == "jane@example.com"


@pytest.mark.asyncio
async def test_register_duplicate_email(client, user):
    response = await client.post(
        f"{API}/auth/register", json={"email": "john@example.com", "password": "password123"}
    )

    assert response.status_code == 409
    assert response.json()["error"] == "user_exists"


@pytest.mark.asyncio
async def test_login_with_wrong_password(client, user):
    response = await client.post(f"{API}/auth/token", json={"email": "john@example.com", "password": "nope"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_forged_token_rejected(client):
    response = await client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not.a.token"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_update_profile(client, user_headers):
    response = await client.put(
        f"{API}/auth/me", json={"full_name": "John Q. Doe", "phone_number": "+1 555-0100"}, headers=user_headers
    )

    assert response.status_code == 200
    assert response.json()["full_name"] == "John Q. Doe"
    me = await client.get(f"{API}/auth/me", headers=user_headers)
    assert me.json()["phone_number"] == "+1 555-0100"


@pytest.mark.asyncio
async def test_update_profile_rejects_bad_phone_number(client, user_headers):
    response = await client.put(f"{API}/auth/me", json={"phone_number": "call me"}, headers=user_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_change_password(client, user_headers):
    response = await client.post(
        f"{API}/auth/me/password",
        json={"current_password": "password123", "new_password": "new-password-1", "confirm_password": "new-password-1"},
        headers=user_headers,
    )

    assert response.status_code == 204
    await login(client, "john@example.com", "new-password-1")
    old = await client.post(f"{API}/auth/token", json={"email": "john@example.com", "password": "password123"})
    assert old.status_code == 401


@pytest.mark.asyncio
async def test_change_password_with_wrong_current_password(client, user_headers):
    response = await client.post(
        f"{API}/auth/me/password",
        json={"current_password": "guess", "new_password": "new-password-1", "confirm_password": "new-password-1"},
        headers=user_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_password"


@pytest.mark.asyncio
async def test_change_password_confirmation_mismatch(client, user_headers):
    response = await client.post(
        f"{API}/auth/me/password",
        json={"current_password": "password123", "new_password": "new-password-1", "confirm_password": "other-password"},
        headers=user_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"

# ==================== Catalog ====================

@pytest.mark.asyncio
async def test_browse_catalog(client, movie, showtime):
    movies = await client.get(f"{API}/movies", params={"search": "deep"})
    assert movies.json()["total"] == 1

    showtimes = await client.get(f"{API}/movies/{movie.id}/showtimes")
    assert [item["id"] for item in showtimes.json()] == [showtime.id]

    missing = await client.get(f"{API}/showtimes/9999")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_seat_map(client, showtime):
    response = await client.get(f"{API}/showtimes/{showtime.id}/seats")

    assert response.status_code == 200
    data = response.json()
    assert data["total_seats"] == 20
    assert data["available_seats"] == 20
    assert [seat["label"] for seat in data["rows"]["A"]] == ["A-1", "A-2", "A-3", "A-4", "A-5"]


# ==================== Holds ====================

@pytest.mark.asyncio
async def test_anonymous_session_can_hold(client, showtime, seats):
    headers = {"X-Session-Id": "browser-1"}

    response = await place_hold(client, showtime.id, [seats["A-1"].id, seats["A-2"].id], headers)

    assert response.status_code == 201
    hold = response.json()
    assert hold["status"] == "ACTIVE"
    assert Decimal(hold["total_amount"]) == Decimal("20.00")
    assert hold["time_remaining_seconds"] == 600

    polled = await client.get(f"{API}/holds/{hold['id']}", headers=headers)
    assert polled.json()["id"] == hold["id"]

    seat_map = (await client.get(f"{API}/showtimes/{showtime.id}/seats")).json()
    assert seat_map["held_seats"] == 2


@pytest.mark.asyncio
async def test_hold_without_identity_is_unauthorized(client, showtime, seats):
    response = await place_hold(client, showtime.id, [seats["A-1"].id], {})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_contended_seat_returns_conflict_with_seat_ids(client, showtime, seats):
    await place_hold(client, showtime.id, [seats["C-1"].id], {"X-Session-Id": "first"})

    response = await place_hold(
        client, showtime.id, [seats["C-1"].id, seats["C-2"].id], {"X-Session-Id": "second"}
    )

    assert response.status_code == 409
    assert response.json()["error"] == "seat_unavailable"
    assert response.json()["seat_ids"] == [seats["C-1"].id]


@pytest.mark.asyncio
async def test_empty_seat_list_is_a_validation_error(client, showtime):
    response = await place_hold(client, showtime.id, [], {"X-Session-Id": "browser-1"})

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_other_session_cannot_see_hold(client, showtime, seats):
    hold = (await place_hold(client, showtime.id, [seats["B-1"].id], {"X-Session-Id": "mine"})).json()

    response = await client.get(f"{API}/holds/{hold['id']}", headers={"X-Session-Id": "theirs"})

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_release_hold(client, showtime, seats):
    headers = {"X-Session-Id": "browser-1"}
    hold = (await place_hold(client, showtime.id, [seats["B-2"].id], headers)).json()

    first = await client.delete(f"{API}/holds/{hold['id']}", headers=headers)
    second = await client.delete(f"{API}/holds/{hold['id']}", headers=headers)

    assert first.status_code == 204
    assert second.status_code == 204
    polled = await client.get(f"{API}/holds/{hold['id']}", headers=headers)
    assert polled.json()["status"] == "RELEASED"


@pytest.mark.asyncio
async def test_renew_hold(client, showtime, seats, frozen_clock):
    headers = {"X-Session-Id": "browser-1"}
    hold = (await place_hold(client, showtime.id, [seats["B-3"].id], headers)).json()
    frozen_clock.advance(minutes=5)

    response = await client.post(f"{API}/holds/{hold['id']}/renew", headers=headers)

    assert response.status_code == 200
    assert response.json()["time_remaining_seconds"] == 600


# ==================== Confirmation ====================

@pytest.mark.asyncio
async def test_confirm_requires_sign_in(client, showtime, seats):
    headers = {"X-Session-Id": "browser-1"}
    hold = (await place_hold(client, showtime.id, [seats["D-1"].id], headers)).json()

    response = await client.post(f"{API}/holds/{hold['id']}/confirm", json=PAYMENT, headers=headers)

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_confirm_issues_tickets(client, showtime, seats, user_headers, gateway):
    seat_ids = [seats["D-2"].id, seats["D-3"].id]
    hold = (await place_hold(client, showtime.id, seat_ids, user_headers)).json()

    response = await client.post(
        f"{API}/holds/{hold['id']}/confirm",
        json=PAYMENT,
        headers={**user_headers, "X-Idempotency-Key": "checkout-1"},
    )

    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["total_amount"]) == Decimal("20.00")
    assert sorted(ticket["seat_id"] for ticket in data["tickets"]) == sorted(seat_ids)
    assert len(gateway.captured) == 1

    my_tickets = await client.get(f"{API}/tickets", headers=user_headers)
    assert my_tickets.json()["total"] == 2

    seat_map = (await client.get(f"{API}/showtimes/{showtime.id}/seats")).json()
    assert seat_map["booked_seats"] == 2


@pytest.mark.asyncio
async def test_user_confirms_hold_placed_by_their_session(client, showtime, seats, user, user_headers):
    session = {"X-Session-Id": "browser-7"}
    hold = (await place_hold(client, showtime.id, [seats["A-5"].id], session)).json()

    response = await client.post(
        f"{API}/holds/{hold['id']}/confirm", json=PAYMENT, headers={**user_headers, **session}
    )

    assert response.status_code == 200
    my_tickets = await client.get(f"{API}/tickets", headers=user_headers)
    assert [ticket["seat_id"] for ticket in my_tickets.json()["tickets"]] == [seats["A-5"].id]


@pytest.mark.asyncio
async def test_declined_payment_keeps_hold(client, showtime, seats, user_headers):
    hold = (await place_hold(client, showtime.id, [seats["A-3"].id], user_headers)).json()

    response = await client.post(f"{API}/holds/{hold['id']}/confirm", json=DECLINED_PAYMENT, headers=user_headers)

    assert response.status_code == 402
    assert response.json()["detail"] == "Insufficient funds."
    polled = await client.get(f"{API}/holds/{hold['id']}", headers=user_headers)
    assert polled.json()["status"] == "ACTIVE"


@pytest.mark.asyncio
async def test_confirm_someone_elses_hold(client, showtime, seats, user_headers, admin_headers):
    hold = (await place_hold(client, showtime.id, [seats["A-4"].id], user_headers)).json()

    response = await client.post(f"{API}/holds/{hold['id']}/confirm", json=PAYMENT, headers=admin_headers)

    assert response.status_code == 403
    assert response.json()["error"] == "not_owner"


@pytest.mark.asyncio
async def test_confirm_expired_hold(client, showtime, seats, user_headers, frozen_clock):
    hold = (await place_hold(client, showtime.id, [seats["C-5"].id], user_headers)).json()
    frozen_clock.advance(minutes=11)

    response = await client.post(f"{API}/holds/{hold['id']}/confirm", json=PAYMENT, headers=user_headers)

    assert response.status_code == 410
    seat_map = (await client.get(f"{API}/showtimes/{showtime.id}/seats")).json()
    assert seat_map["available_seats"] == 20


@pytest.mark.asyncio
async def test_cancel_own_ticket(client, showtime, seats, user_headers):
    hold = (await place_hold(client, showtime.id, [seats["B-4"].id], user_headers)).json()
    confirmation = await client.post(f"{API}/holds/{hold['id']}/confirm", json=PAYMENT, headers=user_headers)
    ticket_id = confirmation.json()["tickets"][0]["id"]

    response = await client.post(f"{API}/tickets/{ticket_id}/cancel", headers=user_headers)

    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"
    again = await client.post(f"{API}/tickets/{ticket_id}/cancel", headers=user_headers)
    assert again.status_code == 409


# ==================== Admin ====================

@pytest.mark.asyncio
async def test_admin_routes_require_admin(client, user_headers):
    anonymous = await client.get(f"{API}/admin/halls")
    as_user = await client.get(f"{API}/admin/halls", headers=user_headers)

    assert anonymous.status_code == 401
    assert as_user.status_code == 403


@pytest.mark.asyncio
async def test_admin_creates_showtime_with_seats(client, movie, hall, admin_headers):
    response = await client.post(
        f"{API}/admin/showtimes",
        json={
            "movie_id": movie.id,
            "cinema_hall_id": hall.id,
            "starts_at": "2030-01-03T18:00:00+02:00",
            "view_type": "IMAX",
            "price": "12.50",
        },
        headers=admin_headers,
    )

    assert response.status_code == 201
    showtime = response.json()
    assert showtime["starts_at"] == "2030-01-03T16:00:00"

    seat_map = (await client.get(f"{API}/showtimes/{showtime['id']}/seats")).json()
    assert seat_map["total_seats"] == 20

    logs = await client.get(f"{API}/admin/action-logs", params={"entity_type": "Showtime"}, headers=admin_headers)
    assert logs.json()["total"] == 1
    assert logs.json()["logs"][0]["action"] == "Create"


@pytest.mark.asyncio
async def test_admin_price_change_rejected_after_hold(client, showtime, seats, admin_headers):
    await place_hold(client, showtime.id, [seats["D-5"].id], {"X-Session-Id": "browser-1"})

    response = await client.put(
        f"{API}/admin/showtimes/{showtime.id}", json={"price": "15.00"}, headers=admin_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_admin_rejects_unknown_view_type(client, movie, hall, admin_headers):
    response = await client.post(
        f"{API}/admin/showtimes",
        json={
            "movie_id": movie.id,
            "cinema_hall_id": hall.id,
            "starts_at": "2030-01-03T18:00:00Z",
            "view_type": "4DX",
            "price": "12.50",
        },
        headers=admin_headers,
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_admin_dashboard(client, showtime, seats, user_headers, admin_headers):
    hold = (await place_hold(client, showtime.id, [seats["B-5"].id, seats["C-4"].id], user_headers)).json()
    await client.post(f"{API}/holds/{hold['id']}/confirm", json=PAYMENT, headers=user_headers)

    response = await client.get(f"{API}/admin/dashboard", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total_users"] == 2
    assert data["total_tickets"] == 2
    assert Decimal(data["total_revenue"]) == Decimal("20.00")
    assert data["tickets_by_genre"] == [{"genre": "Science Fiction", "count": 2}]
    assert len(data["recent_tickets"]) == 2


@pytest.mark.asyncio
async def test_admin_door_scan_by_ticket_number(client, showtime, seats, user_headers, admin_headers):
    hold = (await place_hold(client, showtime.id, [seats["C-3"].id], user_headers)).json()
    confirmation = await client.post(f"{API}/holds/{hold['id']}/confirm", json=PAYMENT, headers=user_headers)
    ticket_number = confirmation.json()["tickets"][0]["ticket_number"]

    response = await client.post(f"{API}/admin/tickets/by-number/{ticket_number}/use", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["status"] == "USED"
    assert response.json()["validated_at"] is not None
    again = await client.post(f"{API}/admin/tickets/by-number/{ticket_number}/use", headers=admin_headers)
    assert again.status_code == 409
    unknown = await client.post(f"{API}/admin/tickets/by-number/NOPE-0000/use", headers=admin_headers)
    assert unknown.status_code == 404


# ==================== Validation ====================

@pytest.mark.asyncio
async def test_non_numeric_cvc_is_a_validation_error(client, showtime, seats, user_headers, gateway):
    hold = (await place_hold(client, showtime.id, [seats["D-4"].id], user_headers)).json()
    payment = {"payment": {**PAYMENT["payment"], "cvc": "12a"}}

    response = await client.post(f"{API}/holds/{hold['id']}/confirm", json=payment, headers=user_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert "cvc must be numeric" in response.json()["detail"][0]["msg"]
    assert gateway.authorized == {}


# ==================== Idempotency ====================

class FakeRedis:
    """In-memory stand-in for the redis.asyncio commands RedisClient issues"""

    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value

    async def set(self, key, value, ex=None, nx=False):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    async def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_client, "redis", fake)
    return fake


@pytest.mark.asyncio
async def test_confirm_replay_returns_first_result(client, showtime, seats, user_headers, gateway, fake_redis):
    hold = (await place_hold(client, showtime.id, [seats["D-5"].id], user_headers)).json()
    headers = {**user_headers, "X-Idempotency-Key": "checkout-9"}

    first = await client.post(f"{API}/holds/{hold['id']}/confirm", json=PAYMENT, headers=headers)
    retry = await client.post(f"{API}/holds/{hold['id']}/confirm", json=PAYMENT, headers=headers)

    assert first.status_code == 200
    assert retry.status_code == 200
    assert retry.json() == first.json()
    assert len(gateway.authorized) == 1
    assert not any(key.endswith(":lock") for key in fake_redis.store)


@pytest.mark.asyncio
async def test_confirm_in_progress_is_a_conflict(client, showtime, seats, user, user_headers, gateway, fake_redis):
    hold = (await place_hold(client, showtime.id, [seats["A-1"].id], user_headers)).json()
    fake_redis.store[f"idempotency:confirm:{hold['id']}:user:{user.id}:checkout-9:lock"] = "1"

    response = await client.post(
        f"{API}/holds/{hold['id']}/confirm", json=PAYMENT, headers={**user_headers, "X-Idempotency-Key": "checkout-9"}
    )

    assert response.status_code == 409
    assert gateway.authorized == {}

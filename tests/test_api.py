"""
End-to-end tests: HTTP routes through the authorization middleware.

Requests go through httpx.AsyncClient over ASGITransport against an app
built by create_app() with the test database, clock, notifier and gateway.

Coverage:
  - Public vs protected paths, bearer header and cookie tokens
  - Registration -> OTP -> login -> approval over HTTP
  - Error body shape {"detail", "code"}
  - Event and payment entry points
"""
from __future__ import annotations

import json
from datetime import timedelta

import pytest

from portal.auth import SessionIdentity, create_access_token
from portal.roles import Role, AccountStatus
from portal.services.payment_gateway import compute_signature

from conftest import PASSWORD


# ─────────────────────────── Middleware ───────────────────────────────────────

async def test_health_is_public(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


@pytest.mark.parametrize("method,path", [
    ("GET", "/accounts/me"),
    ("GET", "/approvals/pending"),
    ("POST", "/approvals/1/approve"),
    ("POST", "/events"),
    ("POST", "/events/1/register"),
    ("POST", "/payments/orders"),
    ("GET", "/sessions/me"),
])
async def test_protected_paths_need_a_session(client, method, path):
    resp = await client.request(method, path)

    assert resp.status_code == 401
    assert resp.json() == {"detail": "Authentication required", "code": "unauthenticated"}
    assert resp.headers["www-authenticate"] == "Bearer"


async def test_tampered_and_expired_tokens_are_rejected(client, settings, make_account, auth_headers):
    account = await make_account()
    good = auth_headers(account)["Authorization"]
    expired = create_access_token(
        settings, SessionIdentity(account["id"], Role.MEMBER), expires_delta=timedelta(seconds=-1)
    )

    tampered = await client.get("/accounts/me", headers={"Authorization": good[:-2] + "xx"})
    stale = await client.get("/accounts/me", headers={"Authorization": f"Bearer {expired}"})

    assert tampered.status_code == 401
    assert stale.status_code == 401


async def test_token_accepted_from_cookie(client, settings, make_account):
    account = await make_account()
    token = create_access_token(settings, SessionIdentity(account["id"], Role.MEMBER))
    client.cookies.set(settings.SESSION_COOKIE_NAME, token)

    resp = await client.get("/sessions/me")

    assert resp.status_code == 200
    assert resp.json() == {"account_id": account["id"], "role": "MEMBER"}


async def test_event_catalogue_is_public(client, make_event):
    event_id = await make_event(state_id=4)

    listing = await client.get("/events", params={"stateId": 4})
    single = await client.get(f"/events/{event_id}")

    assert [e["id"] for e in listing.json()] == [event_id]
    assert single.status_code == 200
    assert (await client.get("/events/9999")).json()["code"] == "not_found"


# ─────────────────────────── Accounts & sessions ──────────────────────────────

async def test_register_verify_login_and_approve(client, notifier, make_account, auth_headers):
    global_admin = await make_account(role=Role.GLOBAL_ADMIN)

    resp = await client.post("/accounts/register", json={
        "full_name": "Ravi Kumar",
        "email": "ravi@example.com",
        "mobile": "9123456780",
        "password": "StatePass123",
        "confirm_password": "StatePass123",
        "role": "STATE_ADMIN",
        "state_id": 6,
    })
    assert resp.status_code == 201
    account_id = resp.json()["account_id"]

    code = notifier.last_code("ravi@example.com")
    resp = await client.post("/accounts/verify-otp", json={"account_id": account_id, "otp": code})
    assert resp.json()["account_status"] == "pending"

    pending = await client.get("/approvals/pending", headers=auth_headers(global_admin))
    assert [u["id"] for u in pending.json()["users"]] == [account_id]

    resp = await client.post(f"/approvals/{account_id}/approve", headers=auth_headers(global_admin))
    assert resp.status_code == 200
    assert resp.json()["account_id"] == account_id

    resp = await client.post("/sessions", json={"identifier": "ravi@example.com", "password": "StatePass123"})
    assert resp.status_code == 200
    assert resp.json()["role"] == "STATE_ADMIN"

    cookie = resp.headers["set-cookie"]
    assert "HttpOnly" in cookie
    assert "SameSite=strict" in cookie
    assert "Max-Age=86400" in cookie
    assert "Secure" not in cookie

    me = await client.get("/accounts/me", headers={"Authorization": f"Bearer {resp.json()['access_token']}"})
    assert me.json()["status"] == "active"
    assert "password_hash" not in me.json()


async def test_wrong_password_error_body(client, make_account):
    account = await make_account()

    resp = await client.post("/sessions", json={"identifier": account["email"], "password": "nope"})

    assert resp.status_code == 401
    assert resp.json() == {"detail": "Invalid credentials", "code": "invalid_credentials"}


async def test_logout_clears_cookie(client, settings):
    resp = await client.delete("/sessions")

    assert resp.status_code == 200
    assert f'{settings.SESSION_COOKIE_NAME}=""' in resp.headers["set-cookie"]


async def test_forgot_password_does_not_reveal_accounts(client, make_account):
    account = await make_account()

    known = await client.post("/accounts/forgot-password", json={"identifier": account["email"]})
    unknown = await client.post("/accounts/forgot-password", json={"identifier": "ghost@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()


async def test_reset_password_over_http(client, notifier, make_account):
    account = await make_account()
    await client.post("/accounts/forgot-password", json={"identifier": account["mobile"]})
    code = notifier.last_code(account["email"])

    resp = await client.post("/accounts/reset-password", json={
        "identifier": account["mobile"], "otp": code, "new_password": "Changed999",
    })
    assert resp.status_code == 200

    old = await client.post("/sessions", json={"identifier": account["email"], "password": PASSWORD})
    new = await client.post("/sessions", json={"identifier": account["email"], "password": "Changed999"})
    assert old.status_code == 401
    assert new.status_code == 200


# ─────────────────────────── Approvals ────────────────────────────────────────

async def test_out_of_scope_approval_is_forbidden(client, make_account, auth_headers):
    state_admin = await make_account(role=Role.STATE_ADMIN, state_id=1)
    foreign = await make_account(role=Role.DISTRICT_ADMIN, status=AccountStatus.PENDING, state_id=2, district_id=20)

    resp = await client.post(f"/approvals/{foreign['id']}/approve", headers=auth_headers(state_admin))

    assert resp.status_code == 403
    assert resp.json()["code"] == "forbidden"


async def test_reject_club_by_club_id(client, make_account, make_club, auth_headers):
    district_admin = await make_account(role=Role.DISTRICT_ADMIN, state_id=1, district_id=10)
    owner = await make_account(role=Role.CLUB_ADMIN, status=AccountStatus.PENDING, state_id=1, district_id=10)
    club_id = await make_club(state_id=1, district_id=10, owner_id=owner["id"], status=AccountStatus.PENDING)

    resp = await client.post(
        f"/approvals/{club_id}/reject",
        params={"type": "club"},
        json={"reason": "Duplicate club"},
        headers=auth_headers(district_admin),
    )
    assert resp.status_code == 200
    assert resp.json()["club_id"] == club_id

    history = await client.get("/approvals/history", headers=auth_headers(district_admin))
    assert history.json()["total"] == 1
    assert history.json()["entries"][0]["reason"] == "Duplicate club"


async def test_member_cannot_list_pending(client, make_account, auth_headers):
    member = await make_account()

    resp = await client.get("/approvals/pending", headers=auth_headers(member))

    assert resp.status_code == 403


# ─────────────────────────── Events ───────────────────────────────────────────

async def test_create_and_register_for_event(client, make_account, make_club, auth_headers):
    state_admin = await make_account(role=Role.STATE_ADMIN, state_id=1)
    club_id = await make_club(state_id=1, district_id=10)
    member = await make_account(role=Role.MEMBER, state_id=1, district_id=10, club_id=club_id)

    resp = await client.post("/events", headers=auth_headers(state_admin), json={
        "name": "State Inline Championship",
        "venue": "Indoor Arena",
        "event_date": "2025-07-20",
        "reg_start_date": "2025-05-01T00:00:00",
        "reg_end_date": "2025-07-01T00:00:00",
        "state_id": 1,
        "level": "state",
        "fee": 400,
    })
    assert resp.status_code == 201
    event_id = resp.json()["id"]

    first = await client.post(f"/events/{event_id}/register", headers=auth_headers(member), json={"suit_size": "L"})
    again = await client.post(f"/events/{event_id}/register", headers=auth_headers(member))

    assert first.status_code == 201
    assert again.status_code == 409
    assert again.json()["code"] == "already_registered"


async def test_member_cannot_create_events(client, make_account, auth_headers):
    member = await make_account()

    resp = await client.post("/events", headers=auth_headers(member), json={
        "name": "Unofficial Race",
        "venue": "Back Street",
        "event_date": "2025-07-20",
        "reg_start_date": "2025-05-01T00:00:00",
        "reg_end_date": "2025-07-01T00:00:00",
        "state_id": 1,
    })

    assert resp.status_code == 403


async def test_closed_registration_error_body(client, make_account, make_event, auth_headers, clock):
    member = await make_account(role=Role.MEMBER, state_id=1, district_id=10)
    event_id = await make_event(reg_end=clock() - timedelta(hours=1))

    resp = await client.post(f"/events/{event_id}/register", headers=auth_headers(member))

    assert resp.status_code == 400
    assert resp.json()["code"] == "registration_closed"


# ─────────────────────────── Payments ─────────────────────────────────────────

async def test_order_then_public_verify(client, make_account, auth_headers, settings):
    member = await make_account(role=Role.MEMBER, state_id=1, district_id=10)

    order = await client.post(
        "/payments/orders", headers=auth_headers(member), json={"purpose": "membership_renewal"}
    )
    assert order.status_code == 201
    order_id = order.json()["order_id"]

    payload = {
        "razorpay_order_id": order_id,
        "razorpay_payment_id": "pay_http_1",
        "razorpay_signature": compute_signature(settings.RAZORPAY_KEY_SECRET, f"{order_id}|pay_http_1"),
        "purpose": "membership_renewal",
        "subject_id": member["id"],
    }
    first = await client.post("/payments/verify", json=payload)
    second = await client.post("/payments/verify", json=payload)

    assert first.json()["already_processed"] is False
    assert second.json()["already_processed"] is True

    me = await client.get("/accounts/me", headers=auth_headers(member))
    assert me.json()["membership_expires_at"].startswith("2026-06-01")


async def test_verify_for_another_account_is_forbidden(client, make_account, auth_headers, settings):
    member = await make_account(role=Role.MEMBER, state_id=1, district_id=10)
    other = await make_account(role=Role.MEMBER, state_id=1, district_id=10)
    order = await client.post(
        "/payments/orders", headers=auth_headers(member), json={"purpose": "membership_renewal"}
    )
    order_id = order.json()["order_id"]

    resp = await client.post("/payments/verify", json={
        "razorpay_order_id": order_id,
        "razorpay_payment_id": "pay_http_2",
        "razorpay_signature": compute_signature(settings.RAZORPAY_KEY_SECRET, f"{order_id}|pay_http_2"),
        "purpose": "membership_renewal",
        "subject_id": other["id"],
    })

    assert resp.status_code == 403
    assert resp.json()["code"] == "forbidden"
    me = await client.get("/accounts/me", headers=auth_headers(other))
    assert me.json()["membership_expires_at"] is None


async def test_verify_with_bad_signature(client, make_account):
    member = await make_account()

    resp = await client.post("/payments/verify", json={
        "razorpay_order_id": "order_1",
        "razorpay_payment_id": "pay_1",
        "razorpay_signature": "deadbeef",
        "purpose": "membership_renewal",
        "subject_id": member["id"],
    })

    assert resp.status_code == 400
    assert resp.json() == {"detail": "Invalid payment signature", "code": "invalid_signature"}


async def test_webhook_is_public_and_signed(client, settings, make_account):
    member = await make_account()
    body = json.dumps({
        "event": "payment.captured",
        "payload": {"payment": {"entity": {
            "id": "pay_wh",
            "order_id": "order_wh",
            "notes": {"purpose": "membership_renewal", "userId": str(member["id"])},
        }}},
    }).encode()

    ok = await client.post(
        "/payments/webhook",
        content=body,
        headers={"X-Razorpay-Signature": compute_signature(settings.RAZORPAY_WEBHOOK_SECRET, body)},
    )
    bad = await client.post("/payments/webhook", content=body, headers={"X-Razorpay-Signature": "bad"})

    assert ok.status_code == 200
    assert ok.json() == {"status": "ok"}
    assert bad.status_code == 400


async def test_payment_links_are_admin_only(client, make_account, auth_headers):
    member = await make_account()
    admin = await make_account(role=Role.STATE_ADMIN, state_id=1)
    link = {"purpose": "membership_renewal", "amount": 500, "customer_phone": "9000000001"}

    denied = await client.post("/payments/links", headers=auth_headers(member), json=link)
    created = await client.post("/payments/links", headers=auth_headers(admin), json=link)
    listing = await client.get("/payments/links", headers=auth_headers(admin))

    assert denied.status_code == 403
    assert created.status_code == 201
    assert listing.json()["total"] == 1
    assert listing.json()["links"][0]["short_url"] == created.json()["short_url"]

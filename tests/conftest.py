"""
Shared pytest fixtures for portal tests.

Sets environment variables BEFORE any portal module is imported so that
pydantic-settings picks up safe test values. Every test gets its own SQLite
file database; the `databases` handle runs with force_rollback so nothing
leaks between tests.
"""
from __future__ import annotations

import json
import os
from datetime import datetime, timedelta, date

# ── Set env vars before any portal import ─────────────────────────────────────
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "test-razorpay-secret")
os.environ.setdefault("RAZORPAY_WEBHOOK_SECRET", "test-webhook-secret")

# ── Third-party ───────────────────────────────────────────────────────────────
import httpx
import pytest
from databases import Database

# ── Portal imports (safe after env vars are set) ──────────────────────────────
from portal.auth import SessionIdentity, create_access_token, hash_password
from portal.config import Settings
from portal.database import create_tables
from portal.main import create_app
from portal.models import Account, Club, Event
from portal.roles import Role, AccountStatus
from portal.services import build_services
from portal.services.payment_gateway import RazorpayClient

PASSWORD = "Password123"


# ── Collaborators ─────────────────────────────────────────────────────────────

class FixedClock:
    """Callable clock frozen at `now` until a test moves it."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingNotifier:
    """Notifier that keeps codes in memory instead of emailing them."""

    def __init__(self) -> None:
        self.sent: list[dict] = []

    async def send_otp(self, email: str, full_name: str, code: str, purpose: str = "verification") -> bool:
        self.sent.append({"email": email, "full_name": full_name, "code": code, "purpose": purpose})
        return True

    def last_code(self, email: str) -> str:
        return [m for m in self.sent if m["email"] == email][-1]["code"]


class FakeRazorpay:
    """Request handler for httpx.MockTransport mimicking the gateway."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.fail_with: int | None = None
        self._counter = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with:
            return httpx.Response(self.fail_with, json={"error": {"description": "gateway down"}})

        self._counter += 1
        payload = json.loads(request.content)
        if request.url.path.endswith("/orders"):
            return httpx.Response(200, json={
                "id": f"order_{self._counter}",
                "amount": payload["amount"],
                "currency": payload["currency"],
                "receipt": payload["receipt"],
                "status": "created",
            })
        if request.url.path.endswith("/payment_links"):
            return httpx.Response(200, json={
                "id": f"plink_{self._counter}",
                "amount": payload["amount"],
                "short_url": f"https://rzp.io/i/{self._counter}",
                "status": "created",
            })
        return httpx.Response(404, json={})


# ── Core fixtures ─────────────────────────────────────────────────────────────

@pytest.fixture
def settings() -> Settings:
    return Settings(
        APP_ENV="test",
        JWT_SECRET_KEY="test-jwt-secret",
        RAZORPAY_API_URL="https://api.razorpay.test/v1",
        RAZORPAY_KEY_ID="rzp_test_key",
        RAZORPAY_KEY_SECRET="test-razorpay-secret",
        RAZORPAY_WEBHOOK_SECRET="test-webhook-secret",
        MEMBERSHIP_FEE=500,
        SMTP_USER=None,
        SMTP_PASSWORD=None,
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2025, 6, 1, 12, 0, 0))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def fake_razorpay() -> FakeRazorpay:
    return FakeRazorpay()


@pytest.fixture
def gateway(settings, fake_razorpay) -> RazorpayClient:
    return RazorpayClient(
        settings.RAZORPAY_API_URL,
        settings.RAZORPAY_KEY_ID,
        settings.RAZORPAY_KEY_SECRET,
        transport=httpx.MockTransport(fake_razorpay),
    )


@pytest.fixture
async def database(tmp_path):
    """
    Yield a connected Database over a fresh SQLite file.
    Schema is created with the sync engine; the handle is always
    disconnected on teardown, even if the test raises.
    """
    url = f"sqlite:///{tmp_path / 'portal_test.db'}"
    create_tables(url)
    db = Database(url, force_rollback=True)
    await db.connect()
    try:
        yield db
    finally:
        await db.disconnect()


@pytest.fixture
def services(settings, database, gateway, notifier, clock):
    return build_services(settings, database, gateway, notifier, clock)


@pytest.fixture
def app(settings, database, gateway, notifier, clock):
    return create_app(settings, database, gateway, notifier, clock)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ── Factories ─────────────────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def password_hash() -> str:
    return hash_password(PASSWORD)


@pytest.fixture
def make_account(database, password_hash):
    """Factory fixture: insert an account straight into the store and return it."""
    accounts = Account.__table__
    counter = {"n": 0}

    async def _make(
        role: Role = Role.MEMBER,
        status: AccountStatus = AccountStatus.ACTIVE,
        verified: bool | None = None,
        otp_verified: bool = True,
        state_id: int | None = None,
        district_id: int | None = None,
        club_id: int | None = None,
        email: str | None = None,
    ) -> dict:
        counter["n"] += 1
        n = counter["n"]
        if verified is None:
            verified = status == AccountStatus.ACTIVE
        email = email or f"{role.value.lower()}{n}@example.com"
        account_id = await database.fetch_val(
            accounts.insert()
            .values(
                full_name=f"Test {role.value.title()} {n}",
                email=email,
                mobile=f"98765{n:05d}",
                password_hash=password_hash,
                role=role.value,
                state_id=state_id,
                district_id=district_id,
                club_id=club_id,
                otp_verified=otp_verified,
                verified=verified,
                status=status.value,
            )
            .returning(accounts.c.id)
        )
        row = await database.fetch_one(accounts.select().where(accounts.c.id == account_id))
        return {c.name: row[c.name] for c in accounts.columns}

    return _make


@pytest.fixture
def make_club(database):
    """Factory fixture: insert a club (optionally linking its owner account)."""
    clubs = Club.__table__
    accounts = Account.__table__

    async def _make(
        state_id: int,
        district_id: int,
        owner_id: int | None = None,
        status: AccountStatus = AccountStatus.ACTIVE,
        name: str = "Riverside Skating Club",
    ) -> int:
        club_id = await database.fetch_val(
            clubs.insert()
            .values(
                name=name,
                contact_email="club@example.com",
                contact_mobile="9000000000",
                state_id=state_id,
                district_id=district_id,
                owner_id=owner_id,
                verified=status == AccountStatus.ACTIVE,
                status=status.value,
            )
            .returning(clubs.c.id)
        )
        if owner_id is not None:
            await database.execute(
                accounts.update().where(accounts.c.id == owner_id).values(club_id=club_id)
            )
        return club_id

    return _make


@pytest.fixture
def make_event(database, clock):
    """Factory fixture: insert an event whose registration window is open at `clock`."""
    events = Event.__table__

    async def _make(
        state_id: int = 1,
        district_id: int = 0,
        level: str = "state",
        fee: int = 300,
        status: str = "active",
        reg_start: datetime | None = None,
        reg_end: datetime | None = None,
        event_date: date | None = None,
        name: str = "State Speed Championship",
    ) -> int:
        now = clock()
        return await database.fetch_val(
            events.insert()
            .values(
                name=name,
                venue="City Skating Rink",
                event_date=event_date or (now + timedelta(days=30)).date(),
                reg_start_date=reg_start or now - timedelta(days=1),
                reg_end_date=reg_end or now + timedelta(days=10),
                state_id=state_id,
                district_id=district_id,
                level=level,
                fee=fee,
                status=status,
            )
            .returning(events.c.id)
        )

    return _make


@pytest.fixture
def auth_headers(settings):
    """Bearer header for an account record."""

    def _headers(account: dict) -> dict:
        token = create_access_token(
            settings, SessionIdentity(account_id=account["id"], role=Role(account["role"]))
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers

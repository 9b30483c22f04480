"""
Integration tests: OtpService issue/verify against a SQLite store.

Coverage:
  - Code format, expiry window and overwrite on re-issue
  - Member activation vs admin left pending approval
  - InvalidOtp / Expired / NotFound failures
  - Idempotent re-verification
"""
from __future__ import annotations

from datetime import timedelta

import pytest

from portal.errors import ExpiredError, InvalidOtpError, NotFoundError
from portal.models import Account
from portal.roles import Role, AccountStatus

accounts = Account.__table__


async def _load(database, account_id: int):
    return await database.fetch_one(accounts.select().where(accounts.c.id == account_id))


async def _pending(make_account, role: Role = Role.MEMBER, **kwargs) -> dict:
    return await make_account(role=role, status=AccountStatus.PENDING, otp_verified=False, **kwargs)


# ─────────────────────────── Issue ────────────────────────────────────────────

async def test_issue_stores_six_digit_code_with_ten_minute_expiry(services, database, make_account, clock):
    account = await _pending(make_account)

    code = await services.otp.issue_otp(account["id"])

    row = await _load(database, account["id"])
    assert len(code) == 6 and code.isdigit()
    assert row["otp_code"] == code
    assert row["otp_expires_at"] == clock() + timedelta(minutes=10)


async def test_reissue_overwrites_previous_code(services, database, make_account, clock):
    account = await _pending(make_account)
    await services.otp.issue_otp(account["id"])
    clock.advance(minutes=5)

    code = await services.otp.issue_otp(account["id"])

    row = await _load(database, account["id"])
    assert row["otp_code"] == code
    assert row["otp_expires_at"] == clock() + timedelta(minutes=10)


async def test_issue_for_unknown_account(services):
    with pytest.raises(NotFoundError):
        await services.otp.issue_otp(9999)


# ─────────────────────────── Verify ───────────────────────────────────────────

async def test_member_becomes_active_on_verification(services, database, make_account):
    account = await _pending(make_account, state_id=1, district_id=10)
    code = await services.otp.issue_otp(account["id"])

    result = await services.otp.verify_otp(account["id"], code)

    row = await _load(database, account["id"])
    assert result == {"already_verified": False, "status": "active"}
    assert row["otp_verified"] is True
    assert row["verified"] is True
    assert row["status"] == "active"
    assert row["otp_code"] is None
    assert row["otp_expires_at"] is None


@pytest.mark.parametrize("role", [Role.STATE_ADMIN, Role.DISTRICT_ADMIN, Role.CLUB_ADMIN])
async def test_admin_stays_pending_after_verification(services, database, make_account, role):
    account = await _pending(make_account, role=role, state_id=1, district_id=10)
    code = await services.otp.issue_otp(account["id"])

    result = await services.otp.verify_otp(account["id"], code)

    row = await _load(database, account["id"])
    assert result["status"] == "pending"
    assert row["otp_verified"] is True
    assert row["verified"] is False
    assert row["status"] == "pending"


async def test_wrong_code_is_invalid(services, database, make_account):
    account = await _pending(make_account)
    code = await services.otp.issue_otp(account["id"])
    wrong = "000000" if code != "000000" else "111111"

    with pytest.raises(InvalidOtpError):
        await services.otp.verify_otp(account["id"], wrong)

    row = await _load(database, account["id"])
    assert row["otp_verified"] is False
    assert row["otp_code"] == code


async def test_missing_code_is_invalid(services, make_account):
    account = await _pending(make_account)

    with pytest.raises(InvalidOtpError):
        await services.otp.verify_otp(account["id"], "123456")


async def test_correct_code_after_expiry_is_expired(services, database, make_account, clock):
    account = await _pending(make_account)
    code = await services.otp.issue_otp(account["id"])
    clock.advance(minutes=10, seconds=1)

    with pytest.raises(ExpiredError):
        await services.otp.verify_otp(account["id"], code)

    row = await _load(database, account["id"])
    assert row["otp_verified"] is False


async def test_code_valid_at_exact_expiry(services, make_account, clock):
    account = await _pending(make_account)
    code = await services.otp.issue_otp(account["id"])
    clock.advance(minutes=10)

    result = await services.otp.verify_otp(account["id"], code)
    assert result["already_verified"] is False


async def test_second_verification_reports_already_verified(services, make_account):
    account = await _pending(make_account)
    code = await services.otp.issue_otp(account["id"])
    await services.otp.verify_otp(account["id"], code)

    result = await services.otp.verify_otp(account["id"], code)

    assert result == {"already_verified": True, "status": "active"}


async def test_verify_unknown_account(services):
    with pytest.raises(NotFoundError):
        await services.otp.verify_otp(9999, "123456")

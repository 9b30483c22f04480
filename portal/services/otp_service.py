"""
OTP Service
Issue and check the one-time codes that gate activation and password reset
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional
import hmac
import logging
from databases import Database
from portal.auth import generate_otp
from portal.errors import NotFoundError, InvalidOtpError, ExpiredError
from portal.models import Account
from portal.roles import Role, AccountStatus
from portal.database import row_to_dict

logger = logging.getLogger(__name__)

accounts = Account.__table__


class OtpPurpose(str, Enum):
    """What a stored code may be spent on"""
    VERIFICATION = "verification"
    PASSWORD_RESET = "password_reset"


class OtpService:
    """Service for one-time code operations"""

    def __init__(
        self,
        database: Database,
        expiry_minutes: int = 10,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        self.database = database
        self.expiry = timedelta(minutes=expiry_minutes)
        self.clock = clock

    async def issue_otp(self, account_id: int, purpose: OtpPurpose = OtpPurpose.VERIFICATION) -> str:
        """
        Generate a fresh code for the account, replacing any previous one

        Returns:
            The six-digit code (to be delivered, never returned to clients)
        """
        exists = await self.database.fetch_val(
            "SELECT id FROM accounts WHERE id = :id", {"id": account_id}
        )
        if exists is None:
            raise NotFoundError("Account not found")

        code = generate_otp()
        await self.database.execute(
            accounts.update()
            .where(accounts.c.id == account_id)
            .values(
                otp_code=code,
                otp_purpose=OtpPurpose(purpose).value,
                otp_expires_at=self.clock() + self.expiry,
            )
        )
        logger.info("Issued %s OTP for account %s", OtpPurpose(purpose).value, account_id)
        return code

    def check_code(
        self,
        account: dict,
        code: Optional[str],
        purpose: OtpPurpose = OtpPurpose.VERIFICATION
    ) -> None:
        """
        Validate a submitted code against the stored one

        A code issued for one purpose never satisfies another.

        Raises:
            InvalidOtpError: Code absent, mismatched or issued for another purpose
            ExpiredError: Code matches but is past its expiry
        """
        stored = account.get("otp_code")
        if not stored or not code or not hmac.compare_digest(stored.encode(), code.encode()):
            raise InvalidOtpError()
        if account.get("otp_purpose") != OtpPurpose(purpose).value:
            raise InvalidOtpError()

        expires_at = account.get("otp_expires_at")
        if expires_at is not None and self.clock() > expires_at:
            raise ExpiredError()

    async def verify_otp(self, account_id: int, code: str) -> dict:
        """
        Mark the account as OTP-verified

        Members become active straight away; administrators stay pending
        until their superior approves them.

        Returns:
            {"already_verified": bool, "status": str}
        """
        row = await self.database.fetch_one(accounts.select().where(accounts.c.id == account_id))
        account = row_to_dict(row, accounts)
        if account is None:
            raise NotFoundError("Account not found")

        if account["otp_verified"]:
            return {"already_verified": True, "status": account["status"]}

        self.check_code(account, code, OtpPurpose.VERIFICATION)

        values = {"otp_verified": True, "otp_code": None, "otp_purpose": None, "otp_expires_at": None}
        if Role(account["role"]) == Role.MEMBER:
            values.update(verified=True, status=AccountStatus.ACTIVE.value)

        await self.database.execute(
            accounts.update().where(accounts.c.id == account_id).values(**values)
        )
        logger.info("Account %s completed OTP verification", account_id)
        return {"already_verified": False, "status": values.get("status", account["status"])}

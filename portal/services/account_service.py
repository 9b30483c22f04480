"""
Account Service
Registration, credential checks and password reset
"""

from datetime import datetime
from typing import Callable, Optional
import logging
from databases import Database
from sqlalchemy import or_
from portal.auth import hash_password, verify_password, dummy_verify
from portal.database import is_unique_violation, row_to_dict
from portal.errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    InvalidCredentialsError,
    NotFoundError,
    PortalError,
    ValidationFailedError,
)
from portal.models import Account, Club
from portal.roles import Role, AccountStatus, SCOPE_FIELDS
from portal.schemas.account import RegisterAccountRequest
from portal.services.notification_service import NotificationService
from portal.services.otp_service import OtpService, OtpPurpose

logger = logging.getLogger(__name__)

accounts = Account.__table__
clubs = Club.__table__

FORGOT_PASSWORD_MESSAGE = "If the account exists, an OTP has been sent."
RESET_PASSWORD_MESSAGE = "If the account exists, the password has been reset."
DUPLICATE_ACCOUNT_MESSAGE = "An account already exists with this email or mobile"


class AccountService:
    """Service for account lifecycle operations"""

    def __init__(
        self,
        database: Database,
        otp_service: OtpService,
        notifier: NotificationService,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        self.database = database
        self.otp_service = otp_service
        self.notifier = notifier
        self.clock = clock

    async def get_account(self, account_id: int) -> dict:
        row = await self.database.fetch_one(accounts.select().where(accounts.c.id == account_id))
        account = row_to_dict(row, accounts)
        if account is None:
            raise NotFoundError("Account not found")
        return account

    async def find_by_identifier(self, identifier: str) -> Optional[dict]:
        """Look an account up by email or mobile"""
        identifier = identifier.strip()
        row = await self.database.fetch_one(
            accounts.select().where(
                or_(accounts.c.email == identifier.lower(), accounts.c.mobile == identifier)
            )
        )
        return row_to_dict(row, accounts)

    async def _resolve_scope(self, data: RegisterAccountRequest) -> dict:
        """
        Work out the subtree ids for the requested role

        Raises:
            ValidationFailedError: Missing scope fields or unknown club
        """
        if data.role == Role.MEMBER:
            if data.club_id is None:
                raise ValidationFailedError("club_id is required for members")
            club = await self.database.fetch_one(clubs.select().where(clubs.c.id == data.club_id))
            if not club or club["status"] != AccountStatus.ACTIVE.value or not club["verified"]:
                raise ValidationFailedError("Unknown or unapproved club")
            return {"state_id": club["state_id"], "district_id": club["district_id"], "club_id": club["id"]}

        scope = {"state_id": None, "district_id": None, "club_id": None}
        for field in SCOPE_FIELDS[data.role]:
            if field == "club_id":
                continue
            value = getattr(data, field)
            if value is None:
                raise ValidationFailedError(f"{field} is required for {data.role.value}")
            scope[field] = value

        if data.role == Role.CLUB_ADMIN and data.club is None:
            raise ValidationFailedError("Club details are required for CLUB_ADMIN")
        return scope

    async def _identifier_taken(self, email: str, mobile: str) -> bool:
        existing = await self.database.fetch_one(
            "SELECT id FROM accounts WHERE email = :email OR mobile = :mobile",
            {"email": email, "mobile": mobile}
        )
        return existing is not None

    async def register(self, data: RegisterAccountRequest) -> dict:
        """
        Create a pending, unverified account and send its OTP

        A CLUB_ADMIN registration creates the club in the same transaction.
        The unique email and mobile constraints decide concurrent duplicates.

        Returns:
            {"account_id": int, "club_id": Optional[int]}
        """
        email = data.email.lower()
        if await self._identifier_taken(email, data.mobile):
            raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE)

        scope = await self._resolve_scope(data)
        password_hash = hash_password(data.password)
        club_id = scope["club_id"]

        try:
            async with self.database.transaction():
                account_id = await self.database.fetch_val(
                    """
                    INSERT INTO accounts (
                        full_name, email, mobile, password_hash, role,
                        state_id, district_id, club_id, otp_verified, verified, status
                    )
                    VALUES (
                        :full_name, :email, :mobile, :password_hash, :role,
                        :state_id, :district_id, :club_id, :otp_verified, :verified, :status
                    )
                    RETURNING id
                    """,
                    {
                        "full_name": data.full_name,
                        "email": email,
                        "mobile": data.mobile,
                        "password_hash": password_hash,
                        "role": data.role.value,
                        "otp_verified": False,
                        "verified": False,
                        "status": AccountStatus.PENDING.value,
                        **scope,
                    }
                )

                if data.role == Role.CLUB_ADMIN:
                    club_id = await self.database.fetch_val(
                        """
                        INSERT INTO clubs (
                            name, registration_number, address, contact_email, contact_mobile,
                            state_id, district_id, owner_id, verified, status
                        )
                        VALUES (
                            :name, :registration_number, :address, :contact_email, :contact_mobile,
                            :state_id, :district_id, :owner_id, :verified, :status
                        )
                        RETURNING id
                        """,
                        {
                            "name": data.club.name,
                            "registration_number": data.club.registration_number,
                            "address": data.club.address,
                            "contact_email": email,
                            "contact_mobile": data.mobile,
                            "state_id": scope["state_id"],
                            "district_id": scope["district_id"],
                            "owner_id": account_id,
                            "verified": False,
                            "status": AccountStatus.PENDING.value,
                        }
                    )
                    await self.database.execute(
                        "UPDATE accounts SET club_id = :club_id WHERE id = :id",
                        {"club_id": club_id, "id": account_id}
                    )
        except PortalError:
            raise
        except Exception as e:
            if is_unique_violation(e):
                logger.info("Concurrent registration for %s lost at insert", email)
                raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE) from e
            logger.exception("Registration failed for %s", email)
            raise InternalError("Failed to create account") from e

        code = await self.otp_service.issue_otp(account_id, OtpPurpose.VERIFICATION)
        await self.notifier.send_otp(email, data.full_name, code, purpose="verification")
        logger.info("Registered %s account %s", data.role.value, account_id)

        return {"account_id": account_id, "club_id": club_id if data.role == Role.CLUB_ADMIN else None}


    async def resend_otp(self, account_id: int) -> None:
        """Issue a new verification code for an account still awaiting OTP"""
        account = await self.get_account(account_id)
        if account["otp_verified"]:
            raise ConflictError("Account is already verified")
        code = await self.otp_service.issue_otp(account_id, OtpPurpose.VERIFICATION)
        await self.notifier.send_otp(account["email"], account["full_name"], code, purpose="verification")

    async def authenticate(self, identifier: str, password: str) -> dict:
        """
        Check credentials

        Returns:
            The account record

        Raises:
            InvalidCredentialsError: Unknown identifier or wrong password
            ForbiddenError: Account deactivated
        """
        account = await self.find_by_identifier(identifier)
        if account is None:
            dummy_verify()
            raise InvalidCredentialsError()

        if not verify_password(password, account["password_hash"]):
            raise InvalidCredentialsError()

        if account["status"] == AccountStatus.INACTIVE.value:
            raise ForbiddenError("Account is deactivated")

        await self.database.execute(
            accounts.update().where(accounts.c.id == account["id"]).values(last_login=self.clock())
        )
        return account

    async def request_password_reset(self, identifier: str) -> str:
        """Send a reset OTP if the account exists; the reply never says which"""
        account = await self.find_by_identifier(identifier)
        if account is None:
            logger.info("Password reset requested for unknown identifier")
            return FORGOT_PASSWORD_MESSAGE

        code = await self.otp_service.issue_otp(account["id"], OtpPurpose.PASSWORD_RESET)
        await self.notifier.send_otp(account["email"], account["full_name"], code, purpose="password_reset")
        return FORGOT_PASSWORD_MESSAGE

    async def reset_password(self, identifier: str, otp: str, new_password: str) -> str:
        """
        Replace the password after checking the stored OTP

        Unknown identifiers get the same reply as a successful reset.

        Raises:
            InvalidOtpError, ExpiredError
        """
        account = await self.find_by_identifier(identifier)
        if account is None:
            logger.info("Password reset attempted for unknown identifier")
            return RESET_PASSWORD_MESSAGE

        self.otp_service.check_code(account, otp, OtpPurpose.PASSWORD_RESET)

        await self.database.execute(
            accounts.update()
            .where(accounts.c.id == account["id"])
            .values(
                password_hash=hash_password(new_password),
                otp_code=None,
                otp_purpose=None,
                otp_expires_at=None,
            )
        )
        logger.info("Password reset for account %s", account["id"])
        return RESET_PASSWORD_MESSAGE

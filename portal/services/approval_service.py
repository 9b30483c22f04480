"""
Approval Service
Hierarchical approve/reject of pending accounts and their clubs
"""

from typing import Optional
import logging
from databases import Database
from sqlalchemy import and_
from portal.database import row_to_dict
from portal.errors import (
    ForbiddenError,
    InternalError,
    NotFoundError,
    PortalError,
    UnauthenticatedError,
    ValidationFailedError,
)
from portal.models import Account, Club
from portal.roles import Role, AccountStatus, can_approve, approvable_role
from portal.services.activity_log_service import ActivityLogService

logger = logging.getLogger(__name__)

accounts = Account.__table__
clubs = Club.__table__

TARGET_TYPES = ("user", "club")


class ApprovalService:
    """Service applying the one-level-down approval rule"""

    def __init__(self, database: Database, activity_log: ActivityLogService):
        self.database = database
        self.activity_log = activity_log

    async def _load_account(self, account_id: int) -> Optional[dict]:
        row = await self.database.fetch_one(accounts.select().where(accounts.c.id == account_id))
        return row_to_dict(row, accounts)

    async def _resolve_approver(self, approver_id: int) -> dict:
        approver = await self._load_account(approver_id)
        if approver is None:
            raise UnauthenticatedError("Approver account not found")
        if approver["status"] != AccountStatus.ACTIVE.value or not approver["verified"]:
            raise ForbiddenError("Approver account is not active")
        return approver

    async def _resolve_target(self, target_id: int, target_type: str) -> dict:
        """
        Load the account being acted on

        For target_type 'club' the id is a club id and the club's owning
        CLUB_ADMIN becomes the target.
        """
        if target_type not in TARGET_TYPES:
            raise ValidationFailedError("type must be 'user' or 'club'")

        if target_type == "club":
            owner_id = await self.database.fetch_val(
                "SELECT owner_id FROM clubs WHERE id = :id", {"id": target_id}
            )
            if owner_id is None:
                raise NotFoundError("Club not found")
            target_id = owner_id

        target = await self._load_account(target_id)
        if target is None:
            raise NotFoundError("Account not found")
        return target

    async def _authorize(self, approver_id: int, target_id: int, target_type: str):
        approver = await self._resolve_approver(approver_id)
        target = await self._resolve_target(target_id, target_type)
        if not can_approve(approver, target):
            logger.warning(
                "Account %s (%s) may not act on account %s (%s)",
                approver["id"], approver["role"], target["id"], target["role"],
            )
            raise ForbiddenError("Not authorized to act on this account")
        return approver, target

    @staticmethod
    def _owned_club_id(target: dict) -> Optional[int]:
        if Role(target["role"]) == Role.CLUB_ADMIN:
            return target.get("club_id")
        return None

    async def _set_account_approved(self, account_id: int, approver_id: int) -> None:
        await self.database.execute(
            """
            UPDATE accounts
            SET status = :status, verified = :verified, approved_by = :approver_id
            WHERE id = :id
            """,
            {"status": AccountStatus.ACTIVE.value, "verified": True, "approver_id": approver_id, "id": account_id}
        )

    async def _set_club_approved(self, club_id: int, approver_id: int) -> None:
        await self.database.execute(
            """
            UPDATE clubs
            SET status = :status, verified = :verified, approved_by = :approver_id
            WHERE id = :id
            """,
            {"status": AccountStatus.ACTIVE.value, "verified": True, "approver_id": approver_id, "id": club_id}
        )

    async def _delete_club(self, club_id: int) -> None:
        await self.database.execute("DELETE FROM clubs WHERE id = :id", {"id": club_id})

    async def _delete_account(self, account_id: int) -> None:
        await self.database.execute("DELETE FROM accounts WHERE id = :id", {"id": account_id})

    async def approve(self, approver_id: int, target_id: int, target_type: str = "user") -> dict:
        """
        Activate a pending account (and its club) on behalf of its direct superior

        Re-approving an active account re-applies the same values. Applicants
        who have not completed OTP verification cannot be approved.

        Raises:
            UnauthenticatedError, NotFoundError, ForbiddenError,
            ValidationFailedError, InternalError
        """
        approver, target = await self._authorize(approver_id, target_id, target_type)
        if not target["otp_verified"]:
            raise ValidationFailedError("Account has not completed OTP verification")
        club_id = self._owned_club_id(target)

        try:
            async with self.database.transaction():
                await self._set_account_approved(target["id"], approver["id"])
                if club_id is not None:
                    await self._set_club_approved(club_id, approver["id"])
                await self.activity_log.log_decision(approver["id"], target, "approve")
        except PortalError:
            raise
        except Exception as e:
            logger.exception("Approval of account %s failed", target["id"])
            raise InternalError("Approval failed") from e

        logger.info("Account %s approved account %s", approver["id"], target["id"])
        return {"account_id": target["id"], "club_id": club_id}

    async def reject(
        self,
        approver_id: int,
        target_id: int,
        target_type: str = "user",
        reason: Optional[str] = None
    ) -> dict:
        """
        Delete a pending applicant so they can register again

        The owned club goes first so no club is left pointing at a deleted admin.

        Raises:
            UnauthenticatedError, NotFoundError, ForbiddenError, InternalError
        """
        approver, target = await self._authorize(approver_id, target_id, target_type)
        club_id = self._owned_club_id(target)

        try:
            async with self.database.transaction():
                await self.activity_log.log_decision(
                    approver["id"], target, "reject", reason=reason or "Rejected by admin"
                )
                if club_id is not None:
                    await self._delete_club(club_id)
                await self._delete_account(target["id"])
        except PortalError:
            raise
        except Exception as e:
            logger.exception("Rejection of account %s failed", target["id"])
            raise InternalError("Rejection failed") from e

        logger.info("Account %s rejected account %s", approver["id"], target["id"])
        return {"account_id": target["id"], "club_id": club_id}

    async def list_pending(self, viewer_id: int, viewer_role: Role) -> dict:
        """
        Pending entities the viewer may decide on

        Only OTP-verified applicants are listed.
        """
        viewer = await self._load_account(viewer_id)
        if viewer is None:
            raise UnauthenticatedError("Account not found")
        if Role(viewer["role"]) != Role(viewer_role):
            raise UnauthenticatedError("Session role no longer matches the account")

        users: list = []
        pending_clubs: list = []
        target_role = approvable_role(Role(viewer_role))

        if target_role in (Role.STATE_ADMIN, Role.DISTRICT_ADMIN):
            conditions = [
                accounts.c.role == target_role.value,
                accounts.c.verified.is_(False),
                accounts.c.otp_verified.is_(True),
            ]
            if target_role == Role.DISTRICT_ADMIN:
                conditions.append(accounts.c.state_id == viewer["state_id"])
            rows = await self.database.fetch_all(
                accounts.select().where(and_(*conditions)).order_by(accounts.c.created_at, accounts.c.id)
            )
            users = [row_to_dict(row, accounts) for row in rows]

        elif target_role == Role.CLUB_ADMIN:
            query = (
                clubs.select()
                .select_from(clubs.join(accounts, accounts.c.id == clubs.c.owner_id))
                .where(
                    and_(
                        clubs.c.district_id == viewer["district_id"],
                        clubs.c.verified.is_(False),
                        accounts.c.otp_verified.is_(True),
                    )
                )
                .order_by(clubs.c.created_at, clubs.c.id)
            )
            rows = await self.database.fetch_all(query)
            pending_clubs = [row_to_dict(row, clubs) for row in rows]

        return {"users": users, "clubs": pending_clubs}

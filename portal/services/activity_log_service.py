"""
Activity Logging Service
Records approval decisions and queries them back
"""

from databases import Database
from typing import List, Optional
from portal.database import row_to_dict
from portal.models import ApprovalLog

approval_logs = ApprovalLog.__table__


class ActivityLogService:
    """Service for approval log operations"""

    def __init__(self, database: Database):
        self.database = database

    async def log_decision(
        self,
        approver_id: int,
        target: dict,
        action: str,
        reason: Optional[str] = None
    ) -> int:
        """
        Log an approve/reject decision

        Args:
            approver_id: Account that made the decision
            target: Account record acted on (snapshotted, it may be deleted next)
            action: 'approve' or 'reject'
            reason: Free-text reason (rejections)

        Returns:
            Created log entry id
        """
        return await self.database.fetch_val(
            """
            INSERT INTO approval_logs
                (approver_id, target_account_id, target_role, target_email, club_id, action, reason)
            VALUES
                (:approver_id, :target_account_id, :target_role, :target_email, :club_id, :action, :reason)
            RETURNING id
            """,
            {
                "approver_id": approver_id,
                "target_account_id": target["id"],
                "target_role": target["role"],
                "target_email": target.get("email"),
                "club_id": target.get("club_id"),
                "action": action,
                "reason": reason,
            }
        )

    async def get_decisions_by_approver(
        self,
        approver_id: int,
        limit: int = 50,
        offset: int = 0
    ) -> tuple[List[dict], int]:
        """
        Get decisions made by an approver

        Returns:
            Tuple of (log entries, total count)
        """
        total = await self.database.fetch_val(
            "SELECT COUNT(*) FROM approval_logs WHERE approver_id = :approver_id",
            {"approver_id": approver_id}
        )

        rows = await self.database.fetch_all(
            approval_logs.select()
            .where(approval_logs.c.approver_id == approver_id)
            .order_by(approval_logs.c.created_at.desc(), approval_logs.c.id.desc())
            .limit(limit)
            .offset(offset)
        )

        return [row_to_dict(row, approval_logs) for row in rows], total or 0

"""
Approval Log Model
Keeps approve/reject decisions after rejected accounts are deleted
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, func
from portal.database import Base


class ApprovalLog(Base):
    __tablename__ = "approval_logs"

    id = Column(Integer, primary_key=True)
    approver_id = Column(Integer, nullable=False, index=True)

    # Snapshot of the target; the account may no longer exist
    target_account_id = Column(Integer, nullable=False, index=True)
    target_role = Column(String(20), nullable=False)
    target_email = Column(String(255), nullable=True)
    club_id = Column(Integer, nullable=True)

    action = Column(String(10), nullable=False)  # 'approve' or 'reject'
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

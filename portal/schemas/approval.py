"""
Approval Request/Response Models
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from portal.roles import Role


class RejectRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class ApprovalResponse(BaseModel):
    status: str
    message: str
    account_id: int
    club_id: Optional[int] = None


class PendingAccount(BaseModel):
    id: int
    full_name: str
    email: str
    mobile: str
    role: Role
    state_id: Optional[int]
    district_id: Optional[int]
    created_at: Optional[datetime]


class PendingClub(BaseModel):
    id: int
    name: str
    contact_email: str
    contact_mobile: str
    state_id: int
    district_id: int
    owner_id: Optional[int]
    created_at: Optional[datetime]


class PendingListResponse(BaseModel):
    users: list[PendingAccount]
    clubs: list[PendingClub]


class ApprovalLogEntry(BaseModel):
    id: int
    target_account_id: int
    target_role: str
    target_email: Optional[str]
    club_id: Optional[int]
    action: str
    reason: Optional[str]
    created_at: Optional[datetime]


class ApprovalHistoryResponse(BaseModel):
    total: int
    entries: list[ApprovalLogEntry]

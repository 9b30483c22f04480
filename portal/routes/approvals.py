"""
Approval Routes
Pending lists and approve/reject decisions; the approver is always the session holder
"""

from typing import Optional
from fastapi import APIRouter, Body, Depends, Query
from portal.auth import SessionIdentity, get_current_identity, get_admin
from portal.schemas.approval import (
    RejectRequest,
    ApprovalResponse,
    PendingListResponse,
    ApprovalHistoryResponse,
)
from portal.services import Services, get_services

router = APIRouter()


@router.get("/pending", response_model=PendingListResponse)
async def list_pending(
    identity: SessionIdentity = Depends(get_admin),
    services: Services = Depends(get_services)
):
    """
    Entities awaiting the caller's decision

    - GLOBAL_ADMIN: OTP-verified STATE_ADMIN applicants
    - STATE_ADMIN: DISTRICT_ADMIN applicants in their state
    - DISTRICT_ADMIN: unapproved clubs in their district
    """
    return await services.approvals.list_pending(identity.account_id, identity.role)


@router.post("/{target_id}/approve", response_model=ApprovalResponse)
async def approve(
    target_id: int,
    target_type: str = Query("user", alias="type"),
    identity: SessionIdentity = Depends(get_current_identity),
    services: Services = Depends(get_services)
):
    result = await services.approvals.approve(identity.account_id, target_id, target_type)
    return ApprovalResponse(status="success", message="Approved", **result)


@router.post("/{target_id}/reject", response_model=ApprovalResponse)
async def reject(
    target_id: int,
    target_type: str = Query("user", alias="type"),
    request: Optional[RejectRequest] = Body(None),
    identity: SessionIdentity = Depends(get_current_identity),
    services: Services = Depends(get_services)
):
    """Reject and delete the applicant (and their club); they may register again"""
    reason = request.reason if request else None
    result = await services.approvals.reject(identity.account_id, target_id, target_type, reason)
    return ApprovalResponse(status="success", message="Rejected", **result)


@router.get("/history", response_model=ApprovalHistoryResponse)
async def approval_history(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    identity: SessionIdentity = Depends(get_admin),
    services: Services = Depends(get_services)
):
    """Decisions made by the caller, newest first"""
    entries, total = await services.activity_log.get_decisions_by_approver(
        identity.account_id, limit=limit, offset=offset
    )
    return ApprovalHistoryResponse(total=total, entries=entries)

"""
Roles and the Approval Table
Single source of truth for who may approve whom
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Role(str, Enum):
    GLOBAL_ADMIN = "GLOBAL_ADMIN"
    STATE_ADMIN = "STATE_ADMIN"
    DISTRICT_ADMIN = "DISTRICT_ADMIN"
    CLUB_ADMIN = "CLUB_ADMIN"
    MEMBER = "MEMBER"


class AccountStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


ADMIN_ROLES = (Role.GLOBAL_ADMIN, Role.STATE_ADMIN, Role.DISTRICT_ADMIN, Role.CLUB_ADMIN)

# Roles an applicant may pick when registering
SELF_REGISTER_ROLES = (Role.STATE_ADMIN, Role.DISTRICT_ADMIN, Role.CLUB_ADMIN, Role.MEMBER)

# Subtree fields each role is scoped by
SCOPE_FIELDS = {
    Role.GLOBAL_ADMIN: (),
    Role.STATE_ADMIN: ("state_id",),
    Role.DISTRICT_ADMIN: ("state_id", "district_id"),
    Role.CLUB_ADMIN: ("state_id", "district_id", "club_id"),
    Role.MEMBER: ("state_id", "district_id", "club_id"),
}


@dataclass(frozen=True)
class ApprovalRule:
    target_role: Role
    scope_field: Optional[str]


# approver role -> the only role it may approve/reject, and the field that must match
APPROVAL_RULES = {
    Role.GLOBAL_ADMIN: ApprovalRule(Role.STATE_ADMIN, None),
    Role.STATE_ADMIN: ApprovalRule(Role.DISTRICT_ADMIN, "state_id"),
    Role.DISTRICT_ADMIN: ApprovalRule(Role.CLUB_ADMIN, "district_id"),
}


def approvable_role(approver_role: Role) -> Optional[Role]:
    """Role directly below the approver, or None if the approver approves nobody"""
    rule = APPROVAL_RULES.get(Role(approver_role))
    return rule.target_role if rule else None


def can_approve(approver: dict, target: dict) -> bool:
    """
    Check the one-level-down rule for an approver/target account pair.

    Both arguments are account records with at least `role`, `state_id`
    and `district_id`.
    """
    rule = APPROVAL_RULES.get(Role(approver["role"]))
    if rule is None or Role(target["role"]) != rule.target_role:
        return False
    if rule.scope_field is None:
        return True
    scope = approver.get(rule.scope_field)
    return scope is not None and scope == target.get(rule.scope_field)

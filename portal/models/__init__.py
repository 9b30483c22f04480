"""
Database Models
Import all models here for Alembic migrations
"""

from portal.models.account import Account, Club
from portal.models.event import Event, EventRegistration
from portal.models.payment import PaymentOrder, PaymentLink, PaymentConfirmation
from portal.models.approval_log import ApprovalLog

__all__ = [
    "Account",
    "Club",
    "Event",
    "EventRegistration",
    "PaymentOrder",
    "PaymentLink",
    "PaymentConfirmation",
    "ApprovalLog",
]

"""
Pydantic schemas for request/response validation
"""

from portal.schemas.account import (
    RegisterAccountRequest,
    LoginRequest,
    AccountResponse,
)
from portal.schemas.event import EventLevel, CreateEventRequest, EventResponse
from portal.schemas.payment import PaymentPurpose

__all__ = [
    "RegisterAccountRequest",
    "LoginRequest",
    "AccountResponse",
    "EventLevel",
    "CreateEventRequest",
    "EventResponse",
    "PaymentPurpose",
]

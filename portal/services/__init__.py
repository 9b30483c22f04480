"""
Service layer
Services are built once per application and shared through app.state
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable
from databases import Database
from fastapi import Request
from portal.config import Settings
from portal.services.account_service import AccountService
from portal.services.activity_log_service import ActivityLogService
from portal.services.approval_service import ApprovalService
from portal.services.event_service import EventService
from portal.services.notification_service import NotificationService
from portal.services.otp_service import OtpService
from portal.services.payment_gateway import RazorpayClient
from portal.services.payment_service import PaymentService


@dataclass
class Services:
    settings: Settings
    database: Database
    otp: OtpService
    accounts: AccountService
    activity_log: ActivityLogService
    approvals: ApprovalService
    events: EventService
    payments: PaymentService


def build_services(
    settings: Settings,
    database: Database,
    gateway: RazorpayClient,
    notifier: NotificationService,
    clock: Callable[[], datetime] = datetime.utcnow
) -> Services:
    otp = OtpService(database, settings.OTP_EXPIRY_MINUTES, clock)
    activity_log = ActivityLogService(database)
    return Services(
        settings=settings,
        database=database,
        otp=otp,
        accounts=AccountService(database, otp, notifier, clock),
        activity_log=activity_log,
        approvals=ApprovalService(database, activity_log),
        events=EventService(database, clock),
        payments=PaymentService(database, gateway, settings, clock),
    )


def get_services(request: Request) -> Services:
    """Dependency returning the application's services"""
    return request.app.state.services


__all__ = ["Services", "build_services", "get_services"]

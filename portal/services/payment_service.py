"""
Payment Service
Gateway orders, signature verification and the paid-state transitions
"""

from datetime import datetime
from typing import Callable, List, Optional
import json
import logging
from databases import Database
from sqlalchemy import and_, select, func
from portal.config import Settings
from portal.database import row_to_dict
from portal.errors import (
    ForbiddenError,
    InternalError,
    InvalidSignatureError,
    NotFoundError,
    PortalError,
    ValidationFailedError,
)
from portal.models import Account, EventRegistration, PaymentOrder, PaymentLink
from portal.schemas.payment import PaymentPurpose, CreatePaymentLinkRequest
from portal.services.payment_gateway import RazorpayClient, compute_signature, signatures_match

logger = logging.getLogger(__name__)

accounts = Account.__table__
registrations = EventRegistration.__table__
orders = PaymentOrder.__table__
links = PaymentLink.__table__

# Retried gateway callbacks hit the unique (order_id, payment_id) constraint
# and insert nothing, which is how a repeat is recognised.
INSERT_CONFIRMATION = """
INSERT INTO payment_confirmations (order_id, payment_id, purpose, account_id, event_id, source)
VALUES (:order_id, :payment_id, :purpose, :account_id, :event_id, :source)
ON CONFLICT (order_id, payment_id) DO NOTHING
RETURNING id
"""

INSERT_ORDER = """
INSERT INTO payment_orders (order_id, purpose, account_id, event_id, amount, currency, receipt, status)
VALUES (:order_id, :purpose, :account_id, :event_id, :amount, :currency, :receipt, :status)
"""


def one_year_after(moment: datetime) -> datetime:
    """Same calendar date next year; 29 February maps to 28 February"""
    try:
        return moment.replace(year=moment.year + 1)
    except ValueError:
        return moment.replace(year=moment.year + 1, day=28)


def _note_int(notes: dict, key: str) -> Optional[int]:
    value = notes.get(key)
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class PaymentService:
    """Service for payment orders, links and confirmations"""

    def __init__(
        self,
        database: Database,
        gateway: RazorpayClient,
        settings: Settings,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        self.database = database
        self.gateway = gateway
        self.settings = settings
        self.clock = clock

    # ── Orders ──────────────────────────────────────────────────────

    async def _event_fee(self, account_id: int, event_id: int) -> int:
        event = await self.database.fetch_one(
            "SELECT id, fee FROM events WHERE id = :id", {"id": event_id}
        )
        if not event:
            raise NotFoundError("Event not found")

        registration_id = await self.database.fetch_val(
            "SELECT id FROM event_registrations WHERE member_id = :member_id AND event_id = :event_id",
            {"member_id": account_id, "event_id": event_id}
        )
        if registration_id is None:
            raise NotFoundError("No registration found for this event")

        if not event["fee"] or event["fee"] <= 0:
            raise ValidationFailedError("This event has no fee")
        return event["fee"]

    async def create_order(
        self,
        account_id: int,
        purpose: PaymentPurpose,
        event_id: Optional[int] = None
    ) -> dict:
        """
        Create a gateway order for the caller and record it

        The stored order is what a later confirmation is checked against.

        Returns:
            Order details for the checkout widget (amount in paise)
        """
        purpose = PaymentPurpose(purpose)
        if purpose == PaymentPurpose.EVENT_REGISTRATION:
            rupees = await self._event_fee(account_id, event_id)
        else:
            rupees = self.settings.MEMBERSHIP_FEE
            event_id = None

        amount = rupees * 100
        currency = self.settings.PAYMENT_CURRENCY
        receipt = f"{purpose.value[:5]}_{account_id}_{int(self.clock().timestamp())}"
        notes = {
            "purpose": purpose.value,
            "userId": str(account_id),
            "eventId": str(event_id) if event_id else "",
        }

        order = await self.gateway.create_order(amount, currency, receipt, notes)

        await self.database.execute(
            INSERT_ORDER,
            {
                "order_id": order["id"],
                "purpose": purpose.value,
                "account_id": account_id,
                "event_id": event_id,
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "status": "created",
            }
        )
        logger.info("Created %s order %s for account %s", purpose.value, order["id"], account_id)

        return {
            "order_id": order["id"],
            "amount": order.get("amount", amount),
            "currency": order.get("currency", currency),
            "receipt": order.get("receipt", receipt),
            "key_id": self.settings.RAZORPAY_KEY_ID,
        }

    # ── Confirmation ────────────────────────────────────────────────

    async def _extend_membership(self, account_id: int) -> None:
        exists = await self.database.fetch_val(
            "SELECT id FROM accounts WHERE id = :id", {"id": account_id}
        )
        if exists is None:
            raise NotFoundError("Account not found")
        await self.database.execute(
            accounts.update()
            .where(accounts.c.id == account_id)
            .values(membership_expires_at=one_year_after(self.clock()))
        )

    async def _stamp_registration(self, member_id: int, event_id: int, order_id: str, payment_id: str) -> None:
        params = {"member_id": member_id, "event_id": event_id}
        exists = await self.database.fetch_val(
            "SELECT id FROM event_registrations WHERE member_id = :member_id AND event_id = :event_id",
            params
        )
        if exists is None:
            raise NotFoundError("Registration not found")
        await self.database.execute(
            registrations.update()
            .where(and_(registrations.c.member_id == member_id, registrations.c.event_id == event_id))
            .values(payment_id=payment_id, order_id=order_id, paid_at=self.clock())
        )

    async def _locked_order(self, order_id: str) -> Optional[dict]:
        row = await self.database.fetch_one(
            orders.select().where(orders.c.order_id == order_id).with_for_update()
        )
        return row_to_dict(row, orders)

    @staticmethod
    def _check_claim(
        order: dict,
        purpose: PaymentPurpose,
        account_id: Optional[int],
        event_id: Optional[int]
    ) -> None:
        """
        A confirmation may only apply what its order was created for

        Raises:
            ValidationFailedError: Purpose or event differ from the order
            ForbiddenError: The order belongs to another account
        """
        if order["purpose"] != purpose.value:
            raise ValidationFailedError("Payment purpose does not match the order")
        if order["account_id"] != account_id:
            raise ForbiddenError("Order was not created for this account")
        if order["event_id"] != event_id:
            raise ValidationFailedError("Payment event does not match the order")

    async def _apply_confirmation(
        self,
        order_id: str,
        payment_id: str,
        purpose: PaymentPurpose,
        account_id: Optional[int],
        event_id: Optional[int],
        source: str,
        require_order: bool = True
    ) -> bool:
        """
        Record the confirmation and apply its effect in one transaction

        The stored order, when there is one, must match the claimed purpose,
        account and event. Payment-link payments have no stored order.

        Returns:
            False when this (order, payment) pair was already applied
        """
        if purpose == PaymentPurpose.MEMBERSHIP_RENEWAL:
            event_id = None

        try:
            async with self.database.transaction():
                order = await self._locked_order(order_id)
                if order is None and require_order:
                    raise NotFoundError("Order not found")
                if order is not None:
                    self._check_claim(order, purpose, account_id, event_id)

                guard_id = await self.database.fetch_val(
                    INSERT_CONFIRMATION,
                    {
                        "order_id": order_id,
                        "payment_id": payment_id,
                        "purpose": purpose.value,
                        "account_id": account_id,
                        "event_id": event_id,
                        "source": source,
                    },
                )
                if guard_id is None:
                    return False

                if purpose == PaymentPurpose.MEMBERSHIP_RENEWAL:
                    await self._extend_membership(account_id)
                else:
                    await self._stamp_registration(account_id, event_id, order_id, payment_id)

                if order is not None:
                    await self.database.execute(
                        orders.update()
                        .where(orders.c.order_id == order_id)
                        .values(status="paid", paid_at=self.clock())
                    )
        except PortalError:
            raise
        except Exception as e:
            logger.exception("Applying payment %s for order %s failed", payment_id, order_id)
            raise InternalError("Payment confirmation failed") from e

        logger.info("Applied %s payment %s (order %s, via %s)", purpose.value, payment_id, order_id, source)
        return True

    async def verify(
        self,
        order_id: str,
        payment_id: str,
        signature: str,
        purpose: PaymentPurpose,
        subject_id: int,
        event_id: Optional[int] = None
    ) -> dict:
        """
        Check a checkout signature and move the subject to the paid state

        The signature only covers order and payment ids, so the claimed
        purpose, subject and event are checked against the stored order.

        Raises:
            InvalidSignatureError: Signature does not match HMAC(order_id|payment_id)
            NotFoundError: Unknown order, or subject account or registration missing
            ValidationFailedError, ForbiddenError: Claim differs from the order
        """
        expected = compute_signature(self.settings.RAZORPAY_KEY_SECRET, f"{order_id}|{payment_id}")
        if not signatures_match(expected, signature):
            logger.warning("Signature mismatch for order %s", order_id)
            raise InvalidSignatureError()

        purpose = PaymentPurpose(purpose)
        if purpose == PaymentPurpose.EVENT_REGISTRATION and event_id is None:
            raise ValidationFailedError("event_id is required for event registration payments")

        try:
            applied = await self._apply_confirmation(
                order_id, payment_id, purpose, subject_id, event_id, source="checkout"
            )
        except (ValidationFailedError, ForbiddenError):
            logger.warning("Payment %s claimed against mismatched order %s", payment_id, order_id)
            raise
        return {
            "success": True,
            "message": "Payment verified successfully" if applied else "Payment already processed",
            "payment_id": payment_id,
            "already_processed": not applied,
        }

    # ── Webhook ─────────────────────────────────────────────────────

    async def _confirm_from_notes(self, order_id: str, payment_id: str, notes: dict) -> str:
        try:
            purpose = PaymentPurpose(notes.get("purpose"))
        except ValueError:
            logger.warning("Webhook payment %s has no usable purpose", payment_id)
            return "ignored"

        account_id = _note_int(notes, "userId")
        event_id = _note_int(notes, "eventId")
        if account_id is None or (purpose == PaymentPurpose.EVENT_REGISTRATION and event_id is None):
            logger.warning("Webhook payment %s is missing subject notes", payment_id)
            return "ignored"

        try:
            applied = await self._apply_confirmation(
                order_id, payment_id, purpose, account_id, event_id, source="webhook", require_order=False
            )
        except (NotFoundError, ValidationFailedError, ForbiddenError) as e:
            logger.warning("Webhook payment %s not applied: %s", payment_id, e.detail)
            return "ignored"
        return "ok" if applied else "already_processed"

    async def handle_webhook(self, raw_body: bytes, signature: Optional[str]) -> dict:
        """
        Process a gateway webhook delivery

        The signature is HMAC-SHA256 of the raw body under the webhook secret.
        Deliveries are refused outright while no secret is configured.
        """
        secret = self.settings.RAZORPAY_WEBHOOK_SECRET
        if not secret:
            logger.error("Webhook received but no webhook secret is configured")
            raise InvalidSignatureError("Webhook secret is not configured")

        if not signatures_match(compute_signature(secret, raw_body), signature):
            logger.warning("Webhook signature mismatch")
            raise InvalidSignatureError()

        try:
            payload = json.loads(raw_body)
        except ValueError as e:
            raise ValidationFailedError("Malformed webhook body") from e

        event = payload.get("event")
        body = payload.get("payload") or {}
        payment = (body.get("payment") or {}).get("entity") or {}
        logger.info("Gateway webhook event %s", event)

        if event == "payment.captured" and payment.get("id"):
            order_id = payment.get("order_id") or ""
            status = await self._confirm_from_notes(order_id, payment["id"], payment.get("notes") or {})
            return {"status": status}

        if event == "payment_link.paid" and payment.get("id"):
            link = (body.get("payment_link") or {}).get("entity") or {}
            if link.get("id"):
                await self.database.execute(
                    links.update()
                    .where(links.c.link_id == link["id"])
                    .values(status="paid", payment_id=payment["id"], paid_at=self.clock())
                )
            order_id = payment.get("order_id") or link.get("id") or ""
            status = await self._confirm_from_notes(order_id, payment["id"], link.get("notes") or {})
            return {"status": status}

        return {"status": "ignored"}

    # ── Payment links ───────────────────────────────────────────────

    async def create_payment_link(self, creator_id: int, data: CreatePaymentLinkRequest) -> dict:
        """Create a shareable gateway payment link and record it"""
        amount = data.amount * 100
        description = data.description or (
            "Event Registration Fee"
            if data.purpose == PaymentPurpose.EVENT_REGISTRATION
            else "Membership Renewal"
        )
        notes = {
            "purpose": data.purpose.value,
            "userId": str(data.account_id or ""),
            "eventId": str(data.event_id or ""),
        }

        customer = {}
        if data.customer_name:
            customer["name"] = data.customer_name
        if data.customer_email:
            customer["email"] = data.customer_email
        if data.customer_phone:
            customer["contact"] = data.customer_phone

        link = await self.gateway.create_payment_link(
            amount, self.settings.PAYMENT_CURRENCY, description, notes, customer or None
        )

        link_pk = await self.database.fetch_val(
            """
            INSERT INTO payment_links
                (link_id, purpose, account_id, event_id, amount, short_url, status, created_by)
            VALUES
                (:link_id, :purpose, :account_id, :event_id, :amount, :short_url, :status, :created_by)
            RETURNING id
            """,
            {
                "link_id": link["id"],
                "purpose": data.purpose.value,
                "account_id": data.account_id,
                "event_id": data.event_id,
                "amount": amount,
                "short_url": link.get("short_url"),
                "status": "created",
                "created_by": creator_id,
            }
        )
        logger.info("Account %s created payment link %s", creator_id, link["id"])

        row = await self.database.fetch_one(links.select().where(links.c.id == link_pk))
        return row_to_dict(row, links)

    async def list_links(
        self,
        event_id: Optional[int] = None,
        limit: int = 50,
        offset: int = 0
    ) -> tuple[List[dict], int]:
        """Newest payment links first, optionally for one event"""
        query = links.select()
        count_query = select(func.count()).select_from(links)
        if event_id is not None:
            query = query.where(links.c.event_id == event_id)
            count_query = count_query.where(links.c.event_id == event_id)

        total = await self.database.fetch_val(count_query)
        rows = await self.database.fetch_all(
            query.order_by(links.c.created_at.desc(), links.c.id.desc()).limit(limit).offset(offset)
        )
        return [row_to_dict(row, links) for row in rows], total or 0

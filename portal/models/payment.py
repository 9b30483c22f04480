"""
Payment Models
Gateway orders, payment links and the confirmation ledger
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, func
from portal.database import Base


class PaymentOrder(Base):
    __tablename__ = "payment_orders"

    id = Column(Integer, primary_key=True)
    order_id = Column(String(100), unique=True, nullable=False, index=True)
    purpose = Column(String(30), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="SET NULL"), nullable=True)

    amount = Column(Integer, nullable=False)  # paise
    currency = Column(String(3), nullable=False, default="INR")
    receipt = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, default="created")

    created_at = Column(DateTime, server_default=func.now())
    paid_at = Column(DateTime, nullable=True)


class PaymentLink(Base):
    __tablename__ = "payment_links"

    id = Column(Integer, primary_key=True)
    link_id = Column(String(100), unique=True, nullable=False, index=True)
    purpose = Column(String(30), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="SET NULL"), nullable=True)

    amount = Column(Integer, nullable=False)  # paise
    short_url = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default="created")
    payment_id = Column(String(100), nullable=True)

    created_by = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    paid_at = Column(DateTime, nullable=True)


class PaymentConfirmation(Base):
    """One row per applied gateway payment; repeats are rejected by the constraint"""
    __tablename__ = "payment_confirmations"
    __table_args__ = (
        UniqueConstraint("order_id", "payment_id", name="uq_payment_confirmations_order_payment"),
    )

    id = Column(Integer, primary_key=True)
    order_id = Column(String(100), nullable=False)
    payment_id = Column(String(100), nullable=False)
    purpose = Column(String(30), nullable=False)
    account_id = Column(Integer, nullable=True)
    event_id = Column(Integer, nullable=True)
    source = Column(String(20), nullable=False)  # 'checkout' or 'webhook'

    created_at = Column(DateTime, server_default=func.now())

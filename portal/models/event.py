"""
Event Models
Competitions and the member registrations against them
"""

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from portal.database import Base


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    venue = Column(String(255), nullable=False)

    event_date = Column(Date, nullable=False)
    reg_start_date = Column(DateTime, nullable=False)
    reg_end_date = Column(DateTime, nullable=False)

    # Jurisdiction; district_id 0 means no district restriction
    state_id = Column(Integer, nullable=False, index=True)
    district_id = Column(Integer, nullable=False, default=0)
    level = Column(String(20), nullable=False)

    fee = Column(Integer, nullable=False, default=0)  # rupees
    status = Column(String(20), nullable=False, default="active")

    created_by = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class EventRegistration(Base):
    __tablename__ = "event_registrations"
    __table_args__ = (
        UniqueConstraint("member_id", "event_id", name="uq_event_registrations_member_event"),
    )

    id = Column(Integer, primary_key=True)
    member_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)

    level = Column(String(20), nullable=False)  # snapshot of the event level
    suit_size = Column(String(10), nullable=True)

    # Filled in once payment is verified
    payment_id = Column(String(100), nullable=True)
    order_id = Column(String(100), nullable=True)
    paid_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    event = relationship("Event", backref="registrations")

"""
Account Models
Administrators, members and the clubs owned by club administrators
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, func
from portal.database import Base


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    full_name = Column(String(100), nullable=False)

    # Login identifiers
    email = Column(String(255), unique=True, nullable=False, index=True)
    mobile = Column(String(20), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    # Position in the hierarchy
    role = Column(String(20), nullable=False, index=True)
    state_id = Column(Integer, nullable=True, index=True)
    district_id = Column(Integer, nullable=True, index=True)
    club_id = Column(Integer, nullable=True, index=True)

    # Status
    otp_verified = Column(Boolean, nullable=False, default=False)
    verified = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default="pending")
    approved_by = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)

    # One-time code
    otp_code = Column(String(6), nullable=True)
    otp_purpose = Column(String(20), nullable=True)  # 'verification' or 'password_reset'
    otp_expires_at = Column(DateTime, nullable=True)

    membership_expires_at = Column(DateTime, nullable=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Club(Base):
    __tablename__ = "clubs"

    id = Column(Integer, primary_key=True)
    name = Column(String(150), nullable=False)
    registration_number = Column(String(50), nullable=True)
    contact_email = Column(String(255), nullable=False)
    contact_mobile = Column(String(20), nullable=False)
    address = Column(String(500), nullable=True)

    state_id = Column(Integer, nullable=False, index=True)
    district_id = Column(Integer, nullable=False, index=True)
    owner_id = Column(Integer, ForeignKey("accounts.id"), nullable=True, index=True)

    # Mirrors the owning CLUB_ADMIN account
    verified = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default="pending")
    approved_by = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

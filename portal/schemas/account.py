"""
Account Request/Response Models
Registration, OTP, login and password reset
"""

from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional
from datetime import datetime
from portal.roles import Role, SELF_REGISTER_ROLES


class ClubDetails(BaseModel):
    """Club created together with its CLUB_ADMIN"""
    name: str = Field(..., min_length=3, max_length=150)
    registration_number: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=500)


class RegisterAccountRequest(BaseModel):
    """Request to register a new account"""
    full_name: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    mobile: str = Field(..., min_length=10, max_length=20, pattern=r"^\+?[0-9]+$")
    password: str = Field(..., min_length=8)
    confirm_password: str
    role: Role = Role.MEMBER

    state_id: Optional[int] = Field(None, ge=1)
    district_id: Optional[int] = Field(None, ge=1)
    club_id: Optional[int] = Field(None, ge=1, description="Club to join (members)")
    club: Optional[ClubDetails] = Field(None, description="Club to create (club admins)")

    @model_validator(mode="after")
    def check_passwords_and_role(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        if self.role not in SELF_REGISTER_ROLES:
            raise ValueError(f"Role {self.role.value} cannot be self-registered")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "full_name": "Asha Rao",
                "email": "asha@example.com",
                "mobile": "9876543210",
                "password": "SecurePass123",
                "confirm_password": "SecurePass123",
                "role": "DISTRICT_ADMIN",
                "state_id": 5,
                "district_id": 12
            }
        }


class RegisterAccountResponse(BaseModel):
    status: str
    message: str
    account_id: int
    club_id: Optional[int] = None


class VerifyOtpRequest(BaseModel):
    account_id: int
    otp: str = Field(..., min_length=6, max_length=6)


class VerifyOtpResponse(BaseModel):
    status: str
    message: str
    account_status: str


class ResendOtpRequest(BaseModel):
    account_id: int


class ForgotPasswordRequest(BaseModel):
    identifier: str = Field(..., min_length=1, description="Email or mobile")


class ResetPasswordRequest(BaseModel):
    identifier: str = Field(..., min_length=1)
    otp: str = Field(..., min_length=6, max_length=6)
    new_password: str = Field(..., min_length=8)


class LoginRequest(BaseModel):
    identifier: str = Field(..., min_length=1, description="Email or mobile")
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    status: str
    message: str
    access_token: str
    token_type: str = "bearer"
    account_id: int
    role: Role


class MessageResponse(BaseModel):
    status: str
    message: str


class AccountResponse(BaseModel):
    """Account profile"""
    id: int
    full_name: str
    email: str
    mobile: str
    role: Role
    state_id: Optional[int]
    district_id: Optional[int]
    club_id: Optional[int]
    status: str
    verified: bool
    otp_verified: bool
    membership_expires_at: Optional[datetime]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True

"""
Payment Request/Response Models
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional
from enum import Enum


class PaymentPurpose(str, Enum):
    MEMBERSHIP_RENEWAL = "membership_renewal"
    EVENT_REGISTRATION = "event_registration"


class CreateOrderRequest(BaseModel):
    purpose: PaymentPurpose
    event_id: Optional[int] = None

    @model_validator(mode="after")
    def check_event(self):
        if self.purpose == PaymentPurpose.EVENT_REGISTRATION and self.event_id is None:
            raise ValueError("event_id is required for event registration payments")
        return self


class CreateOrderResponse(BaseModel):
    order_id: str
    amount: int
    currency: str
    receipt: str
    key_id: Optional[str]


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)
    purpose: PaymentPurpose
    subject_id: int = Field(..., description="Account whose membership or registration is paid")
    event_id: Optional[int] = None

    @model_validator(mode="after")
    def check_event(self):
        if self.purpose == PaymentPurpose.EVENT_REGISTRATION and self.event_id is None:
            raise ValueError("event_id is required for event registration payments")
        return self


class VerifyPaymentResponse(BaseModel):
    success: bool
    message: str
    payment_id: str
    already_processed: bool = False


class CreatePaymentLinkRequest(BaseModel):
    purpose: PaymentPurpose
    amount: int = Field(..., gt=0, description="Amount in rupees")
    account_id: Optional[int] = None
    event_id: Optional[int] = None
    description: Optional[str] = Field(None, max_length=255)
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None


class PaymentLinkResponse(BaseModel):
    id: int
    link_id: str
    purpose: PaymentPurpose
    account_id: Optional[int]
    event_id: Optional[int]
    amount: int
    short_url: Optional[str]
    status: str
    payment_id: Optional[str]

    class Config:
        from_attributes = True


class PaymentLinkListResponse(BaseModel):
    total: int
    links: list[PaymentLinkResponse]

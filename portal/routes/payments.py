"""
Payment Routes
Checkout orders, signature verification, gateway webhook and payment links
"""

from typing import Optional
from fastapi import APIRouter, Depends, Header, Query, Request, status
from portal.auth import SessionIdentity, get_current_identity, get_admin
from portal.schemas.payment import (
    CreateOrderRequest,
    CreateOrderResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
    CreatePaymentLinkRequest,
    PaymentLinkResponse,
    PaymentLinkListResponse,
)
from portal.services import Services, get_services

router = APIRouter()


@router.post("/orders", response_model=CreateOrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    request: CreateOrderRequest,
    identity: SessionIdentity = Depends(get_current_identity),
    services: Services = Depends(get_services)
):
    """
    Create a gateway order for the caller

    Membership renewals are charged MEMBERSHIP_FEE; event payments are
    charged the event fee and need an existing registration.
    """
    return await services.payments.create_order(identity.account_id, request.purpose, request.event_id)


@router.post("/verify", response_model=VerifyPaymentResponse)
async def verify_payment(
    request: VerifyPaymentRequest,
    services: Services = Depends(get_services)
):
    """
    Checkout callback (public): verify the signature and apply the payment

    The claimed purpose, subject and event must match the stored order.
    """
    return await services.payments.verify(
        request.razorpay_order_id,
        request.razorpay_payment_id,
        request.razorpay_signature,
        request.purpose,
        request.subject_id,
        request.event_id,
    )


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    raw_body = await request.body()
    return await services.payments.handle_webhook(raw_body, x_razorpay_signature)


@router.post("/links", response_model=PaymentLinkResponse, status_code=status.HTTP_201_CREATED)
async def create_payment_link(
    request: CreatePaymentLinkRequest,
    identity: SessionIdentity = Depends(get_admin),
    services: Services = Depends(get_services)
):
    return await services.payments.create_payment_link(identity.account_id, request)


@router.get("/links", response_model=PaymentLinkListResponse)
async def list_payment_links(
    event_id: Optional[int] = Query(None, alias="eventId"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    identity: SessionIdentity = Depends(get_admin),
    services: Services = Depends(get_services)
):
    links, total = await services.payments.list_links(event_id, limit=limit, offset=offset)
    return PaymentLinkListResponse(total=total, links=links)

"""
Account Routes
Registration, OTP verification, password reset and profile
"""

from fastapi import APIRouter, Depends, status
from portal.auth import SessionIdentity, get_current_identity
from portal.schemas.account import (
    RegisterAccountRequest,
    RegisterAccountResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
    ResendOtpRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    MessageResponse,
    AccountResponse,
)
from portal.services import Services, get_services

router = APIRouter()


@router.post("/register", response_model=RegisterAccountResponse, status_code=status.HTTP_201_CREATED)
async def register_account(
    request: RegisterAccountRequest,
    services: Services = Depends(get_services)
):
    """
    Register a new account (public)

    - **role**: STATE_ADMIN, DISTRICT_ADMIN, CLUB_ADMIN or MEMBER
    - **club**: club details, required for CLUB_ADMIN
    - **club_id**: club to join, required for MEMBER

    The account starts pending and unverified; an OTP is sent to the email.
    """
    result = await services.accounts.register(request)
    return RegisterAccountResponse(
        status="success",
        message="Registration received. Check your email for the verification code.",
        account_id=result["account_id"],
        club_id=result["club_id"],
    )


@router.post("/verify-otp", response_model=VerifyOtpResponse)
async def verify_otp(
    request: VerifyOtpRequest,
    services: Services = Depends(get_services)
):
    result = await services.otp.verify_otp(request.account_id, request.otp)
    if result["already_verified"]:
        message = "Account is already verified"
    elif result["status"] == "active":
        message = "Account verified and activated"
    else:
        message = "Account verified. Awaiting approval."
    return VerifyOtpResponse(status="success", message=message, account_status=result["status"])


@router.post("/resend-otp", response_model=MessageResponse)
async def resend_otp(
    request: ResendOtpRequest,
    services: Services = Depends(get_services)
):
    await services.accounts.resend_otp(request.account_id)
    return MessageResponse(status="success", message="A new verification code has been sent")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    request: ForgotPasswordRequest,
    services: Services = Depends(get_services)
):
    message = await services.accounts.request_password_reset(request.identifier)
    return MessageResponse(status="success", message=message)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    request: ResetPasswordRequest,
    services: Services = Depends(get_services)
):
    message = await services.accounts.reset_password(
        request.identifier, request.otp, request.new_password
    )
    return MessageResponse(status="success", message=message)


@router.get("/me", response_model=AccountResponse)
async def get_my_account(
    identity: SessionIdentity = Depends(get_current_identity),
    services: Services = Depends(get_services)
):
    account = await services.accounts.get_account(identity.account_id)
    return AccountResponse(**account)

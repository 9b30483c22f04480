"""
Session Routes
Login and logout
"""

from fastapi import APIRouter, Depends, Response
from portal.auth import SessionIdentity, create_access_token, get_current_identity
from portal.roles import Role
from portal.schemas.account import LoginRequest, LoginResponse, MessageResponse
from portal.services import Services, get_services

router = APIRouter()


@router.post("", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    response: Response,
    services: Services = Depends(get_services)
):
    """
    Log in with email or mobile and password

    The token is returned in the body and set as an HTTP-only cookie.
    """
    settings = services.settings
    account = await services.accounts.authenticate(credentials.identifier, credentials.password)

    identity = SessionIdentity(account_id=account["id"], role=Role(account["role"]))
    access_token = create_access_token(settings, identity)

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=access_token,
        max_age=settings.JWT_EXPIRATION_HOURS * 3600,
        httponly=True,
        samesite="strict",
        secure=settings.is_production,
    )

    return LoginResponse(
        status="success",
        message="Login successful",
        access_token=access_token,
        account_id=identity.account_id,
        role=identity.role,
    )


@router.delete("", response_model=MessageResponse)
async def logout(response: Response, services: Services = Depends(get_services)):
    response.delete_cookie(services.settings.SESSION_COOKIE_NAME)
    return MessageResponse(status="success", message="Logged out")


@router.get("/me")
async def get_session(identity: SessionIdentity = Depends(get_current_identity)):
    """Identity carried by the current session"""
    return {"account_id": identity.account_id, "role": identity.role.value}

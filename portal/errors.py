"""
Error Taxonomy
Domain errors raised by services and rendered by the app exception handler
"""

from typing import Optional
from fastapi import HTTPException, status


class PortalError(HTTPException):
    """Base error carrying an HTTP status and a stable machine code"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal"
    default_detail = "Internal error"

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=type(self).status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class UnauthenticatedError(PortalError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    default_detail = "Authentication required"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class InvalidCredentialsError(UnauthenticatedError):
    code = "invalid_credentials"
    default_detail = "Invalid credentials"


class ForbiddenError(PortalError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_detail = "Forbidden"


class IneligibleError(ForbiddenError):
    code = "ineligible"
    default_detail = "Member is not eligible for this event"


class NotFoundError(PortalError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Not found"


class ConflictError(PortalError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_detail = "Conflict"


class AlreadyRegisteredError(ConflictError):
    code = "already_registered"
    default_detail = "Already registered for this event"


class ValidationFailedError(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_failed"
    default_detail = "Validation failed"


class InvalidOtpError(ValidationFailedError):
    code = "invalid_otp"
    default_detail = "Invalid OTP"


class ExpiredError(ValidationFailedError):
    code = "expired"
    default_detail = "OTP expired"


class RegistrationClosedError(ValidationFailedError):
    code = "registration_closed"
    default_detail = "Registration closed"


class InvalidSignatureError(ValidationFailedError):
    code = "invalid_signature"
    default_detail = "Invalid payment signature"


class GatewayError(PortalError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "gateway_error"
    default_detail = "Payment gateway request failed"


class InternalError(PortalError):
    pass

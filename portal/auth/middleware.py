"""
Authorization Middleware
Validates the session token before protected routes run
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from portal.auth.tokens import decode_access_token
from portal.config import Settings
from portal.errors import UnauthenticatedError
import logging

logger = logging.getLogger(__name__)

# Path prefixes that require a session
PROTECTED_PREFIXES = ("/accounts", "/approvals", "/events", "/payments", "/sessions/me")

# Reachable without a session (gateway callbacks carry no user session)
PUBLIC_PATHS = {
    "/accounts/verify-otp",
    "/accounts/resend-otp",
    "/accounts/forgot-password",
    "/accounts/reset-password",
    "/payments/verify",
    "/payments/webhook",
}

# Read-only event catalogue
PUBLIC_READ_PREFIXES = ("/events",)


def extract_token(request: Request, cookie_name: str):
    """Bearer header first, then the session cookie"""
    auth_header = request.headers.get("authorization", "")
    scheme, _, credentials = auth_header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(cookie_name)


class AuthorizationMiddleware(BaseHTTPMiddleware):
    """Resolve `{account_id, role}` into request.state.identity or reject with 401"""

    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.settings = settings
        self.public_paths = PUBLIC_PATHS | set(settings.public_paths)

    def is_protected(self, method: str, path: str) -> bool:
        path = path.rstrip("/") or "/"
        if not path.startswith(PROTECTED_PREFIXES):
            return False
        if path in self.public_paths:
            return False
        # Registration must be reachable by unauthenticated users
        if path.startswith("/accounts/") and path.endswith("/register"):
            return False
        if method in ("GET", "HEAD") and path.startswith(PUBLIC_READ_PREFIXES):
            return False
        return True

    async def dispatch(self, request: Request, call_next):
        if not self.is_protected(request.method, request.url.path):
            return await call_next(request)

        token = extract_token(request, self.settings.SESSION_COOKIE_NAME)
        if not token:
            return self._reject(UnauthenticatedError("Authentication required"))

        try:
            request.state.identity = decode_access_token(self.settings, token)
        except UnauthenticatedError as exc:
            logger.info("Rejected session on %s %s", request.method, request.url.path)
            return self._reject(exc)

        return await call_next(request)

    @staticmethod
    def _reject(exc: UnauthenticatedError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "code": exc.code},
            headers=exc.headers,
        )

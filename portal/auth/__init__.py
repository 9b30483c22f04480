"""
Authentication Module
Password hashing, session tokens and request authorization
"""

from portal.auth.password import hash_password, verify_password, dummy_verify, generate_otp
from portal.auth.tokens import SessionIdentity, create_access_token, decode_access_token
from portal.auth.dependencies import get_current_identity, require_roles, get_admin
from portal.auth.middleware import AuthorizationMiddleware

__all__ = [
    "hash_password",
    "verify_password",
    "dummy_verify",
    "generate_otp",
    "SessionIdentity",
    "create_access_token",
    "decode_access_token",
    "get_current_identity",
    "require_roles",
    "get_admin",
    "AuthorizationMiddleware",
]

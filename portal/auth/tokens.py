"""
Session Tokens
Signed, time-limited JWTs carrying the account id and role
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from portal.config import Settings
from portal.errors import UnauthenticatedError
from portal.roles import Role


@dataclass(frozen=True)
class SessionIdentity:
    account_id: int
    role: Role


def create_access_token(
    settings: Settings,
    identity: SessionIdentity,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create JWT access token

    Args:
        settings: Application settings holding the signing key
        identity: Account id and role to embed
        expires_delta: Token lifetime (defaults to JWT_EXPIRATION_HOURS)

    Returns:
        Encoded JWT token
    """
    if expires_delta is None:
        expires_delta = timedelta(hours=settings.JWT_EXPIRATION_HOURS)

    now = datetime.utcnow()
    to_encode = {
        "account_id": identity.account_id,
        "role": identity.role.value,
        "iat": now,
        "exp": now + expires_delta,
    }

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )


def decode_access_token(settings: Settings, token: str) -> SessionIdentity:
    """
    Decode and validate a session token

    Raises:
        UnauthenticatedError: If the signature, expiry or claims are invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise UnauthenticatedError("Invalid or expired token")

    account_id = payload.get("account_id")
    role = payload.get("role")
    if not isinstance(account_id, int) or role not in Role.__members__:
        raise UnauthenticatedError("Invalid authentication credentials")

    return SessionIdentity(account_id=account_id, role=Role(role))

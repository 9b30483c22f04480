"""
Authentication Dependencies
Expose the identity resolved by the middleware to route handlers
"""

from typing import Optional
from fastapi import Depends, Request
from portal.auth.tokens import SessionIdentity
from portal.errors import UnauthenticatedError, ForbiddenError
from portal.roles import Role, ADMIN_ROLES


def get_optional_identity(request: Request) -> Optional[SessionIdentity]:
    return getattr(request.state, "identity", None)


async def get_current_identity(request: Request) -> SessionIdentity:
    """
    Get the authenticated caller

    Raises:
        UnauthenticatedError: If the middleware did not resolve a session
    """
    identity = get_optional_identity(request)
    if identity is None:
        raise UnauthenticatedError()
    return identity


def require_roles(*roles: Role):
    """Dependency factory restricting a route to the given roles"""

    async def checker(identity: SessionIdentity = Depends(get_current_identity)) -> SessionIdentity:
        if identity.role not in roles:
            raise ForbiddenError("Not authorized for this operation")
        return identity

    return checker


get_admin = require_roles(*ADMIN_ROLES)

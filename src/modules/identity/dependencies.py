"""FastAPI dependency functions for role-gated routes."""

from fastapi import Depends

from src.exceptions import ForbiddenException
from src.models.enums import UserRole
from src.modules.identity.auth import AuthenticatedUser, get_current_user


def require_role(*roles: UserRole):
    """Factory that returns a dependency admitting only the given roles."""

    async def _check(
        user: AuthenticatedUser = Depends(get_current_user),
    ) -> AuthenticatedUser:
        if user.role not in roles:
            raise ForbiddenException(
                f"This action requires one of the roles: {[r.value for r in roles]}"
            )
        return user

    return _check


require_admin = require_role(UserRole.ADMIN)
require_agency = require_role(UserRole.DELIVERY_AGENCY)

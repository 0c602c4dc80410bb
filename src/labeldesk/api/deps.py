"""Request dependencies: authentication, role checks and pagination."""
from dataclasses import dataclass
from typing import Callable, Optional
from uuid import UUID

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from labeldesk.core.exceptions import ForbiddenError, UnauthorizedError
from labeldesk.core.logging import get_logger
from labeldesk.core.security import TokenError, decode_access_token

from ..models import UserRole

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

STAFF_ROLES = (UserRole.ADMIN, UserRole.MANAGER)


@dataclass(frozen=True)
class CurrentUser:
    """Identity decoded from the bearer token."""
    id: UUID
    username: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    """Resolve the caller from ``Authorization: Bearer <token>``.

    A missing token is unauthorized (401); a token that fails verification or
    carries malformed claims is forbidden (403).
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Authentication required")

    try:
        claims = decode_access_token(credentials.credentials)
        return CurrentUser(
            id=UUID(str(claims["id"])),
            username=str(claims.get("username", "")),
            role=UserRole(claims["role"]),
        )
    except (TokenError, KeyError, ValueError) as e:
        logger.info("token_rejected", error=str(e))
        raise ForbiddenError("Invalid or expired token")


def require_role(*roles: UserRole) -> Callable:
    """Build a dependency that admits only callers holding one of ``roles``."""
    allowed = frozenset(roles)

    async def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed:
            logger.info(
                "role_check_failed",
                user_id=str(user.id),
                role=user.role.value,
                allowed=sorted(r.value for r in allowed),
            )
            raise ForbiddenError("Insufficient permissions")
        return user

    return dependency


require_admin = require_role(UserRole.ADMIN)
require_staff = require_role(*STAFF_ROLES)


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def get_page_params(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    limit: int = Query(10, ge=1, le=100, description="Records per page"),
) -> PageParams:
    return PageParams(page=page, limit=limit)

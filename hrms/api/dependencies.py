from typing import Optional
from fastapi import Depends, HTTPException, Query, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from hrms.core.config import settings
from hrms.core.database import get_async_session
from hrms.auth.jwt_handler import decode_access_token
from hrms.models.auth.user import User
from hrms.models.shared.enums import UserRole
import logging

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


def _unauthorized(detail: str = "Invalid authentication credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_async_session)
) -> User:
    """Get current authenticated user"""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authenticated")

    # Decode token
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _unauthorized()

    try:
        user_id = int(payload.get("sub"))
        tenant_id = int(payload.get("tenant_id"))
    except (TypeError, ValueError):
        raise _unauthorized()

    # Get user from database
    result = await session.execute(
        select(User).where(User.id == user_id, User.tenant_id == tenant_id)
    )
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise _unauthorized("User not found or inactive")

    # Add request info to context
    request.state.current_user = user
    request.state.tenant_id = user.tenant_id

    return user


def require_roles(*roles: UserRole):
    """
    Dependency to restrict an endpoint to the given roles

    Examples:
        require_roles(UserRole.SUPER_ADMIN, UserRole.HR_ADMIN)
    """
    async def role_dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            logger.warning(
                f"User {current_user.id} with role {current_user.role.value} denied; requires one of "
                f"{', '.join(r.value for r in roles)}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions"
            )
        return current_user

    return role_dependency


class PageParams:
    """Common page/limit query parameters"""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=settings.MAX_PAGE_LIMIT),
    ):
        self.page = page
        self.limit = limit

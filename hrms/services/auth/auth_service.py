import logging
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from hrms.models.auth.user import User
from hrms.models.organization.tenant import Tenant
from hrms.models.shared.enums import AuditAction
from hrms.core.security import verify_password, create_access_token, create_refresh_token
from hrms.core.config import settings
from hrms.auth.jwt_handler import decode_refresh_token
from hrms.services.audit.audit_service import AuditService

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit_service = AuditService(session)

    async def authenticate_user(
        self,
        email: str,
        password: str,
        tenant_code: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[User]:
        """Authenticate user with email and password"""
        query = (
            select(User)
            .join(Tenant, Tenant.id == User.tenant_id)
            .where(User.email == email.lower(), User.is_active == True, Tenant.is_active == True)
        )
        if tenant_code:
            query = query.where(Tenant.code == tenant_code)

        result = await self.session.execute(query)
        users = result.scalars().all()

        if not users:
            logger.warning(f"Failed login for {email}: user not found")
            return None
        if len(users) > 1:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email is registered in several organizations; tenant_code is required"
            )

        user = users[0]
        if not verify_password(password, user.hashed_password):
            logger.warning(f"Failed login for {email}: invalid password")
            return None

        try:
            user.last_login = datetime.now(timezone.utc)
            self.audit_service.record(
                tenant_id=user.tenant_id,
                user_id=user.id,
                action=AuditAction.LOGIN,
                entity_type="User",
                entity_id=user.id,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            await self.session.commit()
            await self.session.refresh(user)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error recording login for user {user.id}: {str(e)}")
            raise

        logger.info(f"User {user.id} logged in to tenant {user.tenant_id}")
        return user

    def create_tokens(self, user: User) -> Dict[str, Any]:
        """Create access and refresh tokens for user"""
        claims = {
            "sub": str(user.id),
            "tenant_id": user.tenant_id,
            "email": user.email,
            "role": user.role.value,
            "employee_id": user.employee_id,
        }
        return {
            "access_token": create_access_token(data=claims),
            "refresh_token": create_refresh_token(data={"sub": str(user.id), "tenant_id": user.tenant_id}),
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        }

    async def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        payload = decode_refresh_token(refresh_token)
        if payload is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired refresh token",
                headers={"WWW-Authenticate": "Bearer"},
            )

        result = await self.session.execute(
            select(User).where(
                User.id == int(payload.get("sub")),
                User.tenant_id == int(payload.get("tenant_id")),
            )
        )
        user = result.scalar_one_or_none()
        if not user or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found or inactive",
                headers={"WWW-Authenticate": "Bearer"},
            )

        tokens = self.create_tokens(user)
        tokens["refresh_token"] = refresh_token
        return tokens

import logging
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.core.database import get_async_session
from hrms.core.request_context import get_request_context
from hrms.api.dependencies import get_current_user
from hrms.models.auth.user import User
from hrms.schemas.auth.login import LoginRequest, LoginResponse, RefreshTokenRequest, TokenResponse, UserResponse
from hrms.services.auth.auth_service import AuthService

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    login_data: LoginRequest,
    session: AsyncSession = Depends(get_async_session),
):
    """Authenticate user and return tokens"""
    auth_service = AuthService(session)
    req_context = get_request_context(request)

    user = await auth_service.authenticate_user(
        email=login_data.email,
        password=login_data.password,
        tenant_code=login_data.tenant_code,
        ip_address=req_context["ip_address"],
        user_agent=req_context["user_agent"],
    )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    tokens = auth_service.create_tokens(user)
    return {**tokens, "user": user}

@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    token_data: RefreshTokenRequest,
    session: AsyncSession = Depends(get_async_session),
):
    """Refresh access token"""
    auth_service = AuthService(session)
    return await auth_service.refresh_access_token(token_data.refresh_token)

@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current user info"""
    return current_user

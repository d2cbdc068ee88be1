from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.dependencies import PageParams, get_current_user, require_roles
from hrms.auth.roles import ADMIN_ROLES
from hrms.core.database import get_async_session
from hrms.models.auth.user import User
from hrms.schemas.common.pagination import PaginatedResponse
from hrms.schemas.hr.holiday_schema import HolidayCreate, HolidayResponse, HolidayUpdate
from hrms.services.hr.holiday_service import HolidayService

router = APIRouter()

@router.post("/", response_model=HolidayResponse, status_code=status.HTTP_201_CREATED)
async def create_holiday(
    holiday: HolidayCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Create a new holiday"""
    service = HolidayService(session)
    return await service.create_holiday(holiday, current_user)

@router.get("/", response_model=PaginatedResponse[HolidayResponse])
async def get_holidays(
    pagination: PageParams = Depends(),
    year: Optional[int] = Query(None),
    is_active: Optional[bool] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Get holidays with filtering and pagination"""
    service = HolidayService(session)
    return await service.get_holidays(
        current_user.tenant_id,
        page=pagination.page,
        limit=pagination.limit,
        year=year,
        is_active=is_active,
    )

@router.get("/{holiday_id}", response_model=HolidayResponse)
async def get_holiday(
    holiday_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Get a specific holiday by ID"""
    service = HolidayService(session)
    return await service.get_holiday(holiday_id, current_user.tenant_id)

@router.put("/{holiday_id}", response_model=HolidayResponse)
async def update_holiday(
    holiday_id: int,
    holiday: HolidayUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Update holiday"""
    service = HolidayService(session)
    return await service.update_holiday(holiday_id, holiday, current_user)

@router.delete("/{holiday_id}")
async def delete_holiday(
    holiday_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Delete holiday"""
    service = HolidayService(session)
    result = await service.delete_holiday(holiday_id, current_user)
    return {"message": "Holiday deleted successfully", "success": result}

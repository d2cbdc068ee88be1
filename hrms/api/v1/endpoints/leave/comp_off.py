from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.dependencies import PageParams, get_current_user, require_roles
from hrms.auth.roles import APPROVER_ROLES
from hrms.core.database import get_async_session
from hrms.models.auth.user import User
from hrms.models.shared.enums import RequestStatus
from hrms.schemas.common.pagination import PaginatedResponse
from hrms.schemas.common.review import ReviewAction
from hrms.schemas.leave.comp_off_schema import CompOffCreate, CompOffResponse
from hrms.services.leave.comp_off_service import CompOffService

router = APIRouter()

@router.post("/", response_model=CompOffResponse, status_code=status.HTTP_201_CREATED)
async def create_comp_off(
    request_data: CompOffCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Claim comp-off for a worked weekend or holiday"""
    service = CompOffService(session)
    return await service.create_request(request_data, current_user)

@router.get("/my", response_model=PaginatedResponse[CompOffResponse])
async def get_my_comp_offs(
    pagination: PageParams = Depends(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = CompOffService(session)
    return await service.get_my_requests(current_user, page=pagination.page, limit=pagination.limit)

@router.get("/pending", response_model=PaginatedResponse[CompOffResponse])
async def get_pending_comp_offs(
    pagination: PageParams = Depends(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    service = CompOffService(session)
    return await service.get_pending_approvals(current_user, page=pagination.page, limit=pagination.limit)

@router.get("/", response_model=PaginatedResponse[CompOffResponse])
async def get_comp_offs(
    pagination: PageParams = Depends(),
    request_status: Optional[RequestStatus] = Query(None, alias="status"),
    employee_id: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    service = CompOffService(session)
    return await service.get_all_requests(
        current_user,
        page=pagination.page,
        limit=pagination.limit,
        status=request_status,
        employee_id=employee_id,
    )

@router.post("/{request_id}/approve", response_model=CompOffResponse)
async def approve_comp_off(
    request_id: int,
    review: ReviewAction = ReviewAction(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    """Approve and credit the comp-off balance"""
    service = CompOffService(session)
    return await service.approve(request_id, current_user, note=review.note)

@router.post("/{request_id}/reject", response_model=CompOffResponse)
async def reject_comp_off(
    request_id: int,
    review: ReviewAction = ReviewAction(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    service = CompOffService(session)
    return await service.reject(request_id, current_user, note=review.note)

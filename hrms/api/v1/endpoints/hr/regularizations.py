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
from hrms.schemas.hr.regularization_schema import RegularizationCreate, RegularizationResponse
from hrms.services.hr.regularization_service import RegularizationService

router = APIRouter()

@router.post("/", response_model=RegularizationResponse, status_code=status.HTTP_201_CREATED)
async def create_regularization(
    request_data: RegularizationCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Request a correction of a past day's clock times"""
    service = RegularizationService(session)
    return await service.create_request(request_data, current_user)

@router.get("/my", response_model=PaginatedResponse[RegularizationResponse])
async def get_my_regularizations(
    pagination: PageParams = Depends(),
    request_status: Optional[RequestStatus] = Query(None, alias="status"),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = RegularizationService(session)
    return await service.get_my_requests(
        current_user, page=pagination.page, limit=pagination.limit, status=request_status
    )

@router.get("/", response_model=PaginatedResponse[RegularizationResponse])
async def get_regularizations(
    pagination: PageParams = Depends(),
    request_status: Optional[RequestStatus] = Query(None, alias="status"),
    employee_id: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    """Requests the caller may review"""
    service = RegularizationService(session)
    return await service.get_requests(
        current_user,
        page=pagination.page,
        limit=pagination.limit,
        status=request_status,
        employee_id=employee_id,
    )

@router.post("/{request_id}/approve", response_model=RegularizationResponse)
async def approve_regularization(
    request_id: int,
    review: ReviewAction = ReviewAction(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    service = RegularizationService(session)
    return await service.approve_request(request_id, current_user, note=review.note)

@router.post("/{request_id}/reject", response_model=RegularizationResponse)
async def reject_regularization(
    request_id: int,
    review: ReviewAction = ReviewAction(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    service = RegularizationService(session)
    return await service.reject_request(request_id, current_user, note=review.note)

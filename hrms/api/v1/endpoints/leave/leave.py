from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.dependencies import PageParams, get_current_user, require_roles
from hrms.auth.roles import ADMIN_ROLES, APPROVER_ROLES
from hrms.core.database import get_async_session
from hrms.models.auth.user import User
from hrms.models.shared.enums import LeaveStatus
from hrms.schemas.common.pagination import PaginatedResponse
from hrms.schemas.common.review import BulkReviewRequest, BulkReviewResponse, ReviewAction
from hrms.schemas.leave.leave_schema import (
    LeaveBalanceResponse,
    LeaveBalanceUpdate,
    LeaveRequestCreate,
    LeaveRequestResponse,
    LeaveTypeCreate,
    LeaveTypeResponse,
    LeaveTypeUpdate,
)
from hrms.services.leave.leave_service import LeaveService
from hrms.services.shared.access import get_tenant_employee

router = APIRouter()

# Leave types
@router.get("/types", response_model=List[LeaveTypeResponse])
async def get_leave_types(
    include_inactive: bool = Query(False),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = LeaveService(session)
    return await service.get_leave_types(current_user.tenant_id, include_inactive=include_inactive)

@router.post("/types", response_model=LeaveTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_leave_type(
    leave_type: LeaveTypeCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Create a leave type and open balances for active employees"""
    service = LeaveService(session)
    return await service.create_leave_type(leave_type, current_user)

@router.put("/types/{leave_type_id}", response_model=LeaveTypeResponse)
async def update_leave_type(
    leave_type_id: int,
    leave_type: LeaveTypeUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = LeaveService(session)
    return await service.update_leave_type(leave_type_id, leave_type, current_user)

# Balances
@router.get("/balances", response_model=List[LeaveBalanceResponse])
async def get_balances(
    employee_id: Optional[int] = Query(None),
    year: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Balances of the current user, or of another employee the caller may view"""
    service = LeaveService(session)
    return await service.get_balances(current_user, employee_id=employee_id, year=year)

@router.put("/balances", response_model=LeaveBalanceResponse)
async def update_balance(
    balance: LeaveBalanceUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = LeaveService(session)
    return await service.update_balance(balance, current_user)

@router.post("/balances/initialize/{employee_id}")
async def initialize_balances(
    employee_id: int,
    year: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Open missing balances of every active leave type for an employee"""
    await get_tenant_employee(session, current_user.tenant_id, employee_id)
    service = LeaveService(session)
    created = await service.initialize_balances(current_user.tenant_id, employee_id, year=year)
    return {"message": "Leave balances initialized", "created": created}

# Requests
@router.post("/requests", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_leave_request(
    request_data: LeaveRequestCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Apply for leave; the days are reserved as pending"""
    service = LeaveService(session)
    return await service.create_request(request_data, current_user)

@router.get("/requests/my", response_model=PaginatedResponse[LeaveRequestResponse])
async def get_my_leave_requests(
    pagination: PageParams = Depends(),
    leave_status: Optional[LeaveStatus] = Query(None, alias="status"),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = LeaveService(session)
    return await service.get_my_requests(
        current_user, page=pagination.page, limit=pagination.limit, status=leave_status
    )

@router.get("/requests/pending", response_model=PaginatedResponse[LeaveRequestResponse])
async def get_pending_approvals(
    pagination: PageParams = Depends(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    """Pending requests the caller may approve"""
    service = LeaveService(session)
    return await service.get_pending_approvals(current_user, page=pagination.page, limit=pagination.limit)

@router.get("/requests", response_model=PaginatedResponse[LeaveRequestResponse])
async def get_leave_requests(
    pagination: PageParams = Depends(),
    leave_status: Optional[LeaveStatus] = Query(None, alias="status"),
    employee_id: Optional[int] = Query(None),
    leave_type_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    department_id: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    """Get leave requests with filtering and pagination"""
    service = LeaveService(session)
    return await service.get_requests(
        current_user,
        page=pagination.page,
        limit=pagination.limit,
        status=leave_status,
        employee_id=employee_id,
        leave_type_id=leave_type_id,
        start_date=start_date,
        end_date=end_date,
        department_id=department_id,
    )

@router.post("/bulk-approve", response_model=BulkReviewResponse)
async def bulk_approve(
    bulk: BulkReviewRequest,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    """Approve several requests; each succeeds or fails on its own"""
    service = LeaveService(session)
    return await service.bulk_approve(bulk.ids, current_user, note=bulk.note)

@router.get("/requests/{request_id}", response_model=LeaveRequestResponse)
async def get_leave_request(
    request_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = LeaveService(session)
    return await service.get_request(request_id, current_user)

@router.post("/requests/{request_id}/approve", response_model=LeaveRequestResponse)
async def approve_leave_request(
    request_id: int,
    review: ReviewAction = ReviewAction(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    service = LeaveService(session)
    return await service.approve_request(request_id, current_user, note=review.note)

@router.post("/requests/{request_id}/reject", response_model=LeaveRequestResponse)
async def reject_leave_request(
    request_id: int,
    review: ReviewAction = ReviewAction(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    service = LeaveService(session)
    return await service.reject_request(request_id, current_user, note=review.note)

@router.post("/requests/{request_id}/cancel", response_model=LeaveRequestResponse)
async def cancel_leave_request(
    request_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Requester withdraws a pending request"""
    service = LeaveService(session)
    return await service.cancel_request(request_id, current_user)

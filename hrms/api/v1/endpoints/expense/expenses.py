from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.dependencies import PageParams, get_current_user, require_roles
from hrms.auth.roles import ADMIN_ROLES, APPROVER_ROLES
from hrms.core.database import get_async_session
from hrms.models.auth.user import User
from hrms.models.shared.enums import ExpenseStatus
from hrms.schemas.common.pagination import PaginatedResponse
from hrms.schemas.common.review import ReviewAction
from hrms.schemas.expense.expense_schema import (
    ExpenseCategoryCreate,
    ExpenseCategoryResponse,
    ExpenseCategoryUpdate,
    ExpenseClaimCreate,
    ExpenseClaimResponse,
    ExpenseClaimUpdate,
)
from hrms.services.expense.expense_service import ExpenseService

router = APIRouter()

# Categories
@router.get("/categories", response_model=List[ExpenseCategoryResponse])
async def get_categories(
    include_inactive: bool = Query(False),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = ExpenseService(session)
    return await service.get_categories(current_user.tenant_id, include_inactive=include_inactive)

@router.post("/categories", response_model=ExpenseCategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category: ExpenseCategoryCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = ExpenseService(session)
    return await service.create_category(category, current_user)

@router.put("/categories/{category_id}", response_model=ExpenseCategoryResponse)
async def update_category(
    category_id: int,
    category: ExpenseCategoryUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = ExpenseService(session)
    return await service.update_category(category_id, category, current_user)

@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = ExpenseService(session)
    result = await service.delete_category(category_id, current_user)
    return {"message": "Expense category deleted successfully", "success": result}

# Claims
@router.post("/claims", response_model=ExpenseClaimResponse, status_code=status.HTTP_201_CREATED)
async def create_claim(
    claim: ExpenseClaimCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Draft a new expense claim"""
    service = ExpenseService(session)
    return await service.create_claim(claim, current_user)

@router.get("/claims/my", response_model=PaginatedResponse[ExpenseClaimResponse])
async def get_my_claims(
    pagination: PageParams = Depends(),
    claim_status: Optional[ExpenseStatus] = Query(None, alias="status"),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = ExpenseService(session)
    return await service.get_my_claims(current_user, page=pagination.page, limit=pagination.limit, status=claim_status)

@router.get("/claims/pending", response_model=PaginatedResponse[ExpenseClaimResponse])
async def get_pending_claims(
    pagination: PageParams = Depends(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    """Submitted claims the caller may review"""
    service = ExpenseService(session)
    return await service.get_pending_approvals(current_user, page=pagination.page, limit=pagination.limit)

@router.get("/claims", response_model=PaginatedResponse[ExpenseClaimResponse])
async def get_claims(
    pagination: PageParams = Depends(),
    claim_status: Optional[ExpenseStatus] = Query(None, alias="status"),
    employee_id: Optional[int] = Query(None),
    category_id: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    service = ExpenseService(session)
    return await service.get_claims(
        current_user,
        page=pagination.page,
        limit=pagination.limit,
        status=claim_status,
        employee_id=employee_id,
        category_id=category_id,
    )

@router.get("/claims/{claim_id}", response_model=ExpenseClaimResponse)
async def get_claim(
    claim_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = ExpenseService(session)
    return await service.get_claim(claim_id, current_user)

@router.put("/claims/{claim_id}", response_model=ExpenseClaimResponse)
async def update_claim(
    claim_id: int,
    claim: ExpenseClaimUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Edit an own draft claim"""
    service = ExpenseService(session)
    return await service.update_claim(claim_id, claim, current_user)

@router.delete("/claims/{claim_id}")
async def delete_claim(
    claim_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = ExpenseService(session)
    result = await service.delete_claim(claim_id, current_user)
    return {"message": "Expense claim deleted successfully", "success": result}

@router.post("/claims/{claim_id}/submit", response_model=ExpenseClaimResponse)
async def submit_claim(
    claim_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = ExpenseService(session)
    return await service.submit_claim(claim_id, current_user)

@router.post("/claims/{claim_id}/approve", response_model=ExpenseClaimResponse)
async def approve_claim(
    claim_id: int,
    review: ReviewAction = ReviewAction(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    service = ExpenseService(session)
    return await service.approve_claim(claim_id, current_user, note=review.note)

@router.post("/claims/{claim_id}/reject", response_model=ExpenseClaimResponse)
async def reject_claim(
    claim_id: int,
    review: ReviewAction = ReviewAction(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    service = ExpenseService(session)
    return await service.reject_claim(claim_id, current_user, note=review.note)

@router.post("/claims/{claim_id}/reimburse", response_model=ExpenseClaimResponse)
async def reimburse_claim(
    claim_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Mark an approved claim as paid out"""
    service = ExpenseService(session)
    return await service.mark_reimbursed(claim_id, current_user)

from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.dependencies import PageParams, require_roles
from hrms.auth.roles import ADMIN_ROLES
from hrms.core.database import get_async_session
from hrms.models.auth.user import User
from hrms.models.shared.enums import AccrualTriggerType
from hrms.schemas.common.pagination import PaginatedResponse
from hrms.schemas.leave.accrual_schema import (
    AccrualRuleCreate,
    AccrualRuleResponse,
    AccrualRuleUpdate,
    AccrualRunDetailResponse,
    AccrualRunResponse,
    AccrualTriggerRequest,
    YearEndRequest,
    YearEndResponse,
)
from hrms.services.leave.accrual_service import LeaveAccrualService

router = APIRouter()

# Rules
@router.get("/rules", response_model=List[AccrualRuleResponse])
async def list_rules(
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = LeaveAccrualService(session)
    return await service.list_rules(current_user.tenant_id)

@router.post("/rules", response_model=AccrualRuleResponse, status_code=status.HTTP_201_CREATED)
async def create_rule(
    rule: AccrualRuleCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """One monthly accrual rule per leave type"""
    service = LeaveAccrualService(session)
    return await service.create_rule(rule, current_user)

@router.put("/rules/{rule_id}", response_model=AccrualRuleResponse)
async def update_rule(
    rule_id: int,
    rule: AccrualRuleUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = LeaveAccrualService(session)
    return await service.update_rule(rule_id, rule, current_user)

@router.delete("/rules/{rule_id}")
async def delete_rule(
    rule_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = LeaveAccrualService(session)
    result = await service.delete_rule(rule_id, current_user)
    return {"message": "Accrual rule deleted successfully", "success": result}

# Runs
@router.post("/trigger", response_model=AccrualRunResponse)
async def trigger_accrual(
    trigger: AccrualTriggerRequest,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Run the monthly accrual now; a completed month cannot be repeated"""
    service = LeaveAccrualService(session)
    return await service.trigger_accrual(
        current_user.tenant_id,
        trigger.month,
        trigger.year,
        user_id=current_user.id,
        trigger_type=AccrualTriggerType.MANUAL,
    )

@router.post("/year-end", response_model=YearEndResponse)
async def process_year_end(
    request_data: YearEndRequest,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Apply year-end caps and carry balances into the next leave year"""
    service = LeaveAccrualService(session)
    return await service.process_year_end(current_user.tenant_id, request_data.year, current_user)

@router.get("/runs", response_model=PaginatedResponse[AccrualRunResponse])
async def list_runs(
    pagination: PageParams = Depends(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = LeaveAccrualService(session)
    return await service.list_runs(current_user.tenant_id, page=pagination.page, limit=pagination.limit)

@router.get("/runs/{run_id}", response_model=AccrualRunDetailResponse)
async def get_run(
    run_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = LeaveAccrualService(session)
    return await service.get_run(run_id, current_user.tenant_id)

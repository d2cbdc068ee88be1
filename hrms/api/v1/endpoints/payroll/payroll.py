from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.dependencies import PageParams, get_current_user, require_roles
from hrms.auth.roles import ADMIN_ROLES
from hrms.core.database import get_async_session
from hrms.models.auth.user import User
from hrms.models.shared.enums import PayrollStatus
from hrms.schemas.common.pagination import PaginatedResponse
from hrms.schemas.payroll.payroll_schema import PayrollRunCreate, PayrollRunResponse, PayslipResponse
from hrms.services.payroll.payroll_service import PayrollService

router = APIRouter()

@router.post("/runs", response_model=PayrollRunResponse, status_code=status.HTTP_201_CREATED)
async def create_run(
    run: PayrollRunCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Open a payroll run for a month"""
    service = PayrollService(session)
    return await service.create_run(run, current_user)

@router.get("/runs", response_model=PaginatedResponse[PayrollRunResponse])
async def list_runs(
    pagination: PageParams = Depends(),
    run_status: Optional[PayrollStatus] = Query(None, alias="status"),
    year: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = PayrollService(session)
    return await service.list_runs(
        current_user.tenant_id, page=pagination.page, limit=pagination.limit, status=run_status, year=year
    )

@router.get("/runs/{run_id}", response_model=PayrollRunResponse)
async def get_run(
    run_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = PayrollService(session)
    return await service.get_run(run_id, current_user.tenant_id)

@router.post("/runs/{run_id}/process", response_model=PayrollRunResponse)
async def process_run(
    run_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Compute payslips for every employee with a salary in the month"""
    service = PayrollService(session)
    return await service.process_run(run_id, current_user)

@router.post("/runs/{run_id}/approve", response_model=PayrollRunResponse)
async def approve_run(
    run_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = PayrollService(session)
    return await service.approve_run(run_id, current_user)

@router.post("/runs/{run_id}/mark-paid", response_model=PayrollRunResponse)
async def mark_paid(
    run_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = PayrollService(session)
    return await service.mark_paid(run_id, current_user)

@router.delete("/runs/{run_id}")
async def delete_run(
    run_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Delete a draft run"""
    service = PayrollService(session)
    result = await service.delete_run(run_id, current_user)
    return {"message": "Payroll run deleted successfully", "success": result}

@router.get("/runs/{run_id}/payslips", response_model=PaginatedResponse[PayslipResponse])
async def get_payslips_for_run(
    run_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = PayrollService(session)
    return await service.get_payslips_for_run(run_id, current_user.tenant_id, page=page, limit=limit)

@router.get("/payslips/my", response_model=PaginatedResponse[PayslipResponse])
async def get_my_payslips(
    pagination: PageParams = Depends(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Payslips of approved and paid runs"""
    service = PayrollService(session)
    return await service.get_my_payslips(current_user, page=pagination.page, limit=pagination.limit)

@router.get("/payslips/{payslip_id}", response_model=PayslipResponse)
async def get_payslip(
    payslip_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = PayrollService(session)
    return await service.get_payslip(payslip_id, current_user)

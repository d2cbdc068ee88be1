from typing import List
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.dependencies import get_current_user, require_roles
from hrms.auth.roles import ADMIN_ROLES
from hrms.core.database import get_async_session
from hrms.models.auth.user import User
from hrms.schemas.payroll.salary_schema import (
    EmployeeSalaryResponse,
    SalaryAssign,
    SalaryStructureCreate,
    SalaryStructureResponse,
    SalaryStructureUpdate,
)
from hrms.services.payroll.salary_service import SalaryService

router = APIRouter()

@router.get("/structures", response_model=List[SalaryStructureResponse])
async def get_structures(
    include_inactive: bool = Query(False),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = SalaryService(session)
    return await service.get_structures(current_user.tenant_id, include_inactive=include_inactive)

@router.post("/structures", response_model=SalaryStructureResponse, status_code=status.HTTP_201_CREATED)
async def create_structure(
    structure: SalaryStructureCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Create a named set of earning and deduction components"""
    service = SalaryService(session)
    return await service.create_structure(structure, current_user)

@router.get("/structures/{structure_id}", response_model=SalaryStructureResponse)
async def get_structure(
    structure_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = SalaryService(session)
    return await service.get_structure(structure_id, current_user.tenant_id)

@router.put("/structures/{structure_id}", response_model=SalaryStructureResponse)
async def update_structure(
    structure_id: int,
    structure: SalaryStructureUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = SalaryService(session)
    return await service.update_structure(structure_id, structure, current_user)

@router.delete("/structures/{structure_id}")
async def delete_structure(
    structure_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = SalaryService(session)
    result = await service.delete_structure(structure_id, current_user)
    return {"message": "Salary structure deactivated successfully", "success": result}

@router.post("/assign", response_model=EmployeeSalaryResponse, status_code=status.HTTP_201_CREATED)
async def assign_salary(
    assignment: SalaryAssign,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Assign a salary; the previous one ends the day before"""
    service = SalaryService(session)
    return await service.assign_salary(assignment, current_user)

@router.get("/employee/{employee_id}", response_model=EmployeeSalaryResponse)
async def get_employee_salary(
    employee_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = SalaryService(session)
    return await service.get_employee_salary(employee_id, current_user)

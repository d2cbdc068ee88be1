from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.dependencies import PageParams, get_current_user, require_roles
from hrms.auth.roles import ADMIN_ROLES
from hrms.core.database import get_async_session
from hrms.models.auth.user import User
from hrms.models.shared.enums import EmployeeStatus
from hrms.schemas.common.pagination import PaginatedResponse
from hrms.schemas.hr.employee_schema import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from hrms.services.hr.employee_service import EmployeeService
from hrms.services.shared.access import ensure_can_view

router = APIRouter()

@router.post("/", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    employee: EmployeeCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Create an employee, optionally with a login account"""
    service = EmployeeService(session)
    return await service.create_employee(employee, current_user)

@router.get("/", response_model=PaginatedResponse[EmployeeResponse])
async def get_employees(
    pagination: PageParams = Depends(),
    department_id: Optional[int] = Query(None),
    employee_status: Optional[EmployeeStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Get employees with filtering and pagination"""
    service = EmployeeService(session)
    return await service.get_employees(
        current_user,
        page=pagination.page,
        limit=pagination.limit,
        department_id=department_id,
        status=employee_status,
        search=search,
    )

@router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Get a specific employee by ID"""
    service = EmployeeService(session)
    employee = await service.get_employee(employee_id, current_user.tenant_id)
    await ensure_can_view(session, current_user, employee.id)
    return employee

@router.put("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: int,
    employee: EmployeeUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Update employee"""
    service = EmployeeService(session)
    return await service.update_employee(employee_id, employee, current_user)

@router.delete("/{employee_id}", response_model=EmployeeResponse)
async def deactivate_employee(
    employee_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Deactivate employee; history is kept"""
    service = EmployeeService(session)
    return await service.deactivate_employee(employee_id, current_user)

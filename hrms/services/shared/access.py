"""
Who may see or act on which employee's records.

Admins (SUPER_ADMIN, HR_ADMIN) act tenant-wide, managers act on their
direct reports, employees only on themselves.
"""
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from hrms.models.auth.user import User
from hrms.models.hr.employee import Employee
from hrms.models.shared.enums import UserRole


def require_employee_id(user: User) -> int:
    if not user.employee_id:
        raise BadRequestError("No employee profile is linked to this user")
    return user.employee_id


async def get_tenant_employee(session: AsyncSession, tenant_id: int, employee_id: int) -> Employee:
    result = await session.execute(
        select(Employee).where(Employee.id == employee_id, Employee.tenant_id == tenant_id)
    )
    employee = result.scalar_one_or_none()
    if not employee:
        raise NotFoundError(f"Employee with ID {employee_id} not found")
    return employee


async def direct_report_ids(session: AsyncSession, user: User) -> List[int]:
    if not user.employee_id:
        return []
    result = await session.execute(
        select(Employee.id).where(
            Employee.tenant_id == user.tenant_id,
            Employee.manager_id == user.employee_id,
        )
    )
    return list(result.scalars().all())


async def ensure_can_review(session: AsyncSession, user: User, employee_id: int) -> None:
    """Approver check: admins always, managers only for direct reports"""
    if user.is_admin:
        return
    if user.role == UserRole.MANAGER:
        employee = await get_tenant_employee(session, user.tenant_id, employee_id)
        if user.employee_id and employee.manager_id == user.employee_id:
            return
        raise ForbiddenError("You can only act on requests of your direct reports")
    raise ForbiddenError("Not enough permissions")


async def ensure_can_view(session: AsyncSession, user: User, employee_id: int) -> None:
    if user.employee_id == employee_id:
        return
    await ensure_can_review(session, user, employee_id)


async def reviewable_employee_ids(session: AsyncSession, user: User) -> Optional[List[int]]:
    """None means no restriction (admins)"""
    if user.is_admin:
        return None
    if user.role == UserRole.MANAGER:
        return await direct_report_ids(session, user)
    return [user.employee_id] if user.employee_id else []

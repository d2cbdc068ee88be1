import logging
from typing import Any, Dict, Optional
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.core.exceptions import ConflictError, NotFoundError, ValidationError
from hrms.core.security import get_password_hash
from hrms.models.auth.user import User
from hrms.models.hr.employee import Employee
from hrms.models.organization.department import Department
from hrms.models.shared.enums import AuditAction, EmployeeStatus
from hrms.schemas.hr.employee_schema import EmployeeCreate, EmployeeUpdate
from hrms.services.audit.audit_service import AuditService
from hrms.services.leave.leave_service import LeaveService
from hrms.services.shared.access import reviewable_employee_ids
from hrms.services.shared.query import paginate
from hrms.utils.serialization import snapshot

logger = logging.getLogger(__name__)

class EmployeeService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit_service = AuditService(session)

    async def _validate_references(self, tenant_id: int, department_id: Optional[int], manager_id: Optional[int], employee_id: Optional[int] = None):
        if department_id is not None:
            department = await self.session.scalar(
                select(Department).where(Department.id == department_id, Department.tenant_id == tenant_id)
            )
            if not department:
                raise ValidationError(f"Department with ID {department_id} not found")

        if manager_id is not None:
            if employee_id is not None and manager_id == employee_id:
                raise ValidationError("An employee cannot be their own manager")
            manager = await self.session.scalar(
                select(Employee).where(Employee.id == manager_id, Employee.tenant_id == tenant_id)
            )
            if not manager:
                raise ValidationError(f"Manager with ID {manager_id} not found")

    async def create_employee(self, employee_data: EmployeeCreate, current_user: User) -> Employee:
        """Create an employee, its login account (optional) and current-year leave balances"""
        tenant_id = current_user.tenant_id
        try:
            existing = await self.session.scalar(
                select(Employee).where(
                    Employee.tenant_id == tenant_id,
                    Employee.employee_code == employee_data.employee_code,
                )
            )
            if existing:
                raise ConflictError(f"Employee code {employee_data.employee_code} already exists")

            await self._validate_references(tenant_id, employee_data.department_id, employee_data.manager_id)

            data = employee_data.model_dump(exclude={"password", "role"})
            data["email"] = data["email"].lower()
            employee = Employee(tenant_id=tenant_id, **data)
            self.session.add(employee)
            await self.session.flush()

            if employee_data.password:
                email_taken = await self.session.scalar(
                    select(User).where(User.tenant_id == tenant_id, User.email == employee.email)
                )
                if email_taken:
                    raise ConflictError(f"User with email {employee.email} already exists")
                self.session.add(User(
                    tenant_id=tenant_id,
                    email=employee.email,
                    full_name=employee.full_name,
                    hashed_password=get_password_hash(employee_data.password),
                    role=employee_data.role,
                    employee_id=employee.id,
                ))

            await LeaveService(self.session).initialize_balances(tenant_id, employee.id, commit=False)

            self.audit_service.record(
                tenant_id=tenant_id,
                user_id=current_user.id,
                action=AuditAction.CREATE,
                entity_type="Employee",
                entity_id=employee.id,
                new_values=snapshot(employee),
            )
            await self.session.commit()
            await self.session.refresh(employee)

            logger.info(f"Employee created: {employee.employee_code} by user {current_user.id}")
            return employee

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating employee: {str(e)}")
            raise

    async def get_employees(
        self,
        current_user: User,
        page: int = 1,
        limit: int = 20,
        department_id: Optional[int] = None,
        status: Optional[EmployeeStatus] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Employees visible to the caller with filters and pagination"""
        conditions = [Employee.tenant_id == current_user.tenant_id]

        scope = await reviewable_employee_ids(self.session, current_user)
        if scope is not None:
            own = [current_user.employee_id] if current_user.employee_id else []
            conditions.append(Employee.id.in_(scope + own))

        if department_id:
            conditions.append(Employee.department_id == department_id)
        if status:
            conditions.append(Employee.status == status)
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(
                Employee.first_name.ilike(pattern),
                Employee.last_name.ilike(pattern),
                Employee.employee_code.ilike(pattern),
                Employee.email.ilike(pattern),
            ))

        query = select(Employee).where(*conditions).order_by(Employee.employee_code)
        return await paginate(self.session, query, page, limit)

    async def get_employee(self, employee_id: int, tenant_id: int) -> Employee:
        employee = await self.session.scalar(
            select(Employee).where(Employee.id == employee_id, Employee.tenant_id == tenant_id)
        )
        if not employee:
            raise NotFoundError(f"Employee with ID {employee_id} not found")
        return employee

    async def update_employee(self, employee_id: int, employee_data: EmployeeUpdate, current_user: User) -> Employee:
        try:
            employee = await self.get_employee(employee_id, current_user.tenant_id)
            update_data = employee_data.model_dump(exclude_unset=True)
            await self._validate_references(
                current_user.tenant_id,
                update_data.get("department_id"),
                update_data.get("manager_id"),
                employee_id=employee.id,
            )

            old_values = snapshot(employee, update_data.keys())
            for field, value in update_data.items():
                setattr(employee, field, value)

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.UPDATE,
                entity_type="Employee",
                entity_id=employee.id,
                old_values=old_values,
                new_values=snapshot(employee, update_data.keys()),
            )
            await self.session.commit()
            await self.session.refresh(employee)

            logger.info(f"Employee updated: {employee.employee_code} by user {current_user.id}")
            return employee

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating employee {employee_id}: {str(e)}")
            raise

    async def deactivate_employee(self, employee_id: int, current_user: User) -> Employee:
        """Soft delete: the record stays for payroll and attendance history"""
        try:
            employee = await self.get_employee(employee_id, current_user.tenant_id)
            old_status = employee.status
            employee.status = EmployeeStatus.INACTIVE

            user = await self.session.scalar(
                select(User).where(User.tenant_id == current_user.tenant_id, User.employee_id == employee.id)
            )
            if user:
                user.is_active = False

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.DELETE,
                entity_type="Employee",
                entity_id=employee.id,
                old_values={"status": old_status},
                new_values={"status": employee.status},
            )
            await self.session.commit()
            await self.session.refresh(employee)

            logger.info(f"Employee deactivated: {employee.employee_code} by user {current_user.id}")
            return employee

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deactivating employee {employee_id}: {str(e)}")
            raise

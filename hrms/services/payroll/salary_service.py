import logging
from typing import List, Optional
from datetime import date, timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import or_, select
from sqlalchemy.orm import selectinload

from hrms.core.exceptions import ConflictError, NotFoundError, ValidationError
from hrms.models.auth.user import User
from hrms.models.payroll.employee_salary import EmployeeSalary
from hrms.models.payroll.salary_structure import SalaryStructure
from hrms.models.shared.enums import AuditAction
from hrms.schemas.payroll.salary_schema import SalaryAssign, SalaryStructureCreate, SalaryStructureUpdate
from hrms.services.audit.audit_service import AuditService
from hrms.services.shared.access import ensure_can_view, get_tenant_employee

logger = logging.getLogger(__name__)

class SalaryService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit_service = AuditService(session)

    async def _check_unique_name(self, tenant_id: int, name: str, exclude_id: Optional[int] = None):
        query = select(SalaryStructure.id).where(
            SalaryStructure.tenant_id == tenant_id,
            SalaryStructure.name == name,
        )
        if exclude_id is not None:
            query = query.where(SalaryStructure.id != exclude_id)
        if await self.session.scalar(query):
            raise ConflictError(f"Salary structure '{name}' already exists")

    async def create_structure(self, data: SalaryStructureCreate, current_user: User) -> SalaryStructure:
        try:
            await self._check_unique_name(current_user.tenant_id, data.name)

            structure = SalaryStructure(
                tenant_id=current_user.tenant_id,
                name=data.name,
                description=data.description,
                components=[c.model_dump(mode="json") for c in data.components],
            )
            self.session.add(structure)
            await self.session.flush()

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.CREATE,
                entity_type="SalaryStructure",
                entity_id=structure.id,
                new_values={"name": structure.name, "components": structure.components},
            )
            await self.session.commit()
            await self.session.refresh(structure)

            logger.info(f"Salary structure '{structure.name}' created by user {current_user.id}")
            return structure

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating salary structure: {str(e)}")
            raise

    async def get_structures(self, tenant_id: int, include_inactive: bool = False) -> List[SalaryStructure]:
        query = select(SalaryStructure).where(SalaryStructure.tenant_id == tenant_id)
        if not include_inactive:
            query = query.where(SalaryStructure.is_active == True)
        result = await self.session.execute(query.order_by(SalaryStructure.name))
        return list(result.scalars().all())

    async def get_structure(self, structure_id: int, tenant_id: int) -> SalaryStructure:
        structure = await self.session.scalar(
            select(SalaryStructure).where(SalaryStructure.id == structure_id, SalaryStructure.tenant_id == tenant_id)
        )
        if not structure:
            raise NotFoundError(f"Salary structure with ID {structure_id} not found")
        return structure

    async def update_structure(self, structure_id: int, data: SalaryStructureUpdate, current_user: User) -> SalaryStructure:
        try:
            structure = await self.get_structure(structure_id, current_user.tenant_id)
            update_data = data.model_dump(exclude_unset=True)

            if update_data.get("name") and update_data["name"] != structure.name:
                await self._check_unique_name(current_user.tenant_id, update_data["name"], exclude_id=structure.id)
            if data.components is not None:
                update_data["components"] = [c.model_dump(mode="json") for c in data.components]

            old_values = {field: getattr(structure, field) for field in update_data}
            for field, value in update_data.items():
                setattr(structure, field, value)

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.UPDATE,
                entity_type="SalaryStructure",
                entity_id=structure.id,
                old_values=old_values,
                new_values=update_data,
            )
            await self.session.commit()
            await self.session.refresh(structure)

            logger.info(f"Salary structure {structure.id} updated by user {current_user.id}")
            return structure

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating salary structure {structure_id}: {str(e)}")
            raise

    async def delete_structure(self, structure_id: int, current_user: User) -> bool:
        """Soft delete; structures in use by an active assignment are kept"""
        try:
            structure = await self.get_structure(structure_id, current_user.tenant_id)
            in_use = await self.session.scalar(
                select(EmployeeSalary.id).where(
                    EmployeeSalary.salary_structure_id == structure.id,
                    EmployeeSalary.is_active == True,
                ).limit(1)
            )
            if in_use:
                raise ValidationError("Salary structure is assigned to active employees")

            structure.is_active = False
            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.DELETE,
                entity_type="SalaryStructure",
                entity_id=structure.id,
            )
            await self.session.commit()

            logger.info(f"Salary structure {structure.id} deactivated by user {current_user.id}")
            return True

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting salary structure {structure_id}: {str(e)}")
            raise

    async def assign_salary(self, data: SalaryAssign, current_user: User) -> EmployeeSalary:
        """Give an employee a new salary; the current one ends the day before"""
        tenant_id = current_user.tenant_id
        try:
            await get_tenant_employee(self.session, tenant_id, data.employee_id)
            structure = await self.get_structure(data.salary_structure_id, tenant_id)
            if not structure.is_active:
                raise ValidationError("Salary structure is inactive")

            current = await self._get_active_salary(tenant_id, data.employee_id)
            if current is not None:
                if data.effective_from <= current.effective_from:
                    raise ValidationError("New salary must take effect after the current one")
                current.is_active = False
                current.effective_to = data.effective_from - timedelta(days=1)

            salary = EmployeeSalary(
                tenant_id=tenant_id,
                employee_id=data.employee_id,
                salary_structure_id=structure.id,
                base_pay=data.base_pay,
                effective_from=data.effective_from,
                is_active=True,
            )
            self.session.add(salary)
            await self.session.flush()

            self.audit_service.record(
                tenant_id=tenant_id,
                user_id=current_user.id,
                action=AuditAction.CREATE,
                entity_type="EmployeeSalary",
                entity_id=salary.id,
                old_values={"salary_id": current.id, "base_pay": current.base_pay} if current else None,
                new_values=data.model_dump(),
            )
            await self.session.commit()

            logger.info(f"Salary assigned to employee {data.employee_id} by user {current_user.id}")
            return await self._load_salary(salary.id)

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error assigning salary to employee {data.employee_id}: {str(e)}")
            raise

    async def _get_active_salary(self, tenant_id: int, employee_id: int) -> Optional[EmployeeSalary]:
        return await self.session.scalar(
            select(EmployeeSalary)
            .options(selectinload(EmployeeSalary.salary_structure))
            .where(
                EmployeeSalary.tenant_id == tenant_id,
                EmployeeSalary.employee_id == employee_id,
                EmployeeSalary.is_active == True,
            )
            .order_by(EmployeeSalary.effective_from.desc())
            .limit(1)
        )

    async def _load_salary(self, salary_id: int) -> EmployeeSalary:
        return await self.session.scalar(
            select(EmployeeSalary)
            .options(selectinload(EmployeeSalary.salary_structure))
            .where(EmployeeSalary.id == salary_id)
        )

    async def get_employee_salary(self, employee_id: int, current_user: User) -> EmployeeSalary:
        await ensure_can_view(self.session, current_user, employee_id)
        salary = await self._get_active_salary(current_user.tenant_id, employee_id)
        if not salary:
            raise NotFoundError(f"No active salary found for employee {employee_id}")
        return salary

    async def get_salary_for_period(self, tenant_id: int, employee_id: int, start: date, end: date) -> Optional[EmployeeSalary]:
        """Latest assignment in effect at some point between start and end"""
        return await self.session.scalar(
            select(EmployeeSalary)
            .options(selectinload(EmployeeSalary.salary_structure), selectinload(EmployeeSalary.employee))
            .where(
                EmployeeSalary.tenant_id == tenant_id,
                EmployeeSalary.employee_id == employee_id,
                EmployeeSalary.effective_from <= end,
                or_(EmployeeSalary.effective_to.is_(None), EmployeeSalary.effective_to >= start),
            )
            .order_by(EmployeeSalary.effective_from.desc())
            .limit(1)
        )

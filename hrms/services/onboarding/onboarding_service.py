import logging
from typing import Any, Dict, List, Optional
from datetime import timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from hrms.core.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from hrms.models.auth.user import User
from hrms.models.hr.employee import Employee
from hrms.models.onboarding.process import OnboardingProcess
from hrms.models.onboarding.task import OnboardingTask
from hrms.models.onboarding.template import OnboardingTemplate
from hrms.models.shared.enums import (
    AuditAction,
    EmployeeStatus,
    OnboardingStatus,
    OnboardingTaskStatus,
    UserRole,
)
from hrms.schemas.onboarding.onboarding_schema import (
    OnboardingProcessCreate,
    OnboardingTaskUpdate,
    OnboardingTemplateCreate,
    OnboardingTemplateUpdate,
)
from hrms.services.audit.audit_service import AuditService
from hrms.services.shared.access import require_employee_id
from hrms.services.shared.query import paginate
from hrms.services.shared.status_transitions import (
    ONBOARDING_PROCESS_TRANSITIONS,
    ONBOARDING_TASK_TRANSITIONS,
    ensure_transition,
)
from hrms.utils.date_utils import utc_now

logger = logging.getLogger(__name__)

OPEN_TASK_STATUSES = (OnboardingTaskStatus.PENDING, OnboardingTaskStatus.IN_PROGRESS)

class OnboardingService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit_service = AuditService(session)

    # region Templates
    async def _check_unique_name(self, tenant_id: int, name: str, exclude_id: Optional[int] = None):
        query = select(OnboardingTemplate.id).where(
            OnboardingTemplate.tenant_id == tenant_id,
            OnboardingTemplate.name == name,
        )
        if exclude_id is not None:
            query = query.where(OnboardingTemplate.id != exclude_id)
        if await self.session.scalar(query):
            raise ConflictError(f"Template '{name}' already exists")

    async def get_templates(self, tenant_id: int, include_inactive: bool = False) -> List[OnboardingTemplate]:
        query = select(OnboardingTemplate).where(OnboardingTemplate.tenant_id == tenant_id)
        if not include_inactive:
            query = query.where(OnboardingTemplate.is_active == True)
        result = await self.session.execute(query.order_by(OnboardingTemplate.name))
        return list(result.scalars().all())

    async def get_template(self, template_id: int, tenant_id: int) -> OnboardingTemplate:
        template = await self.session.scalar(
            select(OnboardingTemplate).where(
                OnboardingTemplate.id == template_id,
                OnboardingTemplate.tenant_id == tenant_id,
            )
        )
        if not template:
            raise NotFoundError(f"Onboarding template with ID {template_id} not found")
        return template

    async def create_template(self, data: OnboardingTemplateCreate, current_user: User) -> OnboardingTemplate:
        try:
            await self._check_unique_name(current_user.tenant_id, data.name)

            template = OnboardingTemplate(
                tenant_id=current_user.tenant_id,
                name=data.name,
                description=data.description,
                tasks=[task.model_dump(mode="json") for task in data.tasks],
            )
            self.session.add(template)
            await self.session.flush()

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.CREATE,
                entity_type="OnboardingTemplate",
                entity_id=template.id,
                new_values={"name": template.name, "task_count": len(template.tasks)},
            )
            await self.session.commit()
            await self.session.refresh(template)

            logger.info(f"Onboarding template '{template.name}' created by user {current_user.id}")
            return template

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating onboarding template: {str(e)}")
            raise

    async def update_template(self, template_id: int, data: OnboardingTemplateUpdate, current_user: User) -> OnboardingTemplate:
        try:
            template = await self.get_template(template_id, current_user.tenant_id)
            update_data = data.model_dump(exclude_unset=True)
            if update_data.get("name") and update_data["name"] != template.name:
                await self._check_unique_name(current_user.tenant_id, update_data["name"], exclude_id=template.id)
            if data.tasks is not None:
                update_data["tasks"] = [task.model_dump(mode="json") for task in data.tasks]

            for field, value in update_data.items():
                setattr(template, field, value)

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.UPDATE,
                entity_type="OnboardingTemplate",
                entity_id=template.id,
                new_values=update_data,
            )
            await self.session.commit()
            await self.session.refresh(template)
            return template

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating onboarding template {template_id}: {str(e)}")
            raise

    async def delete_template(self, template_id: int, current_user: User) -> bool:
        try:
            template = await self.get_template(template_id, current_user.tenant_id)
            in_use = await self.session.scalar(
                select(OnboardingProcess.id).where(OnboardingProcess.template_id == template.id).limit(1)
            )
            if in_use:
                raise BadRequestError("Cannot delete template with existing processes. Deactivate it instead.")

            await self.session.delete(template)
            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.DELETE,
                entity_type="OnboardingTemplate",
                entity_id=template_id,
            )
            await self.session.commit()

            logger.info(f"Onboarding template {template_id} deleted by user {current_user.id}")
            return True

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting onboarding template {template_id}: {str(e)}")
            raise
    # endregion

    # region Processes
    async def _resolve_assignee(self, tenant_id: int, employee: Employee, role: Optional[str]) -> Optional[int]:
        """Map a template's default role to a concrete employee"""
        if role == UserRole.EMPLOYEE:
            return employee.id
        if role == UserRole.MANAGER:
            return employee.manager_id
        if role in (UserRole.HR_ADMIN, UserRole.SUPER_ADMIN):
            return await self.session.scalar(
                select(User.employee_id)
                .where(
                    User.tenant_id == tenant_id,
                    User.role == role,
                    User.is_active == True,
                    User.employee_id.isnot(None),
                )
                .order_by(User.id)
                .limit(1)
            )
        return None

    async def create_process(self, data: OnboardingProcessCreate, current_user: User) -> OnboardingProcess:
        """Instantiate a template's task list for one employee"""
        tenant_id = current_user.tenant_id
        try:
            template = await self.get_template(data.template_id, tenant_id)
            if not template.is_active:
                raise NotFoundError(f"Onboarding template with ID {data.template_id} not found or inactive")

            employee = await self.session.scalar(
                select(Employee).where(
                    Employee.id == data.employee_id,
                    Employee.tenant_id == tenant_id,
                    Employee.status == EmployeeStatus.ACTIVE,
                )
            )
            if not employee:
                raise NotFoundError(f"Employee with ID {data.employee_id} not found or inactive")

            start_date = data.start_date or utc_now().date()
            process = OnboardingProcess(
                tenant_id=tenant_id,
                employee_id=employee.id,
                template_id=template.id,
                status=OnboardingStatus.NOT_STARTED,
                start_date=start_date,
                notes=data.notes,
            )
            self.session.add(process)
            await self.session.flush()

            for definition in template.tasks or []:
                role = definition.get("default_assignee_role")
                days_after = definition.get("days_after_start")
                self.session.add(OnboardingTask(
                    tenant_id=tenant_id,
                    process_id=process.id,
                    title=definition["title"],
                    description=definition.get("description"),
                    category=definition.get("category") or "OTHER",
                    assignee_role=role,
                    assignee_id=await self._resolve_assignee(tenant_id, employee, role),
                    due_date=start_date + timedelta(days=days_after) if days_after is not None else None,
                    sort_order=definition.get("sort_order") or 0,
                    status=OnboardingTaskStatus.PENDING,
                ))

            self.audit_service.record(
                tenant_id=tenant_id,
                user_id=current_user.id,
                action=AuditAction.CREATE,
                entity_type="OnboardingProcess",
                entity_id=process.id,
                new_values={"employee_id": employee.id, "template_id": template.id, "start_date": start_date},
            )
            await self.session.commit()

            logger.info(f"Onboarding process {process.id} started for employee {employee.id} by user {current_user.id}")
            return await self.get_process(process.id, tenant_id)

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating onboarding process: {str(e)}")
            raise

    async def get_processes(
        self,
        tenant_id: int,
        page: int = 1,
        limit: int = 20,
        status: Optional[OnboardingStatus] = None,
        employee_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        conditions = [OnboardingProcess.tenant_id == tenant_id]
        if status:
            conditions.append(OnboardingProcess.status == status)
        if employee_id:
            conditions.append(OnboardingProcess.employee_id == employee_id)

        query = select(OnboardingProcess).where(*conditions).order_by(OnboardingProcess.created_at.desc())
        return await paginate(self.session, query, page, limit)

    async def get_process(self, process_id: int, tenant_id: int) -> OnboardingProcess:
        process = await self.session.scalar(
            select(OnboardingProcess)
            .options(selectinload(OnboardingProcess.tasks))
            .where(OnboardingProcess.id == process_id, OnboardingProcess.tenant_id == tenant_id)
            .execution_options(populate_existing=True)
        )
        if not process:
            raise NotFoundError(f"Onboarding process with ID {process_id} not found")
        return process

    async def cancel_process(self, process_id: int, current_user: User) -> OnboardingProcess:
        """Cancel and skip every task that is still open"""
        try:
            process = await self.get_process(process_id, current_user.tenant_id)
            ensure_transition(ONBOARDING_PROCESS_TRANSITIONS, "onboarding process", process.status, OnboardingStatus.CANCELLED)

            previous = process.status
            process.status = OnboardingStatus.CANCELLED
            skipped = 0
            for task in process.tasks:
                if task.status in OPEN_TASK_STATUSES:
                    task.status = OnboardingTaskStatus.SKIPPED
                    skipped += 1

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.CANCEL,
                entity_type="OnboardingProcess",
                entity_id=process.id,
                old_values={"status": previous},
                new_values={"status": process.status, "skipped_tasks": skipped},
            )
            await self.session.commit()

            logger.info(f"Onboarding process {process.id} cancelled by user {current_user.id}")
            return await self.get_process(process.id, current_user.tenant_id)

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error cancelling onboarding process {process_id}: {str(e)}")
            raise

    async def delete_process(self, process_id: int, current_user: User) -> bool:
        try:
            process = await self.get_process(process_id, current_user.tenant_id)
            if process.status != OnboardingStatus.NOT_STARTED:
                raise BadRequestError("Only NOT_STARTED processes can be deleted")

            await self.session.delete(process)
            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.DELETE,
                entity_type="OnboardingProcess",
                entity_id=process_id,
            )
            await self.session.commit()

            logger.info(f"Onboarding process {process_id} deleted by user {current_user.id}")
            return True

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting onboarding process {process_id}: {str(e)}")
            raise
    # endregion

    # region Tasks
    async def _get_task(self, task_id: int, tenant_id: int) -> OnboardingTask:
        task = await self.session.scalar(
            select(OnboardingTask)
            .options(selectinload(OnboardingTask.process))
            .where(OnboardingTask.id == task_id, OnboardingTask.tenant_id == tenant_id)
        )
        if not task:
            raise NotFoundError(f"Onboarding task with ID {task_id} not found")
        return task

    def _move_task(self, task: OnboardingTask, target: OnboardingTaskStatus, current_user: User):
        if target == OnboardingTaskStatus.COMPLETED and task.status == OnboardingTaskStatus.PENDING:
            ensure_transition(ONBOARDING_TASK_TRANSITIONS, "onboarding task", task.status, OnboardingTaskStatus.IN_PROGRESS)
            task.status = OnboardingTaskStatus.IN_PROGRESS
        ensure_transition(ONBOARDING_TASK_TRANSITIONS, "onboarding task", task.status, target)
        task.status = target
        if target == OnboardingTaskStatus.COMPLETED:
            task.completed_at = utc_now()
            task.completed_by = current_user.id

    async def _advance_process(self, process: OnboardingProcess, task_status: Optional[OnboardingTaskStatus]):
        """Start the process on first activity; complete it when no task is open"""
        if process.status == OnboardingStatus.NOT_STARTED and task_status in (
            OnboardingTaskStatus.IN_PROGRESS,
            OnboardingTaskStatus.COMPLETED,
        ):
            process.status = OnboardingStatus.IN_PROGRESS
            process.started_at = utc_now()

        await self.session.flush()
        open_tasks = await self.session.scalar(
            select(func.count(OnboardingTask.id)).where(
                OnboardingTask.process_id == process.id,
                OnboardingTask.status.in_(OPEN_TASK_STATUSES),
            )
        )
        if not open_tasks and process.status != OnboardingStatus.COMPLETED:
            ensure_transition(ONBOARDING_PROCESS_TRANSITIONS, "onboarding process", process.status, OnboardingStatus.COMPLETED)
            process.status = OnboardingStatus.COMPLETED
            process.completed_at = utc_now()
            logger.info(f"Onboarding process {process.id} completed")

    async def update_task(self, task_id: int, data: OnboardingTaskUpdate, current_user: User) -> OnboardingTask:
        try:
            task = await self._get_task(task_id, current_user.tenant_id)
            if not current_user.is_admin and task.assignee_id != current_user.employee_id:
                raise ForbiddenError("You can only update tasks assigned to you")
            if task.process.status == OnboardingStatus.CANCELLED:
                raise BadRequestError("Cannot update tasks in a cancelled process")

            update_data = data.model_dump(exclude_unset=True)
            status = update_data.pop("status", None)
            if "assignee_id" in update_data and not current_user.is_admin:
                raise ForbiddenError("Only HR can reassign onboarding tasks")
            if update_data.get("assignee_id") is not None:
                assignee = await self.session.scalar(
                    select(Employee.id).where(
                        Employee.id == update_data["assignee_id"],
                        Employee.tenant_id == current_user.tenant_id,
                    )
                )
                if not assignee:
                    raise NotFoundError(f"Employee with ID {update_data['assignee_id']} not found")

            previous = task.status
            if status is not None:
                self._move_task(task, status, current_user)
            for field, value in update_data.items():
                setattr(task, field, value)

            await self._advance_process(task.process, status)
            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.UPDATE,
                entity_type="OnboardingTask",
                entity_id=task.id,
                old_values={"status": previous},
                new_values={"status": task.status, **update_data},
            )
            await self.session.commit()
            await self.session.refresh(task)

            logger.info(f"Onboarding task {task.id} updated to {task.status.value} by user {current_user.id}")
            return task

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating onboarding task {task_id}: {str(e)}")
            raise

    async def complete_task(self, task_id: int, current_user: User, notes: Optional[str] = None) -> OnboardingTask:
        data = {"status": OnboardingTaskStatus.COMPLETED}
        if notes is not None:
            data["notes"] = notes
        return await self.update_task(task_id, OnboardingTaskUpdate(**data), current_user)

    async def skip_task(self, task_id: int, current_user: User, notes: Optional[str] = None) -> OnboardingTask:
        data = {"status": OnboardingTaskStatus.SKIPPED}
        if notes is not None:
            data["notes"] = notes
        return await self.update_task(task_id, OnboardingTaskUpdate(**data), current_user)

    async def get_my_tasks(
        self,
        current_user: User,
        page: int = 1,
        limit: int = 20,
        status: Optional[OnboardingTaskStatus] = None,
    ) -> Dict[str, Any]:
        employee_id = require_employee_id(current_user)
        conditions = [OnboardingTask.tenant_id == current_user.tenant_id, OnboardingTask.assignee_id == employee_id]
        if status:
            conditions.append(OnboardingTask.status == status)

        query = (
            select(OnboardingTask)
            .join(OnboardingProcess, OnboardingProcess.id == OnboardingTask.process_id)
            .where(*conditions, OnboardingProcess.status != OnboardingStatus.CANCELLED)
            .order_by(OnboardingTask.due_date.asc().nulls_last(), OnboardingTask.sort_order)
        )
        return await paginate(self.session, query, page, limit)
    # endregion

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.dependencies import PageParams, get_current_user, require_roles
from hrms.auth.roles import ADMIN_ROLES
from hrms.core.database import get_async_session
from hrms.models.auth.user import User
from hrms.models.shared.enums import OnboardingStatus, OnboardingTaskStatus
from hrms.schemas.common.pagination import PaginatedResponse
from hrms.schemas.common.review import ReviewAction
from hrms.schemas.onboarding.onboarding_schema import (
    OnboardingProcessCreate,
    OnboardingProcessDetailResponse,
    OnboardingProcessResponse,
    OnboardingTaskResponse,
    OnboardingTaskUpdate,
    OnboardingTemplateCreate,
    OnboardingTemplateResponse,
    OnboardingTemplateUpdate,
)
from hrms.services.onboarding.onboarding_service import OnboardingService

router = APIRouter()

# Templates
@router.get("/templates", response_model=List[OnboardingTemplateResponse])
async def get_templates(
    include_inactive: bool = Query(False),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = OnboardingService(session)
    return await service.get_templates(current_user.tenant_id, include_inactive=include_inactive)

@router.post("/templates", response_model=OnboardingTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    template: OnboardingTemplateCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = OnboardingService(session)
    return await service.create_template(template, current_user)

@router.get("/templates/{template_id}", response_model=OnboardingTemplateResponse)
async def get_template(
    template_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = OnboardingService(session)
    return await service.get_template(template_id, current_user.tenant_id)

@router.put("/templates/{template_id}", response_model=OnboardingTemplateResponse)
async def update_template(
    template_id: int,
    template: OnboardingTemplateUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = OnboardingService(session)
    return await service.update_template(template_id, template, current_user)

@router.delete("/templates/{template_id}")
async def delete_template(
    template_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = OnboardingService(session)
    result = await service.delete_template(template_id, current_user)
    return {"message": "Onboarding template deleted successfully", "success": result}

# Processes
@router.post("/processes", response_model=OnboardingProcessDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_process(
    process: OnboardingProcessCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Start onboarding for an employee from a template"""
    service = OnboardingService(session)
    return await service.create_process(process, current_user)

@router.get("/processes", response_model=PaginatedResponse[OnboardingProcessResponse])
async def get_processes(
    pagination: PageParams = Depends(),
    process_status: Optional[OnboardingStatus] = Query(None, alias="status"),
    employee_id: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = OnboardingService(session)
    return await service.get_processes(
        current_user.tenant_id,
        page=pagination.page,
        limit=pagination.limit,
        status=process_status,
        employee_id=employee_id,
    )

@router.get("/processes/{process_id}", response_model=OnboardingProcessDetailResponse)
async def get_process(
    process_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = OnboardingService(session)
    return await service.get_process(process_id, current_user.tenant_id)

@router.post("/processes/{process_id}/cancel", response_model=OnboardingProcessDetailResponse)
async def cancel_process(
    process_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Cancel a process; open tasks are skipped"""
    service = OnboardingService(session)
    return await service.cancel_process(process_id, current_user)

@router.delete("/processes/{process_id}")
async def delete_process(
    process_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    service = OnboardingService(session)
    result = await service.delete_process(process_id, current_user)
    return {"message": "Onboarding process deleted successfully", "success": result}

# Tasks
@router.get("/tasks/my", response_model=PaginatedResponse[OnboardingTaskResponse])
async def get_my_tasks(
    pagination: PageParams = Depends(),
    task_status: Optional[OnboardingTaskStatus] = Query(None, alias="status"),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Onboarding tasks assigned to the current user"""
    service = OnboardingService(session)
    return await service.get_my_tasks(current_user, page=pagination.page, limit=pagination.limit, status=task_status)

@router.put("/tasks/{task_id}", response_model=OnboardingTaskResponse)
async def update_task(
    task_id: int,
    task: OnboardingTaskUpdate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = OnboardingService(session)
    return await service.update_task(task_id, task, current_user)

@router.post("/tasks/{task_id}/complete", response_model=OnboardingTaskResponse)
async def complete_task(
    task_id: int,
    review: ReviewAction = ReviewAction(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = OnboardingService(session)
    return await service.complete_task(task_id, current_user, notes=review.note)

@router.post("/tasks/{task_id}/skip", response_model=OnboardingTaskResponse)
async def skip_task(
    task_id: int,
    review: ReviewAction = ReviewAction(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = OnboardingService(session)
    return await service.skip_task(task_id, current_user, notes=review.note)

from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import date, datetime
from hrms.models.shared.enums import (
    OnboardingStatus,
    OnboardingTaskCategory,
    OnboardingTaskStatus,
    UserRole,
)

class TaskDefinition(BaseModel):
    title: str
    description: Optional[str] = None
    category: OnboardingTaskCategory = OnboardingTaskCategory.OTHER
    default_assignee_role: Optional[UserRole] = None
    days_after_start: Optional[int] = None
    sort_order: int = 0

    @validator('days_after_start')
    def validate_days_after_start(cls, v):
        if v is not None and v < 0:
            raise ValueError('Days after start cannot be negative')
        return v

class OnboardingTemplateBase(BaseModel):
    name: str
    description: Optional[str] = None
    tasks: List[TaskDefinition] = Field(default_factory=list)

class OnboardingTemplateCreate(OnboardingTemplateBase):
    @validator('tasks')
    def validate_tasks(cls, v):
        if not v:
            raise ValueError('A template needs at least one task')
        return v

class OnboardingTemplateUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    tasks: Optional[List[TaskDefinition]] = None
    is_active: Optional[bool] = None

class OnboardingTemplateResponse(OnboardingTemplateBase):
    id: int
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class OnboardingProcessCreate(BaseModel):
    employee_id: int
    template_id: int
    start_date: Optional[date] = None
    notes: Optional[str] = None

class OnboardingTaskUpdate(BaseModel):
    status: Optional[OnboardingTaskStatus] = None
    assignee_id: Optional[int] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None

class OnboardingTaskResponse(BaseModel):
    id: int
    process_id: int
    title: str
    description: Optional[str] = None
    category: OnboardingTaskCategory
    assignee_role: Optional[UserRole] = None
    assignee_id: Optional[int] = None
    due_date: Optional[date] = None
    sort_order: int
    status: OnboardingTaskStatus
    notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    completed_by: Optional[int] = None

    class Config:
        from_attributes = True

class OnboardingProcessResponse(BaseModel):
    id: int
    employee_id: int
    template_id: Optional[int] = None
    status: OnboardingStatus
    start_date: date
    notes: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class OnboardingProcessDetailResponse(OnboardingProcessResponse):
    tasks: List[OnboardingTaskResponse] = []

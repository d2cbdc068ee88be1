from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum as SQLEnum, Date
from sqlalchemy.orm import relationship
from hrms.db.base import BaseModel, TenantScopedMixin
from hrms.models.shared.enums import OnboardingTaskStatus, OnboardingTaskCategory, UserRole

class OnboardingTask(TenantScopedMixin, BaseModel):
    __tablename__ = 'onboarding_tasks'

    process_id = Column(Integer, ForeignKey('onboarding_processes.id'), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    category = Column(SQLEnum(OnboardingTaskCategory), nullable=False, default=OnboardingTaskCategory.OTHER)
    assignee_role = Column(SQLEnum(UserRole), nullable=True)
    assignee_id = Column(Integer, ForeignKey('employees.id'), nullable=True, index=True)
    due_date = Column(Date)
    sort_order = Column(Integer, default=0)
    status = Column(SQLEnum(OnboardingTaskStatus), nullable=False, default=OnboardingTaskStatus.PENDING)
    notes = Column(Text)
    completed_at = Column(DateTime(timezone=True))
    completed_by = Column(Integer, ForeignKey('users.id'), nullable=True)

    # Relationships
    process = relationship("OnboardingProcess", back_populates="tasks")

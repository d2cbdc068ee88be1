from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Enum as SQLEnum, Date
from sqlalchemy.orm import relationship
from hrms.db.base import BaseModel, TenantScopedMixin
from hrms.models.shared.enums import OnboardingStatus

class OnboardingProcess(TenantScopedMixin, BaseModel):
    __tablename__ = 'onboarding_processes'

    employee_id = Column(Integer, ForeignKey('employees.id'), nullable=False, index=True)
    template_id = Column(Integer, ForeignKey('onboarding_templates.id'), nullable=True)
    status = Column(SQLEnum(OnboardingStatus), nullable=False, default=OnboardingStatus.NOT_STARTED)
    start_date = Column(Date, nullable=False)
    notes = Column(Text)
    started_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))

    # Relationships
    employee = relationship("Employee")
    tasks = relationship(
        "OnboardingTask",
        back_populates="process",
        cascade="all, delete-orphan",
        order_by="OnboardingTask.sort_order",
    )

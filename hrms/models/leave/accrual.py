from sqlalchemy import Column, Integer, Float, Boolean, DateTime, Text, ForeignKey, Enum as SQLEnum, UniqueConstraint
from sqlalchemy.orm import relationship
from hrms.db.base import BaseModel, TenantScopedMixin
from hrms.models.shared.enums import AccrualRunStatus, AccrualTriggerType

class LeaveAccrualRule(TenantScopedMixin, BaseModel):
    __tablename__ = 'leave_accrual_rules'
    __table_args__ = (UniqueConstraint('tenant_id', 'leave_type_id', name='uq_accrual_rule_leave_type'),)

    leave_type_id = Column(Integer, ForeignKey('leave_types.id'), nullable=False)
    monthly_accrual_days = Column(Float, nullable=False)
    max_balance_cap = Column(Float, nullable=True)
    apply_cap_on_accrual = Column(Boolean, default=True)
    is_active = Column(Boolean, default=True)

    # Relationships
    leave_type = relationship("LeaveType")


class LeaveAccrualRun(TenantScopedMixin, BaseModel):
    __tablename__ = 'leave_accrual_runs'
    __table_args__ = (UniqueConstraint('tenant_id', 'month', 'year', name='uq_accrual_run_period'),)

    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    status = Column(SQLEnum(AccrualRunStatus), nullable=False, default=AccrualRunStatus.PENDING)
    trigger_type = Column(SQLEnum(AccrualTriggerType), nullable=False, default=AccrualTriggerType.MANUAL)
    triggered_by = Column(Integer, ForeignKey('users.id'), nullable=True)
    processed_count = Column(Integer, default=0)
    failed_count = Column(Integer, default=0)
    error_message = Column(Text)
    completed_at = Column(DateTime(timezone=True))

    # Relationships
    entries = relationship("LeaveAccrualEntry", back_populates="run", cascade="all, delete-orphan")


class LeaveAccrualEntry(TenantScopedMixin, BaseModel):
    __tablename__ = 'leave_accrual_entries'

    run_id = Column(Integer, ForeignKey('leave_accrual_runs.id'), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey('employees.id'), nullable=False)
    leave_type_id = Column(Integer, ForeignKey('leave_types.id'), nullable=False)
    days_accrued = Column(Float, nullable=False)
    balance_before = Column(Float, nullable=False)
    balance_after = Column(Float, nullable=False)
    cap_applied = Column(Boolean, default=False)

    # Relationships
    run = relationship("LeaveAccrualRun", back_populates="entries")

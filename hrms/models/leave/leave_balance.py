from sqlalchemy import Column, Integer, Float, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from hrms.db.base import BaseModel, TenantScopedMixin

class LeaveBalance(TenantScopedMixin, BaseModel):
    __tablename__ = 'leave_balances'
    __table_args__ = (
        UniqueConstraint('tenant_id', 'employee_id', 'leave_type_id', 'year', name='uq_leave_balance_scope'),
    )

    employee_id = Column(Integer, ForeignKey('employees.id'), nullable=False, index=True)
    leave_type_id = Column(Integer, ForeignKey('leave_types.id'), nullable=False)
    year = Column(Integer, nullable=False)
    total_days = Column(Float, nullable=False, default=0)
    carried_over = Column(Float, nullable=False, default=0)
    used_days = Column(Float, nullable=False, default=0)
    pending_days = Column(Float, nullable=False, default=0)

    # Relationships
    leave_type = relationship("LeaveType")

    @property
    def available_days(self) -> float:
        return (self.total_days or 0) + (self.carried_over or 0) - (self.used_days or 0) - (self.pending_days or 0)

from sqlalchemy import Column, Integer, Numeric, Text, DateTime, ForeignKey, Enum as SQLEnum, UniqueConstraint
from sqlalchemy.orm import relationship
from hrms.db.base import BaseModel, TenantScopedMixin
from hrms.models.shared.enums import PayrollStatus

class PayrollRun(TenantScopedMixin, BaseModel):
    __tablename__ = 'payroll_runs'
    __table_args__ = (UniqueConstraint('tenant_id', 'month', 'year', name='uq_payroll_run_period'),)

    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    status = Column(SQLEnum(PayrollStatus), nullable=False, default=PayrollStatus.DRAFT)
    total_gross = Column(Numeric(14, 2), default=0)
    total_deductions = Column(Numeric(14, 2), default=0)
    total_net = Column(Numeric(14, 2), default=0)
    processed_count = Column(Integer, default=0)
    remarks = Column(Text)
    processed_at = Column(DateTime(timezone=True))
    approved_by = Column(Integer, ForeignKey('users.id'), nullable=True)
    approved_at = Column(DateTime(timezone=True))
    paid_at = Column(DateTime(timezone=True))

    # Relationships
    payslips = relationship("Payslip", back_populates="payroll_run", cascade="all, delete-orphan")

from sqlalchemy import Column, Integer, Float, Numeric, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from hrms.db.base import BaseModel, TenantScopedMixin

class Payslip(TenantScopedMixin, BaseModel):
    __tablename__ = 'payslips'
    __table_args__ = (UniqueConstraint('payroll_run_id', 'employee_id', name='uq_payslip_run_employee'),)

    payroll_run_id = Column(Integer, ForeignKey('payroll_runs.id'), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey('employees.id'), nullable=False, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    working_days = Column(Float, default=0)
    present_days = Column(Float, default=0)
    leave_days = Column(Float, default=0)
    lop_days = Column(Float, default=0)
    ot_hours = Column(Float, default=0)
    base_pay = Column(Numeric(12, 2), nullable=False)
    earnings = Column(JSON, default=list)
    deductions = Column(JSON, default=list)
    ot_pay = Column(Numeric(12, 2), default=0)
    gross_pay = Column(Numeric(12, 2), nullable=False)
    total_deductions = Column(Numeric(12, 2), nullable=False)
    net_pay = Column(Numeric(12, 2), nullable=False)

    # Relationships
    payroll_run = relationship("PayrollRun", back_populates="payslips")

from sqlalchemy import Column, Integer, Float, DateTime, Text, ForeignKey, Enum as SQLEnum, Date, UniqueConstraint
from sqlalchemy.orm import relationship
from hrms.db.base import BaseModel, TenantScopedMixin
from hrms.models.shared.enums import RequestStatus

class CompOffRequest(TenantScopedMixin, BaseModel):
    __tablename__ = 'comp_off_requests'
    __table_args__ = (
        UniqueConstraint('tenant_id', 'employee_id', 'worked_date', name='uq_comp_off_tenant_employee_date'),
    )

    employee_id = Column(Integer, ForeignKey('employees.id'), nullable=False, index=True)
    worked_date = Column(Date, nullable=False)
    earned_days = Column(Float, nullable=False, default=1.0)
    expiry_date = Column(Date, nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(SQLEnum(RequestStatus), nullable=False, default=RequestStatus.PENDING)
    approver_id = Column(Integer, ForeignKey('users.id'), nullable=True)
    approver_note = Column(Text)
    approved_at = Column(DateTime(timezone=True))

    # Relationships
    employee = relationship("Employee")

from sqlalchemy import Column, Integer, DateTime, Text, ForeignKey, Enum as SQLEnum, Date, UniqueConstraint
from sqlalchemy.orm import relationship
from hrms.db.base import BaseModel, TenantScopedMixin
from hrms.models.shared.enums import RequestStatus

class AttendanceRegularization(TenantScopedMixin, BaseModel):
    __tablename__ = 'attendance_regularizations'
    __table_args__ = (
        UniqueConstraint('tenant_id', 'employee_id', 'date', name='uq_regularization_tenant_employee_date'),
    )

    employee_id = Column(Integer, ForeignKey('employees.id'), nullable=False, index=True)
    date = Column(Date, nullable=False)
    original_clock_in = Column(DateTime(timezone=True))
    original_clock_out = Column(DateTime(timezone=True))
    requested_clock_in = Column(DateTime(timezone=True), nullable=False)
    requested_clock_out = Column(DateTime(timezone=True), nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(SQLEnum(RequestStatus), nullable=False, default=RequestStatus.PENDING)
    approver_id = Column(Integer, ForeignKey('users.id'), nullable=True)
    approver_note = Column(Text)
    approved_at = Column(DateTime(timezone=True))

    # Relationships
    employee = relationship("Employee")

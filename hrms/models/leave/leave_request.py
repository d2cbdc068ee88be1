from sqlalchemy import Column, Integer, Float, Boolean, DateTime, Text, ForeignKey, Enum as SQLEnum, Date
from sqlalchemy.orm import relationship
from hrms.db.base import BaseModel, TenantScopedMixin
from hrms.models.shared.enums import LeaveStatus, HalfDayPeriod

class LeaveRequest(TenantScopedMixin, BaseModel):
    __tablename__ = 'leave_requests'

    employee_id = Column(Integer, ForeignKey('employees.id'), nullable=False, index=True)
    leave_type_id = Column(Integer, ForeignKey('leave_types.id'), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_days = Column(Float, nullable=False)
    is_half_day = Column(Boolean, default=False)
    half_day_period = Column(SQLEnum(HalfDayPeriod), nullable=True)
    reason = Column(Text)
    status = Column(SQLEnum(LeaveStatus), nullable=False, default=LeaveStatus.PENDING, index=True)
    approver_id = Column(Integer, ForeignKey('users.id'), nullable=True)
    approver_note = Column(Text)
    approved_at = Column(DateTime(timezone=True))

    # Relationships
    employee = relationship("Employee")
    leave_type = relationship("LeaveType")

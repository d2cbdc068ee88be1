from sqlalchemy import Column, Integer, DateTime, Text, ForeignKey, Enum as SQLEnum, Date, UniqueConstraint
from sqlalchemy.orm import relationship
from hrms.db.base import BaseModel, TenantScopedMixin
from hrms.models.shared.enums import AttendanceStatus, AttendanceSource

class AttendanceRecord(TenantScopedMixin, BaseModel):
    __tablename__ = 'attendance_records'
    __table_args__ = (
        UniqueConstraint('tenant_id', 'employee_id', 'date', name='uq_attendance_tenant_employee_date'),
    )

    employee_id = Column(Integer, ForeignKey('employees.id'), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    clock_in_time = Column(DateTime(timezone=True))
    clock_out_time = Column(DateTime(timezone=True))
    break_minutes = Column(Integer, default=0)
    worked_minutes = Column(Integer, default=0)
    standard_work_minutes = Column(Integer, default=480)
    ot_minutes_calculated = Column(Integer, default=0)
    ot_minutes_approved = Column(Integer, nullable=True)
    ot_approved_by = Column(Integer, ForeignKey('users.id'), nullable=True)
    ot_approved_at = Column(DateTime(timezone=True))
    status = Column(SQLEnum(AttendanceStatus), nullable=False, default=AttendanceStatus.PRESENT)
    source = Column(SQLEnum(AttendanceSource), nullable=False, default=AttendanceSource.WEB)
    remarks = Column(Text)

    # Relationships
    employee = relationship("Employee")

from pydantic import BaseModel, validator
from typing import Dict, Optional
from datetime import date, datetime
from decimal import Decimal
from hrms.models.shared.enums import AttendanceStatus, AttendanceSource
from hrms.utils.date_utils import ensure_utc

class ClockInRequest(BaseModel):
    source: AttendanceSource = AttendanceSource.WEB
    remarks: Optional[str] = None

class ClockOutRequest(BaseModel):
    remarks: Optional[str] = None

class AttendanceCreate(BaseModel):
    """Manual attendance entry by HR"""
    employee_id: int
    date: date
    clock_in_time: Optional[datetime] = None
    clock_out_time: Optional[datetime] = None
    status: AttendanceStatus = AttendanceStatus.PRESENT
    source: AttendanceSource = AttendanceSource.API
    remarks: Optional[str] = None

    @validator('clock_in_time')
    def validate_clock_in(cls, v, values):
        v = ensure_utc(v)
        day = values.get('date')
        if v is not None and day is not None and v.date() != day:
            raise ValueError('Clock-in time must fall on the attendance date')
        return v

    @validator('clock_out_time')
    def validate_clock_out(cls, v, values):
        v = ensure_utc(v)
        clock_in = values.get('clock_in_time')
        if v is not None and clock_in is None:
            raise ValueError('Clock-out time requires a clock-in time')
        return v

class OtApprovalRequest(BaseModel):
    approved_minutes: int
    note: Optional[str] = None

    @validator('approved_minutes')
    def validate_minutes(cls, v):
        if v < 0:
            raise ValueError('Approved OT minutes cannot be negative')
        return v

class AttendanceResponse(BaseModel):
    id: int
    employee_id: int
    date: date
    clock_in_time: Optional[datetime] = None
    clock_out_time: Optional[datetime] = None
    break_minutes: int = 0
    worked_minutes: int = 0
    standard_work_minutes: int = 480
    ot_minutes_calculated: int = 0
    ot_minutes_approved: Optional[int] = None
    status: AttendanceStatus
    source: AttendanceSource
    remarks: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TodayStatusResponse(BaseModel):
    status: str
    record: Optional[AttendanceResponse] = None

class AttendanceSummary(BaseModel):
    start_date: date
    end_date: date
    total_records: int
    status_counts: Dict[str, int]
    total_worked_minutes: int
    total_ot_minutes_calculated: int
    total_ot_minutes_approved: int

class PayableHoursResponse(BaseModel):
    employee_id: int
    start_date: date
    end_date: date
    regular_hours: float
    approved_ot_hours: float
    pending_ot_hours: float
    hourly_rate: Optional[Decimal] = None
    ot_multiplier: float
    estimated_pay: Optional[Decimal] = None

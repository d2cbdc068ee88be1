from pydantic import BaseModel, validator
from typing import Optional
from datetime import date, datetime
from hrms.models.shared.enums import LeaveStatus, HalfDayPeriod

class LeaveTypeBase(BaseModel):
    name: str
    code: str
    description: Optional[str] = None
    default_days: float = 0
    carry_forward: bool = False
    max_carry_forward: float = 0
    is_paid: bool = True

class LeaveTypeCreate(LeaveTypeBase):
    @validator('code')
    def normalize_code(cls, v):
        if not v or not v.strip():
            raise ValueError('Leave type code is required')
        return v.strip().upper()

    @validator('default_days', 'max_carry_forward')
    def validate_days(cls, v):
        if v < 0:
            raise ValueError('Days cannot be negative')
        return v

class LeaveTypeUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    default_days: Optional[float] = None
    carry_forward: Optional[bool] = None
    max_carry_forward: Optional[float] = None
    is_paid: Optional[bool] = None
    is_active: Optional[bool] = None

class LeaveTypeResponse(LeaveTypeBase):
    id: int
    is_active: bool

    class Config:
        from_attributes = True

class LeaveBalanceUpdate(BaseModel):
    employee_id: int
    leave_type_id: int
    year: Optional[int] = None
    total_days: Optional[float] = None
    carried_over: Optional[float] = None

class LeaveBalanceResponse(BaseModel):
    id: int
    employee_id: int
    leave_type_id: int
    year: int
    total_days: float
    carried_over: float
    used_days: float
    pending_days: float
    available_days: float
    leave_type: Optional[LeaveTypeResponse] = None

    class Config:
        from_attributes = True

class LeaveRequestCreate(BaseModel):
    leave_type_id: int
    start_date: date
    end_date: date
    is_half_day: bool = False
    half_day_period: Optional[HalfDayPeriod] = None
    reason: Optional[str] = None

class LeaveRequestResponse(BaseModel):
    id: int
    employee_id: int
    leave_type_id: int
    start_date: date
    end_date: date
    total_days: float
    is_half_day: bool
    half_day_period: Optional[HalfDayPeriod] = None
    reason: Optional[str] = None
    status: LeaveStatus
    approver_id: Optional[int] = None
    approver_note: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

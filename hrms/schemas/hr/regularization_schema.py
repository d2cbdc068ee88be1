from pydantic import BaseModel, validator
from typing import Optional
from datetime import date, datetime
from hrms.models.shared.enums import RequestStatus
from hrms.utils.date_utils import ensure_utc

class RegularizationCreate(BaseModel):
    date: date
    requested_clock_in: datetime
    requested_clock_out: datetime
    reason: str

    @validator('requested_clock_in')
    def validate_clock_in(cls, v, values):
        v = ensure_utc(v)
        day = values.get('date')
        if day is not None and v.date() != day:
            raise ValueError('Requested clock-in must fall on the regularized date')
        return v

    @validator('requested_clock_out')
    def validate_times(cls, v, values):
        v = ensure_utc(v)
        clock_in = values.get('requested_clock_in')
        if clock_in is not None and v <= clock_in:
            raise ValueError('Requested clock-out must be after requested clock-in')
        return v

    @validator('reason')
    def validate_reason(cls, v):
        if not v or len(v.strip()) < 3:
            raise ValueError('Reason must be at least 3 characters')
        return v.strip()

class RegularizationResponse(BaseModel):
    id: int
    employee_id: int
    date: date
    original_clock_in: Optional[datetime] = None
    original_clock_out: Optional[datetime] = None
    requested_clock_in: datetime
    requested_clock_out: datetime
    reason: str
    status: RequestStatus
    approver_id: Optional[int] = None
    approver_note: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

from pydantic import BaseModel, validator
from typing import Optional
from datetime import date, datetime
from hrms.models.shared.enums import RequestStatus

class CompOffCreate(BaseModel):
    worked_date: date
    earned_days: float = 1.0
    reason: str

    @validator('earned_days')
    def validate_earned_days(cls, v):
        if v not in (0.5, 1.0):
            raise ValueError('Earned days must be 0.5 or 1')
        return v

    @validator('reason')
    def validate_reason(cls, v):
        if not v or len(v.strip()) < 3:
            raise ValueError('Reason must be at least 3 characters')
        return v.strip()

class CompOffResponse(BaseModel):
    id: int
    employee_id: int
    worked_date: date
    earned_days: float
    expiry_date: date
    reason: str
    status: RequestStatus
    approver_id: Optional[int] = None
    approver_note: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

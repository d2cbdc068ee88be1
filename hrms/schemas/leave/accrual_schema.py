from pydantic import BaseModel, validator
from typing import List, Optional
from datetime import datetime
from hrms.models.shared.enums import AccrualRunStatus, AccrualTriggerType

class AccrualRuleCreate(BaseModel):
    leave_type_id: int
    monthly_accrual_days: float
    max_balance_cap: Optional[float] = None
    apply_cap_on_accrual: bool = True

    @validator('monthly_accrual_days')
    def validate_accrual(cls, v):
        if v <= 0:
            raise ValueError('Monthly accrual must be greater than zero')
        return v

    @validator('max_balance_cap')
    def validate_cap(cls, v):
        if v is not None and v < 0:
            raise ValueError('Balance cap cannot be negative')
        return v

class AccrualRuleUpdate(BaseModel):
    monthly_accrual_days: Optional[float] = None
    max_balance_cap: Optional[float] = None
    apply_cap_on_accrual: Optional[bool] = None
    is_active: Optional[bool] = None

class AccrualRuleResponse(BaseModel):
    id: int
    leave_type_id: int
    monthly_accrual_days: float
    max_balance_cap: Optional[float] = None
    apply_cap_on_accrual: bool
    is_active: bool

    class Config:
        from_attributes = True

class AccrualTriggerRequest(BaseModel):
    month: int
    year: int

    @validator('month')
    def validate_month(cls, v):
        if not 1 <= v <= 12:
            raise ValueError('Month must be between 1 and 12')
        return v

class YearEndRequest(BaseModel):
    year: int

class AccrualEntryResponse(BaseModel):
    id: int
    employee_id: int
    leave_type_id: int
    days_accrued: float
    balance_before: float
    balance_after: float
    cap_applied: bool

    class Config:
        from_attributes = True

class AccrualRunResponse(BaseModel):
    id: int
    month: int
    year: int
    status: AccrualRunStatus
    trigger_type: AccrualTriggerType
    processed_count: int
    failed_count: int
    error_message: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AccrualRunDetailResponse(AccrualRunResponse):
    entries: List[AccrualEntryResponse] = []

class YearEndResponse(BaseModel):
    year: int
    capped: int
    carried_forward: int

from pydantic import BaseModel, validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from hrms.models.shared.enums import PayrollStatus

class PayrollRunCreate(BaseModel):
    month: int
    year: int
    remarks: Optional[str] = None

    @validator('month')
    def validate_month(cls, v):
        if v < 1 or v > 12:
            raise ValueError('Month must be between 1 and 12')
        return v

    @validator('year')
    def validate_year(cls, v):
        if v < 2000 or v > 2100:
            raise ValueError('Year is out of range')
        return v

class PayrollRunResponse(BaseModel):
    id: int
    month: int
    year: int
    status: PayrollStatus
    total_gross: Decimal
    total_deductions: Decimal
    total_net: Decimal
    processed_count: int
    remarks: Optional[str] = None
    processed_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class PayslipLine(BaseModel):
    name: str
    amount: float

class PayslipResponse(BaseModel):
    id: int
    payroll_run_id: int
    employee_id: int
    month: int
    year: int
    working_days: float
    present_days: float
    leave_days: float
    lop_days: float
    ot_hours: float
    base_pay: Decimal
    earnings: List[PayslipLine] = []
    deductions: List[PayslipLine] = []
    ot_pay: Decimal
    gross_pay: Decimal
    total_deductions: Decimal
    net_pay: Decimal

    class Config:
        from_attributes = True

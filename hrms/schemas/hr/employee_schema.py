from pydantic import BaseModel, EmailStr, validator
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from hrms.models.shared.enums import EmploymentType, PayType, EmployeeStatus, UserRole

class EmployeeBase(BaseModel):
    employee_code: str
    first_name: str
    last_name: str
    email: EmailStr
    phone: Optional[str] = None
    department_id: Optional[int] = None
    manager_id: Optional[int] = None
    designation: Optional[str] = None
    date_of_joining: date
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    pay_type: PayType = PayType.MONTHLY
    hourly_rate: Optional[Decimal] = None
    ot_multiplier: float = 1.5

class EmployeeCreate(EmployeeBase):
    # Optional login account created together with the employee
    password: Optional[str] = None
    role: UserRole = UserRole.EMPLOYEE

    @validator('employee_code', 'first_name', 'last_name')
    def validate_required_text(cls, v):
        if not v or not v.strip():
            raise ValueError('Field cannot be empty')
        return v.strip()

    @validator('ot_multiplier')
    def validate_multiplier(cls, v):
        if v < 1:
            raise ValueError('OT multiplier must be at least 1')
        return v

class EmployeeUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    department_id: Optional[int] = None
    manager_id: Optional[int] = None
    designation: Optional[str] = None
    employment_type: Optional[EmploymentType] = None
    pay_type: Optional[PayType] = None
    hourly_rate: Optional[Decimal] = None
    ot_multiplier: Optional[float] = None
    status: Optional[EmployeeStatus] = None

class EmployeeResponse(EmployeeBase):
    id: int
    tenant_id: int
    status: EmployeeStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

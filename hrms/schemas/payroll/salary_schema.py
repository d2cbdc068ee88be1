from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from hrms.models.shared.enums import ComponentType, CalcType

class SalaryComponent(BaseModel):
    name: str
    type: ComponentType
    calc_type: CalcType
    value: Decimal

    @validator('value')
    def validate_value(cls, v, values):
        if v < 0:
            raise ValueError('Component value cannot be negative')
        if values.get('calc_type') == CalcType.PERCENTAGE and v > 100:
            raise ValueError('Percentage component cannot exceed 100')
        return v

class SalaryStructureBase(BaseModel):
    name: str
    description: Optional[str] = None
    components: List[SalaryComponent] = Field(default_factory=list)

class SalaryStructureCreate(SalaryStructureBase):
    @validator('name')
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Salary structure name is required')
        return v.strip()

class SalaryStructureUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    components: Optional[List[SalaryComponent]] = None
    is_active: Optional[bool] = None

class SalaryStructureResponse(SalaryStructureBase):
    id: int
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class SalaryAssign(BaseModel):
    employee_id: int
    salary_structure_id: int
    base_pay: Decimal
    effective_from: date

    @validator('base_pay')
    def validate_base_pay(cls, v):
        if v <= 0:
            raise ValueError('Base pay must be positive')
        return v

class EmployeeSalaryResponse(BaseModel):
    id: int
    employee_id: int
    salary_structure_id: int
    base_pay: Decimal
    effective_from: date
    effective_to: Optional[date] = None
    is_active: bool
    salary_structure: Optional[SalaryStructureResponse] = None

    class Config:
        from_attributes = True

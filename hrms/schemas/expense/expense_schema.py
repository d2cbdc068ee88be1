from pydantic import BaseModel, validator
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from hrms.models.shared.enums import ExpenseStatus

class ExpenseCategoryBase(BaseModel):
    name: str
    code: str
    description: Optional[str] = None
    max_amount: Optional[Decimal] = None

class ExpenseCategoryCreate(ExpenseCategoryBase):
    @validator('code')
    def normalize_code(cls, v):
        if not v or not v.strip():
            raise ValueError('Category code is required')
        return v.strip().upper()

    @validator('max_amount')
    def validate_max_amount(cls, v):
        if v is not None and v < 0:
            raise ValueError('Maximum amount cannot be negative')
        return v

class ExpenseCategoryUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    max_amount: Optional[Decimal] = None
    is_active: Optional[bool] = None

    @validator('code')
    def normalize_code(cls, v):
        return v.strip().upper() if v else v

class ExpenseCategoryResponse(ExpenseCategoryBase):
    id: int
    is_active: bool

    class Config:
        from_attributes = True

class ExpenseClaimCreate(BaseModel):
    category_id: int
    amount: Decimal
    currency: str = "USD"
    description: str
    expense_date: date
    receipt_url: Optional[str] = None

    @validator('amount')
    def validate_amount(cls, v):
        if v <= 0:
            raise ValueError('Amount must be greater than zero')
        return v

    @validator('currency')
    def validate_currency(cls, v):
        if len(v) != 3:
            raise ValueError('Currency must be a 3-letter code')
        return v.upper()

class ExpenseClaimUpdate(BaseModel):
    category_id: Optional[int] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    description: Optional[str] = None
    expense_date: Optional[date] = None
    receipt_url: Optional[str] = None

    @validator('amount')
    def validate_amount(cls, v):
        if v is not None and v <= 0:
            raise ValueError('Amount must be greater than zero')
        return v

class ExpenseClaimResponse(BaseModel):
    id: int
    employee_id: int
    category_id: int
    amount: Decimal
    currency: str
    description: str
    expense_date: date
    receipt_url: Optional[str] = None
    status: ExpenseStatus
    submitted_at: Optional[datetime] = None
    approver_id: Optional[int] = None
    approver_note: Optional[str] = None
    approved_at: Optional[datetime] = None
    reimbursed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

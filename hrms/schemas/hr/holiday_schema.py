from pydantic import BaseModel, validator
from typing import Optional
import datetime as dt

def _clean_name(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    if len(v.strip()) < 2:
        raise ValueError('Holiday name must be at least 2 characters')
    return v.strip()

class HolidayCreate(BaseModel):
    name: str
    date: dt.date
    description: Optional[str] = None

    @validator('name')
    def validate_name(cls, v):
        return _clean_name(v)

class HolidayUpdate(BaseModel):
    name: Optional[str] = None
    date: Optional[dt.date] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @validator('name')
    def validate_name(cls, v):
        return _clean_name(v)

class HolidayResponse(BaseModel):
    id: int
    tenant_id: int
    name: str
    date: dt.date
    description: Optional[str] = None
    is_active: bool
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True

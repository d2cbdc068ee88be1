from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime
from hrms.models.shared.enums import UserRole

class LoginRequest(BaseModel):
    email: EmailStr
    password: str
    tenant_code: Optional[str] = None

class RefreshTokenRequest(BaseModel):
    refresh_token: str

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: int

class UserResponse(BaseModel):
    id: int
    tenant_id: int
    email: str
    full_name: str
    role: UserRole
    employee_id: Optional[int]
    is_active: bool
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True

class LoginResponse(TokenResponse):
    user: UserResponse

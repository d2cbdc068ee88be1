from sqlalchemy import Column, String, Boolean
from hrms.db.base import BaseModel

class Tenant(BaseModel):
    __tablename__ = 'tenants'

    name = Column(String(150), nullable=False)
    code = Column(String(30), unique=True, nullable=False, index=True)
    is_active = Column(Boolean, default=True)

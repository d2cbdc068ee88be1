from sqlalchemy import Column, String, Boolean, Text, Date, UniqueConstraint
from hrms.db.base import BaseModel, TenantScopedMixin

class Holiday(TenantScopedMixin, BaseModel):
    __tablename__ = 'holidays'
    __table_args__ = (UniqueConstraint('tenant_id', 'date', name='uq_holiday_tenant_date'),)

    name = Column(String(100), nullable=False)
    date = Column(Date, nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, default=True)

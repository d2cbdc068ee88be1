from sqlalchemy import Column, String, Boolean, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from hrms.db.base import BaseModel, TenantScopedMixin

class Department(TenantScopedMixin, BaseModel):
    __tablename__ = 'departments'
    __table_args__ = (UniqueConstraint('tenant_id', 'name', name='uq_department_tenant_name'),)

    name = Column(String(100), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, default=True)

    # Relationships
    employees = relationship("Employee", back_populates="department")

from sqlalchemy import Column, String, Boolean, Text, JSON, UniqueConstraint
from hrms.db.base import BaseModel, TenantScopedMixin

class SalaryStructure(TenantScopedMixin, BaseModel):
    """Named set of pay components: [{name, type, calc_type, value}]"""
    __tablename__ = 'salary_structures'
    __table_args__ = (UniqueConstraint('tenant_id', 'name', name='uq_salary_structure_tenant_name'),)

    name = Column(String(100), nullable=False)
    description = Column(Text)
    components = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, default=True)

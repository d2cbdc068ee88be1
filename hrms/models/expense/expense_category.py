from sqlalchemy import Column, String, Boolean, Numeric, Text, UniqueConstraint
from hrms.db.base import BaseModel, TenantScopedMixin

class ExpenseCategory(TenantScopedMixin, BaseModel):
    __tablename__ = 'expense_categories'
    __table_args__ = (UniqueConstraint('tenant_id', 'code', name='uq_expense_category_tenant_code'),)

    name = Column(String(100), nullable=False)
    code = Column(String(20), nullable=False)
    description = Column(Text)
    max_amount = Column(Numeric(12, 2), nullable=True)
    is_active = Column(Boolean, default=True)

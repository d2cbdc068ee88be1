from sqlalchemy import Column, Integer, Numeric, DateTime, Text, ForeignKey, Enum as SQLEnum, Date, String
from sqlalchemy.orm import relationship
from hrms.db.base import BaseModel, TenantScopedMixin
from hrms.models.shared.enums import ExpenseStatus

class ExpenseClaim(TenantScopedMixin, BaseModel):
    __tablename__ = 'expense_claims'

    employee_id = Column(Integer, ForeignKey('employees.id'), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey('expense_categories.id'), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), default="USD")
    description = Column(Text, nullable=False)
    expense_date = Column(Date, nullable=False)
    receipt_url = Column(String(500))
    status = Column(SQLEnum(ExpenseStatus), nullable=False, default=ExpenseStatus.DRAFT, index=True)
    submitted_at = Column(DateTime(timezone=True))
    approver_id = Column(Integer, ForeignKey('users.id'), nullable=True)
    approver_note = Column(Text)
    approved_at = Column(DateTime(timezone=True))
    reimbursed_at = Column(DateTime(timezone=True))

    # Relationships
    employee = relationship("Employee")
    category = relationship("ExpenseCategory")

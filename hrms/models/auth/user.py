from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Enum as SQLEnum, UniqueConstraint
from sqlalchemy.orm import relationship
from hrms.db.base import BaseModel, TenantScopedMixin
from hrms.models.shared.enums import UserRole

class User(TenantScopedMixin, BaseModel):
    __tablename__ = 'users'
    __table_args__ = (UniqueConstraint('tenant_id', 'email', name='uq_user_tenant_email'),)

    email = Column(String(100), nullable=False, index=True)
    full_name = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.EMPLOYEE)
    employee_id = Column(Integer, ForeignKey('employees.id'), nullable=True)
    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime(timezone=True))

    # Relationships
    employee = relationship("Employee", foreign_keys=[employee_id])

    @property
    def is_admin(self) -> bool:
        return self.role in (UserRole.SUPER_ADMIN, UserRole.HR_ADMIN)

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"

from sqlalchemy import Column, String, Boolean, Float, Text, UniqueConstraint
from hrms.db.base import BaseModel, TenantScopedMixin

LOP_CODE = "LOP"
COMP_OFF_CODE = "COMP_OFF"

class LeaveType(TenantScopedMixin, BaseModel):
    __tablename__ = 'leave_types'
    __table_args__ = (UniqueConstraint('tenant_id', 'code', name='uq_leave_type_tenant_code'),)

    name = Column(String(100), nullable=False)
    code = Column(String(20), nullable=False)
    description = Column(Text)
    default_days = Column(Float, default=0)
    carry_forward = Column(Boolean, default=False)
    max_carry_forward = Column(Float, default=0)
    is_paid = Column(Boolean, default=True)
    is_active = Column(Boolean, default=True)

    @property
    def is_loss_of_pay(self) -> bool:
        return self.code == LOP_CODE

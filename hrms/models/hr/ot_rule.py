from sqlalchemy import Column, Integer, String, Boolean, Enum as SQLEnum
from hrms.db.base import BaseModel, TenantScopedMixin
from hrms.models.shared.enums import EmploymentType

class OtRule(TenantScopedMixin, BaseModel):
    """Overtime policy; a rule without an employment type is the tenant default"""
    __tablename__ = 'ot_rules'

    name = Column(String(100), nullable=False)
    employment_type = Column(SQLEnum(EmploymentType), nullable=True)
    daily_threshold_minutes = Column(Integer, nullable=True)
    rounding_interval_minutes = Column(Integer, default=0)
    max_ot_per_day_minutes = Column(Integer, nullable=True)
    max_ot_per_month_minutes = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True)

from sqlalchemy import Column, String, Boolean, Text, JSON, UniqueConstraint
from hrms.db.base import BaseModel, TenantScopedMixin

class OnboardingTemplate(TenantScopedMixin, BaseModel):
    """Reusable checklist; tasks are stored as definitions and copied per process"""
    __tablename__ = 'onboarding_templates'
    __table_args__ = (UniqueConstraint('tenant_id', 'name', name='uq_onboarding_template_tenant_name'),)

    name = Column(String(100), nullable=False)
    description = Column(Text)
    tasks = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, default=True)

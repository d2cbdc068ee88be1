from sqlalchemy import Column, Integer, DateTime, ForeignKey
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func
from hrms.models.base import Base

class BaseModel(Base):
    """Base model with common fields"""
    __abstract__ = True

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class TenantScopedMixin:
    """Adds the owning tenant to a model; every query filters on it"""

    @declared_attr
    def tenant_id(cls):
        return Column(Integer, ForeignKey('tenants.id'), nullable=False, index=True)

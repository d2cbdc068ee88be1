from sqlalchemy import Column, Integer, String, Text, ForeignKey, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
from hrms.db.base import BaseModel, TenantScopedMixin
from hrms.models.shared.enums import AuditAction

class AuditLog(TenantScopedMixin, BaseModel):
    __tablename__ = "audit_logs"

    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    action = Column(SQLEnum(AuditAction), nullable=False)
    entity_type = Column(String(100), nullable=False, index=True)
    entity_id = Column(Integer, nullable=True, index=True)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)

    # Relationships
    user = relationship("User")

    def __repr__(self):
        return f"<AuditLog {self.action} on {self.entity_type}>"

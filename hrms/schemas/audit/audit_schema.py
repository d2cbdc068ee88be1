from pydantic import BaseModel
from typing import Any, Dict, Optional
from datetime import datetime
from hrms.models.shared.enums import AuditAction

class AuditLogResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    action: AuditAction
    entity_type: str
    entity_id: Optional[int] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.dependencies import require_roles
from hrms.auth.roles import ADMIN_ROLES
from hrms.core.database import get_async_session
from hrms.models.auth.user import User
from hrms.models.shared.enums import AuditAction
from hrms.schemas.audit.audit_schema import AuditLogResponse
from hrms.schemas.common.pagination import PaginatedResponse
from hrms.services.audit.audit_service import AuditService

router = APIRouter()

@router.get("/", response_model=PaginatedResponse[AuditLogResponse])
async def get_audit_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    entity_type: Optional[str] = Query(None),
    entity_id: Optional[int] = Query(None),
    user_id: Optional[int] = Query(None),
    action: Optional[AuditAction] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Audit trail of the tenant"""
    service = AuditService(session)
    return await service.get_logs(
        current_user.tenant_id,
        page=page,
        limit=limit,
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        action=action,
        start_date=start_date,
        end_date=end_date,
    )

@router.get("/{entity_type}/{entity_id}", response_model=List[AuditLogResponse])
async def get_entity_history(
    entity_type: str,
    entity_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Every change recorded for one entity, oldest first"""
    service = AuditService(session)
    return await service.get_entity_history(current_user.tenant_id, entity_type, entity_id)

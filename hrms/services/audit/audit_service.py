import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.models.auth.audit_log import AuditLog
from hrms.models.shared.enums import AuditAction
from hrms.services.shared.query import paginate
from hrms.utils.serialization import to_jsonable

logger = logging.getLogger(__name__)

class AuditService:
    def __init__(self, session: AsyncSession):
        self.session = session

    def record(
        self,
        tenant_id: int,
        user_id: Optional[int],
        action: AuditAction,
        entity_type: str,
        entity_id: Optional[int] = None,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditLog:
        """Stage an audit entry in the caller's transaction"""
        entry = AuditLog(
            tenant_id=tenant_id,
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            old_values=to_jsonable(old_values) if old_values is not None else None,
            new_values=to_jsonable(new_values) if new_values is not None else None,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.session.add(entry)
        logger.debug(f"Audit {action.value} {entity_type}#{entity_id} by user {user_id}")
        return entry

    async def get_logs(
        self,
        tenant_id: int,
        page: int = 1,
        limit: int = 50,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        user_id: Optional[int] = None,
        action: Optional[AuditAction] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Dict[str, Any]:
        """Audit trail with filtering and pagination"""
        conditions = [AuditLog.tenant_id == tenant_id]
        if entity_type:
            conditions.append(AuditLog.entity_type == entity_type)
        if entity_id is not None:
            conditions.append(AuditLog.entity_id == entity_id)
        if user_id is not None:
            conditions.append(AuditLog.user_id == user_id)
        if action:
            conditions.append(AuditLog.action == action)
        if start_date:
            conditions.append(AuditLog.created_at >= datetime.combine(start_date, time.min, tzinfo=timezone.utc))
        if end_date:
            conditions.append(AuditLog.created_at <= datetime.combine(end_date, time.max, tzinfo=timezone.utc))

        query = select(AuditLog).where(*conditions).order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        return await paginate(self.session, query, page, limit)

    async def get_entity_history(self, tenant_id: int, entity_type: str, entity_id: int):
        result = await self.session.execute(
            select(AuditLog)
            .where(
                AuditLog.tenant_id == tenant_id,
                AuditLog.entity_type == entity_type,
                AuditLog.entity_id == entity_id,
            )
            .order_by(AuditLog.created_at.asc(), AuditLog.id.asc())
        )
        return result.scalars().all()

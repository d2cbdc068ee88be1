from typing import Any, Dict
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from hrms.schemas.common.pagination import build_page


async def paginate(session: AsyncSession, query: Select, page: int, limit: int) -> Dict[str, Any]:
    """Run a select with offset/limit and wrap it in the list envelope"""
    total = await session.scalar(
        select(func.count()).select_from(query.order_by(None).subquery())
    )
    skip = (page - 1) * limit
    rows = await session.scalars(query.offset(skip).limit(limit))
    return build_page(rows.all(), total or 0, page, limit)

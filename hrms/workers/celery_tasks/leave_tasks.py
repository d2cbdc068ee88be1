"""
Leave background jobs run by Celery beat
"""
import asyncio
import logging
from typing import Any, Dict, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from hrms.core.celery_app import celery_app
from hrms.core.exceptions import ConflictError
from hrms.models.organization.tenant import Tenant
from hrms.models.shared.enums import AccrualTriggerType
from hrms.utils.date_utils import utc_now

logger = logging.getLogger("celery")

def run_async_task(coro):
    """Helper function to run async coroutines in Celery tasks"""
    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        return loop.run_until_complete(coro)
    except Exception as e:
        logger.error(f"Error in async task: {e}")
        raise
    finally:
        loop.close()

async def accrue_for_all_tenants(session_maker: async_sessionmaker, month: int, year: int) -> Dict[str, Any]:
    """Run the monthly accrual for every active tenant; one failing tenant does not stop the rest"""
    from hrms.services.leave.accrual_service import LeaveAccrualService

    async with session_maker() as session:
        tenants = (await session.execute(select(Tenant).where(Tenant.is_active == True))).scalars().all()

    logger.info(f"Processing leave accrual {month}/{year} for {len(tenants)} tenants")
    summary = {"processed": [], "skipped": [], "failed": []}
    for tenant in tenants:
        async with session_maker() as session:
            try:
                run = await LeaveAccrualService(session).trigger_accrual(
                    tenant.id, month, year, trigger_type=AccrualTriggerType.SCHEDULED
                )
                summary["processed"].append(tenant.id)
                logger.info(f"Tenant {tenant.code}: {run.processed_count} accrual entries")
            except ConflictError as e:
                summary["skipped"].append(tenant.id)
                logger.info(f"Tenant {tenant.code} skipped: {e.detail}")
            except Exception as e:
                summary["failed"].append(tenant.id)
                logger.error(f"Leave accrual failed for tenant {tenant.code}: {e}")
    return summary

async def run_scheduled_accrual(month: int, year: int, database_url: Optional[str] = None) -> Dict[str, Any]:
    """Accrual on an engine owned by this run; each Celery call gets a fresh event loop"""
    from hrms.core.config import settings
    from hrms.core.database import build_engine

    engine = build_engine(database_url or settings.DATABASE_URL, pooled=False)
    try:
        session_maker = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
        return await accrue_for_all_tenants(session_maker, month, year)
    finally:
        await engine.dispose()

@celery_app.task
def run_monthly_leave_accrual(month: Optional[int] = None, year: Optional[int] = None):
    """Monthly task crediting accrual rules; defaults to the current month"""
    today = utc_now().date()
    month = month or today.month
    year = year or today.year
    result = run_async_task(run_scheduled_accrual(month, year))
    return f"Leave accrual {month}/{year}: {result}"

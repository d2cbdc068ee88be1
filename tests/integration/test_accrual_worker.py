from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import hrms.models  # noqa: F401
from hrms.core.config import settings
from hrms.core.database import build_engine
from hrms.db.seeds.initial_data import create_initial_data
from hrms.models.base import Base
from hrms.workers.celery_tasks.leave_tasks import (
    run_async_task,
    run_monthly_leave_accrual,
    run_scheduled_accrual,
)

async def prepare_database(url: str) -> None:
    engine = build_engine(url, pooled=False)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        maker = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
        async with maker() as session:
            await create_initial_data(session)
    finally:
        await engine.dispose()

class TestAccrualWorker:
    """Each Celery call runs on its own event loop, as a beat-driven worker does"""

    def test_consecutive_runs_in_one_process(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path / 'worker.db'}"
        run_async_task(prepare_database(url))

        first = run_async_task(run_scheduled_accrual(4, 2026, url))
        assert len(first["processed"]) == 1
        assert first["failed"] == []

        second = run_async_task(run_scheduled_accrual(4, 2026, url))
        assert second["skipped"] == first["processed"]
        assert second["failed"] == []

    def test_task_uses_configured_database(self, tmp_path, monkeypatch):
        url = f"sqlite+aiosqlite:///{tmp_path / 'worker.db'}"
        run_async_task(prepare_database(url))
        monkeypatch.setattr(settings, "DATABASE_URL", url)

        first = run_monthly_leave_accrual(5, 2026)
        second = run_monthly_leave_accrual(5, 2026)
        assert first.startswith("Leave accrual 5/2026")
        assert "'failed': []" in first
        assert "'processed': []" in second
        assert "'failed': []" in second

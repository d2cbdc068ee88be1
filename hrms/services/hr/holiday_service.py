import logging
from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import date

from hrms.models.hr.holiday import Holiday
from hrms.models.auth.user import User
from hrms.schemas.hr.holiday_schema import HolidayCreate, HolidayUpdate
from hrms.core.exceptions import ConflictError, NotFoundError
from hrms.services.shared.query import paginate

logger = logging.getLogger(__name__)

class HolidayService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_holiday(self, holiday_data: HolidayCreate, current_user: User) -> Holiday:
        """Create a new holiday"""
        try:
            result = await self.db.execute(
                select(Holiday).where(
                    Holiday.tenant_id == current_user.tenant_id,
                    Holiday.date == holiday_data.date,
                )
            )
            if result.scalars().first():
                raise ConflictError(f"Holiday already exists for {holiday_data.date}")

            holiday = Holiday(tenant_id=current_user.tenant_id, **holiday_data.model_dump())
            self.db.add(holiday)
            await self.db.commit()
            await self.db.refresh(holiday)

            logger.info(f"Holiday created: {holiday.name} on {holiday.date} by user {current_user.id}")
            return holiday

        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error creating holiday: {str(e)}")
            raise

    async def get_holidays(
        self,
        tenant_id: int,
        page: int = 1,
        limit: int = 20,
        year: Optional[int] = None,
        is_active: Optional[bool] = None
    ) -> Dict[str, Any]:
        """Retrieve holidays with pagination and optional filters"""
        conditions = [Holiday.tenant_id == tenant_id]

        if is_active is not None:
            conditions.append(Holiday.is_active == is_active)
        if year:
            conditions.append(Holiday.date >= date(year, 1, 1))
            conditions.append(Holiday.date <= date(year, 12, 31))

        query = select(Holiday).where(*conditions).order_by(Holiday.date)
        return await paginate(self.db, query, page, limit)

    async def get_holiday_dates(self, tenant_id: int, start: date, end: date) -> List[date]:
        """Active holiday dates in a range, used by leave and payroll calculations"""
        result = await self.db.execute(
            select(Holiday.date).where(
                Holiday.tenant_id == tenant_id,
                Holiday.is_active == True,
                Holiday.date >= start,
                Holiday.date <= end,
            )
        )
        return list(result.scalars().all())

    async def is_holiday(self, tenant_id: int, day: date) -> bool:
        return bool(await self.get_holiday_dates(tenant_id, day, day))

    async def get_holiday(self, holiday_id: int, tenant_id: int) -> Holiday:
        result = await self.db.execute(
            select(Holiday).where(Holiday.id == holiday_id, Holiday.tenant_id == tenant_id)
        )
        holiday = result.scalar_one_or_none()
        if not holiday:
            raise NotFoundError(f"Holiday with ID {holiday_id} not found")
        return holiday

    async def update_holiday(self, holiday_id: int, holiday_data: HolidayUpdate, current_user: User) -> Holiday:
        """Update a holiday record"""
        try:
            holiday = await self.get_holiday(holiday_id, current_user.tenant_id)

            update_data = holiday_data.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                setattr(holiday, field, value)

            await self.db.commit()
            await self.db.refresh(holiday)

            logger.info(f"Holiday updated: {holiday.name} by user {current_user.id}")
            return holiday

        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error updating holiday {holiday_id}: {str(e)}")
            raise

    async def delete_holiday(self, holiday_id: int, current_user: User) -> bool:
        """Deactivate a holiday"""
        holiday = await self.get_holiday(holiday_id, current_user.tenant_id)
        holiday.is_active = False
        await self.db.commit()

        logger.info(f"Holiday deleted: {holiday.name} by user {current_user.id}")
        return True

import asyncio
import logging
from datetime import date, datetime, time, timezone
from typing import Iterable, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.core.config import settings
from hrms.models.hr.attendance import AttendanceRecord
from hrms.models.hr.employee import Employee
from hrms.models.shared.enums import AttendanceSource, AttendanceStatus, EmployeeStatus
from hrms.services.hr.attendance_service import AttendanceService
from hrms.services.hr.ot_calculation import OtPolicy, calculate_worked_time
from hrms.utils.date_utils import month_bounds, weekdays_between

logger = logging.getLogger(__name__)

def build_record(
    tenant_id: int, employee_id: int, day: date, index: int, policy: Optional[OtPolicy] = None
) -> AttendanceRecord:
    """Deterministic sample day: one leave and one absence every twenty days, OT every fifth"""
    roll = index % 20
    if roll in (18, 19):
        return AttendanceRecord(
            tenant_id=tenant_id,
            employee_id=employee_id,
            date=day,
            worked_minutes=0,
            standard_work_minutes=settings.STANDARD_WORK_MINUTES,
            ot_minutes_calculated=0,
            status=AttendanceStatus.LEAVE if roll == 18 else AttendanceStatus.ABSENT,
            source=AttendanceSource.API,
            remarks="Approved leave" if roll == 18 else None,
        )

    has_ot = index % 5 == 0
    clock_in = datetime.combine(day, time(9, 0), tzinfo=timezone.utc)
    clock_out = datetime.combine(day, time(19, 30) if has_ot else time(18, 0), tzinfo=timezone.utc)
    worked = calculate_worked_time(clock_in, clock_out, settings.STANDARD_WORK_MINUTES, policy)
    return AttendanceRecord(
        tenant_id=tenant_id,
        employee_id=employee_id,
        date=day,
        clock_in_time=clock_in,
        clock_out_time=clock_out,
        break_minutes=worked.break_minutes,
        worked_minutes=worked.worked_minutes,
        standard_work_minutes=settings.STANDARD_WORK_MINUTES,
        ot_minutes_calculated=worked.ot_minutes,
        status=AttendanceStatus.PRESENT,
        source=AttendanceSource.API,
    )

async def seed_attendance(session: AsyncSession, tenant_id: int, months: Iterable[Tuple[int, int]]) -> Tuple[int, int]:
    """Fill weekday attendance for active employees; existing days are left untouched"""
    employees = (
        await session.execute(
            select(Employee).where(Employee.tenant_id == tenant_id, Employee.status == EmployeeStatus.ACTIVE)
        )
    ).scalars().all()
    if not employees:
        logger.warning(f"No active employees in tenant {tenant_id}; run the initial seed first")
        return 0, 0

    months = list(months)
    created = skipped = 0
    try:
        for employee in employees:
            existing_days = set(
                (
                    await session.execute(
                        select(AttendanceRecord.date).where(
                            AttendanceRecord.tenant_id == tenant_id,
                            AttendanceRecord.employee_id == employee.id,
                        )
                    )
                ).scalars().all()
            )
            rule = await AttendanceService(session).get_ot_rule(tenant_id, employee)
            policy = OtPolicy.from_rule(rule)
            index = 0
            for year, month in months:
                start, end = month_bounds(year, month)
                for day in weekdays_between(start, end):
                    if day in existing_days:
                        skipped += 1
                    else:
                        session.add(build_record(tenant_id, employee.id, day, index, policy))
                        created += 1
                    index += 1
            logger.info(f"Seeded attendance for {employee.employee_code}")

        await session.commit()
        logger.info(f"Attendance seed done: created {created}, skipped {skipped}")
        return created, skipped

    except Exception as e:
        await session.rollback()
        logger.error(f"Error seeding attendance: {str(e)}")
        raise

if __name__ == "__main__":
    from hrms.core.database import async_session_maker
    from hrms.core.logging_config import setup_logging
    from hrms.models.organization.tenant import Tenant

    async def main():
        setup_logging()
        async with async_session_maker() as session:
            tenant = await session.scalar(select(Tenant).where(Tenant.code == settings.DEFAULT_TENANT_CODE))
            if tenant is None:
                raise SystemExit("Default tenant not found; run the initial seed first")
            created, skipped = await seed_attendance(session, tenant.id, [(2026, 1), (2026, 2)])
        print(f"Created {created} records, skipped {skipped} (already existed)")

    asyncio.run(main())

import logging
from typing import Any, Dict, Optional
from datetime import date, datetime
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, or_, select

from hrms.core.config import settings
from hrms.core.exceptions import BadRequestError, NotFoundError
from hrms.models.auth.user import User
from hrms.models.hr.attendance import AttendanceRecord
from hrms.models.hr.employee import Employee
from hrms.models.hr.ot_rule import OtRule
from hrms.models.shared.enums import AttendanceSource, AttendanceStatus, AuditAction, EmployeeStatus, PayType
from hrms.schemas.hr.attendance_schema import AttendanceCreate
from hrms.services.audit.audit_service import AuditService
from hrms.services.hr.ot_calculation import OtPolicy, calculate_worked_time, validate_ot_approval
from hrms.services.shared.access import (
    ensure_can_review,
    ensure_can_view,
    get_tenant_employee,
    require_employee_id,
    reviewable_employee_ids,
)
from hrms.services.shared.query import paginate
from hrms.utils.date_utils import month_bounds, utc_now

logger = logging.getLogger(__name__)

NOT_CLOCKED_IN = "NOT_CLOCKED_IN"
CLOCKED_IN = "CLOCKED_IN"
CLOCKED_OUT = "CLOCKED_OUT"

class AttendanceService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit_service = AuditService(session)

    # region Attendance Helper Methods
    async def _get_active_employee(self, tenant_id: int, employee_id: int) -> Employee:
        employee = await get_tenant_employee(self.session, tenant_id, employee_id)
        if employee.status != EmployeeStatus.ACTIVE:
            raise BadRequestError("Employee is not active")
        return employee

    async def _get_record_for_day(self, tenant_id: int, employee_id: int, day: date) -> Optional[AttendanceRecord]:
        result = await self.session.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.tenant_id == tenant_id,
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.date == day,
            )
        )
        return result.scalar_one_or_none()

    async def get_ot_rule(self, tenant_id: int, employee: Employee) -> Optional[OtRule]:
        """Rule for the employee's employment type, else the tenant default rule"""
        result = await self.session.execute(
            select(OtRule).where(
                OtRule.tenant_id == tenant_id,
                OtRule.is_active == True,
                or_(OtRule.employment_type == employee.employment_type, OtRule.employment_type.is_(None)),
            )
        )
        rules = result.scalars().all()
        for rule in rules:
            if rule.employment_type == employee.employment_type:
                return rule
        return rules[0] if rules else None

    async def apply_clock_times(
        self,
        record: AttendanceRecord,
        employee: Employee,
        clock_in: Optional[datetime],
        clock_out: Optional[datetime],
    ) -> AttendanceRecord:
        """Set clock times on a record and recompute worked/OT minutes"""
        rule = await self.get_ot_rule(record.tenant_id, employee)
        standard = record.standard_work_minutes or settings.STANDARD_WORK_MINUTES
        worked = calculate_worked_time(clock_in, clock_out, standard, OtPolicy.from_rule(rule))

        record.clock_in_time = clock_in
        record.clock_out_time = clock_out
        record.break_minutes = worked.break_minutes
        record.worked_minutes = worked.worked_minutes
        record.ot_minutes_calculated = worked.ot_minutes
        record.ot_minutes_approved = None
        return record

    async def _get_record(self, record_id: int, tenant_id: int) -> AttendanceRecord:
        result = await self.session.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.id == record_id,
                AttendanceRecord.tenant_id == tenant_id,
            )
        )
        record = result.scalar_one_or_none()
        if not record:
            raise NotFoundError(f"Attendance record with ID {record_id} not found")
        return record
    # endregion

    # region Clock In / Out
    async def clock_in(
        self,
        current_user: User,
        source: AttendanceSource = AttendanceSource.WEB,
        remarks: Optional[str] = None,
    ) -> AttendanceRecord:
        employee_id = require_employee_id(current_user)
        tenant_id = current_user.tenant_id
        try:
            await self._get_active_employee(tenant_id, employee_id)
            now = utc_now()
            today = now.date()

            record = await self._get_record_for_day(tenant_id, employee_id, today)
            if record and record.clock_in_time:
                raise BadRequestError("Already clocked in today")
            if record is None:
                record = AttendanceRecord(
                    tenant_id=tenant_id,
                    employee_id=employee_id,
                    date=today,
                    standard_work_minutes=settings.STANDARD_WORK_MINUTES,
                )
                self.session.add(record)

            record.clock_in_time = now
            record.status = AttendanceStatus.PRESENT
            record.source = source
            record.remarks = remarks

            await self.session.commit()
            await self.session.refresh(record)

            logger.info(f"Employee {employee_id} clocked in at {now.isoformat()} by user {current_user.id}")
            return record

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error clocking in employee {employee_id}: {str(e)}")
            raise

    async def clock_out(self, current_user: User, remarks: Optional[str] = None) -> AttendanceRecord:
        employee_id = require_employee_id(current_user)
        tenant_id = current_user.tenant_id
        try:
            employee = await get_tenant_employee(self.session, tenant_id, employee_id)
            now = utc_now()

            record = await self._get_record_for_day(tenant_id, employee_id, now.date())
            if not record or not record.clock_in_time:
                raise BadRequestError("No clock-in found for today")
            if record.clock_out_time:
                raise BadRequestError("Already clocked out today")

            await self.apply_clock_times(record, employee, record.clock_in_time, now)
            if remarks:
                record.remarks = remarks

            await self.session.commit()
            await self.session.refresh(record)

            logger.info(
                f"Employee {employee_id} clocked out: worked {record.worked_minutes} min, "
                f"OT {record.ot_minutes_calculated} min"
            )
            return record

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error clocking out employee {employee_id}: {str(e)}")
            raise
    # endregion

    async def create_manual_attendance(self, data: AttendanceCreate, current_user: User) -> AttendanceRecord:
        """HR entry or correction for a day with no record"""
        tenant_id = current_user.tenant_id
        try:
            employee = await get_tenant_employee(self.session, tenant_id, data.employee_id)

            existing = await self._get_record_for_day(tenant_id, data.employee_id, data.date)
            if existing:
                raise BadRequestError(f"Attendance already exists for employee {data.employee_id} on {data.date}")

            record = AttendanceRecord(
                tenant_id=tenant_id,
                employee_id=data.employee_id,
                date=data.date,
                status=data.status,
                source=data.source,
                remarks=data.remarks,
                standard_work_minutes=settings.STANDARD_WORK_MINUTES,
            )
            await self.apply_clock_times(record, employee, data.clock_in_time, data.clock_out_time)
            self.session.add(record)
            await self.session.flush()

            self.audit_service.record(
                tenant_id=tenant_id,
                user_id=current_user.id,
                action=AuditAction.CREATE,
                entity_type="AttendanceRecord",
                entity_id=record.id,
                new_values={
                    "employee_id": record.employee_id,
                    "date": record.date,
                    "status": record.status,
                    "worked_minutes": record.worked_minutes,
                },
            )
            await self.session.commit()
            await self.session.refresh(record)

            logger.info(f"Manual attendance created for employee {data.employee_id} on {data.date} by user {current_user.id}")
            return record

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating manual attendance: {str(e)}")
            raise

    async def get_attendance(self, record_id: int, current_user: User) -> AttendanceRecord:
        record = await self._get_record(record_id, current_user.tenant_id)
        await ensure_can_view(self.session, current_user, record.employee_id)
        return record

    async def list_attendance(
        self,
        current_user: User,
        page: int = 1,
        limit: int = 20,
        employee_id: Optional[int] = None,
        status: Optional[AttendanceStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        department_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Attendance visible to the caller with filters and pagination"""
        conditions = [AttendanceRecord.tenant_id == current_user.tenant_id]

        scope = await reviewable_employee_ids(self.session, current_user)
        if scope is not None:
            conditions.append(AttendanceRecord.employee_id.in_(scope))
        if employee_id:
            conditions.append(AttendanceRecord.employee_id == employee_id)
        if status:
            conditions.append(AttendanceRecord.status == status)
        if start_date:
            conditions.append(AttendanceRecord.date >= start_date)
        if end_date:
            conditions.append(AttendanceRecord.date <= end_date)

        query = select(AttendanceRecord)
        if department_id:
            query = query.join(Employee, Employee.id == AttendanceRecord.employee_id)
            conditions.append(Employee.department_id == department_id)

        query = query.where(*conditions).order_by(AttendanceRecord.date.desc(), AttendanceRecord.id.desc())
        return await paginate(self.session, query, page, limit)

    async def get_my_attendance(
        self,
        current_user: User,
        page: int = 1,
        limit: int = 20,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Dict[str, Any]:
        employee_id = require_employee_id(current_user)
        conditions = [
            AttendanceRecord.tenant_id == current_user.tenant_id,
            AttendanceRecord.employee_id == employee_id,
        ]
        if start_date:
            conditions.append(AttendanceRecord.date >= start_date)
        if end_date:
            conditions.append(AttendanceRecord.date <= end_date)

        query = select(AttendanceRecord).where(*conditions).order_by(AttendanceRecord.date.desc())
        return await paginate(self.session, query, page, limit)

    async def get_today_status(self, current_user: User) -> Dict[str, Any]:
        employee_id = require_employee_id(current_user)
        record = await self._get_record_for_day(current_user.tenant_id, employee_id, utc_now().date())

        if not record or not record.clock_in_time:
            return {"status": NOT_CLOCKED_IN, "record": record}
        if not record.clock_out_time:
            return {"status": CLOCKED_IN, "record": record}
        return {"status": CLOCKED_OUT, "record": record}

    async def get_summary(
        self,
        current_user: User,
        start_date: date,
        end_date: date,
        employee_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Status counts and worked/OT totals for a date range"""
        if start_date > end_date:
            raise BadRequestError("Start date must be before or equal to end date")

        conditions = [
            AttendanceRecord.tenant_id == current_user.tenant_id,
            AttendanceRecord.date >= start_date,
            AttendanceRecord.date <= end_date,
        ]
        if employee_id:
            await ensure_can_view(self.session, current_user, employee_id)
            conditions.append(AttendanceRecord.employee_id == employee_id)
        else:
            scope = await reviewable_employee_ids(self.session, current_user)
            if scope is not None:
                conditions.append(AttendanceRecord.employee_id.in_(scope))

        status_rows = await self.session.execute(
            select(AttendanceRecord.status, func.count(AttendanceRecord.id))
            .where(*conditions)
            .group_by(AttendanceRecord.status)
        )
        status_counts = {status.value: 0 for status in AttendanceStatus}
        for status, count in status_rows.all():
            status_counts[status.value] = count

        totals = (await self.session.execute(
            select(
                func.count(AttendanceRecord.id),
                func.coalesce(func.sum(AttendanceRecord.worked_minutes), 0),
                func.coalesce(func.sum(AttendanceRecord.ot_minutes_calculated), 0),
                func.coalesce(func.sum(AttendanceRecord.ot_minutes_approved), 0),
            ).where(*conditions)
        )).one()

        return {
            "start_date": start_date,
            "end_date": end_date,
            "total_records": totals[0],
            "status_counts": status_counts,
            "total_worked_minutes": int(totals[1]),
            "total_ot_minutes_calculated": int(totals[2]),
            "total_ot_minutes_approved": int(totals[3]),
        }

    # region Overtime
    async def get_pending_ot_approvals(self, current_user: User, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        """Closed days with calculated OT that nobody has reviewed yet"""
        conditions = [
            AttendanceRecord.tenant_id == current_user.tenant_id,
            AttendanceRecord.ot_minutes_calculated > 0,
            AttendanceRecord.ot_minutes_approved.is_(None),
            AttendanceRecord.clock_out_time.isnot(None),
        ]
        scope = await reviewable_employee_ids(self.session, current_user)
        if scope is not None:
            conditions.append(AttendanceRecord.employee_id.in_(scope))

        query = select(AttendanceRecord).where(*conditions).order_by(AttendanceRecord.date.asc())
        return await paginate(self.session, query, page, limit)

    async def _approved_ot_in_month(self, record: AttendanceRecord) -> int:
        first_day, last_day = month_bounds(record.date.year, record.date.month)
        total = await self.session.scalar(
            select(func.coalesce(func.sum(AttendanceRecord.ot_minutes_approved), 0)).where(
                AttendanceRecord.tenant_id == record.tenant_id,
                AttendanceRecord.employee_id == record.employee_id,
                AttendanceRecord.date >= first_day,
                AttendanceRecord.date <= last_day,
                AttendanceRecord.id != record.id,
            )
        )
        return int(total or 0)

    async def approve_ot(
        self,
        record_id: int,
        approved_minutes: int,
        current_user: User,
        note: Optional[str] = None,
    ) -> AttendanceRecord:
        """Record the reviewer's OT decision; zero approves none of it"""
        try:
            record = await self._get_record(record_id, current_user.tenant_id)
            await ensure_can_review(self.session, current_user, record.employee_id)

            if not record.clock_out_time:
                raise BadRequestError("Cannot approve OT before clock-out")
            validate_ot_approval(approved_minutes, record.ot_minutes_calculated)

            employee = await get_tenant_employee(self.session, current_user.tenant_id, record.employee_id)
            rule = await self.get_ot_rule(current_user.tenant_id, employee)
            if rule and rule.max_ot_per_month_minutes is not None and approved_minutes > 0:
                already_approved = await self._approved_ot_in_month(record)
                remaining = rule.max_ot_per_month_minutes - already_approved
                if approved_minutes > remaining:
                    raise BadRequestError(
                        f"Monthly OT limit exceeded. Remaining this month: {max(0, remaining)} minutes"
                    )

            old_value = record.ot_minutes_approved
            record.ot_minutes_approved = approved_minutes
            record.ot_approved_by = current_user.id
            record.ot_approved_at = utc_now()
            if note:
                record.remarks = note

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.APPROVE,
                entity_type="AttendanceOvertime",
                entity_id=record.id,
                old_values={"ot_minutes_approved": old_value},
                new_values={"ot_minutes_approved": approved_minutes},
            )
            await self.session.commit()
            await self.session.refresh(record)

            logger.info(f"OT approved for attendance {record.id}: {approved_minutes} min by user {current_user.id}")
            return record

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error approving OT for attendance {record_id}: {str(e)}")
            raise

    async def get_payable_hours(
        self,
        employee_id: int,
        start_date: date,
        end_date: date,
        current_user: User,
    ) -> Dict[str, Any]:
        """Regular and approved OT hours; estimated pay for hourly employees"""
        await ensure_can_view(self.session, current_user, employee_id)
        employee = await get_tenant_employee(self.session, current_user.tenant_id, employee_id)

        result = await self.session.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.tenant_id == current_user.tenant_id,
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.date >= start_date,
                AttendanceRecord.date <= end_date,
                AttendanceRecord.clock_out_time.isnot(None),
            )
        )
        records = result.scalars().all()

        regular_minutes = 0
        approved_ot_minutes = 0
        pending_ot_minutes = 0
        for record in records:
            standard = record.standard_work_minutes or settings.STANDARD_WORK_MINUTES
            regular_minutes += min(record.worked_minutes or 0, standard)
            if record.ot_minutes_approved is not None:
                approved_ot_minutes += record.ot_minutes_approved
            else:
                pending_ot_minutes += record.ot_minutes_calculated or 0

        multiplier = employee.ot_multiplier or settings.DEFAULT_OT_MULTIPLIER
        regular_hours = round(regular_minutes / 60, 2)
        approved_ot_hours = round(approved_ot_minutes / 60, 2)

        hourly_rate = None
        estimated_pay = None
        if employee.pay_type == PayType.HOURLY and employee.hourly_rate is not None:
            hourly_rate = Decimal(employee.hourly_rate)
            estimated_pay = (
                Decimal(str(regular_minutes)) / 60 * hourly_rate
                + Decimal(str(approved_ot_minutes)) / 60 * hourly_rate * Decimal(str(multiplier))
            ).quantize(Decimal("0.01"))

        return {
            "employee_id": employee_id,
            "start_date": start_date,
            "end_date": end_date,
            "regular_hours": regular_hours,
            "approved_ot_hours": approved_ot_hours,
            "pending_ot_hours": round(pending_ot_minutes / 60, 2),
            "hourly_rate": hourly_rate,
            "ot_multiplier": multiplier,
            "estimated_pay": estimated_pay,
        }
    # endregion

    async def mark_leave_days(self, tenant_id: int, employee_id: int, days, remarks: Optional[str] = None) -> int:
        """Mark attendance as LEAVE for approved leave days; caller commits"""
        marked = 0
        for day in days:
            record = await self._get_record_for_day(tenant_id, employee_id, day)
            if record is None:
                record = AttendanceRecord(
                    tenant_id=tenant_id,
                    employee_id=employee_id,
                    date=day,
                    standard_work_minutes=settings.STANDARD_WORK_MINUTES,
                    source=AttendanceSource.API,
                )
                self.session.add(record)
            record.status = AttendanceStatus.LEAVE
            if remarks:
                record.remarks = remarks
            marked += 1
        return marked

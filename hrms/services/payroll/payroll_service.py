import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Set
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete, select

from hrms.core.config import settings
from hrms.core.exceptions import BadRequestError, ConflictError, NotFoundError
from hrms.models.auth.user import User
from hrms.models.hr.attendance import AttendanceRecord
from hrms.models.hr.employee import Employee
from hrms.models.leave.leave_request import LeaveRequest
from hrms.models.leave.leave_type import LeaveType
from hrms.models.payroll.employee_salary import EmployeeSalary
from hrms.models.payroll.payroll_run import PayrollRun
from hrms.models.payroll.payslip import Payslip
from hrms.models.shared.enums import (
    AttendanceStatus,
    AuditAction,
    EmployeeStatus,
    LeaveStatus,
    PayrollStatus,
    PayType,
)
from hrms.schemas.payroll.payroll_schema import PayrollRunCreate
from hrms.services.audit.audit_service import AuditService
from hrms.services.hr.holiday_service import HolidayService
from hrms.services.leave.leave_balance import HALF_DAY_VALUE
from hrms.services.payroll import payroll_calculation as calc
from hrms.services.payroll.salary_service import SalaryService
from hrms.services.shared.access import require_employee_id
from hrms.services.shared.query import paginate
from hrms.services.shared.status_transitions import PAYROLL_TRANSITIONS, ensure_transition
from hrms.utils.date_utils import count_weekdays, month_bounds, utc_now

logger = logging.getLogger(__name__)

PRESENT_STATUSES = (AttendanceStatus.PRESENT, AttendanceStatus.WFH, AttendanceStatus.HALF_DAY)
RELEASED_STATUSES = (PayrollStatus.APPROVED, PayrollStatus.PAID)


@dataclass
class PayPeriod:
    month: int
    year: int
    start: date
    end: date
    holidays: Set[date]
    working_days: int


class PayrollService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit_service = AuditService(session)
        self.salary_service = SalaryService(session)
        self.holiday_service = HolidayService(session)

    # region Runs
    async def create_run(self, data: PayrollRunCreate, current_user: User) -> PayrollRun:
        tenant_id = current_user.tenant_id
        try:
            existing = await self.session.scalar(
                select(PayrollRun.id).where(
                    PayrollRun.tenant_id == tenant_id,
                    PayrollRun.month == data.month,
                    PayrollRun.year == data.year,
                )
            )
            if existing:
                raise ConflictError(f"Payroll run for {data.month:02d}/{data.year} already exists")

            run = PayrollRun(
                tenant_id=tenant_id,
                month=data.month,
                year=data.year,
                status=PayrollStatus.DRAFT,
                remarks=data.remarks,
            )
            self.session.add(run)
            await self.session.flush()

            self.audit_service.record(
                tenant_id=tenant_id,
                user_id=current_user.id,
                action=AuditAction.CREATE,
                entity_type="PayrollRun",
                entity_id=run.id,
                new_values={"month": run.month, "year": run.year},
            )
            await self.session.commit()
            await self.session.refresh(run)

            logger.info(f"Payroll run {data.month:02d}/{data.year} created by user {current_user.id}")
            return run

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating payroll run: {str(e)}")
            raise

    async def list_runs(
        self,
        tenant_id: int,
        page: int = 1,
        limit: int = 20,
        status: Optional[PayrollStatus] = None,
        year: Optional[int] = None,
    ) -> Dict[str, Any]:
        conditions = [PayrollRun.tenant_id == tenant_id]
        if status:
            conditions.append(PayrollRun.status == status)
        if year:
            conditions.append(PayrollRun.year == year)

        query = select(PayrollRun).where(*conditions).order_by(PayrollRun.year.desc(), PayrollRun.month.desc())
        return await paginate(self.session, query, page, limit)

    async def get_run(self, run_id: int, tenant_id: int) -> PayrollRun:
        run = await self.session.scalar(
            select(PayrollRun).where(PayrollRun.id == run_id, PayrollRun.tenant_id == tenant_id)
        )
        if not run:
            raise NotFoundError(f"Payroll run with ID {run_id} not found")
        return run

    async def process_run(self, run_id: int, current_user: User) -> PayrollRun:
        """Compute a payslip for every active employee with a salary in the month"""
        tenant_id = current_user.tenant_id
        try:
            run = await self.get_run(run_id, tenant_id)
            ensure_transition(PAYROLL_TRANSITIONS, "payroll run", run.status, PayrollStatus.PROCESSING)
            run.status = PayrollStatus.PROCESSING
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error starting payroll run {run_id}: {str(e)}")
            raise

        try:
            await self.session.execute(delete(Payslip).where(Payslip.payroll_run_id == run_id))
            period = await self._build_period(tenant_id, run.month, run.year)

            employee_ids = (await self.session.execute(
                select(Employee.id)
                .where(Employee.tenant_id == tenant_id, Employee.status == EmployeeStatus.ACTIVE)
                .order_by(Employee.id)
            )).scalars().all()

            total_gross = Decimal("0")
            total_deductions = Decimal("0")
            total_net = Decimal("0")
            processed = 0
            for employee_id in employee_ids:
                salary = await self.salary_service.get_salary_for_period(
                    tenant_id, employee_id, period.start, period.end
                )
                if salary is None:
                    continue

                payslip = await self._calculate_payslip(run, salary, period)
                self.session.add(payslip)
                total_gross += payslip.gross_pay
                total_deductions += payslip.total_deductions
                total_net += payslip.net_pay
                processed += 1

            ensure_transition(PAYROLL_TRANSITIONS, "payroll run", run.status, PayrollStatus.COMPUTED)
            run.status = PayrollStatus.COMPUTED
            run.total_gross = calc.money(total_gross)
            run.total_deductions = calc.money(total_deductions)
            run.total_net = calc.money(total_net)
            run.processed_count = processed
            run.processed_at = utc_now()

            self.audit_service.record(
                tenant_id=tenant_id,
                user_id=current_user.id,
                action=AuditAction.UPDATE,
                entity_type="PayrollRun",
                entity_id=run.id,
                old_values={"status": PayrollStatus.DRAFT},
                new_values={"status": run.status, "processed_count": processed, "total_net": run.total_net},
            )
            await self.session.commit()
            await self.session.refresh(run)

            logger.info(f"Payroll run {run.id} computed by user {current_user.id}: {processed} payslips")
            return run

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error processing payroll run {run_id}, reverting to draft: {str(e)}")
            failed_run = await self.get_run(run_id, tenant_id)
            failed_run.status = PayrollStatus.DRAFT
            await self.session.commit()
            raise

    async def approve_run(self, run_id: int, current_user: User) -> PayrollRun:
        try:
            run = await self.get_run(run_id, current_user.tenant_id)
            ensure_transition(PAYROLL_TRANSITIONS, "payroll run", run.status, PayrollStatus.APPROVED)

            run.status = PayrollStatus.APPROVED
            run.approved_by = current_user.id
            run.approved_at = utc_now()

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.APPROVE,
                entity_type="PayrollRun",
                entity_id=run.id,
                old_values={"status": PayrollStatus.COMPUTED},
                new_values={"status": run.status},
            )
            await self.session.commit()
            await self.session.refresh(run)

            logger.info(f"Payroll run {run.id} approved by user {current_user.id}")
            return run

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error approving payroll run {run_id}: {str(e)}")
            raise

    async def mark_paid(self, run_id: int, current_user: User) -> PayrollRun:
        try:
            run = await self.get_run(run_id, current_user.tenant_id)
            ensure_transition(PAYROLL_TRANSITIONS, "payroll run", run.status, PayrollStatus.PAID)

            run.status = PayrollStatus.PAID
            run.paid_at = utc_now()

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.UPDATE,
                entity_type="PayrollRun",
                entity_id=run.id,
                old_values={"status": PayrollStatus.APPROVED},
                new_values={"status": run.status},
            )
            await self.session.commit()
            await self.session.refresh(run)

            logger.info(f"Payroll run {run.id} marked as paid by user {current_user.id}")
            return run

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error marking payroll run {run_id} as paid: {str(e)}")
            raise

    async def delete_run(self, run_id: int, current_user: User) -> bool:
        try:
            run = await self.get_run(run_id, current_user.tenant_id)
            if run.status != PayrollStatus.DRAFT:
                raise BadRequestError("Only DRAFT payroll runs can be deleted")

            await self.session.execute(delete(Payslip).where(Payslip.payroll_run_id == run.id))
            await self.session.delete(run)
            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.DELETE,
                entity_type="PayrollRun",
                entity_id=run_id,
                old_values={"month": run.month, "year": run.year},
            )
            await self.session.commit()

            logger.info(f"Payroll run {run_id} deleted by user {current_user.id}")
            return True

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting payroll run {run_id}: {str(e)}")
            raise
    # endregion

    # region Calculation
    async def _build_period(self, tenant_id: int, month: int, year: int) -> PayPeriod:
        start, end = month_bounds(year, month)
        holidays = set(await self.holiday_service.get_holiday_dates(tenant_id, start, end))
        return PayPeriod(
            month=month,
            year=year,
            start=start,
            end=end,
            holidays=holidays,
            working_days=count_weekdays(start, end, holidays),
        )

    async def _attendance_totals(self, tenant_id: int, employee_id: int, period: PayPeriod):
        records = (await self.session.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.tenant_id == tenant_id,
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.date >= period.start,
                AttendanceRecord.date <= period.end,
                AttendanceRecord.status.in_(PRESENT_STATUSES),
            )
        )).scalars().all()

        present_days = 0.0
        approved_ot_minutes = 0
        for record in records:
            present_days += HALF_DAY_VALUE if record.status == AttendanceStatus.HALF_DAY else 1
            approved_ot_minutes += record.ot_minutes_approved or 0
        return present_days, approved_ot_minutes

    async def _leave_totals(self, tenant_id: int, employee_id: int, period: PayPeriod):
        """Approved leave weekdays inside the month, split into paid and loss of pay"""
        rows = (await self.session.execute(
            select(LeaveRequest, LeaveType)
            .join(LeaveType, LeaveType.id == LeaveRequest.leave_type_id)
            .where(
                LeaveRequest.tenant_id == tenant_id,
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.status == LeaveStatus.APPROVED,
                LeaveRequest.start_date <= period.end,
                LeaveRequest.end_date >= period.start,
            )
        )).all()

        paid_days = 0.0
        lop_days = 0.0
        for request, leave_type in rows:
            overlap_start = max(request.start_date, period.start)
            overlap_end = min(request.end_date, period.end)
            days = float(count_weekdays(overlap_start, overlap_end, period.holidays))
            if request.is_half_day and days:
                days = HALF_DAY_VALUE
            if leave_type.is_paid and not leave_type.is_loss_of_pay:
                paid_days += days
            else:
                lop_days += days
        return paid_days, lop_days

    async def _calculate_payslip(self, run: PayrollRun, salary: EmployeeSalary, period: PayPeriod) -> Payslip:
        employee = salary.employee
        present_days, ot_minutes = await self._attendance_totals(run.tenant_id, employee.id, period)
        paid_leave_days, lop_days = await self._leave_totals(run.tenant_id, employee.id, period)

        factor = calc.prorate_factor(present_days, paid_leave_days, period.working_days)
        rate = calc.hourly_rate(
            salary.base_pay,
            period.working_days,
            settings.HOURS_PER_WORKING_DAY,
            employee.hourly_rate if employee.pay_type == PayType.HOURLY and employee.hourly_rate else None,
        )
        multiplier = employee.ot_multiplier or settings.DEFAULT_OT_MULTIPLIER
        ot_pay = calc.overtime_pay(ot_minutes, rate, multiplier)

        components: Iterable[Dict[str, Any]] = salary.salary_structure.components or []
        figures = calc.compute_payslip(salary.base_pay, components, ot_pay=ot_pay, prorate_factor=factor)

        return Payslip(
            tenant_id=run.tenant_id,
            payroll_run_id=run.id,
            employee_id=employee.id,
            month=run.month,
            year=run.year,
            working_days=period.working_days,
            present_days=present_days,
            leave_days=paid_leave_days + lop_days,
            lop_days=lop_days,
            ot_hours=round(ot_minutes / 60, 2),
            base_pay=figures.base_pay,
            earnings=[line.as_dict() for line in figures.earnings],
            deductions=[line.as_dict() for line in figures.deductions],
            ot_pay=figures.ot_pay,
            gross_pay=figures.gross_pay,
            total_deductions=calc.money(figures.total_deductions),
            net_pay=figures.net_pay,
        )
    # endregion

    # region Payslips
    async def get_payslips_for_run(self, run_id: int, tenant_id: int, page: int = 1, limit: int = 50) -> Dict[str, Any]:
        await self.get_run(run_id, tenant_id)
        query = (
            select(Payslip)
            .where(Payslip.tenant_id == tenant_id, Payslip.payroll_run_id == run_id)
            .order_by(Payslip.employee_id)
        )
        return await paginate(self.session, query, page, limit)

    async def get_my_payslips(self, current_user: User, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        """Only payslips of approved or paid runs are visible to the employee"""
        employee_id = require_employee_id(current_user)
        query = (
            select(Payslip)
            .join(PayrollRun, PayrollRun.id == Payslip.payroll_run_id)
            .where(
                Payslip.tenant_id == current_user.tenant_id,
                Payslip.employee_id == employee_id,
                PayrollRun.status.in_(RELEASED_STATUSES),
            )
            .order_by(Payslip.year.desc(), Payslip.month.desc())
        )
        return await paginate(self.session, query, page, limit)

    async def get_payslip(self, payslip_id: int, current_user: User) -> Payslip:
        payslip = await self.session.scalar(
            select(Payslip).where(Payslip.id == payslip_id, Payslip.tenant_id == current_user.tenant_id)
        )
        if not payslip:
            raise NotFoundError(f"Payslip with ID {payslip_id} not found")
        if not current_user.is_admin:
            run_status = await self.session.scalar(
                select(PayrollRun.status).where(PayrollRun.id == payslip.payroll_run_id)
            )
            if payslip.employee_id != current_user.employee_id or run_status not in RELEASED_STATUSES:
                raise NotFoundError(f"Payslip with ID {payslip_id} not found")
        return payslip
    # endregion

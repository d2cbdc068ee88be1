import logging
from typing import Any, Dict, List, Optional
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from hrms.core.config import settings
from hrms.core.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from hrms.models.auth.user import User
from hrms.models.hr.employee import Employee
from hrms.models.leave.leave_balance import LeaveBalance
from hrms.models.leave.leave_request import LeaveRequest
from hrms.models.leave.leave_type import LeaveType
from hrms.models.shared.enums import AuditAction, EmployeeStatus, LeaveStatus
from hrms.schemas.leave.leave_schema import LeaveBalanceUpdate, LeaveRequestCreate, LeaveTypeCreate, LeaveTypeUpdate
from hrms.services.audit.audit_service import AuditService
from hrms.services.hr.attendance_service import AttendanceService
from hrms.services.leave import leave_balance
from hrms.services.shared.access import (
    ensure_can_review,
    ensure_can_view,
    get_tenant_employee,
    require_employee_id,
    reviewable_employee_ids,
)
from hrms.services.shared.query import paginate
from hrms.services.shared.status_transitions import LEAVE_TRANSITIONS, ensure_transition
from hrms.utils.date_utils import fiscal_year_for, utc_now, weekdays_between

logger = logging.getLogger(__name__)


def leave_year_for(day: date) -> int:
    """Balances are kept per leave (fiscal) year"""
    return fiscal_year_for(day, settings.FISCAL_YEAR_START_MONTH)


class LeaveService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit_service = AuditService(session)

    # region Leave Types
    async def get_leave_types(self, tenant_id: int, include_inactive: bool = False) -> List[LeaveType]:
        conditions = [LeaveType.tenant_id == tenant_id]
        if not include_inactive:
            conditions.append(LeaveType.is_active == True)
        result = await self.session.execute(select(LeaveType).where(*conditions).order_by(LeaveType.name))
        return list(result.scalars().all())

    async def _get_leave_type(self, leave_type_id: int, tenant_id: int) -> LeaveType:
        leave_type = await self.session.scalar(
            select(LeaveType).where(LeaveType.id == leave_type_id, LeaveType.tenant_id == tenant_id)
        )
        if not leave_type:
            raise NotFoundError(f"Leave type with ID {leave_type_id} not found")
        return leave_type

    async def get_leave_type_by_code(self, tenant_id: int, code: str) -> Optional[LeaveType]:
        return await self.session.scalar(
            select(LeaveType).where(LeaveType.tenant_id == tenant_id, LeaveType.code == code)
        )

    async def create_leave_type(self, data: LeaveTypeCreate, current_user: User) -> LeaveType:
        """Create a leave type and open a balance for every active employee"""
        tenant_id = current_user.tenant_id
        try:
            if await self.get_leave_type_by_code(tenant_id, data.code):
                raise ConflictError(f"Leave type with code {data.code} already exists")

            leave_type = LeaveType(tenant_id=tenant_id, **data.model_dump())
            self.session.add(leave_type)
            await self.session.flush()

            year = leave_year_for(utc_now().date())
            employee_ids = (await self.session.execute(
                select(Employee.id).where(Employee.tenant_id == tenant_id, Employee.status == EmployeeStatus.ACTIVE)
            )).scalars().all()
            for employee_id in employee_ids:
                self.session.add(LeaveBalance(
                    tenant_id=tenant_id,
                    employee_id=employee_id,
                    leave_type_id=leave_type.id,
                    year=year,
                    total_days=leave_type.default_days or 0,
                    carried_over=0,
                    used_days=0,
                    pending_days=0,
                ))

            self.audit_service.record(
                tenant_id=tenant_id,
                user_id=current_user.id,
                action=AuditAction.CREATE,
                entity_type="LeaveType",
                entity_id=leave_type.id,
                new_values=data.model_dump(),
            )
            await self.session.commit()
            await self.session.refresh(leave_type)

            logger.info(
                f"Leave type created: {leave_type.code} with {len(employee_ids)} balances by user {current_user.id}"
            )
            return leave_type

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating leave type: {str(e)}")
            raise

    async def update_leave_type(self, leave_type_id: int, data: LeaveTypeUpdate, current_user: User) -> LeaveType:
        try:
            leave_type = await self._get_leave_type(leave_type_id, current_user.tenant_id)
            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(leave_type, field, value)
            await self.session.commit()
            await self.session.refresh(leave_type)

            logger.info(f"Leave type updated: {leave_type.code} by user {current_user.id}")
            return leave_type

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating leave type {leave_type_id}: {str(e)}")
            raise
    # endregion

    # region Balances
    async def get_or_create_balance(
        self,
        tenant_id: int,
        employee_id: int,
        leave_type: LeaveType,
        year: int,
    ) -> LeaveBalance:
        balance = await self.session.scalar(
            select(LeaveBalance).where(
                LeaveBalance.tenant_id == tenant_id,
                LeaveBalance.employee_id == employee_id,
                LeaveBalance.leave_type_id == leave_type.id,
                LeaveBalance.year == year,
            )
        )
        if balance is None:
            balance = LeaveBalance(
                tenant_id=tenant_id,
                employee_id=employee_id,
                leave_type_id=leave_type.id,
                year=year,
                total_days=leave_type.default_days or 0,
                carried_over=0,
                used_days=0,
                pending_days=0,
            )
            self.session.add(balance)
            await self.session.flush()
        return balance

    async def initialize_balances(
        self,
        tenant_id: int,
        employee_id: int,
        year: Optional[int] = None,
        commit: bool = True,
    ) -> int:
        """Open missing balances for every active leave type"""
        year = year or leave_year_for(utc_now().date())
        created = 0
        for leave_type in await self.get_leave_types(tenant_id):
            existing = await self.session.scalar(
                select(LeaveBalance.id).where(
                    LeaveBalance.tenant_id == tenant_id,
                    LeaveBalance.employee_id == employee_id,
                    LeaveBalance.leave_type_id == leave_type.id,
                    LeaveBalance.year == year,
                )
            )
            if existing:
                continue
            await self.get_or_create_balance(tenant_id, employee_id, leave_type, year)
            created += 1

        if commit:
            await self.session.commit()
        logger.info(f"Initialized {created} leave balances for employee {employee_id} ({year})")
        return created

    async def get_balances(
        self,
        current_user: User,
        employee_id: Optional[int] = None,
        year: Optional[int] = None,
    ) -> List[LeaveBalance]:
        employee_id = employee_id or require_employee_id(current_user)
        await ensure_can_view(self.session, current_user, employee_id)
        year = year or leave_year_for(utc_now().date())

        result = await self.session.execute(
            select(LeaveBalance)
            .options(selectinload(LeaveBalance.leave_type))
            .where(
                LeaveBalance.tenant_id == current_user.tenant_id,
                LeaveBalance.employee_id == employee_id,
                LeaveBalance.year == year,
            )
            .order_by(LeaveBalance.leave_type_id)
        )
        return list(result.scalars().all())

    async def update_balance(self, data: LeaveBalanceUpdate, current_user: User) -> LeaveBalance:
        """Admin adjustment; creates the balance when it does not exist"""
        tenant_id = current_user.tenant_id
        try:
            await get_tenant_employee(self.session, tenant_id, data.employee_id)
            leave_type = await self._get_leave_type(data.leave_type_id, tenant_id)
            year = data.year or leave_year_for(utc_now().date())

            balance = await self.get_or_create_balance(tenant_id, data.employee_id, leave_type, year)
            old_values = {"total_days": balance.total_days, "carried_over": balance.carried_over}
            if data.total_days is not None:
                balance.total_days = data.total_days
            if data.carried_over is not None:
                balance.carried_over = data.carried_over

            if leave_balance.available_days(balance) < 0 and not leave_type.is_loss_of_pay:
                raise BadRequestError("Balance cannot be set below days already used or pending")

            self.audit_service.record(
                tenant_id=tenant_id,
                user_id=current_user.id,
                action=AuditAction.UPDATE,
                entity_type="LeaveBalance",
                entity_id=balance.id,
                old_values=old_values,
                new_values={"total_days": balance.total_days, "carried_over": balance.carried_over},
            )
            await self.session.commit()
            balance_id = balance.id

            logger.info(f"Leave balance {balance_id} updated by user {current_user.id}")
            return await self.session.scalar(
                select(LeaveBalance)
                .options(selectinload(LeaveBalance.leave_type))
                .where(LeaveBalance.id == balance_id)
                .execution_options(populate_existing=True)
            )

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating leave balance: {str(e)}")
            raise

    async def _balance_for_request(self, request: LeaveRequest) -> LeaveBalance:
        leave_type = await self._get_leave_type(request.leave_type_id, request.tenant_id)
        return await self.get_or_create_balance(
            request.tenant_id, request.employee_id, leave_type, leave_year_for(request.start_date)
        )
    # endregion

    # region Requests
    async def create_request(self, data: LeaveRequestCreate, current_user: User) -> LeaveRequest:
        """Apply for leave; the requested days are held as pending"""
        employee_id = require_employee_id(current_user)
        tenant_id = current_user.tenant_id
        try:
            leave_type = await self._get_leave_type(data.leave_type_id, tenant_id)
            if not leave_type.is_active:
                raise BadRequestError("Leave type is not active")

            total_days = leave_balance.calculate_leave_days(
                data.start_date,
                data.end_date,
                is_half_day=data.is_half_day,
                half_day_period=data.half_day_period,
            )

            overlapping = await self.session.scalar(
                select(LeaveRequest.id).where(
                    LeaveRequest.tenant_id == tenant_id,
                    LeaveRequest.employee_id == employee_id,
                    LeaveRequest.status.in_([LeaveStatus.PENDING, LeaveStatus.APPROVED]),
                    LeaveRequest.start_date <= data.end_date,
                    LeaveRequest.end_date >= data.start_date,
                )
            )
            if overlapping:
                raise ConflictError("Leave request overlaps with an existing request")

            balance = await self.get_or_create_balance(
                tenant_id, employee_id, leave_type, leave_year_for(data.start_date)
            )
            leave_balance.reserve(balance, total_days, allow_negative=leave_type.is_loss_of_pay)

            request = LeaveRequest(
                tenant_id=tenant_id,
                employee_id=employee_id,
                leave_type_id=leave_type.id,
                start_date=data.start_date,
                end_date=data.end_date,
                total_days=total_days,
                is_half_day=data.is_half_day,
                half_day_period=data.half_day_period if data.is_half_day else None,
                reason=data.reason,
                status=LeaveStatus.PENDING,
            )
            self.session.add(request)
            await self.session.commit()
            await self.session.refresh(request)

            logger.info(
                f"Leave request {request.id} created: {total_days} day(s) of {leave_type.code} for employee {employee_id}"
            )
            return request

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating leave request: {str(e)}")
            raise

    async def get_request(self, request_id: int, current_user: User) -> LeaveRequest:
        request = await self.session.scalar(
            select(LeaveRequest).where(
                LeaveRequest.id == request_id,
                LeaveRequest.tenant_id == current_user.tenant_id,
            )
        )
        if not request:
            raise NotFoundError(f"Leave request with ID {request_id} not found")
        await ensure_can_view(self.session, current_user, request.employee_id)
        return request

    async def get_my_requests(
        self,
        current_user: User,
        page: int = 1,
        limit: int = 20,
        status: Optional[LeaveStatus] = None,
    ) -> Dict[str, Any]:
        employee_id = require_employee_id(current_user)
        conditions = [LeaveRequest.tenant_id == current_user.tenant_id, LeaveRequest.employee_id == employee_id]
        if status:
            conditions.append(LeaveRequest.status == status)

        query = select(LeaveRequest).where(*conditions).order_by(LeaveRequest.start_date.desc())
        return await paginate(self.session, query, page, limit)

    async def get_requests(
        self,
        current_user: User,
        page: int = 1,
        limit: int = 20,
        status: Optional[LeaveStatus] = None,
        employee_id: Optional[int] = None,
        leave_type_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        department_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Requests the caller may review; pass status=PENDING for the approval queue"""
        conditions = [LeaveRequest.tenant_id == current_user.tenant_id]
        scope = await reviewable_employee_ids(self.session, current_user)
        if scope is not None:
            conditions.append(LeaveRequest.employee_id.in_(scope))
        if status:
            conditions.append(LeaveRequest.status == status)
        if employee_id:
            conditions.append(LeaveRequest.employee_id == employee_id)
        if leave_type_id:
            conditions.append(LeaveRequest.leave_type_id == leave_type_id)
        if start_date:
            conditions.append(LeaveRequest.end_date >= start_date)
        if end_date:
            conditions.append(LeaveRequest.start_date <= end_date)

        query = select(LeaveRequest)
        if department_id:
            query = query.join(Employee, Employee.id == LeaveRequest.employee_id)
            conditions.append(Employee.department_id == department_id)

        query = query.where(*conditions).order_by(LeaveRequest.created_at.asc(), LeaveRequest.id.asc())
        return await paginate(self.session, query, page, limit)

    async def get_pending_approvals(self, current_user: User, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        return await self.get_requests(current_user, page=page, limit=limit, status=LeaveStatus.PENDING)

    async def _get_request_for_update(self, request_id: int, tenant_id: int) -> LeaveRequest:
        request = await self.session.scalar(
            select(LeaveRequest).where(LeaveRequest.id == request_id, LeaveRequest.tenant_id == tenant_id)
        )
        if not request:
            raise NotFoundError(f"Leave request with ID {request_id} not found")
        return request

    async def approve_request(self, request_id: int, current_user: User, note: Optional[str] = None) -> LeaveRequest:
        """Approve a pending request: pending days become used, attendance is marked LEAVE"""
        try:
            request = await self._get_request_for_update(request_id, current_user.tenant_id)
            await ensure_can_review(self.session, current_user, request.employee_id)
            ensure_transition(LEAVE_TRANSITIONS, "leave request", request.status, LeaveStatus.APPROVED)

            balance = await self._balance_for_request(request)
            leave_balance.commit(balance, request.total_days)

            request.status = LeaveStatus.APPROVED
            request.approver_id = current_user.id
            request.approver_note = note
            request.approved_at = utc_now()

            leave_days = [request.start_date] if request.is_half_day else list(
                weekdays_between(request.start_date, request.end_date)
            )
            await AttendanceService(self.session).mark_leave_days(
                request.tenant_id, request.employee_id, leave_days, remarks=f"Leave request #{request.id}"
            )

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.APPROVE,
                entity_type="LeaveRequest",
                entity_id=request.id,
                old_values={"status": LeaveStatus.PENDING},
                new_values={"status": request.status, "note": note},
            )
            await self.session.commit()
            await self.session.refresh(request)

            logger.info(f"Leave request {request.id} approved by user {current_user.id}")
            return request

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error approving leave request {request_id}: {str(e)}")
            raise

    async def reject_request(self, request_id: int, current_user: User, note: Optional[str] = None) -> LeaveRequest:
        try:
            request = await self._get_request_for_update(request_id, current_user.tenant_id)
            await ensure_can_review(self.session, current_user, request.employee_id)
            ensure_transition(LEAVE_TRANSITIONS, "leave request", request.status, LeaveStatus.REJECTED)

            balance = await self._balance_for_request(request)
            leave_balance.release(balance, request.total_days)

            request.status = LeaveStatus.REJECTED
            request.approver_id = current_user.id
            request.approver_note = note
            request.approved_at = utc_now()

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.REJECT,
                entity_type="LeaveRequest",
                entity_id=request.id,
                old_values={"status": LeaveStatus.PENDING},
                new_values={"status": request.status, "note": note},
            )
            await self.session.commit()
            await self.session.refresh(request)

            logger.info(f"Leave request {request.id} rejected by user {current_user.id}")
            return request

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error rejecting leave request {request_id}: {str(e)}")
            raise

    async def cancel_request(self, request_id: int, current_user: User) -> LeaveRequest:
        """Requester withdraws a request that nobody has acted on yet"""
        try:
            request = await self._get_request_for_update(request_id, current_user.tenant_id)
            if request.employee_id != current_user.employee_id:
                raise ForbiddenError("You can only cancel your own leave requests")
            if request.status != LeaveStatus.PENDING:
                raise BadRequestError("Only pending leave requests can be cancelled")
            ensure_transition(LEAVE_TRANSITIONS, "leave request", request.status, LeaveStatus.CANCELLED)

            balance = await self._balance_for_request(request)
            leave_balance.release(balance, request.total_days)
            request.status = LeaveStatus.CANCELLED

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.CANCEL,
                entity_type="LeaveRequest",
                entity_id=request.id,
                old_values={"status": LeaveStatus.PENDING},
                new_values={"status": request.status},
            )
            await self.session.commit()
            await self.session.refresh(request)

            logger.info(f"Leave request {request.id} cancelled by user {current_user.id}")
            return request

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error cancelling leave request {request_id}: {str(e)}")
            raise

    async def bulk_approve(self, request_ids: List[int], current_user: User, note: Optional[str] = None) -> Dict[str, Any]:
        """Approve each id on its own; a failure never undoes earlier approvals"""
        approved: List[int] = []
        failed: List[Dict[str, Any]] = []

        for request_id in dict.fromkeys(request_ids):
            try:
                await self.approve_request(request_id, current_user, note)
                approved.append(request_id)
            except Exception as e:
                detail = getattr(e, "detail", None) or str(e)
                failed.append({"id": request_id, "detail": detail})
                # the rollback expired every loaded instance
                await self.session.refresh(current_user)

        logger.info(
            f"Bulk leave approval by user {current_user.id}: {len(approved)} approved, {len(failed)} failed"
        )
        return {"approved": approved, "failed": failed}
    # endregion

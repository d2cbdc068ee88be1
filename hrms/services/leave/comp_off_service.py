import logging
from typing import Any, Dict, Optional
from datetime import timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from hrms.core.config import settings
from hrms.core.exceptions import BadRequestError, ConflictError, NotFoundError
from hrms.models.auth.user import User
from hrms.models.leave.comp_off import CompOffRequest
from hrms.models.leave.leave_type import LeaveType, COMP_OFF_CODE
from hrms.models.shared.enums import AuditAction, RequestStatus
from hrms.schemas.leave.comp_off_schema import CompOffCreate
from hrms.services.audit.audit_service import AuditService
from hrms.services.hr.holiday_service import HolidayService
from hrms.services.leave import leave_balance
from hrms.services.leave.leave_service import LeaveService, leave_year_for
from hrms.services.shared.access import ensure_can_review, require_employee_id, reviewable_employee_ids
from hrms.services.shared.query import paginate
from hrms.services.shared.status_transitions import REQUEST_TRANSITIONS, ensure_transition
from hrms.utils.date_utils import is_weekend, utc_now

logger = logging.getLogger(__name__)

class CompOffService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit_service = AuditService(session)
        self.leave_service = LeaveService(session)
        self.holiday_service = HolidayService(session)

    async def create_request(self, data: CompOffCreate, current_user: User) -> CompOffRequest:
        """Claim compensatory leave for working a weekend or holiday"""
        employee_id = require_employee_id(current_user)
        tenant_id = current_user.tenant_id
        try:
            if data.worked_date > utc_now().date():
                raise BadRequestError("Worked date cannot be in the future")

            if not is_weekend(data.worked_date) and not await self.holiday_service.is_holiday(tenant_id, data.worked_date):
                raise BadRequestError("Comp-off can only be claimed for work on a weekend or holiday")

            existing = await self.session.scalar(
                select(CompOffRequest.id).where(
                    CompOffRequest.tenant_id == tenant_id,
                    CompOffRequest.employee_id == employee_id,
                    CompOffRequest.worked_date == data.worked_date,
                )
            )
            if existing:
                raise ConflictError(f"A comp-off request already exists for {data.worked_date}")

            request = CompOffRequest(
                tenant_id=tenant_id,
                employee_id=employee_id,
                worked_date=data.worked_date,
                earned_days=data.earned_days,
                expiry_date=data.worked_date + timedelta(days=settings.COMP_OFF_EXPIRY_DAYS),
                reason=data.reason,
                status=RequestStatus.PENDING,
            )
            self.session.add(request)
            await self.session.commit()
            await self.session.refresh(request)

            logger.info(f"Comp-off requested by employee {employee_id} for {data.worked_date}")
            return request

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating comp-off request: {str(e)}")
            raise

    async def get_my_requests(self, current_user: User, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        employee_id = require_employee_id(current_user)
        query = (
            select(CompOffRequest)
            .where(CompOffRequest.tenant_id == current_user.tenant_id, CompOffRequest.employee_id == employee_id)
            .order_by(CompOffRequest.worked_date.desc())
        )
        return await paginate(self.session, query, page, limit)

    async def get_all_requests(
        self,
        current_user: User,
        page: int = 1,
        limit: int = 20,
        status: Optional[RequestStatus] = None,
        employee_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        conditions = [CompOffRequest.tenant_id == current_user.tenant_id]
        scope = await reviewable_employee_ids(self.session, current_user)
        if scope is not None:
            conditions.append(CompOffRequest.employee_id.in_(scope))
        if status:
            conditions.append(CompOffRequest.status == status)
        if employee_id:
            conditions.append(CompOffRequest.employee_id == employee_id)

        query = select(CompOffRequest).where(*conditions).order_by(CompOffRequest.created_at.desc())
        return await paginate(self.session, query, page, limit)

    async def get_pending_approvals(self, current_user: User, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        return await self.get_all_requests(current_user, page=page, limit=limit, status=RequestStatus.PENDING)

    async def _get_request(self, request_id: int, tenant_id: int) -> CompOffRequest:
        request = await self.session.scalar(
            select(CompOffRequest).where(CompOffRequest.id == request_id, CompOffRequest.tenant_id == tenant_id)
        )
        if not request:
            raise NotFoundError(f"Comp-off request with ID {request_id} not found")
        return request

    async def _get_comp_off_leave_type(self, tenant_id: int) -> LeaveType:
        leave_type = await self.leave_service.get_leave_type_by_code(tenant_id, COMP_OFF_CODE)
        if leave_type is None:
            leave_type = LeaveType(
                tenant_id=tenant_id,
                name="Compensatory Off",
                code=COMP_OFF_CODE,
                description="Earned by working on weekends or holidays",
                default_days=0,
                is_paid=True,
                is_active=True,
            )
            self.session.add(leave_type)
            await self.session.flush()
            logger.info(f"Created {COMP_OFF_CODE} leave type for tenant {tenant_id}")
        return leave_type

    async def approve(self, request_id: int, current_user: User, note: Optional[str] = None) -> CompOffRequest:
        """Approve and credit the earned days to the comp-off leave balance"""
        try:
            request = await self._get_request(request_id, current_user.tenant_id)
            await ensure_can_review(self.session, current_user, request.employee_id)
            if request.status != RequestStatus.PENDING:
                raise BadRequestError("This request has already been processed")
            ensure_transition(REQUEST_TRANSITIONS, "comp-off request", request.status, RequestStatus.APPROVED)

            leave_type = await self._get_comp_off_leave_type(request.tenant_id)
            balance = await self.leave_service.get_or_create_balance(
                request.tenant_id, request.employee_id, leave_type, leave_year_for(utc_now().date())
            )
            leave_balance.credit(balance, request.earned_days)

            request.status = RequestStatus.APPROVED
            request.approver_id = current_user.id
            request.approver_note = note
            request.approved_at = utc_now()

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.APPROVE,
                entity_type="CompOffRequest",
                entity_id=request.id,
                old_values={"status": RequestStatus.PENDING},
                new_values={"status": request.status, "earned_days": request.earned_days},
            )
            await self.session.commit()
            await self.session.refresh(request)

            logger.info(f"Comp-off {request.id} approved by user {current_user.id}; {request.earned_days} day(s) credited")
            return request

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error approving comp-off {request_id}: {str(e)}")
            raise

    async def reject(self, request_id: int, current_user: User, note: Optional[str] = None) -> CompOffRequest:
        try:
            request = await self._get_request(request_id, current_user.tenant_id)
            await ensure_can_review(self.session, current_user, request.employee_id)
            if request.status != RequestStatus.PENDING:
                raise BadRequestError("This request has already been processed")
            ensure_transition(REQUEST_TRANSITIONS, "comp-off request", request.status, RequestStatus.REJECTED)

            request.status = RequestStatus.REJECTED
            request.approver_id = current_user.id
            request.approver_note = note
            request.approved_at = utc_now()

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.REJECT,
                entity_type="CompOffRequest",
                entity_id=request.id,
                old_values={"status": RequestStatus.PENDING},
                new_values={"status": request.status, "note": note},
            )
            await self.session.commit()
            await self.session.refresh(request)

            logger.info(f"Comp-off {request.id} rejected by user {current_user.id}")
            return request

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error rejecting comp-off {request_id}: {str(e)}")
            raise

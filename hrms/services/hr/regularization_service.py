import logging
from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from hrms.core.config import settings
from hrms.core.exceptions import BadRequestError, ConflictError, NotFoundError
from hrms.models.auth.user import User
from hrms.models.hr.attendance import AttendanceRecord
from hrms.models.hr.regularization import AttendanceRegularization
from hrms.models.shared.enums import AttendanceSource, AttendanceStatus, AuditAction, RequestStatus
from hrms.schemas.hr.regularization_schema import RegularizationCreate
from hrms.services.audit.audit_service import AuditService
from hrms.services.hr.attendance_service import AttendanceService
from hrms.services.shared.access import (
    ensure_can_review,
    get_tenant_employee,
    require_employee_id,
    reviewable_employee_ids,
)
from hrms.services.shared.query import paginate
from hrms.services.shared.status_transitions import REQUEST_TRANSITIONS, ensure_transition
from hrms.utils.date_utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

class RegularizationService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit_service = AuditService(session)
        self.attendance_service = AttendanceService(session)

    async def _get_request(self, request_id: int, tenant_id: int) -> AttendanceRegularization:
        result = await self.session.execute(
            select(AttendanceRegularization).where(
                AttendanceRegularization.id == request_id,
                AttendanceRegularization.tenant_id == tenant_id,
            )
        )
        request = result.scalar_one_or_none()
        if not request:
            raise NotFoundError(f"Regularization request with ID {request_id} not found")
        return request

    async def create_request(self, data: RegularizationCreate, current_user: User) -> AttendanceRegularization:
        """Employee asks to correct the clock times of a past day"""
        employee_id = require_employee_id(current_user)
        tenant_id = current_user.tenant_id
        try:
            if data.date > utc_now().date():
                raise BadRequestError("Cannot regularize a future date")

            existing = await self.session.scalar(
                select(AttendanceRegularization).where(
                    AttendanceRegularization.tenant_id == tenant_id,
                    AttendanceRegularization.employee_id == employee_id,
                    AttendanceRegularization.date == data.date,
                )
            )
            if existing:
                raise ConflictError(f"A regularization request already exists for {data.date}")

            attendance = await self.session.scalar(
                select(AttendanceRecord).where(
                    AttendanceRecord.tenant_id == tenant_id,
                    AttendanceRecord.employee_id == employee_id,
                    AttendanceRecord.date == data.date,
                )
            )

            request = AttendanceRegularization(
                tenant_id=tenant_id,
                employee_id=employee_id,
                date=data.date,
                original_clock_in=attendance.clock_in_time if attendance else None,
                original_clock_out=attendance.clock_out_time if attendance else None,
                requested_clock_in=ensure_utc(data.requested_clock_in),
                requested_clock_out=ensure_utc(data.requested_clock_out),
                reason=data.reason,
                status=RequestStatus.PENDING,
            )
            self.session.add(request)
            await self.session.commit()
            await self.session.refresh(request)

            logger.info(f"Regularization requested for employee {employee_id} on {data.date}")
            return request

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating regularization request: {str(e)}")
            raise

    async def get_my_requests(
        self,
        current_user: User,
        page: int = 1,
        limit: int = 20,
        status: Optional[RequestStatus] = None,
    ) -> Dict[str, Any]:
        employee_id = require_employee_id(current_user)
        conditions = [
            AttendanceRegularization.tenant_id == current_user.tenant_id,
            AttendanceRegularization.employee_id == employee_id,
        ]
        if status:
            conditions.append(AttendanceRegularization.status == status)

        query = select(AttendanceRegularization).where(*conditions).order_by(AttendanceRegularization.date.desc())
        return await paginate(self.session, query, page, limit)

    async def get_requests(
        self,
        current_user: User,
        page: int = 1,
        limit: int = 20,
        status: Optional[RequestStatus] = None,
        employee_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Requests the caller may review; managers see direct reports only"""
        conditions = [AttendanceRegularization.tenant_id == current_user.tenant_id]
        scope = await reviewable_employee_ids(self.session, current_user)
        if scope is not None:
            conditions.append(AttendanceRegularization.employee_id.in_(scope))
        if status:
            conditions.append(AttendanceRegularization.status == status)
        if employee_id:
            conditions.append(AttendanceRegularization.employee_id == employee_id)

        query = select(AttendanceRegularization).where(*conditions).order_by(AttendanceRegularization.created_at.desc())
        return await paginate(self.session, query, page, limit)

    async def approve_request(self, request_id: int, current_user: User, note: Optional[str] = None) -> AttendanceRegularization:
        """Approve and write the requested times onto the attendance day"""
        try:
            request = await self._get_request(request_id, current_user.tenant_id)
            await ensure_can_review(self.session, current_user, request.employee_id)
            if request.status != RequestStatus.PENDING:
                raise BadRequestError("This request has already been processed")
            ensure_transition(REQUEST_TRANSITIONS, "regularization", request.status, RequestStatus.APPROVED)

            employee = await get_tenant_employee(self.session, current_user.tenant_id, request.employee_id)
            attendance = await self.session.scalar(
                select(AttendanceRecord).where(
                    AttendanceRecord.tenant_id == request.tenant_id,
                    AttendanceRecord.employee_id == request.employee_id,
                    AttendanceRecord.date == request.date,
                )
            )
            if attendance is None:
                attendance = AttendanceRecord(
                    tenant_id=request.tenant_id,
                    employee_id=request.employee_id,
                    date=request.date,
                    standard_work_minutes=settings.STANDARD_WORK_MINUTES,
                    source=AttendanceSource.WEB,
                )
                self.session.add(attendance)

            await self.attendance_service.apply_clock_times(
                attendance, employee, request.requested_clock_in, request.requested_clock_out
            )
            attendance.status = AttendanceStatus.PRESENT
            attendance.remarks = f"Regularized: {request.reason}"

            request.status = RequestStatus.APPROVED
            request.approver_id = current_user.id
            request.approver_note = note
            request.approved_at = utc_now()

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.APPROVE,
                entity_type="AttendanceRegularization",
                entity_id=request.id,
                old_values={"status": RequestStatus.PENDING},
                new_values={"status": request.status, "note": note},
            )
            await self.session.commit()
            await self.session.refresh(request)

            logger.info(f"Regularization {request.id} approved by user {current_user.id}")
            return request

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error approving regularization {request_id}: {str(e)}")
            raise

    async def reject_request(self, request_id: int, current_user: User, note: Optional[str] = None) -> AttendanceRegularization:
        try:
            request = await self._get_request(request_id, current_user.tenant_id)
            await ensure_can_review(self.session, current_user, request.employee_id)
            if request.status != RequestStatus.PENDING:
                raise BadRequestError("This request has already been processed")
            ensure_transition(REQUEST_TRANSITIONS, "regularization", request.status, RequestStatus.REJECTED)

            request.status = RequestStatus.REJECTED
            request.approver_id = current_user.id
            request.approver_note = note
            request.approved_at = utc_now()

            self.audit_service.record(
                tenant_id=current_user.tenant_id,
                user_id=current_user.id,
                action=AuditAction.REJECT,
                entity_type="AttendanceRegularization",
                entity_id=request.id,
                old_values={"status": RequestStatus.PENDING},
                new_values={"status": request.status, "note": note},
            )
            await self.session.commit()
            await self.session.refresh(request)

            logger.info(f"Regularization {request.id} rejected by user {current_user.id}")
            return request

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error rejecting regularization {request_id}: {str(e)}")
            raise

from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.dependencies import PageParams, get_current_user, require_roles
from hrms.auth.roles import ADMIN_ROLES, APPROVER_ROLES
from hrms.core.database import get_async_session
from hrms.models.auth.user import User
from hrms.models.shared.enums import AttendanceStatus
from hrms.schemas.common.pagination import PaginatedResponse
from hrms.schemas.hr.attendance_schema import (
    AttendanceCreate,
    AttendanceResponse,
    AttendanceSummary,
    ClockInRequest,
    ClockOutRequest,
    OtApprovalRequest,
    PayableHoursResponse,
    TodayStatusResponse,
)
from hrms.services.hr.attendance_service import AttendanceService

router = APIRouter()

@router.post("/clock-in", response_model=AttendanceResponse, status_code=status.HTTP_201_CREATED)
async def clock_in(
    clock_in_data: ClockInRequest = ClockInRequest(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Clock in for today"""
    service = AttendanceService(session)
    return await service.clock_in(current_user, source=clock_in_data.source, remarks=clock_in_data.remarks)

@router.post("/clock-out", response_model=AttendanceResponse)
async def clock_out(
    clock_out_data: ClockOutRequest = ClockOutRequest(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Clock out and compute worked and OT minutes"""
    service = AttendanceService(session)
    return await service.clock_out(current_user, remarks=clock_out_data.remarks)

@router.get("/today", response_model=TodayStatusResponse)
async def get_today_status(
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Clock state of the current user for today"""
    service = AttendanceService(session)
    return await service.get_today_status(current_user)

@router.get("/my", response_model=PaginatedResponse[AttendanceResponse])
async def get_my_attendance(
    pagination: PageParams = Depends(),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Attendance history of the current user"""
    service = AttendanceService(session)
    return await service.get_my_attendance(
        current_user, page=pagination.page, limit=pagination.limit, start_date=start_date, end_date=end_date
    )

@router.get("/summary", response_model=AttendanceSummary)
async def get_summary(
    start_date: date = Query(...),
    end_date: date = Query(...),
    employee_id: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Status counts and worked/OT totals for a date range"""
    service = AttendanceService(session)
    return await service.get_summary(current_user, start_date, end_date, employee_id=employee_id)

@router.get("/ot/pending", response_model=PaginatedResponse[AttendanceResponse])
async def get_pending_ot_approvals(
    pagination: PageParams = Depends(),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    """Records with unreviewed overtime; managers see direct reports only"""
    service = AttendanceService(session)
    return await service.get_pending_ot_approvals(current_user, page=pagination.page, limit=pagination.limit)

@router.get("/payable-hours/{employee_id}", response_model=PayableHoursResponse)
async def get_payable_hours(
    employee_id: int,
    start_date: date = Query(...),
    end_date: date = Query(...),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Regular and approved OT hours for a period"""
    service = AttendanceService(session)
    return await service.get_payable_hours(employee_id, start_date, end_date, current_user)

@router.post("/", response_model=AttendanceResponse, status_code=status.HTTP_201_CREATED)
async def create_manual_attendance(
    attendance: AttendanceCreate,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
):
    """Record attendance on behalf of an employee"""
    service = AttendanceService(session)
    return await service.create_manual_attendance(attendance, current_user)

@router.get("/", response_model=PaginatedResponse[AttendanceResponse])
async def list_attendance(
    pagination: PageParams = Depends(),
    employee_id: Optional[int] = Query(None),
    attendance_status: Optional[AttendanceStatus] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    department_id: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    """Get attendance records with filtering and pagination"""
    service = AttendanceService(session)
    return await service.list_attendance(
        current_user,
        page=pagination.page,
        limit=pagination.limit,
        employee_id=employee_id,
        status=attendance_status,
        start_date=start_date,
        end_date=end_date,
        department_id=department_id,
    )

@router.get("/{record_id}", response_model=AttendanceResponse)
async def get_attendance(
    record_id: int,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Get a specific attendance record by ID"""
    service = AttendanceService(session)
    return await service.get_attendance(record_id, current_user)

@router.post("/{record_id}/approve-ot", response_model=AttendanceResponse)
async def approve_ot(
    record_id: int,
    approval: OtApprovalRequest,
    session: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*APPROVER_ROLES)),
):
    """Approve overtime minutes for one attendance day"""
    service = AttendanceService(session)
    return await service.approve_ot(record_id, approval.approved_minutes, current_user, note=approval.note)

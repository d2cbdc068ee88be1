import asyncio
import logging
from datetime import date
from decimal import Decimal
from typing import Dict
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.core.config import settings
from hrms.core.security import get_password_hash
from hrms.models.auth.user import User
from hrms.models.hr.employee import Employee
from hrms.models.hr.ot_rule import OtRule
from hrms.models.leave.leave_type import LeaveType, COMP_OFF_CODE, LOP_CODE
from hrms.models.organization.department import Department
from hrms.models.organization.tenant import Tenant
from hrms.models.shared.enums import EmploymentType, PayType, UserRole
from hrms.services.leave.leave_service import LeaveService

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"

DEPARTMENTS = [
    {"name": "Engineering", "description": "Product engineering"},
    {"name": "Human Resources", "description": "People operations"},
    {"name": "Operations", "description": "Business operations"},
]

LEAVE_TYPES = [
    {"code": "CL", "name": "Casual Leave", "default_days": 12},
    {"code": "SL", "name": "Sick Leave", "default_days": 12},
    {"code": "EL", "name": "Earned Leave", "default_days": 15, "carry_forward": True, "max_carry_forward": 30},
    {"code": LOP_CODE, "name": "Loss of Pay", "default_days": 0, "is_paid": False},
    {"code": COMP_OFF_CODE, "name": "Compensatory Off", "default_days": 0},
]

# (employee_code, first, last, email, role, department, designation, extra)
DEMO_PEOPLE = [
    ("EMP001", "Admin", "User", "hr@demo.com", UserRole.HR_ADMIN, "Human Resources", "HR Manager", {}),
    ("EMP002", "John", "Manager", "manager@demo.com", UserRole.MANAGER, "Engineering", "Engineering Manager", {}),
    ("EMP003", "Jane", "Developer", "employee@demo.com", UserRole.EMPLOYEE, "Engineering", "Software Developer",
     {"manager": "EMP002"}),
    ("EMP004", "Bob", "Contractor", "contractor@demo.com", UserRole.EMPLOYEE, "Operations", "Operations Assistant",
     {"employment_type": EmploymentType.CONTRACT, "pay_type": PayType.HOURLY, "hourly_rate": Decimal("25.00")}),
]

async def create_initial_data(session: AsyncSession, with_demo_users: bool = True) -> Tenant:
    """Create the default tenant with its reference data; safe to run repeatedly"""
    try:
        logger.info("Creating initial data...")

        tenant = await create_default_tenant(session)
        departments = await create_initial_departments(session, tenant)
        await create_initial_leave_types(session, tenant)
        await create_default_ot_rule(session, tenant)
        await create_super_admin_user(session, tenant, departments)
        if with_demo_users:
            await create_demo_users(session, tenant, departments)

        await session.commit()
        logger.info("Initial data created successfully")
        return tenant

    except Exception as e:
        logger.error(f"Error creating initial data: {str(e)}")
        await session.rollback()
        raise

async def create_default_tenant(session: AsyncSession) -> Tenant:
    tenant = await session.scalar(select(Tenant).where(Tenant.code == settings.DEFAULT_TENANT_CODE))
    if tenant is None:
        tenant = Tenant(name=settings.DEFAULT_TENANT_NAME, code=settings.DEFAULT_TENANT_CODE, is_active=True)
        session.add(tenant)
        await session.flush()
        logger.info(f"Created tenant: {tenant.code}")
    return tenant

async def create_initial_departments(session: AsyncSession, tenant: Tenant) -> Dict[str, Department]:
    departments = {}
    for dept_data in DEPARTMENTS:
        department = await session.scalar(
            select(Department).where(Department.tenant_id == tenant.id, Department.name == dept_data["name"])
        )
        if department is None:
            department = Department(tenant_id=tenant.id, **dept_data)
            session.add(department)
            logger.info(f"Created department: {dept_data['name']}")
        departments[dept_data["name"]] = department
    await session.flush()
    return departments

async def create_initial_leave_types(session: AsyncSession, tenant: Tenant):
    for type_data in LEAVE_TYPES:
        existing = await session.scalar(
            select(LeaveType.id).where(LeaveType.tenant_id == tenant.id, LeaveType.code == type_data["code"])
        )
        if existing:
            continue
        session.add(LeaveType(tenant_id=tenant.id, **type_data))
        logger.info(f"Created leave type: {type_data['code']}")
    await session.flush()

async def create_default_ot_rule(session: AsyncSession, tenant: Tenant):
    existing = await session.scalar(
        select(OtRule.id).where(OtRule.tenant_id == tenant.id, OtRule.employment_type.is_(None))
    )
    if existing:
        return
    session.add(
        OtRule(
            tenant_id=tenant.id,
            name="Default OT Rule",
            employment_type=None,
            daily_threshold_minutes=settings.STANDARD_WORK_MINUTES,
            rounding_interval_minutes=15,
            max_ot_per_day_minutes=240,
            max_ot_per_month_minutes=3600,
        )
    )
    logger.info("Created default OT rule")

async def _ensure_person(
    session: AsyncSession,
    tenant: Tenant,
    employee_code: str,
    first_name: str,
    last_name: str,
    email: str,
    role: UserRole,
    department: Department,
    designation: str,
    manager_id=None,
    password: str = DEMO_PASSWORD,
    **employee_fields,
) -> Employee:
    employee = await session.scalar(
        select(Employee).where(Employee.tenant_id == tenant.id, Employee.employee_code == employee_code)
    )
    if employee is None:
        employee = Employee(
            tenant_id=tenant.id,
            employee_code=employee_code,
            first_name=first_name,
            last_name=last_name,
            email=email,
            department_id=department.id,
            manager_id=manager_id,
            designation=designation,
            date_of_joining=date(2023, 1, 1),
            **employee_fields,
        )
        session.add(employee)
        await session.flush()
        await LeaveService(session).initialize_balances(tenant.id, employee.id, commit=False)

    user = await session.scalar(select(User).where(User.tenant_id == tenant.id, User.email == email))
    if user is None:
        session.add(
            User(
                tenant_id=tenant.id,
                email=email,
                full_name=f"{first_name} {last_name}",
                hashed_password=get_password_hash(password),
                role=role,
                employee_id=employee.id,
                is_active=True,
            )
        )
        logger.info(f"Created {role.value} user: {email}")
    return employee

async def create_super_admin_user(session: AsyncSession, tenant: Tenant, departments: Dict[str, Department]):
    """Create the tenant's super admin with a linked employee record"""
    await _ensure_person(
        session,
        tenant,
        "EMP000",
        "Super",
        "Admin",
        settings.SUPER_ADMIN_EMAIL,
        UserRole.SUPER_ADMIN,
        departments["Human Resources"],
        "System Administrator",
        password=settings.SUPER_ADMIN_PASSWORD,
    )

async def create_demo_users(session: AsyncSession, tenant: Tenant, departments: Dict[str, Department]):
    """HR admin, manager, employee and an hourly contractor"""
    created = {}
    for code, first, last, email, role, dept, designation, extra in DEMO_PEOPLE:
        extra = dict(extra)
        manager_code = extra.pop("manager", None)
        manager_id = created[manager_code].id if manager_code else None
        created[code] = await _ensure_person(
            session, tenant, code, first, last, email, role, departments[dept], designation,
            manager_id=manager_id, **extra,
        )

if __name__ == "__main__":
    from hrms.core.database import async_session_maker
    from hrms.core.logging_config import setup_logging
    from hrms.db.init_db import create_tables

    async def main():
        setup_logging()
        await create_tables()
        async with async_session_maker() as session:
            await create_initial_data(session)
        print("Initial data setup complete.")

    asyncio.run(main())

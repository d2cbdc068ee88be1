import pytest
from datetime import date
from typing import AsyncGenerator, Dict
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import hrms.models  # noqa: F401
from hrms.core.database import get_async_session
from hrms.core.security import get_password_hash
from hrms.db.seeds.initial_data import DEMO_PASSWORD, create_initial_data
from hrms.main import app
from hrms.models.base import Base
from hrms.models.auth.user import User
from hrms.models.hr.employee import Employee
from hrms.models.organization.tenant import Tenant
from hrms.models.shared.enums import UserRole

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

SUPER_ADMIN = ("admin@demo.com", "admin123")
HR_ADMIN = ("hr@demo.com", DEMO_PASSWORD)
MANAGER = ("manager@demo.com", DEMO_PASSWORD)
EMPLOYEE = ("employee@demo.com", DEMO_PASSWORD)
CONTRACTOR = ("contractor@demo.com", DEMO_PASSWORD)

@pytest.fixture
async def session_maker() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database per test, seeded with the demo tenant"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as session:
        await create_initial_data(session)

    yield maker
    await engine.dispose()

@pytest.fixture
async def session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session

@pytest.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """Create test client"""
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

async def login(client: AsyncClient, email: str, password: str, tenant_code: str = "DEMO") -> Dict[str, str]:
    payload = {"email": email, "password": password, "tenant_code": tenant_code}
    response = await client.post("/api/v1/auth/login", json=payload)
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}

@pytest.fixture
async def super_admin_headers(client: AsyncClient) -> Dict[str, str]:
    return await login(client, *SUPER_ADMIN)

@pytest.fixture
async def admin_headers(client: AsyncClient) -> Dict[str, str]:
    """HR admin of the demo tenant"""
    return await login(client, *HR_ADMIN)

@pytest.fixture
async def manager_headers(client: AsyncClient) -> Dict[str, str]:
    return await login(client, *MANAGER)

@pytest.fixture
async def employee_headers(client: AsyncClient) -> Dict[str, str]:
    """Direct report of the manager"""
    return await login(client, *EMPLOYEE)

@pytest.fixture
async def contractor_headers(client: AsyncClient) -> Dict[str, str]:
    """Hourly employee without a manager"""
    return await login(client, *CONTRACTOR)

@pytest.fixture
async def employees(session: AsyncSession) -> Dict[str, int]:
    """Seeded employee ids by employee code"""
    result = await session.execute(select(Employee.employee_code, Employee.id))
    return {code: employee_id for code, employee_id in result.all()}

@pytest.fixture
async def other_tenant(session: AsyncSession) -> Dict[str, int]:
    """Second organization whose HR admin shares an email with the demo tenant"""
    tenant = Tenant(name="Acme Corp", code="ACME", is_active=True)
    session.add(tenant)
    await session.flush()

    employee = Employee(
        tenant_id=tenant.id,
        employee_code="EMP001",
        first_name="Acme",
        last_name="Admin",
        email=HR_ADMIN[0],
        date_of_joining=date(2024, 1, 1),
    )
    session.add(employee)
    await session.flush()

    session.add(User(
        tenant_id=tenant.id,
        email=HR_ADMIN[0],
        full_name="Acme Admin",
        hashed_password=get_password_hash(HR_ADMIN[1]),
        role=UserRole.HR_ADMIN,
        employee_id=employee.id,
    ))
    await session.commit()
    return {"tenant_id": tenant.id, "employee_id": employee.id}

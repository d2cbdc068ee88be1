import pytest
from httpx import AsyncClient
from fastapi import status

from tests.integration.conftest import CONTRACTOR, HR_ADMIN, login

BASE = "/api/v1/employees"

NEW_HIRE = {
    "employee_code": "EMP010",
    "first_name": "Sam",
    "last_name": "Taylor",
    "email": "Sam.Taylor@demo.com",
    "date_of_joining": "2026-03-02",
    "designation": "QA Engineer",
}

@pytest.mark.asyncio
class TestEmployees:
    async def test_create_with_login(self, client: AsyncClient, admin_headers, employees):
        payload = {**NEW_HIRE, "manager_id": employees["EMP002"], "password": "welcome123"}
        response = await client.post(f"{BASE}/", json=payload, headers=admin_headers)
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["email"] == "sam.taylor@demo.com"
        assert data["status"] == "ACTIVE"
        assert "password" not in data

        headers = await login(client, "sam.taylor@demo.com", "welcome123")
        balances = await client.get("/api/v1/leave/balances", headers=headers)
        assert len(balances.json()) == 5

    async def test_duplicate_code(self, client: AsyncClient, admin_headers):
        await client.post(f"{BASE}/", json=NEW_HIRE, headers=admin_headers)
        response = await client.post(f"{BASE}/", json=NEW_HIRE, headers=admin_headers)
        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_unknown_manager(self, client: AsyncClient, admin_headers):
        payload = {**NEW_HIRE, "manager_id": 999999}
        response = await client.post(f"{BASE}/", json=payload, headers=admin_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_invalid_email(self, client: AsyncClient, admin_headers):
        payload = {**NEW_HIRE, "email": "not-an-email"}
        response = await client.post(f"{BASE}/", json=payload, headers=admin_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_employee_cannot_create(self, client: AsyncClient, employee_headers):
        response = await client.post(f"{BASE}/", json=NEW_HIRE, headers=employee_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_list_is_scoped_by_role(self, client: AsyncClient, admin_headers, manager_headers, employee_headers):
        everyone = await client.get(f"{BASE}/", headers=admin_headers)
        assert everyone.json()["meta"]["total"] == 5

        team = await client.get(f"{BASE}/", headers=manager_headers)
        assert [item["employee_code"] for item in team.json()["data"]] == ["EMP002", "EMP003"]

        own = await client.get(f"{BASE}/", headers=employee_headers)
        assert [item["employee_code"] for item in own.json()["data"]] == ["EMP003"]

    async def test_search_and_pagination(self, client: AsyncClient, admin_headers):
        response = await client.get(f"{BASE}/", params={"search": "contractor"}, headers=admin_headers)
        assert [item["employee_code"] for item in response.json()["data"]] == ["EMP004"]

        page = await client.get(f"{BASE}/", params={"page": 2, "limit": 2}, headers=admin_headers)
        assert page.json()["meta"] == {"total": 5, "page": 2, "limit": 2, "totalPages": 3}

        too_big = await client.get(f"{BASE}/", params={"limit": 500}, headers=admin_headers)
        assert too_big.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_view_permissions(self, client: AsyncClient, manager_headers, contractor_headers, employees):
        report = await client.get(f"{BASE}/{employees['EMP003']}", headers=manager_headers)
        assert report.status_code == status.HTTP_200_OK

        other = await client.get(f"{BASE}/{employees['EMP003']}", headers=contractor_headers)
        assert other.status_code == status.HTTP_403_FORBIDDEN

    async def test_update_and_deactivate(self, client: AsyncClient, admin_headers, employees):
        employee_id = employees["EMP004"]
        updated = await client.put(
            f"{BASE}/{employee_id}", json={"designation": "Senior Contractor"}, headers=admin_headers
        )
        assert updated.json()["designation"] == "Senior Contractor"

        own_manager = await client.put(f"{BASE}/{employee_id}", json={"manager_id": employee_id}, headers=admin_headers)
        assert own_manager.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

        deactivated = await client.delete(f"{BASE}/{employee_id}", headers=admin_headers)
        assert deactivated.json()["status"] == "INACTIVE"

        # The linked account is disabled as well
        response = await client.post(
            "/api/v1/auth/login", json={"email": CONTRACTOR[0], "password": CONTRACTOR[1]}
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

@pytest.mark.asyncio
class TestTenantIsolation:
    async def test_other_tenant_is_not_found(self, client: AsyncClient, admin_headers, other_tenant):
        response = await client.get(f"{BASE}/{other_tenant['employee_id']}", headers=admin_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

        response = await client.put(
            f"{BASE}/{other_tenant['employee_id']}", json={"designation": "Hijacked"}, headers=admin_headers
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_lists_stay_inside_the_tenant(self, client: AsyncClient, other_tenant, employees):
        headers = await login(client, *HR_ADMIN, tenant_code="ACME")
        response = await client.get(f"{BASE}/", headers=headers)
        assert [item["id"] for item in response.json()["data"]] == [other_tenant["employee_id"]]

        response = await client.get(f"{BASE}/{employees['EMP003']}", headers=headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

@pytest.mark.asyncio
class TestHolidays:
    async def test_holiday_crud(self, client: AsyncClient, admin_headers, employee_headers):
        created = await client.post(
            "/api/v1/holidays/", json={"name": "New Year", "date": "2026-01-01"}, headers=admin_headers
        )
        assert created.status_code == status.HTTP_201_CREATED
        holiday_id = created.json()["id"]

        duplicate = await client.post(
            "/api/v1/holidays/", json={"name": "New Year", "date": "2026-01-01"}, headers=admin_headers
        )
        assert duplicate.status_code == status.HTTP_409_CONFLICT

        listed = await client.get("/api/v1/holidays/", params={"year": 2026}, headers=employee_headers)
        assert listed.json()["meta"]["total"] == 1

        moved = await client.put(
            f"/api/v1/holidays/{holiday_id}", json={"date": "2026-01-02"}, headers=admin_headers
        )
        assert moved.json()["date"] == "2026-01-02"

        forbidden = await client.delete(f"/api/v1/holidays/{holiday_id}", headers=employee_headers)
        assert forbidden.status_code == status.HTTP_403_FORBIDDEN

        deleted = await client.delete(f"/api/v1/holidays/{holiday_id}", headers=admin_headers)
        assert deleted.status_code == status.HTTP_200_OK

@pytest.mark.asyncio
class TestService:
    async def test_root_and_health(self, client: AsyncClient):
        root = await client.get("/")
        assert root.json()["status"] == "active"

        health = await client.get("/health")
        assert health.status_code == status.HTTP_200_OK
        assert health.json()["status"] == "healthy"
        assert "X-Process-Time" in health.headers

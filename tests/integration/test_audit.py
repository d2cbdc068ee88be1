import pytest
from httpx import AsyncClient
from fastapi import status

from tests.integration.conftest import HR_ADMIN, login

BASE = "/api/v1/audit"

@pytest.mark.asyncio
class TestAuditTrail:
    async def test_entity_history(self, client: AsyncClient, admin_headers, employees):
        employee_id = employees["EMP004"]
        await client.put(f"/api/v1/employees/{employee_id}", json={"designation": "Lead"}, headers=admin_headers)
        await client.delete(f"/api/v1/employees/{employee_id}", headers=admin_headers)

        response = await client.get(f"{BASE}/Employee/{employee_id}", headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK
        history = response.json()
        assert [entry["action"] for entry in history] == ["UPDATE", "DELETE"]
        assert history[0]["new_values"] == {"designation": "Lead"}
        assert history[1]["old_values"] == {"status": "ACTIVE"}
        assert history[1]["new_values"] == {"status": "INACTIVE"}

    async def test_login_is_recorded(self, client: AsyncClient, admin_headers, employee_headers):
        response = await client.get(
            f"{BASE}/", params={"action": "LOGIN", "entity_type": "User"}, headers=admin_headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["meta"]["total"] == 2
        assert response.json()["meta"]["limit"] == 50
        assert response.json()["data"][0]["ip_address"] is not None

    async def test_approval_is_recorded(self, client: AsyncClient, admin_headers, employee_headers, manager_headers):
        types = (await client.get("/api/v1/leave/types", headers=employee_headers)).json()
        cl = next(item["id"] for item in types if item["code"] == "CL")
        created = await client.post(
            "/api/v1/leave/requests",
            json={"leave_type_id": cl, "start_date": "2026-01-12", "end_date": "2026-01-12"},
            headers=employee_headers,
        )
        await client.post(
            f"/api/v1/leave/requests/{created.json()['id']}/approve", json={"note": "ok"}, headers=manager_headers
        )

        response = await client.get(
            f"{BASE}/", params={"entity_type": "LeaveRequest", "action": "APPROVE"}, headers=admin_headers
        )
        entry = response.json()["data"][0]
        assert entry["entity_id"] == created.json()["id"]
        assert entry["old_values"] == {"status": "PENDING"}
        assert entry["new_values"] == {"status": "APPROVED", "note": "ok"}

    async def test_admin_only(self, client: AsyncClient, manager_headers):
        response = await client.get(f"{BASE}/", headers=manager_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_scoped_to_tenant(self, client: AsyncClient, admin_headers, other_tenant):
        acme_headers = await login(client, *HR_ADMIN, tenant_code="ACME")
        response = await client.get(f"{BASE}/", params={"action": "LOGIN"}, headers=acme_headers)
        assert response.json()["meta"]["total"] == 1

import pytest
from httpx import AsyncClient
from fastapi import status

from tests.integration.conftest import EMPLOYEE, HR_ADMIN, login

@pytest.mark.asyncio
class TestAuth:
    """Test authentication endpoints"""

    async def test_login_success(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/login", json={"email": EMPLOYEE[0], "password": EMPLOYEE[1]}
        )
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert "access_token" in data
        assert "refresh_token" in data
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == EMPLOYEE[0]
        assert data["user"]["role"] == "EMPLOYEE"
        assert data["user"]["last_login"] is not None

    async def test_login_is_case_insensitive(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/login", json={"email": EMPLOYEE[0].upper(), "password": EMPLOYEE[1]}
        )
        assert response.status_code == status.HTTP_200_OK

    async def test_login_invalid_credentials(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/login", json={"email": EMPLOYEE[0], "password": "wrongpassword"}
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

        response = await client.post(
            "/api/v1/auth/login", json={"email": "nobody@demo.com", "password": "wrongpassword"}
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_get_current_user(self, client: AsyncClient, manager_headers, employees):
        response = await client.get("/api/v1/auth/me", headers=manager_headers)
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert data["role"] == "MANAGER"
        assert data["employee_id"] == employees["EMP002"]
        assert "hashed_password" not in data

    async def test_requires_token(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

        response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_refresh_token(self, client: AsyncClient):
        login_response = await client.post(
            "/api/v1/auth/login", json={"email": EMPLOYEE[0], "password": EMPLOYEE[1]}
        )
        tokens = login_response.json()

        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert response.status_code == status.HTTP_200_OK
        refreshed = response.json()
        assert refreshed["refresh_token"] == tokens["refresh_token"]

        me = await client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {refreshed['access_token']}"}
        )
        assert me.json()["email"] == EMPLOYEE[0]

    async def test_access_token_cannot_refresh(self, client: AsyncClient):
        tokens = (await client.post(
            "/api/v1/auth/login", json={"email": EMPLOYEE[0], "password": EMPLOYEE[1]}
        )).json()
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["access_token"]})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_shared_email_needs_tenant_code(self, client: AsyncClient, other_tenant):
        response = await client.post("/api/v1/auth/login", json={"email": HR_ADMIN[0], "password": HR_ADMIN[1]})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        headers = await login(client, *HR_ADMIN, tenant_code="ACME")
        me = await client.get("/api/v1/auth/me", headers=headers)
        assert me.json()["tenant_id"] == other_tenant["tenant_id"]

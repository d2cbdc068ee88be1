import pytest
from httpx import AsyncClient
from fastapi import status
from sqlalchemy import select

from hrms.models.leave.accrual import LeaveAccrualRun
from hrms.models.shared.enums import AccrualRunStatus, AccrualTriggerType
from hrms.workers.celery_tasks.leave_tasks import accrue_for_all_tenants

BASE = "/api/v1/leave/accrual"

# Seeded tenant has five active employees
ACTIVE_EMPLOYEES = 5

async def type_id(client: AsyncClient, headers, code: str) -> int:
    types = (await client.get("/api/v1/leave/types", headers=headers)).json()
    return next(item["id"] for item in types if item["code"] == code)

async def balance(client: AsyncClient, headers, leave_type_id: int, year: int) -> dict:
    response = await client.get("/api/v1/leave/balances", params={"year": year}, headers=headers)
    return next(item for item in response.json() if item["leave_type_id"] == leave_type_id)

@pytest.mark.asyncio
class TestAccrualRules:
    async def test_rule_crud(self, client: AsyncClient, admin_headers):
        el = await type_id(client, admin_headers, "EL")
        payload = {"leave_type_id": el, "monthly_accrual_days": 1.25, "max_balance_cap": 30}
        created = await client.post(f"{BASE}/rules", json=payload, headers=admin_headers)
        assert created.status_code == status.HTTP_201_CREATED
        assert created.json()["apply_cap_on_accrual"] is True

        duplicate = await client.post(f"{BASE}/rules", json=payload, headers=admin_headers)
        assert duplicate.status_code == status.HTTP_409_CONFLICT

        rule_id = created.json()["id"]
        updated = await client.put(f"{BASE}/rules/{rule_id}", json={"monthly_accrual_days": 1.5}, headers=admin_headers)
        assert updated.status_code == status.HTTP_200_OK
        assert updated.json()["monthly_accrual_days"] == 1.5

        rules = await client.get(f"{BASE}/rules", headers=admin_headers)
        assert len(rules.json()) == 1

        deleted = await client.delete(f"{BASE}/rules/{rule_id}", headers=admin_headers)
        assert deleted.json()["success"] is True

    async def test_invalid_rule(self, client: AsyncClient, admin_headers):
        el = await type_id(client, admin_headers, "EL")
        payload = {"leave_type_id": el, "monthly_accrual_days": 0}
        response = await client.post(f"{BASE}/rules", json=payload, headers=admin_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_employee_cannot_manage_rules(self, client: AsyncClient, employee_headers):
        response = await client.get(f"{BASE}/rules", headers=employee_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

@pytest.mark.asyncio
class TestAccrualRuns:
    async def test_monthly_accrual(self, client: AsyncClient, admin_headers, employee_headers):
        el = await type_id(client, admin_headers, "EL")
        await client.post(
            f"{BASE}/rules", json={"leave_type_id": el, "monthly_accrual_days": 1.25}, headers=admin_headers
        )

        response = await client.post(f"{BASE}/trigger", json={"month": 1, "year": 2026}, headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK
        run = response.json()
        assert run["status"] == "COMPLETED"
        assert run["trigger_type"] == "MANUAL"
        assert run["processed_count"] == ACTIVE_EMPLOYEES

        # January 2026 credits the 2025 leave year
        assert (await balance(client, employee_headers, el, 2025))["total_days"] == 16.25

        again = await client.post(f"{BASE}/trigger", json={"month": 1, "year": 2026}, headers=admin_headers)
        assert again.status_code == status.HTTP_409_CONFLICT
        assert (await balance(client, employee_headers, el, 2025))["total_days"] == 16.25

        detail = await client.get(f"{BASE}/runs/{run['id']}", headers=admin_headers)
        assert len(detail.json()["entries"]) == ACTIVE_EMPLOYEES
        assert detail.json()["entries"][0]["balance_before"] == 15

        runs = await client.get(f"{BASE}/runs", headers=admin_headers)
        assert runs.json()["meta"]["total"] == 1

    async def test_cap_on_accrual(self, client: AsyncClient, admin_headers):
        sl = await type_id(client, admin_headers, "SL")
        await client.post(
            f"{BASE}/rules",
            json={"leave_type_id": sl, "monthly_accrual_days": 2, "max_balance_cap": 13},
            headers=admin_headers,
        )

        run = (await client.post(f"{BASE}/trigger", json={"month": 2, "year": 2026}, headers=admin_headers)).json()
        entries = (await client.get(f"{BASE}/runs/{run['id']}", headers=admin_headers)).json()["entries"]
        assert {entry["days_accrued"] for entry in entries} == {1}
        assert all(entry["cap_applied"] for entry in entries)
        assert {entry["balance_after"] for entry in entries} == {13}

        # Already at the cap: nothing to credit
        run = (await client.post(f"{BASE}/trigger", json={"month": 3, "year": 2026}, headers=admin_headers)).json()
        assert run["processed_count"] == 0

    async def test_invalid_month(self, client: AsyncClient, admin_headers):
        response = await client.post(f"{BASE}/trigger", json={"month": 13, "year": 2026}, headers=admin_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_year_end_carry_forward(self, client: AsyncClient, admin_headers, employee_headers, employees):
        el = await type_id(client, admin_headers, "EL")
        response = await client.post(f"{BASE}/year-end", json={"year": 2030}, headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"year": 2030, "capped": 0, "carried_forward": 0}

        await client.post(
            f"/api/v1/leave/balances/initialize/{employees['EMP003']}", params={"year": 2030}, headers=admin_headers
        )
        response = await client.post(f"{BASE}/year-end", json={"year": 2030}, headers=admin_headers)
        assert response.json()["carried_forward"] == 1

        next_year = await balance(client, employee_headers, el, 2031)
        assert next_year["carried_over"] == 15
        assert next_year["available_days"] == 30

@pytest.mark.asyncio
class TestScheduledAccrual:
    async def test_runs_for_every_tenant(self, session_maker, session, client: AsyncClient, admin_headers):
        el = await type_id(client, admin_headers, "EL")
        await client.post(
            f"{BASE}/rules", json={"leave_type_id": el, "monthly_accrual_days": 1}, headers=admin_headers
        )

        summary = await accrue_for_all_tenants(session_maker, 4, 2026)
        assert len(summary["processed"]) == 1
        assert summary["failed"] == []

        run = await session.scalar(select(LeaveAccrualRun).where(LeaveAccrualRun.month == 4))
        assert run.status == AccrualRunStatus.COMPLETED
        assert run.trigger_type == AccrualTriggerType.SCHEDULED

        repeat = await accrue_for_all_tenants(session_maker, 4, 2026)
        assert repeat["skipped"] == summary["processed"]

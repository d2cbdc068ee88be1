import pytest
from httpx import AsyncClient
from fastapi import status

BASE = "/api/v1/leave/comp-off"

# Saturday
WORKED_WEEKEND = {"worked_date": "2026-01-10", "earned_days": 1, "reason": "Release support"}

async def comp_off_balance(client: AsyncClient, headers) -> dict:
    types = (await client.get("/api/v1/leave/types", headers=headers)).json()
    type_id = next(item["id"] for item in types if item["code"] == "COMP_OFF")
    balances = (await client.get("/api/v1/leave/balances", headers=headers)).json()
    return next(item for item in balances if item["leave_type_id"] == type_id)

@pytest.mark.asyncio
class TestCompOff:
    async def test_approve_credits_balance(self, client: AsyncClient, employee_headers, manager_headers):
        before = await comp_off_balance(client, employee_headers)

        created = await client.post(f"{BASE}/", json=WORKED_WEEKEND, headers=employee_headers)
        assert created.status_code == status.HTTP_201_CREATED
        assert created.json()["status"] == "PENDING"
        assert created.json()["expiry_date"] == "2026-04-10"

        response = await client.post(
            f"{BASE}/{created.json()['id']}/approve", json={"note": "Thanks"}, headers=manager_headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "APPROVED"

        after = await comp_off_balance(client, employee_headers)
        assert after["total_days"] == before["total_days"] + 1

        again = await client.post(f"{BASE}/{created.json()['id']}/approve", json={}, headers=manager_headers)
        assert again.status_code == status.HTTP_400_BAD_REQUEST
        assert (await comp_off_balance(client, employee_headers))["total_days"] == after["total_days"]

    async def test_weekday_is_rejected(self, client: AsyncClient, employee_headers):
        payload = {**WORKED_WEEKEND, "worked_date": "2026-01-07"}
        response = await client.post(f"{BASE}/", json=payload, headers=employee_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_holiday_is_accepted(self, client: AsyncClient, admin_headers, employee_headers):
        holiday = {"name": "Republic Day", "date": "2026-01-26"}
        created = await client.post("/api/v1/holidays/", json=holiday, headers=admin_headers)
        assert created.status_code == status.HTTP_201_CREATED

        payload = {**WORKED_WEEKEND, "worked_date": "2026-01-26", "earned_days": 0.5}
        response = await client.post(f"{BASE}/", json=payload, headers=employee_headers)
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["earned_days"] == 0.5

    async def test_duplicate_day(self, client: AsyncClient, employee_headers):
        await client.post(f"{BASE}/", json=WORKED_WEEKEND, headers=employee_headers)
        response = await client.post(f"{BASE}/", json=WORKED_WEEKEND, headers=employee_headers)
        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_invalid_earned_days(self, client: AsyncClient, employee_headers):
        payload = {**WORKED_WEEKEND, "earned_days": 2}
        response = await client.post(f"{BASE}/", json=payload, headers=employee_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_reject_and_queues(self, client: AsyncClient, employee_headers, contractor_headers, manager_headers, admin_headers):
        mine = await client.post(f"{BASE}/", json=WORKED_WEEKEND, headers=employee_headers)
        theirs = await client.post(f"{BASE}/", json=WORKED_WEEKEND, headers=contractor_headers)

        manager_queue = await client.get(f"{BASE}/pending", headers=manager_headers)
        assert [item["id"] for item in manager_queue.json()["data"]] == [mine.json()["id"]]

        forbidden = await client.post(f"{BASE}/{theirs.json()['id']}/reject", json={}, headers=manager_headers)
        assert forbidden.status_code == status.HTTP_403_FORBIDDEN

        response = await client.post(
            f"{BASE}/{theirs.json()['id']}/reject", json={"note": "Not approved overtime"}, headers=admin_headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "REJECTED"

        history = await client.get(f"{BASE}/my", headers=contractor_headers)
        assert history.json()["data"][0]["status"] == "REJECTED"

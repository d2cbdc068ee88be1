import pytest
from httpx import AsyncClient
from fastapi import status

BASE = "/api/v1/attendance/regularizations"

REQUEST = {
    "date": "2026-01-07",
    "requested_clock_in": "2026-01-07T09:00:00Z",
    "requested_clock_out": "2026-01-07T18:30:00Z",
    "reason": "Forgot to clock in",
}

@pytest.mark.asyncio
class TestRegularization:
    async def test_approve_writes_attendance(self, client: AsyncClient, employee_headers, manager_headers):
        created = await client.post(f"{BASE}/", json=REQUEST, headers=employee_headers)
        assert created.status_code == status.HTTP_201_CREATED
        assert created.json()["status"] == "PENDING"
        assert created.json()["original_clock_in"] is None

        response = await client.post(
            f"{BASE}/{created.json()['id']}/approve", json={"note": "ok"}, headers=manager_headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "APPROVED"
        assert response.json()["approver_note"] == "ok"

        attendance = await client.get("/api/v1/attendance/my", headers=employee_headers)
        day = attendance.json()["data"][0]
        assert day["date"] == "2026-01-07"
        assert day["worked_minutes"] == 510
        assert day["ot_minutes_calculated"] == 30

        again = await client.post(f"{BASE}/{created.json()['id']}/approve", json={}, headers=manager_headers)
        assert again.status_code == status.HTTP_400_BAD_REQUEST

    async def test_duplicate_day(self, client: AsyncClient, employee_headers):
        await client.post(f"{BASE}/", json=REQUEST, headers=employee_headers)
        response = await client.post(f"{BASE}/", json=REQUEST, headers=employee_headers)
        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_invalid_times(self, client: AsyncClient, employee_headers):
        payload = {**REQUEST, "requested_clock_out": "2026-01-07T08:00:00Z"}
        response = await client.post(f"{BASE}/", json=payload, headers=employee_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_reject(self, client: AsyncClient, employee_headers, admin_headers):
        created = await client.post(f"{BASE}/", json=REQUEST, headers=employee_headers)
        response = await client.post(
            f"{BASE}/{created.json()['id']}/reject", json={"note": "No evidence"}, headers=admin_headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "REJECTED"

        mine = await client.get(f"{BASE}/my", headers=employee_headers)
        assert mine.json()["data"][0]["status"] == "REJECTED"

    async def test_manager_cannot_review_other_team(self, client: AsyncClient, contractor_headers, manager_headers):
        created = await client.post(f"{BASE}/", json=REQUEST, headers=contractor_headers)
        response = await client.post(f"{BASE}/{created.json()['id']}/approve", json={}, headers=manager_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_mixed_offsets_are_read_as_utc(self, client: AsyncClient, employee_headers, admin_headers):
        payload = {**REQUEST, "requested_clock_out": "2026-01-07T18:30:00"}
        created = await client.post(f"{BASE}/", json=payload, headers=employee_headers)
        assert created.status_code == status.HTTP_201_CREATED

        await client.post(f"{BASE}/{created.json()['id']}/approve", json={}, headers=admin_headers)
        attendance = await client.get("/api/v1/attendance/my", headers=employee_headers)
        assert attendance.json()["data"][0]["worked_minutes"] == 510

        naive_out_of_order = {**REQUEST, "date": "2026-01-08",
                              "requested_clock_in": "2026-01-08T09:00:00Z",
                              "requested_clock_out": "2026-01-08T08:00:00"}
        response = await client.post(f"{BASE}/", json=naive_out_of_order, headers=employee_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_times_must_fall_on_the_requested_day(self, client: AsyncClient, employee_headers):
        payload = {
            **REQUEST,
            "requested_clock_in": "2026-01-05T09:00:00Z",
            "requested_clock_out": "2026-01-05T18:30:00Z",
        }
        response = await client.post(f"{BASE}/", json=payload, headers=employee_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

        mine = await client.get(f"{BASE}/my", headers=employee_headers)
        assert mine.json()["meta"]["total"] == 0

    async def test_night_shift_may_end_next_day(self, client: AsyncClient, employee_headers):
        payload = {
            **REQUEST,
            "requested_clock_in": "2026-01-07T22:00:00Z",
            "requested_clock_out": "2026-01-08T06:00:00Z",
        }
        response = await client.post(f"{BASE}/", json=payload, headers=employee_headers)
        assert response.status_code == status.HTTP_201_CREATED

import pytest
from datetime import date
from decimal import Decimal
from httpx import AsyncClient
from fastapi import status
from sqlalchemy import select

from hrms.db.seeds.attendance_data import seed_attendance
from hrms.models.hr.attendance import AttendanceRecord
from hrms.models.hr.ot_rule import OtRule
from hrms.models.organization.tenant import Tenant

BASE = "/api/v1/attendance"

def manual_day(employee_id: int, day: str = "2026-01-05", clock_in: str = "09:00", clock_out: str = "19:30") -> dict:
    return {
        "employee_id": employee_id,
        "date": day,
        "clock_in_time": f"{day}T{clock_in}:00Z",
        "clock_out_time": f"{day}T{clock_out}:00Z",
    }

@pytest.mark.asyncio
class TestClockInOut:
    """Self-service clock in and out"""

    async def test_clock_in_then_out(self, client: AsyncClient, employee_headers):
        response = await client.post(f"{BASE}/clock-in", json={}, headers=employee_headers)
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["status"] == "PRESENT"

        today = await client.get(f"{BASE}/today", headers=employee_headers)
        assert today.json()["status"] == "CLOCKED_IN"

        response = await client.post(f"{BASE}/clock-in", json={}, headers=employee_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Already clocked in today"

        response = await client.post(f"{BASE}/clock-out", json={}, headers=employee_headers)
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["clock_out_time"] is not None
        assert data["worked_minutes"] == 0

        today = await client.get(f"{BASE}/today", headers=employee_headers)
        assert today.json()["status"] == "CLOCKED_OUT"

        response = await client.post(f"{BASE}/clock-out", json={}, headers=employee_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_clock_out_without_clock_in(self, client: AsyncClient, employee_headers):
        response = await client.post(f"{BASE}/clock-out", json={}, headers=employee_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "No clock-in found for today"

    async def test_requires_token(self, client: AsyncClient):
        response = await client.post(f"{BASE}/clock-in", json={})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

@pytest.mark.asyncio
class TestManualAttendance:
    async def test_worked_and_ot_minutes(self, client: AsyncClient, admin_headers, employees):
        response = await client.post(f"{BASE}/", json=manual_day(employees["EMP003"]), headers=admin_headers)
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["worked_minutes"] == 570
        assert data["ot_minutes_calculated"] == 90
        assert data["ot_minutes_approved"] is None
        assert data["break_minutes"] == 60

    async def test_duplicate_day(self, client: AsyncClient, admin_headers, employees):
        payload = manual_day(employees["EMP003"])
        await client.post(f"{BASE}/", json=payload, headers=admin_headers)
        response = await client.post(f"{BASE}/", json=payload, headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_clock_out_before_clock_in(self, client: AsyncClient, admin_headers, employees):
        payload = manual_day(employees["EMP003"], clock_in="18:00", clock_out="09:00")
        response = await client.post(f"{BASE}/", json=payload, headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Clock-out time cannot be before clock-in time"

    async def test_clock_in_must_fall_on_the_date(self, client: AsyncClient, admin_headers, employees):
        payload = manual_day(employees["EMP003"])
        payload["clock_in_time"] = "2026-01-04T09:00:00Z"
        response = await client.post(f"{BASE}/", json=payload, headers=admin_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_employee_cannot_create(self, client: AsyncClient, employee_headers, employees):
        response = await client.post(f"{BASE}/", json=manual_day(employees["EMP003"]), headers=employee_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_listing_is_scoped(self, client: AsyncClient, admin_headers, manager_headers, employee_headers, employees):
        await client.post(f"{BASE}/", json=manual_day(employees["EMP003"]), headers=admin_headers)
        await client.post(f"{BASE}/", json=manual_day(employees["EMP004"]), headers=admin_headers)

        response = await client.get(f"{BASE}/", headers=admin_headers)
        assert response.json()["meta"]["total"] == 2

        response = await client.get(f"{BASE}/", headers=manager_headers)
        body = response.json()
        assert body["meta"] == {"total": 1, "page": 1, "limit": 20, "totalPages": 1}
        assert body["data"][0]["employee_id"] == employees["EMP003"]

        response = await client.get(f"{BASE}/", headers=employee_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await client.get(f"{BASE}/my", headers=employee_headers)
        assert response.json()["meta"]["total"] == 1

    async def test_employee_cannot_view_colleague(self, client: AsyncClient, admin_headers, employee_headers, employees):
        created = await client.post(f"{BASE}/", json=manual_day(employees["EMP004"]), headers=admin_headers)
        response = await client.get(f"{BASE}/{created.json()['id']}", headers=employee_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_summary(self, client: AsyncClient, admin_headers, employees):
        await client.post(f"{BASE}/", json=manual_day(employees["EMP003"]), headers=admin_headers)
        absent = {"employee_id": employees["EMP003"], "date": "2026-01-06", "status": "ABSENT"}
        await client.post(f"{BASE}/", json=absent, headers=admin_headers)

        response = await client.get(
            f"{BASE}/summary",
            params={"start_date": "2026-01-01", "end_date": "2026-01-31", "employee_id": employees["EMP003"]},
            headers=admin_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total_records"] == 2
        assert data["status_counts"]["PRESENT"] == 1
        assert data["status_counts"]["ABSENT"] == 1
        assert data["total_worked_minutes"] == 570
        assert data["total_ot_minutes_calculated"] == 90

@pytest.mark.asyncio
class TestOvertimeApproval:
    async def test_manager_approves_direct_report(self, client: AsyncClient, admin_headers, manager_headers, employees):
        created = await client.post(f"{BASE}/", json=manual_day(employees["EMP003"]), headers=admin_headers)
        record_id = created.json()["id"]

        pending = await client.get(f"{BASE}/ot/pending", headers=manager_headers)
        assert [row["id"] for row in pending.json()["data"]] == [record_id]

        response = await client.post(
            f"{BASE}/{record_id}/approve-ot", json={"approved_minutes": 60}, headers=manager_headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["ot_minutes_approved"] == 60

        pending = await client.get(f"{BASE}/ot/pending", headers=manager_headers)
        assert pending.json()["meta"]["total"] == 0

    async def test_cannot_exceed_calculated(self, client: AsyncClient, admin_headers, employees):
        created = await client.post(f"{BASE}/", json=manual_day(employees["EMP003"]), headers=admin_headers)
        response = await client.post(
            f"{BASE}/{created.json()['id']}/approve-ot", json={"approved_minutes": 120}, headers=admin_headers
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_manager_cannot_approve_other_team(self, client: AsyncClient, admin_headers, manager_headers, employees):
        created = await client.post(f"{BASE}/", json=manual_day(employees["EMP004"]), headers=admin_headers)
        response = await client.post(
            f"{BASE}/{created.json()['id']}/approve-ot", json={"approved_minutes": 30}, headers=manager_headers
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_payable_hours_for_hourly_employee(self, client: AsyncClient, admin_headers, employees):
        contractor_id = employees["EMP004"]
        created = await client.post(f"{BASE}/", json=manual_day(contractor_id), headers=admin_headers)
        await client.post(
            f"{BASE}/{created.json()['id']}/approve-ot", json={"approved_minutes": 90}, headers=admin_headers
        )

        response = await client.get(
            f"{BASE}/payable-hours/{contractor_id}",
            params={"start_date": "2026-01-01", "end_date": "2026-01-31"},
            headers=admin_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["regular_hours"] == 8.0
        assert data["approved_ot_hours"] == 1.5
        assert data["pending_ot_hours"] == 0
        assert Decimal(data["estimated_pay"]) == Decimal("256.25")

    async def test_monthly_ot_cap(self, client: AsyncClient, session, admin_headers, employees):
        rule = await session.scalar(select(OtRule).where(OtRule.employment_type.is_(None)))
        rule.max_ot_per_month_minutes = 100
        await session.commit()

        first = await client.post(f"{BASE}/", json=manual_day(employees["EMP003"]), headers=admin_headers)
        second = await client.post(
            f"{BASE}/", json=manual_day(employees["EMP003"], day="2026-01-06"), headers=admin_headers
        )
        response = await client.post(
            f"{BASE}/{first.json()['id']}/approve-ot", json={"approved_minutes": 90}, headers=admin_headers
        )
        assert response.status_code == status.HTTP_200_OK

        response = await client.post(
            f"{BASE}/{second.json()['id']}/approve-ot", json={"approved_minutes": 90}, headers=admin_headers
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Monthly OT limit exceeded. Remaining this month: 10 minutes"

        response = await client.post(
            f"{BASE}/{second.json()['id']}/approve-ot", json={"approved_minutes": 10}, headers=admin_headers
        )
        assert response.json()["ot_minutes_approved"] == 10

        # A new month starts with the full allowance
        third = await client.post(
            f"{BASE}/", json=manual_day(employees["EMP003"], day="2026-02-02"), headers=admin_headers
        )
        response = await client.post(
            f"{BASE}/{third.json()['id']}/approve-ot", json={"approved_minutes": 90}, headers=admin_headers
        )
        assert response.status_code == status.HTTP_200_OK

@pytest.mark.asyncio
class TestAttendanceSeed:
    async def test_second_run_skips_existing_days(self, session):
        tenant = await session.scalar(select(Tenant).where(Tenant.code == "DEMO"))

        # January 2026 has 22 weekdays; five active employees
        created, skipped = await seed_attendance(session, tenant.id, [(2026, 1)])
        assert (created, skipped) == (110, 0)

        created, skipped = await seed_attendance(session, tenant.id, [(2026, 1)])
        assert (created, skipped) == (0, 110)

    async def test_seeded_overtime_follows_the_ot_rule(self, session, employees):
        tenant = await session.scalar(select(Tenant).where(Tenant.code == "DEMO"))
        rule = await session.scalar(select(OtRule).where(OtRule.employment_type.is_(None)))
        rule.max_ot_per_day_minutes = 60
        await session.commit()

        await seed_attendance(session, tenant.id, [(2026, 1)])

        # The first seeded weekday carries 570 worked minutes
        record = await session.scalar(
            select(AttendanceRecord).where(
                AttendanceRecord.employee_id == employees["EMP003"],
                AttendanceRecord.date == date(2026, 1, 1),
            )
        )
        assert record.worked_minutes == 570
        assert record.ot_minutes_calculated == 60

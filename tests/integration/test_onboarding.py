import pytest
from httpx import AsyncClient
from fastapi import status

BASE = "/api/v1/onboarding"

TEMPLATE = {
    "name": "Engineering onboarding",
    "description": "First week checklist",
    "tasks": [
        {"title": "Sign contract", "category": "DOCUMENTATION", "default_assignee_role": "EMPLOYEE",
         "days_after_start": 0, "sort_order": 1},
        {"title": "Laptop setup", "category": "IT_SETUP", "default_assignee_role": "HR_ADMIN",
         "days_after_start": 1, "sort_order": 2},
        {"title": "Team introduction", "category": "INTRODUCTION", "default_assignee_role": "MANAGER",
         "days_after_start": 2, "sort_order": 3},
    ],
}

async def start_process(client: AsyncClient, headers, employee_id: int) -> dict:
    template = await client.post(f"{BASE}/templates", json=TEMPLATE, headers=headers)
    assert template.status_code == status.HTTP_201_CREATED
    payload = {"employee_id": employee_id, "template_id": template.json()["id"], "start_date": "2026-03-02"}
    response = await client.post(f"{BASE}/processes", json=payload, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()

def task_named(process: dict, title: str) -> dict:
    return next(task for task in process["tasks"] if task["title"] == title)

@pytest.mark.asyncio
class TestOnboardingTemplates:
    async def test_template_crud(self, client: AsyncClient, admin_headers):
        created = await client.post(f"{BASE}/templates", json=TEMPLATE, headers=admin_headers)
        assert created.status_code == status.HTTP_201_CREATED
        assert len(created.json()["tasks"]) == 3

        duplicate = await client.post(f"{BASE}/templates", json=TEMPLATE, headers=admin_headers)
        assert duplicate.status_code == status.HTTP_409_CONFLICT

        template_id = created.json()["id"]
        updated = await client.put(
            f"{BASE}/templates/{template_id}", json={"description": "Updated"}, headers=admin_headers
        )
        assert updated.json()["description"] == "Updated"

        deleted = await client.delete(f"{BASE}/templates/{template_id}", headers=admin_headers)
        assert deleted.json()["success"] is True
        missing = await client.get(f"{BASE}/templates/{template_id}", headers=admin_headers)
        assert missing.status_code == status.HTTP_404_NOT_FOUND

    async def test_template_needs_tasks(self, client: AsyncClient, admin_headers):
        response = await client.post(f"{BASE}/templates", json={"name": "Empty", "tasks": []}, headers=admin_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_employee_cannot_manage_templates(self, client: AsyncClient, employee_headers):
        response = await client.get(f"{BASE}/templates", headers=employee_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

@pytest.mark.asyncio
class TestOnboardingProcess:
    async def test_tasks_are_assigned_from_roles(self, client: AsyncClient, admin_headers, employees):
        process = await start_process(client, admin_headers, employees["EMP003"])
        assert process["status"] == "NOT_STARTED"

        assert task_named(process, "Sign contract")["assignee_id"] == employees["EMP003"]
        assert task_named(process, "Team introduction")["assignee_id"] == employees["EMP002"]
        assert task_named(process, "Laptop setup")["assignee_id"] == employees["EMP001"]
        assert task_named(process, "Laptop setup")["due_date"] == "2026-03-03"

    async def test_process_completes_when_no_task_is_open(
        self, client: AsyncClient, admin_headers, employee_headers, manager_headers, employees
    ):
        process = await start_process(client, admin_headers, employees["EMP003"])
        contract = task_named(process, "Sign contract")
        intro = task_named(process, "Team introduction")
        laptop = task_named(process, "Laptop setup")

        mine = await client.get(f"{BASE}/tasks/my", headers=employee_headers)
        assert [task["id"] for task in mine.json()["data"]] == [contract["id"]]

        done = await client.post(
            f"{BASE}/tasks/{contract['id']}/complete", json={"note": "Signed"}, headers=employee_headers
        )
        assert done.status_code == status.HTTP_200_OK
        assert done.json()["status"] == "COMPLETED"
        assert done.json()["notes"] == "Signed"

        again = await client.post(f"{BASE}/tasks/{contract['id']}/complete", json={}, headers=employee_headers)
        assert again.status_code == status.HTTP_400_BAD_REQUEST

        current = await client.get(f"{BASE}/processes/{process['id']}", headers=admin_headers)
        assert current.json()["status"] == "IN_PROGRESS"

        not_mine = await client.post(f"{BASE}/tasks/{intro['id']}/complete", json={}, headers=employee_headers)
        assert not_mine.status_code == status.HTTP_403_FORBIDDEN

        await client.post(f"{BASE}/tasks/{intro['id']}/complete", json={}, headers=manager_headers)
        skipped = await client.post(
            f"{BASE}/tasks/{laptop['id']}/skip", json={"note": "Brings own device"}, headers=admin_headers
        )
        assert skipped.json()["status"] == "SKIPPED"

        final = await client.get(f"{BASE}/processes/{process['id']}", headers=admin_headers)
        assert final.json()["status"] == "COMPLETED"
        assert final.json()["completed_at"] is not None

    async def test_only_admin_reassigns(self, client: AsyncClient, admin_headers, employee_headers, employees):
        process = await start_process(client, admin_headers, employees["EMP003"])
        contract = task_named(process, "Sign contract")

        denied = await client.put(
            f"{BASE}/tasks/{contract['id']}", json={"assignee_id": employees["EMP002"]}, headers=employee_headers
        )
        assert denied.status_code == status.HTTP_403_FORBIDDEN

        response = await client.put(
            f"{BASE}/tasks/{contract['id']}", json={"assignee_id": employees["EMP002"]}, headers=admin_headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["assignee_id"] == employees["EMP002"]

    async def test_cancel_skips_open_tasks(self, client: AsyncClient, admin_headers, employee_headers, employees):
        process = await start_process(client, admin_headers, employees["EMP003"])

        cancelled = await client.post(f"{BASE}/processes/{process['id']}/cancel", headers=admin_headers)
        assert cancelled.status_code == status.HTTP_200_OK
        assert cancelled.json()["status"] == "CANCELLED"
        assert {task["status"] for task in cancelled.json()["tasks"]} == {"SKIPPED"}

        mine = await client.get(f"{BASE}/tasks/my", headers=employee_headers)
        assert mine.json()["meta"]["total"] == 0

        again = await client.post(f"{BASE}/processes/{process['id']}/cancel", headers=admin_headers)
        assert again.status_code == status.HTTP_400_BAD_REQUEST

    async def test_template_in_use_and_delete_process(self, client: AsyncClient, admin_headers, employees):
        process = await start_process(client, admin_headers, employees["EMP003"])

        blocked = await client.delete(f"{BASE}/templates/{process['template_id']}", headers=admin_headers)
        assert blocked.status_code == status.HTTP_400_BAD_REQUEST

        listed = await client.get(f"{BASE}/processes", params={"status": "NOT_STARTED"}, headers=admin_headers)
        assert listed.json()["meta"]["total"] == 1

        deleted = await client.delete(f"{BASE}/processes/{process['id']}", headers=admin_headers)
        assert deleted.json()["success"] is True

    async def test_unknown_employee(self, client: AsyncClient, admin_headers):
        template = await client.post(f"{BASE}/templates", json=TEMPLATE, headers=admin_headers)
        payload = {"employee_id": 999999, "template_id": template.json()["id"]}
        response = await client.post(f"{BASE}/processes", json=payload, headers=admin_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

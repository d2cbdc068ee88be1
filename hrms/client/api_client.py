"""
Async HTTP client for the HRMS API.

Attaches the bearer token to every request, drops the token when the
server answers 401 and turns error responses into exceptions carrying
the server's ``detail`` message.
"""
import asyncio
import logging
import os
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000/api/v1"


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class SessionExpiredError(ApiError):
    def __init__(self, message: str = "Session expired, please sign in again"):
        super().__init__(401, message)


class BulkActionError(Exception):
    """Some items of a bulk action failed; the others went through"""

    def __init__(self, succeeded: List[int], failures: Dict[int, str]):
        self.succeeded = succeeded
        self.failures = failures
        super().__init__(f"{len(failures)} of {len(succeeded) + len(failures)} items failed")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, list):
        # FastAPI request validation errors
        return "; ".join(str(item.get("msg", item)) for item in detail)
    return str(detail or body)


class HrmsApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        on_session_expired: Optional[Callable[[], None]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.base_url = (base_url or os.getenv("HRMS_API_URL") or DEFAULT_API_URL).rstrip("/")
        self.token = token
        self.on_session_expired = on_session_expired
        self._client = httpx.AsyncClient(base_url=self.base_url, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "HrmsApiClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def close(self):
        await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def request(self, method: str, path: str, **kwargs) -> Any:
        response = await self._client.request(method, path, headers=self._headers(), **kwargs)

        if response.status_code == 401:
            self.token = None
            if self.on_session_expired:
                self.on_session_expired()
            raise SessionExpiredError()
        if response.is_error:
            message = _error_message(response)
            logger.warning(f"{method} {path} failed with {response.status_code}: {message}")
            raise ApiError(response.status_code, message)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    # Auth
    async def login(self, email: str, password: str, tenant_code: Optional[str] = None) -> Dict[str, Any]:
        data = await self.post("/auth/login", {"email": email, "password": password, "tenant_code": tenant_code})
        self.token = data["access_token"]
        return data

    async def me(self) -> Dict[str, Any]:
        return await self.get("/auth/me")

    # Attendance
    async def clock_in(self, remarks: Optional[str] = None) -> Dict[str, Any]:
        return await self.post("/attendance/clock-in", {"remarks": remarks})

    async def clock_out(self, remarks: Optional[str] = None) -> Dict[str, Any]:
        return await self.post("/attendance/clock-out", {"remarks": remarks})

    async def get_my_attendance(self, **params) -> Dict[str, Any]:
        return await self.get("/attendance/my", params)

    # Leave
    async def get_leave_balances(self, **params) -> List[Dict[str, Any]]:
        return await self.get("/leave/balances", params)

    async def apply_leave(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.post("/leave/requests", payload)

    async def get_pending_leaves(self, **params) -> Dict[str, Any]:
        return await self.get("/leave/requests/pending", params)

    async def approve_leave(self, request_id: int, note: Optional[str] = None) -> Dict[str, Any]:
        return await self.post(f"/leave/requests/{request_id}/approve", {"note": note})

    async def reject_leave(self, request_id: int, note: Optional[str] = None) -> Dict[str, Any]:
        return await self.post(f"/leave/requests/{request_id}/reject", {"note": note})

    async def bulk_approve_leaves(self, request_ids: Iterable[int], note: Optional[str] = None) -> List[int]:
        """Approve each request with its own call, all in flight at once"""
        return await self._bulk(request_ids, lambda request_id: self.approve_leave(request_id, note))

    # Expenses
    async def approve_expense(self, claim_id: int, note: Optional[str] = None) -> Dict[str, Any]:
        return await self.post(f"/expenses/claims/{claim_id}/approve", {"note": note})

    async def bulk_approve_expenses(self, claim_ids: Iterable[int], note: Optional[str] = None) -> List[int]:
        return await self._bulk(claim_ids, lambda claim_id: self.approve_expense(claim_id, note))

    async def _bulk(self, ids: Iterable[int], action: Callable[[int], Any]) -> List[int]:
        ids = list(ids)
        results = await asyncio.gather(*(action(item_id) for item_id in ids), return_exceptions=True)

        succeeded, failures = [], {}
        for item_id, result in zip(ids, results):
            if isinstance(result, SessionExpiredError):
                raise result
            if isinstance(result, ApiError):
                failures[item_id] = result.message
            elif isinstance(result, Exception):
                raise result
            else:
                succeeded.append(item_id)

        if failures:
            raise BulkActionError(succeeded, failures)
        return succeeded

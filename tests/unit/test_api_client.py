import json

import httpx
import pytest

from hrms.client.api_client import ApiError, BulkActionError, HrmsApiClient, SessionExpiredError


def make_client(handler, token="token-1", **kwargs):
    return HrmsApiClient(
        base_url="http://hrms.test/api/v1",
        token=token,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
class TestApiClient:
    async def test_bearer_token_is_attached(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["auth"] = request.headers.get("Authorization")
            seen["path"] = request.url.path
            return httpx.Response(200, json={"id": 1})

        async with make_client(handler) as client:
            assert await client.me() == {"id": 1}
        assert seen == {"auth": "Bearer token-1", "path": "/api/v1/auth/me"}

    async def test_base_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("HRMS_API_URL", "http://env.test/api/v1/")
        client = HrmsApiClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        assert client.base_url == "http://env.test/api/v1"
        await client.close()

    async def test_login_stores_token(self):
        def handler(request: httpx.Request):
            body = json.loads(request.content)
            assert body["email"] == "hr@demo.com"
            return httpx.Response(200, json={"access_token": "fresh", "token_type": "bearer"})

        async with make_client(handler, token=None) as client:
            await client.login("hr@demo.com", "password123")
            assert client.token == "fresh"

    async def test_401_purges_token(self):
        expired = []

        async with make_client(
            lambda request: httpx.Response(401, json={"detail": "Token expired"}),
            on_session_expired=lambda: expired.append(True),
        ) as client:
            with pytest.raises(SessionExpiredError):
                await client.me()
            assert client.token is None
        assert expired == [True]

    async def test_error_detail_is_surfaced(self):
        async with make_client(lambda request: httpx.Response(409, json={"detail": "Overlapping leave"})) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.apply_leave({"leave_type_id": 1})
        assert exc_info.value.status_code == 409
        assert exc_info.value.message == "Overlapping leave"

    async def test_validation_errors_are_joined(self):
        body = {"detail": [{"msg": "field required"}, {"msg": "value is not a valid date"}]}
        async with make_client(lambda request: httpx.Response(422, json=body)) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.apply_leave({})
        assert exc_info.value.message == "field required; value is not a valid date"

    async def test_bulk_approve_all_succeed(self):
        async with make_client(lambda request: httpx.Response(200, json={"status": "APPROVED"})) as client:
            assert await client.bulk_approve_leaves([1, 2, 3]) == [1, 2, 3]

    async def test_bulk_approve_partial_failure(self):
        def handler(request: httpx.Request):
            if request.url.path.endswith("/2/approve"):
                return httpx.Response(400, json={"detail": "Cannot move leave request from APPROVED to APPROVED"})
            return httpx.Response(200, json={"status": "APPROVED"})

        async with make_client(handler) as client:
            with pytest.raises(BulkActionError) as exc_info:
                await client.bulk_approve_leaves([1, 2, 3])

        error = exc_info.value
        assert error.succeeded == [1, 3]
        assert error.failures == {2: "Cannot move leave request from APPROVED to APPROVED"}
        assert str(error) == "1 of 3 items failed"

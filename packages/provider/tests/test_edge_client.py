"""EdgeFunctionClient 单元测试

使用 httpx.MockTransport 替代托管后端，验证：
请求路径与请求体、鉴权头、响应解析、非 2xx 与传输失败统一抛出 RemoteCallError。
"""

import httpx
import pytest
from smarttask.provider import EdgeFunctionClient, RemoteCallError
from smarttask.provider.client import GENERATE_EMBEDDING, GENERATE_SUBTASKS, SMART_SEARCH


def _client(handler, api_key: str = "anon-key") -> EdgeFunctionClient:
    return EdgeFunctionClient(
        base_url="http://functions.test/",
        api_key=api_key,
        transport=httpx.MockTransport(handler),
    )


class TestRequests:
    async def test_generate_embedding_payload(self, recording_handler):
        handler = recording_handler(payload={"ok": True})
        client = _client(handler)

        await client.generate_embedding("01JTASK000000000000000001", "Buy groceries", "user-token")

        request = handler.requests[0]
        assert request.method == "POST"
        assert str(request.url) == f"http://functions.test/functions/v1/{GENERATE_EMBEDDING}"
        assert handler.last_body == {
            "taskId": "01JTASK000000000000000001",
            "taskTitle": "Buy groceries",
        }
        assert request.headers["Authorization"] == "Bearer user-token"
        assert request.headers["apikey"] == "anon-key"

    async def test_api_key_used_without_user_token(self, recording_handler):
        handler = recording_handler(payload={"subtasks": []})
        client = _client(handler)

        await client.generate_subtasks("Buy groceries")

        assert handler.requests[0].headers["Authorization"] == "Bearer anon-key"

    async def test_no_credentials(self, recording_handler):
        handler = recording_handler(payload={"subtasks": []})
        client = _client(handler, api_key="")

        await client.generate_subtasks("Buy groceries")

        assert "Authorization" not in handler.requests[0].headers
        assert "apikey" not in handler.requests[0].headers


class TestResponses:
    async def test_generate_subtasks_keeps_order(self, recording_handler):
        handler = recording_handler(payload={"subtasks": ["Buy milk", "Buy eggs", "Buy bread"]})
        client = _client(handler)

        subtasks = await client.generate_subtasks("Buy groceries")

        assert subtasks == ["Buy milk", "Buy eggs", "Buy bread"]
        assert str(handler.requests[0].url).endswith(GENERATE_SUBTASKS)
        assert handler.last_body == {"taskTitle": "Buy groceries"}

    async def test_smart_search_returns_raw_results(self, recording_handler):
        results = [
            {"id": "a", "title": "Buy milk", "priority": "low", "status": "pending", "similarity": 0.9},
            {"id": "b", "title": "Buy eggs", "priority": "low", "status": "done", "similarity": 0.8},
        ]
        handler = recording_handler(payload={"results": results})
        client = _client(handler)

        assert await client.smart_search("groceries") == results
        assert str(handler.requests[0].url).endswith(SMART_SEARCH)
        assert handler.last_body == {"query": "groceries"}

    async def test_malformed_body_raises(self, recording_handler):
        handler = recording_handler(payload={"subtasks": "not-a-list"})
        client = _client(handler)

        with pytest.raises(RemoteCallError) as exc_info:
            await client.generate_subtasks("Buy groceries")
        assert exc_info.value.function_name == GENERATE_SUBTASKS
        assert "malformed" in str(exc_info.value)


class TestFailures:
    @pytest.mark.parametrize("status_code", [400, 401, 500, 503])
    async def test_non_2xx_raises(self, recording_handler, status_code: int):
        handler = recording_handler(status_code=status_code, payload={"error": "x"})
        client = _client(handler)

        with pytest.raises(RemoteCallError) as exc_info:
            await client.smart_search("groceries")
        assert exc_info.value.status_code == status_code
        assert exc_info.value.function_name == SMART_SEARCH

    async def test_transport_failure_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)

        with pytest.raises(RemoteCallError) as exc_info:
            await client.generate_embedding("01JTASK000000000000000001", "Buy groceries")
        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.original_error, httpx.ConnectError)


class TestHealthCheck:
    async def test_reachable(self, recording_handler):
        handler = recording_handler(status_code=404)
        assert await _client(handler).health_check() is True

    async def test_server_error(self, recording_handler):
        handler = recording_handler(status_code=502)
        assert await _client(handler).health_check() is False

    async def test_unreachable_never_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        assert await _client(handler).health_check() is False

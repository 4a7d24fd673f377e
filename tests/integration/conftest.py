"""集成测试共享 fixture

app 使用 remote 模式：RemoteTaskFunctions -> EdgeFunctionClient，
托管后端由 httpx.MockTransport 模拟。
"""

import json
from collections.abc import AsyncGenerator
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from smarttask.core.store import create_store_group
from smarttask.provider import EdgeFunctionClient


class FakeEdgeBackend:
    """模拟托管后端的三个函数"""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict, str | None]] = []
        self.subtasks = ["Buy milk", "Buy eggs"]
        self.search_results: list[dict] = []
        self.embedding_status = 200
        self.search_status = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        name = request.url.path.rsplit("/", 1)[-1]
        body = json.loads(request.content) if request.content else {}
        self.calls.append((name, body, request.headers.get("Authorization")))

        if name == "generate-embedding":
            return httpx.Response(self.embedding_status, json={"success": True})
        if name == "generate-subtasks":
            return httpx.Response(200, json={"subtasks": self.subtasks})
        if name == "smart-search":
            return httpx.Response(self.search_status, json={"results": self.search_results})
        return httpx.Response(404, json={"error": "unknown function"})

    def calls_to(self, name: str) -> list[tuple[str, dict, str | None]]:
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def edge_backend() -> FakeEdgeBackend:
    return FakeEdgeBackend()


@pytest_asyncio.fixture
async def integration_app(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    edge_backend: FakeEdgeBackend,
):
    """集成测试用 FastAPI app"""
    monkeypatch.setenv("SMARTTASK_DB_PATH", str(tmp_path / "test.db"))

    from smarttask.gateway.main import create_app
    from smarttask.gateway.services.functions import RemoteTaskFunctions
    from smarttask.gateway.services.search_service import SearchService
    from smarttask.gateway.services.task_service import TaskService

    app = create_app()

    store_group = await create_store_group(str(tmp_path / "test.db"))
    functions = RemoteTaskFunctions(
        EdgeFunctionClient(
            base_url="http://functions.test",
            api_key="anon-key",
            transport=httpx.MockTransport(edge_backend),
        )
    )
    app.state.store_group = store_group
    app.state.task_functions = functions
    app.state.task_service = TaskService(store_group, functions)
    app.state.search_service = SearchService(functions)

    yield app

    await app.state.task_service.wait_background_jobs()
    await store_group.conn.close()


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
        headers={"X-User-ID": "user-a", "Authorization": "Bearer user-a-token"},
    ) as ac:
        yield ac

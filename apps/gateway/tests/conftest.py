"""apps/gateway 测试配置 -- 任务函数桩 + 临时 Store + httpx AsyncClient"""

import asyncio
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from smarttask.core.store import StoreGroup, create_store_group
from smarttask.provider import RemoteCallError


class FakeTaskFunctions:
    """TaskFunctions 测试桩：记录调用，返回预设结果"""

    def __init__(self) -> None:
        self.suggestions: list[str] = ["Buy milk", "Buy eggs"]
        self.search_results: list[dict[str, Any]] = []
        self.embedding_calls: list[tuple[str, str, str, str | None]] = []
        self.subtask_calls: list[str] = []
        self.search_calls: list[str] = []
        self.fail_embedding = False
        self.fail_subtasks = False
        self.healthy = True
        # 设置后 generate_subtasks 会等待该事件，用于观察生成中状态
        self.release: asyncio.Event | None = None

    async def generate_embedding(
        self,
        user_id: str,
        task_id: str,
        title: str,
        access_token: str | None = None,
    ) -> None:
        self.embedding_calls.append((user_id, task_id, title, access_token))
        if self.fail_embedding:
            raise RemoteCallError("generate-embedding", status_code=500)

    async def generate_subtasks(self, title: str, access_token: str | None = None) -> list[str]:
        self.subtask_calls.append(title)
        if self.release is not None:
            await self.release.wait()
        if self.fail_subtasks:
            raise RemoteCallError("generate-subtasks", status_code=503)
        return list(self.suggestions)

    async def smart_search(
        self,
        user_id: str,
        query: str,
        access_token: str | None = None,
    ) -> list[dict[str, Any]]:
        self.search_calls.append(query)
        return list(self.search_results)

    async def health_check(self) -> bool:
        return self.healthy


@pytest.fixture
def fake_functions() -> FakeTaskFunctions:
    return FakeTaskFunctions()


@pytest_asyncio.fixture
async def store_group(tmp_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """临时数据库上的 StoreGroup"""
    group = await create_store_group(str(tmp_path / "sqlite" / "test.db"))
    yield group
    await group.conn.close()


@pytest_asyncio.fixture
async def app(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    store_group: StoreGroup,
    fake_functions: FakeTaskFunctions,
):
    """创建测试用 FastAPI app 实例（手动初始化 state，绕过 lifespan）"""
    monkeypatch.setenv("SMARTTASK_DB_PATH", str(tmp_path / "sqlite" / "test.db"))

    from smarttask.gateway.main import create_app
    from smarttask.gateway.services.search_service import SearchService
    from smarttask.gateway.services.task_service import TaskService

    application = create_app()
    application.state.store_group = store_group
    application.state.task_functions = fake_functions
    application.state.task_service = TaskService(store_group, fake_functions)
    application.state.search_service = SearchService(fake_functions)

    yield application

    await application.state.task_service.wait_background_jobs()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """以 user-a 身份访问的 httpx AsyncClient"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-User-ID": "user-a", "Authorization": "Bearer token-a"},
    ) as ac:
        yield ac

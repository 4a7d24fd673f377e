"""packages/core 测试配置 -- 核心层 fixture"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio
from smarttask.core.models import Subtask, Task, TaskPriority, TaskStatus

BASE_TIME = datetime(2026, 3, 1, 9, 0, 0, tzinfo=UTC)


def _make_task(
    task_id: str,
    user_id: str = "user-a",
    title: str = "写周报",
    priority: TaskPriority = TaskPriority.MEDIUM,
    status: TaskStatus = TaskStatus.PENDING,
    offset_s: int = 0,
) -> Task:
    """构造测试用 Task；offset_s 控制 created_at 先后"""
    ts = BASE_TIME + timedelta(seconds=offset_s)
    return Task(
        task_id=task_id,
        user_id=user_id,
        title=title,
        priority=priority,
        status=status,
        created_at=ts,
        updated_at=ts,
    )


def _make_subtask(
    subtask_id: str,
    task_id: str,
    user_id: str = "user-a",
    title: str = "列提纲",
    offset_s: int = 0,
) -> Subtask:
    return Subtask(
        subtask_id=subtask_id,
        task_id=task_id,
        user_id=user_id,
        title=title,
        created_at=BASE_TIME + timedelta(seconds=offset_s),
    )


@pytest_asyncio.fixture
async def core_db_path(tmp_path: Path) -> Path:
    """核心层临时数据库路径"""
    return tmp_path / "core_test.db"


@pytest_asyncio.fixture
async def core_db(core_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """核心层已初始化数据库连接"""
    from smarttask.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(core_db_path))
    await init_db(conn)
    yield conn
    await conn.close()


@pytest.fixture
def make_task():
    """Task 工厂"""
    return _make_task


@pytest.fixture
def make_subtask():
    """Subtask 工厂"""
    return _make_subtask

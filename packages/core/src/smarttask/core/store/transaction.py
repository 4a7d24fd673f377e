"""写事务封装

在同一连接上执行一组写操作，成功则提交，任何异常都回滚后原样抛出。
Store 方法本身不提交事务。

StoreGroup 内所有 Store 共享一个连接，后台 embedding 作业也写同一个连接，
因此同一连接上的写事务按进入顺序串行执行，避免一方的回滚撤销另一方未提交的写入。
"""

import asyncio
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

_write_locks: "weakref.WeakKeyDictionary[aiosqlite.Connection, asyncio.Lock]" = (
    weakref.WeakKeyDictionary()
)


def _write_lock(conn: aiosqlite.Connection) -> asyncio.Lock:
    lock = _write_locks.get(conn)
    if lock is None:
        lock = asyncio.Lock()
        _write_locks[conn] = lock
    return lock


@asynccontextmanager
async def write_transaction(conn: aiosqlite.Connection) -> AsyncIterator[aiosqlite.Connection]:
    """写事务上下文（不可嵌套）

    用法::

        async with write_transaction(conn):
            await task_store.create_task(task)

    Raises:
        Exception: 块内异常在回滚后原样抛出
    """
    async with _write_lock(conn):
        try:
            yield conn
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise

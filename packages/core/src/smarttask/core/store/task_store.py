"""TaskStore SQLite 实现

所有查询都带 user_id 过滤：不属于当前用户的任务与不存在的任务表现一致。
此处不提交事务，由调用方通过 write_transaction 管理。
"""

from datetime import date, datetime

import aiosqlite

from ..models.enums import TaskPriority, TaskStatus
from ..models.task import Task

_COLUMNS = "task_id, user_id, title, priority, status, created_at, updated_at"


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        await self._conn.execute(
            f"INSERT INTO tasks ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                task.task_id,
                task.user_id,
                task.title,
                task.priority.value,
                task.status.value,
                task.created_at.isoformat(),
                task.updated_at.isoformat(),
            ),
        )

    async def get_task(self, user_id: str, task_id: str) -> Task | None:
        """根据 task_id 查询当前用户的任务"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM tasks WHERE task_id = ? AND user_id = ?",
            (task_id, user_id),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(
        self,
        user_id: str,
        status: TaskStatus | None = None,
        created_on: date | None = None,
    ) -> list[Task]:
        """查询任务列表，按 created_at 倒序（同一时刻按插入顺序倒序）

        Args:
            status: 只返回该状态的任务
            created_on: 只返回该 UTC 日期创建的任务
        """
        clauses = ["user_id = ?"]
        params: list[str] = [user_id]
        if status:
            clauses.append("status = ?")
            params.append(status.value)
        if created_on:
            # created_at 以 UTC ISO 格式存储，前 10 位即日期
            clauses.append("substr(created_at, 1, 10) = ?")
            params.append(created_on.isoformat())

        cursor = await self._conn.execute(
            f"""
            SELECT {_COLUMNS} FROM tasks
            WHERE {" AND ".join(clauses)}
            ORDER BY created_at DESC, rowid DESC
            """,
            params,
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def list_task_dates(self, user_id: str) -> list[date]:
        """用户有任务的 UTC 日期，升序去重"""
        cursor = await self._conn.execute(
            """
            SELECT DISTINCT substr(created_at, 1, 10) FROM tasks
            WHERE user_id = ?
            ORDER BY 1
            """,
            (user_id,),
        )
        rows = await cursor.fetchall()
        return [date.fromisoformat(row[0]) for row in rows]

    async def update_task_status(
        self,
        user_id: str,
        task_id: str,
        status: TaskStatus,
        updated_at: str,
    ) -> bool:
        """更新任务状态

        Returns:
            True 如果命中一行，否则 False（不存在或不属于该用户）
        """
        cursor = await self._conn.execute(
            """
            UPDATE tasks SET status = ?, updated_at = ?
            WHERE task_id = ? AND user_id = ?
            """,
            (status.value, updated_at, task_id, user_id),
        )
        return cursor.rowcount > 0

    async def update_task_priority(
        self,
        user_id: str,
        task_id: str,
        priority: TaskPriority,
        updated_at: str,
    ) -> bool:
        """更新任务优先级，返回值语义同 update_task_status"""
        cursor = await self._conn.execute(
            """
            UPDATE tasks SET priority = ?, updated_at = ?
            WHERE task_id = ? AND user_id = ?
            """,
            (priority.value, updated_at, task_id, user_id),
        )
        return cursor.rowcount > 0

    async def delete_task(self, user_id: str, task_id: str) -> bool:
        """删除任务，subtasks / task_embeddings 由外键级联删除"""
        cursor = await self._conn.execute(
            "DELETE FROM tasks WHERE task_id = ? AND user_id = ?",
            (task_id, user_id),
        )
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            task_id=row[0],
            user_id=row[1],
            title=row[2],
            priority=row[3],
            status=row[4],
            created_at=datetime.fromisoformat(row[5]),
            updated_at=datetime.fromisoformat(row[6]),
        )

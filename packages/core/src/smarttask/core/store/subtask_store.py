"""SubtaskStore SQLite 实现

子任务按 created_at 正序返回（与任务列表方向相反），保留添加顺序。
"""

from datetime import datetime

import aiosqlite

from ..models.enums import TaskStatus
from ..models.task import Subtask

_COLUMNS = "subtask_id, task_id, user_id, title, status, created_at"


class SqliteSubtaskStore:
    """SubtaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_subtask(self, subtask: Subtask) -> None:
        """创建子任务记录

        父任务不存在时外键约束抛出 aiosqlite.IntegrityError。
        """
        await self._conn.execute(
            f"INSERT INTO subtasks ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
            (
                subtask.subtask_id,
                subtask.task_id,
                subtask.user_id,
                subtask.title,
                subtask.status.value,
                subtask.created_at.isoformat(),
            ),
        )

    async def list_subtasks(self, user_id: str, task_id: str) -> list[Subtask]:
        """查询指定任务的子任务，按 created_at 正序"""
        cursor = await self._conn.execute(
            f"""
            SELECT {_COLUMNS} FROM subtasks
            WHERE task_id = ? AND user_id = ?
            ORDER BY created_at ASC, rowid ASC
            """,
            (task_id, user_id),
        )
        rows = await cursor.fetchall()
        return [self._row_to_subtask(row) for row in rows]

    async def update_subtask_status(
        self,
        user_id: str,
        task_id: str,
        subtask_id: str,
        status: TaskStatus,
    ) -> bool:
        """更新子任务状态，仅作用于指定父任务下的子任务"""
        cursor = await self._conn.execute(
            """
            UPDATE subtasks SET status = ?
            WHERE subtask_id = ? AND task_id = ? AND user_id = ?
            """,
            (status.value, subtask_id, task_id, user_id),
        )
        return cursor.rowcount > 0

    async def delete_subtask(self, user_id: str, task_id: str, subtask_id: str) -> bool:
        """删除子任务"""
        cursor = await self._conn.execute(
            "DELETE FROM subtasks WHERE subtask_id = ? AND task_id = ? AND user_id = ?",
            (subtask_id, task_id, user_id),
        )
        return cursor.rowcount > 0

    async def count_orphans(self) -> int:
        """统计父任务已不存在的子任务数量（级联约束生效时恒为 0）"""
        cursor = await self._conn.execute(
            """
            SELECT COUNT(*) FROM subtasks s
            LEFT JOIN tasks t ON t.task_id = s.task_id
            WHERE t.task_id IS NULL
            """
        )
        row = await cursor.fetchone()
        return row[0] if row else 0

    @staticmethod
    def _row_to_subtask(row: aiosqlite.Row) -> Subtask:
        """将数据库行转换为 Subtask 模型"""
        return Subtask(
            subtask_id=row[0],
            task_id=row[1],
            user_id=row[2],
            title=row[3],
            status=row[4],
            created_at=datetime.fromisoformat(row[5]),
        )

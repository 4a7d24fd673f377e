"""EmbeddingStore SQLite 实现

task_embeddings 以 task_id 为主键，重复生成时覆盖旧向量。
没有向量的任务不会出现在语义搜索候选中。
"""

import json
from datetime import datetime

import aiosqlite

from ..models.enums import TaskPriority, TaskStatus
from ..models.search import TaskEmbedding
from ..models.task import Task


class SqliteEmbeddingStore:
    """EmbeddingStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def put_embedding(self, embedding: TaskEmbedding) -> None:
        """写入（或覆盖）任务 embedding

        父任务已被删除时外键约束抛出 aiosqlite.IntegrityError。
        """
        await self._conn.execute(
            """
            INSERT INTO task_embeddings (task_id, user_id, embedding, model, created_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(task_id) DO UPDATE SET
                embedding = excluded.embedding,
                model = excluded.model,
                created_at = excluded.created_at
            """,
            (
                embedding.task_id,
                embedding.user_id,
                json.dumps(embedding.embedding),
                embedding.model,
                embedding.created_at.isoformat(),
            ),
        )

    async def get_embedding(self, task_id: str) -> TaskEmbedding | None:
        """根据 task_id 查询 embedding"""
        cursor = await self._conn.execute(
            """
            SELECT task_id, user_id, embedding, model, created_at
            FROM task_embeddings WHERE task_id = ?
            """,
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return TaskEmbedding(
            task_id=row[0],
            user_id=row[1],
            embedding=json.loads(row[2]),
            model=row[3],
            created_at=datetime.fromisoformat(row[4]),
        )

    async def list_candidates(self, user_id: str) -> list[tuple[Task, list[float]]]:
        """查询用户所有已有 embedding 的任务，按任务插入顺序"""
        cursor = await self._conn.execute(
            """
            SELECT t.task_id, t.user_id, t.title, t.priority, t.status,
                   t.created_at, t.updated_at, e.embedding
            FROM tasks t
            JOIN task_embeddings e ON e.task_id = t.task_id
            WHERE t.user_id = ?
            ORDER BY t.rowid ASC
            """,
            (user_id,),
        )
        rows = await cursor.fetchall()
        return [
            (
                Task(
                    task_id=row[0],
                    user_id=row[1],
                    title=row[2],
                    priority=TaskPriority(row[3]),
                    status=TaskStatus(row[4]),
                    created_at=datetime.fromisoformat(row[5]),
                    updated_at=datetime.fromisoformat(row[6]),
                ),
                json.loads(row[7]),
            )
            for row in rows
        ]

    async def count_orphans(self) -> int:
        """统计父任务已不存在的 embedding 数量"""
        cursor = await self._conn.execute(
            """
            SELECT COUNT(*) FROM task_embeddings e
            LEFT JOIN tasks t ON t.task_id = e.task_id
            WHERE t.task_id IS NULL
            """
        )
        row = await cursor.fetchone()
        return row[0] if row else 0

"""SqliteProfileStore / SqliteEmbeddingStore 单元测试"""

from datetime import UTC, datetime

import aiosqlite
import pytest
from smarttask.core.models import Profile, TaskEmbedding
from smarttask.core.store.embedding_store import SqliteEmbeddingStore
from smarttask.core.store.profile_store import SqliteProfileStore
from smarttask.core.store.task_store import SqliteTaskStore
from smarttask.core.store.transaction import write_transaction


def _embedding(task_id: str, vector: list[float], user_id: str = "user-a") -> TaskEmbedding:
    return TaskEmbedding(
        task_id=task_id,
        user_id=user_id,
        embedding=vector,
        model="hashing-bow",
        created_at=datetime.now(UTC),
    )


class TestProfileStore:
    async def test_missing_profile(self, core_db):
        store = SqliteProfileStore(core_db)
        assert await store.get_profile("user-a") is None

    async def test_upsert_keyed_on_user(self, core_db):
        store = SqliteProfileStore(core_db)
        async with write_transaction(core_db):
            await store.upsert_profile(
                Profile(user_id="user-a", profile_picture_url="https://cdn/a1.png")
            )
        async with write_transaction(core_db):
            await store.upsert_profile(
                Profile(user_id="user-a", profile_picture_url="https://cdn/a2.png")
            )

        profile = await store.get_profile("user-a")
        assert profile.profile_picture_url == "https://cdn/a2.png"
        assert profile.updated_at is not None
        cursor = await core_db.execute("SELECT COUNT(*) FROM profiles")
        assert (await cursor.fetchone())[0] == 1

    async def test_clear_picture(self, core_db):
        store = SqliteProfileStore(core_db)
        async with write_transaction(core_db):
            assert await store.clear_profile_picture("user-a", "2026-03-01T00:00:00+00:00") is False
            await store.upsert_profile(
                Profile(user_id="user-a", profile_picture_url="https://cdn/a.png")
            )
            assert await store.clear_profile_picture("user-a", "2026-03-01T00:00:00+00:00") is True

        profile = await store.get_profile("user-a")
        assert profile.profile_picture_url is None


class TestEmbeddingStore:
    async def test_put_and_get_overwrites(self, core_db, make_task):
        task_store = SqliteTaskStore(core_db)
        store = SqliteEmbeddingStore(core_db)
        async with write_transaction(core_db):
            await task_store.create_task(make_task("01JTASK000000000000000001"))
            await store.put_embedding(_embedding("01JTASK000000000000000001", [1.0, 0.0]))
            await store.put_embedding(_embedding("01JTASK000000000000000001", [0.0, 1.0]))

        loaded = await store.get_embedding("01JTASK000000000000000001")
        assert loaded.embedding == [0.0, 1.0]

    async def test_candidates_only_with_embedding(self, core_db, make_task):
        """没有 embedding 的任务不进入候选，候选按插入顺序"""
        task_store = SqliteTaskStore(core_db)
        store = SqliteEmbeddingStore(core_db)
        async with write_transaction(core_db):
            await task_store.create_task(make_task("01JTASK000000000000000001", offset_s=0))
            await task_store.create_task(make_task("01JTASK000000000000000002", offset_s=1))
            await task_store.create_task(make_task("01JTASK000000000000000003", offset_s=2))
            await task_store.create_task(
                make_task("01JTASK000000000000000004", user_id="user-b", offset_s=3)
            )
            await store.put_embedding(_embedding("01JTASK000000000000000003", [0.5, 0.5]))
            await store.put_embedding(_embedding("01JTASK000000000000000001", [1.0, 0.0]))
            await store.put_embedding(
                _embedding("01JTASK000000000000000004", [1.0, 0.0], user_id="user-b")
            )

        candidates = await store.list_candidates("user-a")
        assert [task.task_id for task, _ in candidates] == [
            "01JTASK000000000000000001",
            "01JTASK000000000000000003",
        ]
        assert candidates[0][1] == [1.0, 0.0]

    async def test_missing_task_rejected(self, core_db):
        store = SqliteEmbeddingStore(core_db)
        with pytest.raises(aiosqlite.IntegrityError):
            async with write_transaction(core_db):
                await store.put_embedding(_embedding("01JNOPE000000000000000001", [1.0]))

    async def test_cascade_on_task_delete(self, core_db, make_task):
        task_store = SqliteTaskStore(core_db)
        store = SqliteEmbeddingStore(core_db)
        async with write_transaction(core_db):
            await task_store.create_task(make_task("01JTASK000000000000000001"))
            await store.put_embedding(_embedding("01JTASK000000000000000001", [1.0]))
        async with write_transaction(core_db):
            await task_store.delete_task("user-a", "01JTASK000000000000000001")

        assert await store.get_embedding("01JTASK000000000000000001") is None
        assert await store.count_orphans() == 0

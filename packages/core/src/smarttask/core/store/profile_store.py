"""ProfileStore SQLite 实现 -- 以 user_id 为冲突键 upsert"""

from datetime import UTC, datetime

import aiosqlite

from ..models.profile import Profile


class SqliteProfileStore:
    """ProfileStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def get_profile(self, user_id: str) -> Profile | None:
        """查询用户资料，不存在时返回 None"""
        cursor = await self._conn.execute(
            "SELECT user_id, profile_picture_url, updated_at FROM profiles WHERE user_id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return Profile(
            user_id=row[0],
            profile_picture_url=row[1],
            updated_at=datetime.fromisoformat(row[2]),
        )

    async def upsert_profile(self, profile: Profile) -> None:
        """插入或更新用户资料（冲突键 user_id）"""
        updated_at = (profile.updated_at or datetime.now(UTC)).isoformat()
        await self._conn.execute(
            """
            INSERT INTO profiles (user_id, profile_picture_url, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                profile_picture_url = excluded.profile_picture_url,
                updated_at = excluded.updated_at
            """,
            (profile.user_id, profile.profile_picture_url, updated_at),
        )

    async def clear_profile_picture(self, user_id: str, updated_at: str) -> bool:
        """清空头像 URL

        Returns:
            True 如果资料行存在
        """
        cursor = await self._conn.execute(
            """
            UPDATE profiles SET profile_picture_url = NULL, updated_at = ?
            WHERE user_id = ?
            """,
            (updated_at, user_id),
        )
        return cursor.rowcount > 0

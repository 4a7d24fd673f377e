"""ProfileService -- 用户资料（头像 URL 元数据）

图片二进制上传由托管存储负责，这里只维护 profiles 表中的公开 URL。
"""

from datetime import UTC, datetime

import aiosqlite
import structlog
from smarttask.core.exceptions import (
    NotAuthenticatedError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from smarttask.core.models import Profile
from smarttask.core.store import StoreGroup, write_transaction

log = structlog.get_logger()


class ProfileService:
    """用户资料服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def get_profile(self, user_id: str | None) -> Profile:
        """查询用户资料；尚无记录时返回空资料（不是错误）"""
        user_id = _require_user(user_id)
        try:
            profile = await self._stores.profile_store.get_profile(user_id)
        except aiosqlite.Error as e:
            log.error("store_operation_failed", operation="get_profile", error_type=type(e).__name__)
            raise StoreError("get_profile") from e
        return profile or Profile(user_id=user_id)

    async def set_profile_picture(self, user_id: str | None, url: str) -> Profile:
        """设置头像 URL（以 user_id 为冲突键 upsert）"""
        user_id = _require_user(user_id)
        if not url or not url.strip():
            raise ValidationError("Profile picture URL must not be empty")

        profile = Profile(
            user_id=user_id,
            profile_picture_url=url.strip(),
            updated_at=datetime.now(UTC),
        )
        try:
            async with write_transaction(self._stores.conn):
                await self._stores.profile_store.upsert_profile(profile)
        except aiosqlite.Error as e:
            log.error(
                "store_operation_failed",
                operation="set_profile_picture",
                error_type=type(e).__name__,
            )
            raise StoreError("set_profile_picture") from e

        log.info("profile_picture_updated")
        return profile

    async def remove_profile_picture(self, user_id: str | None) -> Profile:
        """清空头像 URL

        Raises:
            NotFoundError: 用户尚无资料记录
        """
        user_id = _require_user(user_id)
        now = datetime.now(UTC)
        try:
            async with write_transaction(self._stores.conn):
                cleared = await self._stores.profile_store.clear_profile_picture(
                    user_id, now.isoformat()
                )
        except aiosqlite.Error as e:
            log.error(
                "store_operation_failed",
                operation="remove_profile_picture",
                error_type=type(e).__name__,
            )
            raise StoreError("remove_profile_picture") from e
        if not cleared:
            raise NotFoundError("Profile", user_id)

        log.info("profile_picture_removed")
        return Profile(user_id=user_id, profile_picture_url=None, updated_at=now)


def _require_user(user_id: str | None) -> str:
    if not user_id or not user_id.strip():
        raise NotAuthenticatedError()
    return user_id

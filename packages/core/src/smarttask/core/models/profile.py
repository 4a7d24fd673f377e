"""Profile Domain Model -- 每个用户至多一行，只保存头像 URL 元数据"""

from datetime import datetime

from pydantic import BaseModel, Field


class Profile(BaseModel):
    """用户资料"""

    user_id: str = Field(description="用户 ID（唯一键）")
    profile_picture_url: str | None = Field(default=None, description="头像公开 URL")
    updated_at: datetime | None = Field(default=None, description="最近更新时间")

"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store 与服务实例

服务实例通过 app.state 管理，在 lifespan 中初始化/清理。
用户身份由外部认证层解析后以 X-User-ID 头传入，
Authorization: Bearer <token> 原样转发给托管函数。
"""

from fastapi import Header, Request
from pydantic import BaseModel
from smarttask.core.exceptions import NotAuthenticatedError
from smarttask.core.store import StoreGroup

from .services.profile_service import ProfileService
from .services.search_service import SearchService
from .services.task_service import TaskService


class AuthContext(BaseModel):
    """请求级身份信息"""

    user_id: str
    access_token: str | None = None


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_task_service(request: Request) -> TaskService:
    """从 app.state 获取 TaskService 实例（内存镜像跨请求共享）"""
    return request.app.state.task_service


def get_search_service(request: Request) -> SearchService:
    """从 app.state 获取 SearchService 实例"""
    return request.app.state.search_service


def get_profile_service(request: Request) -> ProfileService:
    """按请求创建 ProfileService（无状态）"""
    return ProfileService(request.app.state.store_group)


def get_auth_context(
    x_user_id: str | None = Header(default=None),
    authorization: str | None = Header(default=None),
) -> AuthContext:
    """解析当前用户身份

    Raises:
        NotAuthenticatedError: 缺少 X-User-ID
    """
    if not x_user_id or not x_user_id.strip():
        raise NotAuthenticatedError()

    access_token = None
    if authorization and authorization.lower().startswith("bearer "):
        access_token = authorization[7:].strip() or None

    return AuthContext(user_id=x_user_id, access_token=access_token)

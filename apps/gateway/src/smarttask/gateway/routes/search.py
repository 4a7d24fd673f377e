"""语义搜索路由

POST /api/search: 按标题语义相似度查询当前用户的任务。
空白查询返回空结果。
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..deps import AuthContext, get_auth_context, get_search_service
from ..services.search_service import SearchService

router = APIRouter()


class SearchRequest(BaseModel):
    """搜索请求体"""

    query: str = Field(default="", description="自然语言查询")


@router.post("/api/search")
async def search_tasks(
    body: SearchRequest,
    auth: AuthContext = Depends(get_auth_context),
    service: SearchService = Depends(get_search_service),
):
    """结果保持后端给出的相似度降序"""
    results = await service.search(auth.user_id, body.query, auth.access_token)
    return {
        "results": [r.model_dump(mode="json", by_alias=True) for r in results],
    }

"""SearchService -- 语义搜索

空白查询直接返回空列表，不调用后端。
排序由后端函数完成，这里信任其顺序、不重新排序；
相似度低于固定阈值的结果被丢弃，因此输出中不会出现低于 0.7 的得分。
空结果是合法结果，与调用失败（RemoteCallError）区分。
"""

import structlog
from pydantic import ValidationError as PydanticValidationError
from smarttask.core.config import SIMILARITY_THRESHOLD
from smarttask.core.exceptions import NotAuthenticatedError
from smarttask.core.models import SearchResult
from smarttask.provider import RemoteCallError

from .functions import TaskFunctions

log = structlog.get_logger()


class SearchService:
    """语义搜索服务"""

    def __init__(
        self,
        functions: TaskFunctions,
        threshold: float = SIMILARITY_THRESHOLD,
    ) -> None:
        self._functions = functions
        self._threshold = threshold

    async def search(
        self,
        user_id: str | None,
        query: str | None,
        access_token: str | None = None,
    ) -> list[SearchResult]:
        """执行语义搜索

        Returns:
            按相似度降序的结果（顺序由后端决定）

        Raises:
            NotAuthenticatedError: 无用户身份
            RemoteCallError: 后端调用失败或返回了无法解析的结果
        """
        if not user_id or not user_id.strip():
            raise NotAuthenticatedError()
        if query is None or not query.strip():
            return []

        raw_results = await self._functions.smart_search(user_id, query.strip(), access_token)

        results: list[SearchResult] = []
        dropped = 0
        for item in raw_results:
            try:
                result = SearchResult.model_validate(item)
            except PydanticValidationError as e:
                log.warning("search_result_malformed", error_count=e.error_count())
                raise RemoteCallError(
                    "smart-search",
                    original_error=e,
                    detail="malformed search result",
                ) from e
            if result.similarity < self._threshold:
                dropped += 1
                continue
            results.append(result)

        if dropped:
            log.warning(
                "search_results_below_threshold_dropped",
                dropped=dropped,
                threshold=self._threshold,
            )
        log.info("search_completed", result_count=len(results))
        return results

"""EdgeFunctionClient -- 托管后端函数调用封装

三个函数均以 POST JSON 调用 ``{base_url}/functions/v1/<name>``：
- generate-embedding: ``{taskId, taskTitle}``，响应体不参与业务逻辑
- generate-subtasks:  ``{taskTitle}`` -> ``{subtasks: string[]}``
- smart-search:       ``{query}`` -> ``{results: SearchResult[]}``

非 2xx 响应与传输层失败统一抛出 RemoteCallError，不做自动重试。
"""

import time
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from .exceptions import RemoteCallError
from .models import SmartSearchResponse, SubtaskSuggestionResponse

log = structlog.get_logger()

GENERATE_EMBEDDING = "generate-embedding"
GENERATE_SUBTASKS = "generate-subtasks"
SMART_SEARCH = "smart-search"

# 健康检查超时（硬编码，应快速响应）
HEALTH_CHECK_TIMEOUT_S = 5


class EdgeFunctionClient:
    """托管后端函数客户端"""

    def __init__(
        self,
        base_url: str = "http://localhost:54321",
        api_key: str = "",
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """初始化客户端

        Args:
            base_url: 托管后端基础 URL
            api_key: 匿名访问密钥，调用方未提供用户 token 时作为 Bearer 凭证
            timeout_s: 请求超时（秒），None 使用 httpx 默认值
            transport: 自定义传输层（测试注入 httpx.MockTransport）
        """
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout_s = timeout_s
        self._transport = transport

    def _function_url(self, name: str) -> str:
        return f"{self._base_url}/functions/v1/{name}"

    def _headers(self, access_token: str | None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        bearer = access_token or self._api_key
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        if self._api_key:
            headers["apikey"] = self._api_key
        return headers

    def _http_client(self) -> httpx.AsyncClient:
        kwargs: dict[str, Any] = {"transport": self._transport}
        if self._timeout_s is not None:
            kwargs["timeout"] = self._timeout_s
        return httpx.AsyncClient(**kwargs)

    async def _invoke(
        self,
        name: str,
        body: dict[str, Any],
        access_token: str | None = None,
    ) -> httpx.Response:
        """调用一个函数并返回 2xx 响应

        Raises:
            RemoteCallError: 非 2xx 响应或传输层失败
        """
        start_time = time.monotonic()
        try:
            async with self._http_client() as http_client:
                resp = await http_client.post(
                    self._function_url(name),
                    json=body,
                    headers=self._headers(access_token),
                )
        except httpx.HTTPError as e:
            log.error(
                "edge_function_transport_failed",
                function=name,
                error_type=type(e).__name__,
            )
            raise RemoteCallError(name, original_error=e) from e

        duration_ms = int((time.monotonic() - start_time) * 1000)
        if not resp.is_success:
            log.error(
                "edge_function_failed",
                function=name,
                status_code=resp.status_code,
                duration_ms=duration_ms,
            )
            raise RemoteCallError(name, status_code=resp.status_code)

        log.debug(
            "edge_function_completed",
            function=name,
            status_code=resp.status_code,
            duration_ms=duration_ms,
        )
        return resp

    async def generate_embedding(
        self,
        task_id: str,
        title: str,
        access_token: str | None = None,
    ) -> None:
        """请求后端为任务标题生成并保存 embedding（响应体被忽略）"""
        await self._invoke(
            GENERATE_EMBEDDING,
            {"taskId": task_id, "taskTitle": title},
            access_token,
        )

    async def generate_subtasks(
        self,
        title: str,
        access_token: str | None = None,
    ) -> list[str]:
        """请求后端为任务标题生成候选子任务

        Returns:
            候选标题列表，保持后端给出的顺序
        """
        resp = await self._invoke(GENERATE_SUBTASKS, {"taskTitle": title}, access_token)
        try:
            parsed = SubtaskSuggestionResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise RemoteCallError(
                GENERATE_SUBTASKS,
                status_code=resp.status_code,
                original_error=e,
                detail="malformed response body",
            ) from e
        return parsed.subtasks

    async def smart_search(
        self,
        query: str,
        access_token: str | None = None,
    ) -> list[dict[str, Any]]:
        """调用后端语义搜索

        相似度阈值（0.7）由后端执行，结果已按相似度降序排列。

        Returns:
            原始结果 dict 列表
        """
        resp = await self._invoke(SMART_SEARCH, {"query": query}, access_token)
        try:
            parsed = SmartSearchResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise RemoteCallError(
                SMART_SEARCH,
                status_code=resp.status_code,
                original_error=e,
                detail="malformed response body",
            ) from e
        return parsed.results

    async def health_check(self) -> bool:
        """检查托管后端可达性

        此方法不抛出异常，所有异常内部捕获并返回 False。
        """
        url = f"{self._base_url}/functions/v1/"
        try:
            async with httpx.AsyncClient(transport=self._transport) as http_client:
                resp = await http_client.get(url, timeout=HEALTH_CHECK_TIMEOUT_S)
                return resp.status_code < 500
        except Exception as e:
            log.debug("health_check_failed", url=url, error=str(e))
            return False

"""TaskFunctions -- embedding / 子任务建议 / 语义搜索三个外部函数的统一入口

- RemoteTaskFunctions: 转发到托管后端（后端自己保存 embedding 并执行排序）
- LocalTaskFunctions: 本地实现同样的契约，embedding 写入 task_embeddings 表，
  搜索在本地按余弦相似度排序并按阈值过滤

运行模式由 FunctionsConfig.functions_mode 决定（remote / litellm / local）。
"""

from datetime import UTC, datetime
from typing import Any, Protocol

import aiosqlite
import structlog
from smarttask.core.config import SIMILARITY_THRESHOLD, get_embedding_dimensions
from smarttask.core.exceptions import StoreError
from smarttask.core.models import TaskEmbedding
from smarttask.core.store import StoreGroup, write_transaction
from smarttask.provider import (
    EchoSuggestionAdapter,
    EdgeFunctionClient,
    EmbeddingResult,
    FunctionsConfig,
    HashingEmbedder,
    LiteLLMEmbedder,
    LiteLLMSuggestionGenerator,
    rank_by_similarity,
)

log = structlog.get_logger()


class TaskFunctions(Protocol):
    """外部函数接口"""

    async def generate_embedding(
        self,
        user_id: str,
        task_id: str,
        title: str,
        access_token: str | None = None,
    ) -> None:
        """为任务标题生成并保存 embedding"""
        ...

    async def generate_subtasks(
        self,
        title: str,
        access_token: str | None = None,
    ) -> list[str]:
        """为任务标题生成候选子任务"""
        ...

    async def smart_search(
        self,
        user_id: str,
        query: str,
        access_token: str | None = None,
    ) -> list[dict[str, Any]]:
        """语义搜索，返回按相似度降序、已按阈值过滤的结果"""
        ...


class Embedder(Protocol):
    async def embed(self, text: str) -> EmbeddingResult: ...


class SuggestionGenerator(Protocol):
    async def suggest(self, title: str) -> list[str]: ...


class RemoteTaskFunctions:
    """托管后端函数适配器（用户身份由 Bearer token 携带）"""

    def __init__(self, client: EdgeFunctionClient) -> None:
        self._client = client

    async def generate_embedding(
        self,
        user_id: str,
        task_id: str,
        title: str,
        access_token: str | None = None,
    ) -> None:
        await self._client.generate_embedding(task_id, title, access_token)

    async def generate_subtasks(
        self,
        title: str,
        access_token: str | None = None,
    ) -> list[str]:
        return await self._client.generate_subtasks(title, access_token)

    async def smart_search(
        self,
        user_id: str,
        query: str,
        access_token: str | None = None,
    ) -> list[dict[str, Any]]:
        return await self._client.smart_search(query, access_token)

    async def health_check(self) -> bool:
        return await self._client.health_check()


class LocalTaskFunctions:
    """本地实现：embedding 落在 SQLite，排序在进程内完成"""

    def __init__(
        self,
        store_group: StoreGroup,
        embedder: Embedder,
        suggester: SuggestionGenerator,
        threshold: float = SIMILARITY_THRESHOLD,
    ) -> None:
        self._stores = store_group
        self._embedder = embedder
        self._suggester = suggester
        self._threshold = threshold

    async def generate_embedding(
        self,
        user_id: str,
        task_id: str,
        title: str,
        access_token: str | None = None,
    ) -> None:
        """生成 embedding 并写入 task_embeddings

        任务已被删除时外键约束失败，以 StoreError 抛出，由调用方记录。
        """
        result = await self._embedder.embed(title)
        embedding = TaskEmbedding(
            task_id=task_id,
            user_id=user_id,
            embedding=result.vector,
            model=result.model,
            created_at=datetime.now(UTC),
        )
        try:
            async with write_transaction(self._stores.conn):
                await self._stores.embedding_store.put_embedding(embedding)
        except aiosqlite.Error as e:
            log.error(
                "store_operation_failed",
                operation="put_embedding",
                error_type=type(e).__name__,
            )
            raise StoreError("put_embedding") from e

    async def generate_subtasks(
        self,
        title: str,
        access_token: str | None = None,
    ) -> list[str]:
        return await self._suggester.suggest(title)

    async def smart_search(
        self,
        user_id: str,
        query: str,
        access_token: str | None = None,
    ) -> list[dict[str, Any]]:
        """对用户所有带 embedding 的任务计算相似度

        没有 embedding 的任务不参与排序。
        """
        query_embedding = await self._embedder.embed(query)
        try:
            candidates = await self._stores.embedding_store.list_candidates(user_id)
        except aiosqlite.Error as e:
            log.error(
                "store_operation_failed",
                operation="smart_search",
                error_type=type(e).__name__,
            )
            raise StoreError("smart_search") from e
        ranked = rank_by_similarity(query_embedding.vector, candidates, self._threshold)
        log.debug(
            "local_search_ranked",
            candidate_count=len(candidates),
            result_count=len(ranked),
        )
        return [
            {
                "id": task.task_id,
                "title": task.title,
                "priority": task.priority.value,
                "status": task.status.value,
                "similarity": similarity,
            }
            for task, similarity in ranked
        ]

    async def health_check(self) -> bool:
        return True


def build_task_functions(
    config: FunctionsConfig,
    store_group: StoreGroup,
) -> RemoteTaskFunctions | LocalTaskFunctions:
    """根据运行模式构建 TaskFunctions 实现"""
    if config.functions_mode == "remote":
        client = EdgeFunctionClient(
            base_url=config.functions_base_url,
            api_key=config.functions_api_key.get_secret_value(),
            timeout_s=config.timeout_s,
        )
        log.info(
            "task_functions_initialized",
            mode="remote",
            base_url=config.functions_base_url,
        )
        return RemoteTaskFunctions(client)

    if config.functions_mode == "litellm":
        proxy_key = config.proxy_api_key.get_secret_value()
        embedder: Embedder = LiteLLMEmbedder(
            proxy_base_url=config.proxy_base_url,
            proxy_api_key=proxy_key,
            model_alias=config.embedding_model,
            timeout_s=config.timeout_s,
        )
        suggester: SuggestionGenerator = LiteLLMSuggestionGenerator(
            proxy_base_url=config.proxy_base_url,
            proxy_api_key=proxy_key,
            model_alias=config.suggestion_model,
            timeout_s=config.timeout_s,
        )
        log.info(
            "task_functions_initialized",
            mode="litellm",
            proxy_url=config.proxy_base_url,
        )
    else:
        embedder = HashingEmbedder(dimensions=get_embedding_dimensions())
        suggester = EchoSuggestionAdapter()
        log.info("task_functions_initialized", mode="local")

    return LocalTaskFunctions(store_group, embedder, suggester)

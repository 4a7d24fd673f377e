"""数据模型 -- 外部函数请求/响应体"""

from typing import Any

from pydantic import BaseModel, Field


class SubtaskSuggestionResponse(BaseModel):
    """generate-subtasks 响应体：``{"subtasks": [...]}``，顺序即生成器给出的顺序"""

    subtasks: list[str] = Field(default_factory=list, description="候选子任务标题")


class SmartSearchResponse(BaseModel):
    """smart-search 响应体：``{"results": [...]}``

    单条结果保持原始 dict，由调用方校验为领域模型。
    """

    results: list[dict[str, Any]] = Field(default_factory=list, description="排序后的搜索结果")


class EmbeddingResult(BaseModel):
    """embedding 生成结果"""

    vector: list[float] = Field(description="定长向量")
    model: str = Field(default="", description="生成向量的模型标识")
    duration_ms: int = Field(default=0, ge=0, description="耗时（毫秒）")

"""语义搜索相关模型

SearchResult 为瞬时结果，每次查询重新计算，不落盘。
TaskEmbedding 为标题向量，随父任务级联删除。
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import TaskPriority, TaskStatus


class SearchResult(BaseModel):
    """语义搜索结果

    远端 smart-search 函数以 ``id`` 返回任务标识，这里同时接受 ``task_id``。
    """

    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(alias="id", description="关联的 Task ID")
    title: str = Field(description="任务标题")
    priority: TaskPriority = Field(description="优先级")
    status: TaskStatus = Field(description="状态")
    similarity: float = Field(ge=0.0, le=1.0, description="相似度得分")

    @field_validator("similarity", mode="before")
    @classmethod
    def clamp_similarity(cls, v: object) -> object:
        """浮点误差可能给出略大于 1 或略小于 0 的得分，收敛到 [0, 1]"""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return min(max(float(v), 0.0), 1.0)
        return v


class TaskEmbedding(BaseModel):
    """任务标题 embedding"""

    task_id: str = Field(description="关联的 Task ID")
    user_id: str = Field(description="所属用户 ID")
    embedding: list[float] = Field(description="定长向量")
    model: str = Field(default="", description="生成向量的模型标识")
    created_at: datetime = Field(description="生成时间")

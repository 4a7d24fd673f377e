"""Task / Subtask Domain Model

Task 归属于唯一用户，标题去除空白后不能为空。
Subtask 通过 task_id 引用父任务，父任务删除时级联删除。
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from .enums import TaskPriority, TaskStatus


class Task(BaseModel):
    """Task 数据模型"""

    task_id: str = Field(description="唯一标识，ULID 格式")
    user_id: str = Field(description="所属用户 ID")
    title: str = Field(description="任务标题")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="优先级")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="当前状态")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be empty")
        return value


class Subtask(BaseModel):
    """Subtask 数据模型 -- 父任务不存在时无法创建"""

    subtask_id: str = Field(description="唯一标识，ULID 格式")
    task_id: str = Field(description="父任务 ID")
    user_id: str = Field(description="所属用户 ID")
    title: str = Field(description="子任务标题")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="当前状态")
    created_at: datetime = Field(description="创建时间")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be empty")
        return value

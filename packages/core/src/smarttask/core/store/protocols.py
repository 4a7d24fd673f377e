"""Store Protocol 接口定义

定义 TaskStore、SubtaskStore、ProfileStore、EmbeddingStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from datetime import date
from typing import Protocol

from ..models.enums import TaskPriority, TaskStatus
from ..models.profile import Profile
from ..models.search import TaskEmbedding
from ..models.task import Subtask, Task


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        ...

    async def get_task(self, user_id: str, task_id: str) -> Task | None:
        """根据 task_id 查询当前用户的任务"""
        ...

    async def list_tasks(
        self,
        user_id: str,
        status: TaskStatus | None = None,
        created_on: date | None = None,
    ) -> list[Task]:
        """查询任务列表，按 created_at 倒序"""
        ...

    async def list_task_dates(self, user_id: str) -> list[date]:
        """用户有任务的日期，升序去重"""
        ...

    async def update_task_status(
        self,
        user_id: str,
        task_id: str,
        status: TaskStatus,
        updated_at: str,
    ) -> bool:
        """更新任务状态，返回是否命中"""
        ...

    async def update_task_priority(
        self,
        user_id: str,
        task_id: str,
        priority: TaskPriority,
        updated_at: str,
    ) -> bool:
        """更新任务优先级，返回是否命中"""
        ...

    async def delete_task(self, user_id: str, task_id: str) -> bool:
        """删除任务（子任务级联删除）"""
        ...


class SubtaskStore(Protocol):
    """Subtask 存储接口"""

    async def create_subtask(self, subtask: Subtask) -> None:
        """创建子任务记录"""
        ...

    async def list_subtasks(self, user_id: str, task_id: str) -> list[Subtask]:
        """查询子任务，按 created_at 正序"""
        ...

    async def update_subtask_status(
        self,
        user_id: str,
        task_id: str,
        subtask_id: str,
        status: TaskStatus,
    ) -> bool:
        """更新子任务状态"""
        ...

    async def delete_subtask(self, user_id: str, task_id: str, subtask_id: str) -> bool:
        """删除子任务"""
        ...

    async def count_orphans(self) -> int:
        """统计父任务已不存在的子任务数量"""
        ...


class ProfileStore(Protocol):
    """Profile 存储接口"""

    async def get_profile(self, user_id: str) -> Profile | None:
        """查询用户资料"""
        ...

    async def upsert_profile(self, profile: Profile) -> None:
        """插入或更新用户资料"""
        ...

    async def clear_profile_picture(self, user_id: str, updated_at: str) -> bool:
        """清空头像 URL"""
        ...


class EmbeddingStore(Protocol):
    """TaskEmbedding 存储接口"""

    async def put_embedding(self, embedding: TaskEmbedding) -> None:
        """写入（或覆盖）任务 embedding"""
        ...

    async def get_embedding(self, task_id: str) -> TaskEmbedding | None:
        """查询任务 embedding"""
        ...

    async def list_candidates(self, user_id: str) -> list[tuple[Task, list[float]]]:
        """查询用户所有带 embedding 的任务"""
        ...

    async def count_orphans(self) -> int:
        """统计父任务已不存在的 embedding 数量"""
        ...

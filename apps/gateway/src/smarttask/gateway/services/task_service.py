"""TaskService -- 任务/子任务管理业务逻辑

每个操作显式接收当前用户 ID，流程统一为：
1. 校验身份与输入
2. 写入 Store（单事务）
3. 全量重新拉取，刷新该用户的内存镜像

失败时镜像保持不变。任务创建（和复制）提交后派发一个脱离调用方的
embedding 生成作业：至多执行一次，不重试，失败只记日志。
"""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, date, datetime

import aiosqlite
import structlog
from smarttask.core.config import TITLE_PREVIEW_LENGTH
from smarttask.core.exceptions import (
    NotAuthenticatedError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from smarttask.core.models import (
    INITIAL_STATUS,
    Subtask,
    Task,
    TaskPriority,
    TaskStatus,
    validate_transition,
)
from smarttask.core.store import StoreGroup, write_transaction
from ulid import ULID

from .functions import TaskFunctions

log = structlog.get_logger()


@dataclass
class TaskMirror:
    """单个用户的内存镜像：任务、各任务的子任务、各任务的候选建议"""

    tasks: list[Task] = field(default_factory=list)
    subtasks: dict[str, list[Subtask]] = field(default_factory=dict)
    suggestions: dict[str, list[str]] = field(default_factory=dict)


class TaskService:
    """任务业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        functions: TaskFunctions | None = None,
    ) -> None:
        self._stores = store_group
        self._functions = functions
        self._mirrors: dict[str, TaskMirror] = {}
        # 正在生成建议的 task_id
        self._generating: set[str] = set()
        # 持有后台作业的强引用，直到完成
        self._background_jobs: set[asyncio.Task] = set()

    # ------------------------------------------------------------
    # Task
    # ------------------------------------------------------------

    async def create_task(
        self,
        user_id: str | None,
        title: str,
        priority: TaskPriority | str = TaskPriority.MEDIUM,
        access_token: str | None = None,
    ) -> Task:
        """创建任务

        Args:
            user_id: 当前用户 ID
            title: 任务标题，原样保存
            priority: 优先级
            access_token: 转发给 embedding 生成函数的用户凭证

        Returns:
            新建的 Task（status 恒为 pending）

        Raises:
            NotAuthenticatedError: 无用户身份
            ValidationError: 标题为空或仅含空白
            StoreError: 写入失败（写入提交后的镜像刷新失败只记日志）
        """
        user_id = self._require_user(user_id)
        self._validate_title(title, "Task")
        priority = self._coerce_priority(priority)

        now = datetime.now(UTC)
        task = Task(
            task_id=str(ULID()),
            user_id=user_id,
            title=title,
            priority=priority,
            status=INITIAL_STATUS,
            created_at=now,
            updated_at=now,
        )
        await self._insert_task(task)

        log.info(
            "task_created",
            task_id=task.task_id,
            priority=task.priority.value,
            title_preview=task.title[:TITLE_PREVIEW_LENGTH],
        )
        self._dispatch_embedding(task, access_token)
        await self._refresh_after_commit(user_id)
        return task

    async def duplicate_task(
        self,
        user_id: str | None,
        task_id: str,
        access_token: str | None = None,
    ) -> Task:
        """复制任务：沿用标题与优先级，状态重置为 pending，不复制子任务"""
        user_id = self._require_user(user_id)
        try:
            source = await self._stores.task_store.get_task(user_id, task_id)
        except aiosqlite.Error as e:
            raise self._store_error("duplicate_task", e) from e
        if source is None:
            raise NotFoundError("Task", task_id)

        now = datetime.now(UTC)
        task = Task(
            task_id=str(ULID()),
            user_id=user_id,
            title=source.title,
            priority=source.priority,
            status=INITIAL_STATUS,
            created_at=now,
            updated_at=now,
        )
        await self._insert_task(task)

        log.info("task_duplicated", task_id=task.task_id, source_task_id=task_id)
        self._dispatch_embedding(task, access_token)
        await self._refresh_after_commit(user_id)
        return task

    async def update_status(
        self,
        user_id: str | None,
        task_id: str,
        status: TaskStatus | str,
    ) -> Task:
        """更新任务状态（任意状态间均可流转），同时刷新 updated_at

        Raises:
            NotFoundError: 任务不存在或不属于当前用户
        """
        user_id = self._require_user(user_id)
        status = self._coerce_status(status)
        current = self._find_task(user_id, task_id)
        if current is not None and not validate_transition(current.status, status):
            raise ValidationError(f"Cannot transition from {current.status} to {status}")

        updated_at = datetime.now(UTC).isoformat()
        try:
            async with write_transaction(self._stores.conn):
                updated = await self._stores.task_store.update_task_status(
                    user_id, task_id, status, updated_at
                )
        except aiosqlite.Error as e:
            raise self._store_error("update_status", e) from e
        if not updated:
            raise NotFoundError("Task", task_id)

        log.info("task_status_updated", task_id=task_id, status=status.value)
        return await self._refreshed_task(user_id, task_id)

    async def update_priority(
        self,
        user_id: str | None,
        task_id: str,
        priority: TaskPriority | str,
    ) -> Task:
        """更新任务优先级，同时刷新 updated_at

        Raises:
            NotFoundError: 任务不存在或不属于当前用户
        """
        user_id = self._require_user(user_id)
        priority = self._coerce_priority(priority)

        updated_at = datetime.now(UTC).isoformat()
        try:
            async with write_transaction(self._stores.conn):
                updated = await self._stores.task_store.update_task_priority(
                    user_id, task_id, priority, updated_at
                )
        except aiosqlite.Error as e:
            raise self._store_error("update_priority", e) from e
        if not updated:
            raise NotFoundError("Task", task_id)

        log.info("task_priority_updated", task_id=task_id, priority=priority.value)
        return await self._refreshed_task(user_id, task_id)

    async def delete_task(self, user_id: str | None, task_id: str) -> None:
        """删除任务

        子任务与 embedding 由外键 ON DELETE CASCADE 删除。

        Raises:
            NotFoundError: 任务不存在或不属于当前用户
        """
        user_id = self._require_user(user_id)
        try:
            async with write_transaction(self._stores.conn):
                deleted = await self._stores.task_store.delete_task(user_id, task_id)
        except aiosqlite.Error as e:
            raise self._store_error("delete_task", e) from e
        if not deleted:
            raise NotFoundError("Task", task_id)

        mirror = self._peek(user_id)
        mirror.subtasks.pop(task_id, None)
        mirror.suggestions.pop(task_id, None)
        log.info("task_deleted", task_id=task_id)
        await self._refresh_after_commit(user_id)

    async def list_tasks(
        self,
        user_id: str | None,
        created_on: date | None = None,
    ) -> list[Task]:
        """从 Store 拉取用户任务（created_at 倒序）

        不带日期时拉取全部并刷新镜像；按日期查询只读 Store，镜像保持全量。
        """
        user_id = self._require_user(user_id)
        if created_on is None:
            return list(await self._refresh_tasks(user_id))
        try:
            return await self._stores.task_store.list_tasks(user_id, created_on=created_on)
        except aiosqlite.Error as e:
            raise self._store_error("list_tasks", e) from e

    async def task_dates(self, user_id: str | None) -> list[date]:
        """有任务的日期（UTC，升序），用于日历标记"""
        user_id = self._require_user(user_id)
        try:
            return await self._stores.task_store.list_task_dates(user_id)
        except aiosqlite.Error as e:
            raise self._store_error("list_task_dates", e) from e

    def tasks(self, user_id: str) -> list[Task]:
        """读取内存镜像中的任务列表，不访问 Store"""
        return list(self._peek(user_id).tasks)

    # ------------------------------------------------------------
    # Suggestion
    # ------------------------------------------------------------

    def is_generating(self, task_id: str) -> bool:
        """该任务是否有一次建议生成正在进行"""
        return task_id in self._generating

    def try_begin_generation(self, task_id: str) -> bool:
        """同步占用该任务的生成槽位

        检查与占用之间没有 await，并发请求中只有一个能拿到槽位。

        Returns:
            False 表示已有一次生成在进行
        """
        if task_id in self._generating:
            return False
        self._generating.add(task_id)
        return True

    def end_generation(self, task_id: str) -> None:
        """释放由 try_begin_generation 占用的槽位"""
        self._generating.discard(task_id)

    async def generate_subtask_suggestions(
        self,
        user_id: str | None,
        task_id: str,
        title: str | None = None,
        access_token: str | None = None,
    ) -> list[str]:
        """调用建议生成器，替换该任务的候选集合

        同一任务的并发请求由调用方先通过 try_begin_generation() 拦截；
        调用方未占用槽位时这里自行占用，并且只释放自己占用的槽位。

        Args:
            title: 用于生成的标题，缺省时使用任务当前标题

        Returns:
            候选标题列表，保持生成器给出的顺序

        Raises:
            NotFoundError: 任务不存在或不属于当前用户
            RemoteCallError: 生成器调用失败（候选集合保持不变）
        """
        user_id = self._require_user(user_id)
        if self._functions is None:
            raise RuntimeError("suggestion generator is not configured")

        owns_slot = self.try_begin_generation(task_id)
        try:
            try:
                task = await self._stores.task_store.get_task(user_id, task_id)
            except aiosqlite.Error as e:
                raise self._store_error("generate_subtask_suggestions", e) from e
            if task is None:
                raise NotFoundError("Task", task_id)

            source_title = title if title and title.strip() else task.title
            suggestions = await self._functions.generate_subtasks(source_title, access_token)
        finally:
            if owns_slot:
                self.end_generation(task_id)

        self._mirror(user_id).suggestions[task_id] = list(suggestions)
        log.info("subtask_suggestions_generated", task_id=task_id, count=len(suggestions))
        return list(suggestions)

    def suggestions(self, user_id: str, task_id: str) -> list[str]:
        """读取该任务当前的候选建议"""
        return list(self._peek(user_id).suggestions.get(task_id, []))

    def dismiss_suggestion(self, user_id: str | None, task_id: str, title: str) -> list[str]:
        """丢弃一条候选（不保存）

        Returns:
            剩余候选

        Raises:
            NotFoundError: 候选集合中没有该标题
        """
        user_id = self._require_user(user_id)
        candidates = self._peek(user_id).suggestions.get(task_id)
        if not candidates or title not in candidates:
            raise NotFoundError("Suggestion", title)
        candidates.remove(title)
        return list(candidates)

    # ------------------------------------------------------------
    # Subtask
    # ------------------------------------------------------------

    async def save_subtask(self, user_id: str | None, task_id: str, title: str) -> Subtask:
        """保存子任务（status=pending），并从候选集合中移除第一条同名候选

        同一标题保存两次会得到两条独立的子任务记录。

        Raises:
            ValidationError: 标题为空
            NotFoundError: 父任务不存在或不属于当前用户
        """
        user_id = self._require_user(user_id)
        self._validate_title(title, "Subtask")
        try:
            parent = await self._stores.task_store.get_task(user_id, task_id)
        except aiosqlite.Error as e:
            raise self._store_error("save_subtask", e) from e
        if parent is None:
            raise NotFoundError("Task", task_id)

        subtask = Subtask(
            subtask_id=str(ULID()),
            task_id=task_id,
            user_id=user_id,
            title=title,
            status=INITIAL_STATUS,
            created_at=datetime.now(UTC),
        )
        try:
            async with write_transaction(self._stores.conn):
                await self._stores.subtask_store.create_subtask(subtask)
        except aiosqlite.IntegrityError as e:
            # 父任务在查询与写入之间被删除
            raise NotFoundError("Task", task_id) from e
        except aiosqlite.Error as e:
            raise self._store_error("save_subtask", e) from e

        candidates = self._peek(user_id).suggestions.get(task_id)
        if candidates and title in candidates:
            candidates.remove(title)

        log.info("subtask_saved", task_id=task_id, subtask_id=subtask.subtask_id)
        await self._refresh_subtasks(user_id, task_id)
        return subtask

    async def update_subtask_status(
        self,
        user_id: str | None,
        task_id: str,
        subtask_id: str,
        status: TaskStatus | str,
    ) -> Subtask:
        """更新子任务状态

        Raises:
            NotFoundError: 子任务不存在、不属于该父任务或不属于当前用户
        """
        user_id = self._require_user(user_id)
        status = self._coerce_status(status)
        try:
            async with write_transaction(self._stores.conn):
                updated = await self._stores.subtask_store.update_subtask_status(
                    user_id, task_id, subtask_id, status
                )
        except aiosqlite.Error as e:
            raise self._store_error("update_subtask_status", e) from e
        if not updated:
            raise NotFoundError("Subtask", subtask_id)

        log.info(
            "subtask_status_updated",
            task_id=task_id,
            subtask_id=subtask_id,
            status=status.value,
        )
        subtasks = await self._refresh_subtasks(user_id, task_id)
        for subtask in subtasks:
            if subtask.subtask_id == subtask_id:
                return subtask
        raise NotFoundError("Subtask", subtask_id)

    async def delete_subtask(self, user_id: str | None, task_id: str, subtask_id: str) -> None:
        """删除子任务

        Raises:
            NotFoundError: 子任务不存在
        """
        user_id = self._require_user(user_id)
        try:
            async with write_transaction(self._stores.conn):
                deleted = await self._stores.subtask_store.delete_subtask(
                    user_id, task_id, subtask_id
                )
        except aiosqlite.Error as e:
            raise self._store_error("delete_subtask", e) from e
        if not deleted:
            raise NotFoundError("Subtask", subtask_id)

        log.info("subtask_deleted", task_id=task_id, subtask_id=subtask_id)
        await self._refresh_subtasks(user_id, task_id)

    async def list_subtasks(self, user_id: str | None, task_id: str) -> list[Subtask]:
        """拉取任务的子任务（created_at 正序）；任务不存在时返回空列表"""
        user_id = self._require_user(user_id)
        return list(await self._refresh_subtasks(user_id, task_id))

    def subtasks(self, user_id: str, task_id: str) -> list[Subtask]:
        """读取内存镜像中的子任务列表，不访问 Store"""
        return list(self._peek(user_id).subtasks.get(task_id, []))

    # ------------------------------------------------------------
    # 后台 embedding 作业
    # ------------------------------------------------------------

    def _dispatch_embedding(self, task: Task, access_token: str | None) -> None:
        """派发脱离调用方的 embedding 生成作业"""
        if self._functions is None:
            return
        job = asyncio.create_task(
            self._generate_embedding(task, access_token),
            name=f"embedding-{task.task_id}",
        )
        self._background_jobs.add(job)
        job.add_done_callback(self._background_jobs.discard)

    async def _generate_embedding(self, task: Task, access_token: str | None) -> None:
        """embedding 生成作业：失败只记录日志，不重试，不向调用方暴露"""
        try:
            await self._functions.generate_embedding(
                task.user_id,
                task.task_id,
                task.title,
                access_token,
            )
        except Exception as e:
            log.warning(
                "embedding_generation_failed",
                task_id=task.task_id,
                error_type=type(e).__name__,
            )
            return
        log.info("embedding_generated", task_id=task.task_id)

    async def wait_background_jobs(self) -> None:
        """等待所有未完成的后台作业（仅用于关闭流程和测试）"""
        while self._background_jobs:
            await asyncio.gather(*list(self._background_jobs), return_exceptions=True)

    # ------------------------------------------------------------
    # 内部工具
    # ------------------------------------------------------------

    def _peek(self, user_id: str) -> TaskMirror:
        """只读访问镜像；用户没有镜像时返回空镜像，不登记"""
        return self._mirrors.get(user_id) or TaskMirror()

    def _mirror(self, user_id: str) -> TaskMirror:
        mirror = self._mirrors.get(user_id)
        if mirror is None:
            mirror = TaskMirror()
            self._mirrors[user_id] = mirror
        return mirror

    def _find_task(self, user_id: str, task_id: str) -> Task | None:
        for task in self._peek(user_id).tasks:
            if task.task_id == task_id:
                return task
        return None

    async def _insert_task(self, task: Task) -> None:
        try:
            async with write_transaction(self._stores.conn):
                await self._stores.task_store.create_task(task)
        except aiosqlite.Error as e:
            raise self._store_error("create_task", e) from e

    async def _refresh_tasks(self, user_id: str) -> list[Task]:
        """全量拉取任务并替换镜像；失败时镜像不变"""
        try:
            tasks = await self._stores.task_store.list_tasks(user_id)
        except aiosqlite.Error as e:
            raise self._store_error("list_tasks", e) from e

        if not tasks:
            # 没有任务的用户不保留镜像
            self._mirrors.pop(user_id, None)
            return tasks

        mirror = self._mirror(user_id)
        mirror.tasks = tasks
        live_ids = {task.task_id for task in tasks}
        for stale_id in set(mirror.subtasks) - live_ids:
            mirror.subtasks.pop(stale_id, None)
        for stale_id in set(mirror.suggestions) - live_ids:
            mirror.suggestions.pop(stale_id, None)
        return tasks

    async def _refresh_after_commit(self, user_id: str) -> None:
        """写入已提交后刷新镜像

        刷新失败不改变写入结果：镜像保持旧值，等待下一次刷新。
        """
        try:
            await self._refresh_tasks(user_id)
        except StoreError:
            log.warning("mirror_refresh_failed", user_id=user_id)

    async def _refreshed_task(self, user_id: str, task_id: str) -> Task:
        tasks = await self._refresh_tasks(user_id)
        for task in tasks:
            if task.task_id == task_id:
                return task
        # 更新与重新拉取之间任务被删除
        raise NotFoundError("Task", task_id)

    async def _refresh_subtasks(self, user_id: str, task_id: str) -> list[Subtask]:
        try:
            subtasks = await self._stores.subtask_store.list_subtasks(user_id, task_id)
        except aiosqlite.Error as e:
            raise self._store_error("list_subtasks", e) from e
        if subtasks:
            self._mirror(user_id).subtasks[task_id] = subtasks
        else:
            self._peek(user_id).subtasks.pop(task_id, None)
        return subtasks

    @staticmethod
    def _store_error(operation: str, error: Exception) -> StoreError:
        log.error(
            "store_operation_failed",
            operation=operation,
            error_type=type(error).__name__,
        )
        return StoreError(operation)

    @staticmethod
    def _require_user(user_id: str | None) -> str:
        if not user_id or not user_id.strip():
            raise NotAuthenticatedError()
        return user_id

    @staticmethod
    def _validate_title(title: str | None, entity: str) -> None:
        if title is None or not title.strip():
            raise ValidationError(f"{entity} title must not be empty")

    @staticmethod
    def _coerce_status(status: TaskStatus | str) -> TaskStatus:
        try:
            return TaskStatus(status)
        except ValueError as e:
            raise ValidationError(f"Invalid status: {status}") from e

    @staticmethod
    def _coerce_priority(priority: TaskPriority | str) -> TaskPriority:
        try:
            return TaskPriority(priority)
        except ValueError as e:
            raise ValidationError(f"Invalid priority: {priority}") from e

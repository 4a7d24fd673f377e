"""任务路由

POST   /api/tasks                      创建任务（201）
GET    /api/tasks                      任务列表，created_at 倒序（?date= 按创建日期过滤）
GET    /api/tasks/dates                有任务的日期
POST   /api/tasks/{task_id}/duplicate  复制任务（201）
PATCH  /api/tasks/{task_id}/status     更新状态
PATCH  /api/tasks/{task_id}/priority   更新优先级
DELETE /api/tasks/{task_id}            删除任务，子任务级联删除（204）
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from smarttask.core.models import Task
from starlette.responses import Response

from ..deps import AuthContext, get_auth_context, get_task_service
from ..services.task_service import TaskService

router = APIRouter()


class CreateTaskRequest(BaseModel):
    """创建任务请求体"""

    title: str = Field(description="任务标题")
    priority: str = Field(default="medium", description="low / medium / high")


class UpdateStatusRequest(BaseModel):
    """更新状态请求体"""

    status: str = Field(description="pending / in-progress / done")


class UpdatePriorityRequest(BaseModel):
    """更新优先级请求体"""

    priority: str = Field(description="low / medium / high")


class TaskResponse(BaseModel):
    """任务"""

    task_id: str
    title: str
    priority: str
    status: str
    created_at: str
    updated_at: str


class TaskListResponse(BaseModel):
    """任务列表响应"""

    tasks: list[TaskResponse]


class TaskDatesResponse(BaseModel):
    """有任务的日期列表（升序）"""

    dates: list[str]


def to_task_response(task: Task) -> TaskResponse:
    return TaskResponse(
        task_id=task.task_id,
        title=task.title,
        priority=task.priority.value,
        status=task.status.value,
        created_at=task.created_at.isoformat(),
        updated_at=task.updated_at.isoformat(),
    )


@router.post("/api/tasks", response_model=TaskResponse, status_code=201)
async def create_task(
    body: CreateTaskRequest,
    auth: AuthContext = Depends(get_auth_context),
    service: TaskService = Depends(get_task_service),
):
    """创建任务，status 恒为 pending；提交后后台生成 embedding"""
    task = await service.create_task(
        auth.user_id,
        body.title,
        body.priority,
        access_token=auth.access_token,
    )
    return to_task_response(task)


@router.get("/api/tasks", response_model=TaskListResponse)
async def list_tasks(
    created_on: date | None = Query(default=None, alias="date", description="YYYY-MM-DD（UTC）"),
    auth: AuthContext = Depends(get_auth_context),
    service: TaskService = Depends(get_task_service),
):
    """查询当前用户的任务列表，按 created_at 倒序；带 date 时只返回当天创建的任务"""
    tasks = await service.list_tasks(auth.user_id, created_on=created_on)
    return TaskListResponse(tasks=[to_task_response(t) for t in tasks])


@router.get("/api/tasks/dates", response_model=TaskDatesResponse)
async def list_task_dates(
    auth: AuthContext = Depends(get_auth_context),
    service: TaskService = Depends(get_task_service),
):
    """有任务的日期，供日历标记"""
    dates = await service.task_dates(auth.user_id)
    return TaskDatesResponse(dates=[d.isoformat() for d in dates])


@router.post(
    "/api/tasks/{task_id}/duplicate",
    response_model=TaskResponse,
    status_code=201,
)
async def duplicate_task(
    task_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: TaskService = Depends(get_task_service),
):
    """复制任务（不复制子任务）"""
    task = await service.duplicate_task(
        auth.user_id,
        task_id,
        access_token=auth.access_token,
    )
    return to_task_response(task)


@router.patch("/api/tasks/{task_id}/status", response_model=TaskResponse)
async def update_task_status(
    task_id: str,
    body: UpdateStatusRequest,
    auth: AuthContext = Depends(get_auth_context),
    service: TaskService = Depends(get_task_service),
):
    task = await service.update_status(auth.user_id, task_id, body.status)
    return to_task_response(task)


@router.patch("/api/tasks/{task_id}/priority", response_model=TaskResponse)
async def update_task_priority(
    task_id: str,
    body: UpdatePriorityRequest,
    auth: AuthContext = Depends(get_auth_context),
    service: TaskService = Depends(get_task_service),
):
    task = await service.update_priority(auth.user_id, task_id, body.priority)
    return to_task_response(task)


@router.delete("/api/tasks/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: TaskService = Depends(get_task_service),
):
    await service.delete_task(auth.user_id, task_id)
    return Response(status_code=204)

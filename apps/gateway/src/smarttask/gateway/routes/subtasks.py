"""子任务与建议路由

建议（候选子任务标题）只保存在内存中，保存为子任务后从候选集合移除。

POST   /api/tasks/{task_id}/suggestions                 生成建议；生成中返回 409
GET    /api/tasks/{task_id}/suggestions                 当前候选
DELETE /api/tasks/{task_id}/suggestions                 丢弃一条候选
POST   /api/tasks/{task_id}/subtasks                    保存子任务（201）
GET    /api/tasks/{task_id}/subtasks                    子任务列表，created_at 正序
PATCH  /api/tasks/{task_id}/subtasks/{subtask_id}/status
DELETE /api/tasks/{task_id}/subtasks/{subtask_id}       （204）
"""

from fastapi import APIRouter, Body, Depends, Request
from pydantic import BaseModel, Field
from smarttask.core.models import Subtask
from starlette.responses import Response

from ..deps import AuthContext, get_auth_context, get_task_service
from ..errors import error_response
from ..services.task_service import TaskService

router = APIRouter()


class GenerateSuggestionsRequest(BaseModel):
    """生成建议请求体；title 缺省时使用任务当前标题"""

    title: str | None = Field(default=None, description="用于生成的标题")


class SuggestionTitleRequest(BaseModel):
    """针对单条候选的请求体"""

    title: str = Field(description="子任务标题")


class SuggestionsResponse(BaseModel):
    """候选建议列表"""

    task_id: str
    suggestions: list[str]


class SubtaskResponse(BaseModel):
    """子任务"""

    subtask_id: str
    task_id: str
    title: str
    status: str
    created_at: str


class SubtaskListResponse(BaseModel):
    """子任务列表响应"""

    subtasks: list[SubtaskResponse]


class UpdateSubtaskStatusRequest(BaseModel):
    status: str = Field(description="pending / in-progress / done")


def to_subtask_response(subtask: Subtask) -> SubtaskResponse:
    return SubtaskResponse(
        subtask_id=subtask.subtask_id,
        task_id=subtask.task_id,
        title=subtask.title,
        status=subtask.status.value,
        created_at=subtask.created_at.isoformat(),
    )


@router.post("/api/tasks/{task_id}/suggestions", response_model=SuggestionsResponse)
async def generate_suggestions(
    task_id: str,
    request: Request,
    body: GenerateSuggestionsRequest | None = Body(default=None),
    auth: AuthContext = Depends(get_auth_context),
    service: TaskService = Depends(get_task_service),
):
    """生成子任务建议

    - 同一任务已有一次生成在进行时返回 409
    - 成功时替换该任务的候选集合
    """
    if not service.try_begin_generation(task_id):
        return error_response(
            409,
            "GENERATION_IN_PROGRESS",
            f"Suggestions for task {task_id} are already being generated",
            request,
        )

    try:
        suggestions = await service.generate_subtask_suggestions(
            auth.user_id,
            task_id,
            title=body.title if body else None,
            access_token=auth.access_token,
        )
    finally:
        service.end_generation(task_id)
    return SuggestionsResponse(task_id=task_id, suggestions=suggestions)


@router.get("/api/tasks/{task_id}/suggestions", response_model=SuggestionsResponse)
async def get_suggestions(
    task_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: TaskService = Depends(get_task_service),
):
    return SuggestionsResponse(
        task_id=task_id,
        suggestions=service.suggestions(auth.user_id, task_id),
    )


@router.delete("/api/tasks/{task_id}/suggestions", response_model=SuggestionsResponse)
async def dismiss_suggestion(
    task_id: str,
    body: SuggestionTitleRequest,
    auth: AuthContext = Depends(get_auth_context),
    service: TaskService = Depends(get_task_service),
):
    """丢弃一条候选，返回剩余候选"""
    remaining = service.dismiss_suggestion(auth.user_id, task_id, body.title)
    return SuggestionsResponse(task_id=task_id, suggestions=remaining)


@router.post(
    "/api/tasks/{task_id}/subtasks",
    response_model=SubtaskResponse,
    status_code=201,
)
async def save_subtask(
    task_id: str,
    body: SuggestionTitleRequest,
    auth: AuthContext = Depends(get_auth_context),
    service: TaskService = Depends(get_task_service),
):
    """保存子任务；同名候选随之移除"""
    subtask = await service.save_subtask(auth.user_id, task_id, body.title)
    return to_subtask_response(subtask)


@router.get("/api/tasks/{task_id}/subtasks", response_model=SubtaskListResponse)
async def list_subtasks(
    task_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: TaskService = Depends(get_task_service),
):
    subtasks = await service.list_subtasks(auth.user_id, task_id)
    return SubtaskListResponse(subtasks=[to_subtask_response(s) for s in subtasks])


@router.patch(
    "/api/tasks/{task_id}/subtasks/{subtask_id}/status",
    response_model=SubtaskResponse,
)
async def update_subtask_status(
    task_id: str,
    subtask_id: str,
    body: UpdateSubtaskStatusRequest,
    auth: AuthContext = Depends(get_auth_context),
    service: TaskService = Depends(get_task_service),
):
    subtask = await service.update_subtask_status(
        auth.user_id, task_id, subtask_id, body.status
    )
    return to_subtask_response(subtask)


@router.delete("/api/tasks/{task_id}/subtasks/{subtask_id}", status_code=204)
async def delete_subtask(
    task_id: str,
    subtask_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: TaskService = Depends(get_task_service),
):
    await service.delete_subtask(auth.user_id, task_id, subtask_id)
    return Response(status_code=204)

"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭、任务函数后端初始化、路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from smarttask.core.config import SIMILARITY_THRESHOLD, get_db_path
from smarttask.core.store import create_store_group
from smarttask.provider import load_functions_config

from .errors import register_exception_handlers
from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import health, profile, search, subtasks, tasks
from .services.functions import build_task_functions
from .services.search_service import SearchService
from .services.task_service import TaskService

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 Store 与服务，关闭时等待后台作业并关闭连接"""
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group

    functions_config = load_functions_config()
    app.state.functions_config = functions_config
    task_functions = build_task_functions(functions_config, store_group)
    app.state.task_functions = task_functions

    app.state.task_service = TaskService(store_group, task_functions)
    app.state.search_service = SearchService(task_functions, SIMILARITY_THRESHOLD)
    log.info(
        "gateway_started",
        db_path=db_path,
        functions_mode=functions_config.functions_mode,
    )

    yield

    # 关闭：先等待 embedding 作业落盘，再关闭连接
    await app.state.task_service.wait_background_jobs()
    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.conn.close()
    log.info("gateway_stopped")


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="SmartTask Gateway",
        version="0.1.0",
        description="任务/子任务管理、子任务建议与语义搜索 API",
        lifespan=lifespan,
    )

    # 注册中间件（后注册的在外层：Logging 先清理 context，Trace 再绑定）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    # 初始化日志
    setup_logging()
    setup_logfire(app)

    register_exception_handlers(app)

    # 注册路由
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(subtasks.router, tags=["subtasks"])
    app.include_router(search.router, tags=["search"])
    app.include_router(profile.router, tags=["profile"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()

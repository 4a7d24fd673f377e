"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含 SQLite 连通性；
            profile=full 时额外探测任务函数后端。
"""

import structlog
from fastapi import APIRouter, Query, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(
    request: Request,
    profile: str | None = Query(
        default=None,
        description="core（默认）仅核心检查；full 包含任务函数后端探测",
    ),
):
    """Readiness 检查

    检查项：
    1. sqlite: 数据库连通性
    2. functions: 根据 profile 决定是否探测任务函数后端
    """
    effective_profile = profile or "core"

    checks: dict[str, str] = {}
    all_ok = True

    # 1. SQLite 连通性检查
    try:
        store_group = request.app.state.store_group
        cursor = await store_group.conn.execute("SELECT 1")
        await cursor.fetchone()
        checks["sqlite"] = "ok"
    except Exception as e:
        checks["sqlite"] = f"error: {e}"
        all_ok = False

    # 2. 任务函数后端
    if effective_profile == "full":
        functions = getattr(request.app.state, "task_functions", None)
        if functions is None:
            checks["functions"] = "skipped"
        else:
            try:
                healthy = await functions.health_check()
            except Exception as e:
                log.warning("health_check_error", error=str(e))
                healthy = False
            checks["functions"] = "ok" if healthy else "unreachable"
            all_ok = all_ok and healthy
    else:
        checks["functions"] = "skipped"

    status_code = 200 if all_ok else 503
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "ready" if all_ok else "not_ready",
            "profile": effective_profile,
            "checks": checks,
        },
    )

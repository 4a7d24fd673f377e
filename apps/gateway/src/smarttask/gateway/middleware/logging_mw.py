"""LoggingMiddleware

每个请求一条 request_completed 访问日志：
request_id / user_id 绑定到 structlog contextvars，业务日志自动带上；
结束时记录路由模板、状态码、耗时，错误响应附带统一错误码。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID


def route_template(request: Request) -> str:
    """匹配到的路由模板（/api/tasks/{task_id}），未匹配时退回原始路径"""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = str(ULID())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
        )
        # 身份由 deps.get_auth_context 校验，这里只用于日志关联
        user_id = request.headers.get("x-user-id", "").strip()
        if user_id:
            structlog.contextvars.bind_contextvars(user_id=user_id)

        log = structlog.get_logger()
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            await log.aerror(
                "request_failed",
                route=route_template(request),
                duration_ms=_elapsed_ms(started),
                error_type=type(e).__name__,
            )
            raise

        fields: dict[str, object] = {
            "route": route_template(request),
            "status_code": response.status_code,
            "duration_ms": _elapsed_ms(started),
        }
        # errors.error_response 写入
        error_code = getattr(request.state, "error_code", None)
        if error_code:
            fields["error_code"] = error_code

        if response.status_code >= 500:
            await log.aerror("request_completed", **fields)
        elif response.status_code >= 400:
            await log.awarning("request_completed", **fields)
        else:
            await log.ainfo("request_completed", **fields)

        response.headers["X-Request-ID"] = request_id
        return response

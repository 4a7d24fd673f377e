"""异常 -> HTTP 响应映射

所有错误响应统一为 ``{"error": {"code": ..., "message": ...}}``。
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from smarttask.core.exceptions import SmartTaskError
from smarttask.provider import RemoteCallError
from starlette.responses import JSONResponse

log = structlog.get_logger()


def error_response(
    status_code: int,
    code: str,
    message: str,
    request: Request | None = None,
) -> JSONResponse:
    """构造统一格式的错误响应

    传入 request 时错误码记到 request.state，供访问日志读取。
    """
    if request is not None:
        request.state.error_code = code
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


async def smarttask_error_handler(request: Request, exc: SmartTaskError) -> JSONResponse:
    """领域异常：按异常自带的 status_code / code 映射"""
    log.info("request_rejected", code=exc.code, status_code=exc.status_code)
    return error_response(exc.status_code, exc.code, exc.message, request)


async def remote_call_error_handler(request: Request, exc: RemoteCallError) -> JSONResponse:
    """外部函数调用失败 -> 502"""
    log.warning(
        "remote_call_failed",
        function=exc.function_name,
        upstream_status=exc.status_code,
    )
    return error_response(502, "REMOTE_CALL_FAILED", str(exc), request)


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """请求体结构错误（缺字段、类型不符）-> 422"""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = f"{location}: {first.get('msg', 'invalid request')}" if location else "invalid request"
    return error_response(422, "VALIDATION_ERROR", message, request)


def register_exception_handlers(app: FastAPI) -> None:
    """注册异常处理器"""
    app.add_exception_handler(SmartTaskError, smarttask_error_handler)
    app.add_exception_handler(RemoteCallError, remote_call_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

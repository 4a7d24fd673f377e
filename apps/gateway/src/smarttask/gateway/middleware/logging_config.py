"""structlog 配置模块

SMARTTASK_LOG_FORMAT=dev|json 选择渲染方式，SMARTTASK_LOG_LEVEL 控制级别，
非法取值回退到默认值并在日志系统就绪后记录一条 invalid_logging_config。
用户 token 与函数密钥字段在渲染前被遮蔽。
Logfire APM 由 LOGFIRE_SEND_TO_LOGFIRE 控制，默认只输出本地日志。
"""

import logging
import os
from typing import Any, Literal

import structlog
from fastapi import FastAPI
from pydantic import BaseModel, Field

# 请求转发链路上会出现的凭证字段
SECRET_FIELDS = frozenset({"access_token", "authorization", "api_key", "functions_api_key"})

# 这些库的 INFO 日志过于冗长（每次 HTTP 调用 / SQL 语句一条）
NOISY_LOGGERS = ("LiteLLM", "httpx", "aiosqlite")


class LoggingSettings(BaseModel):
    """日志配置"""

    log_format: Literal["dev", "json"] = Field(default="dev", description="渲染方式")
    log_level: int = Field(default=logging.INFO, description="根 logger 级别")
    invalid: dict[str, str] = Field(
        default_factory=dict,
        description="被回退的非法环境变量取值",
    )


def load_logging_settings() -> LoggingSettings:
    """从环境变量读取日志配置"""
    invalid: dict[str, str] = {}

    log_format = os.environ.get("SMARTTASK_LOG_FORMAT", "dev").strip().lower()
    if log_format not in ("dev", "json"):
        invalid["SMARTTASK_LOG_FORMAT"] = log_format
        log_format = "dev"

    level_name = os.environ.get("SMARTTASK_LOG_LEVEL", "INFO").strip().upper()
    log_level = logging.getLevelNamesMapping().get(level_name)
    if log_level is None:
        invalid["SMARTTASK_LOG_LEVEL"] = level_name
        log_level = logging.INFO

    return LoggingSettings(log_format=log_format, log_level=log_level, invalid=invalid)


def redact_secrets(
    logger: Any, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """遮蔽凭证字段的值"""
    for key in SECRET_FIELDS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = "***"
    return event_dict


def setup_logging(settings: LoggingSettings | None = None) -> LoggingSettings:
    """初始化 structlog + 标准库 logging

    structlog 事件与第三方库的标准库日志共用同一个 handler 和渲染器。

    Returns:
        实际生效的配置
    """
    settings = settings or load_logging_settings()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: structlog.types.Processor
    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.log_level)

    # 第三方库至少到 WARNING，整体级别更高时跟随整体
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, settings.log_level))

    if settings.invalid:
        structlog.get_logger().warning("invalid_logging_config", fallback=settings.invalid)
    return settings


def setup_logfire(app: FastAPI) -> None:
    """Logfire 可选初始化（需要 LOGFIRE_TOKEN 与 logfire extra）"""
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return
    try:
        import logfire

        logfire.configure()
        logfire.instrument_fastapi(app)
    except Exception as e:
        structlog.get_logger().warning(
            "logfire_init_failed",
            error_type=type(e).__name__,
            message="Logfire 初始化失败，降级为纯本地日志",
        )

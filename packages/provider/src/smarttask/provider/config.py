"""FunctionsConfig -- 外部函数（embedding / 子任务建议 / 语义搜索）配置加载

从环境变量加载配置，不硬编码服务地址或模型名。
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()


class FunctionsConfig(BaseModel):
    """Provider 包配置 -- 从环境变量加载

    环境变量:
        SMARTTASK_FUNCTIONS_MODE: 运行模式（remote/litellm/local）
        SMARTTASK_FUNCTIONS_URL: 托管后端基础 URL（remote 模式）
        SMARTTASK_FUNCTIONS_KEY: 后端匿名访问密钥（无用户 token 时作为 Bearer）
        SMARTTASK_FUNCTIONS_TIMEOUT_S: 请求超时（秒），未设置时使用传输层默认值
        LITELLM_PROXY_URL / LITELLM_PROXY_KEY: LiteLLM Proxy（litellm 模式）
        SMARTTASK_EMBEDDING_MODEL / SMARTTASK_SUGGESTION_MODEL: litellm 模式模型名
    """

    functions_mode: Literal["remote", "litellm", "local"] = Field(
        default="local",
        description="运行模式：remote 调用托管函数；litellm 经 Proxy 调用模型；local 离线",
    )
    functions_base_url: str = Field(
        default="http://localhost:54321",
        description="托管后端基础 URL",
    )
    functions_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="后端匿名访问密钥",
    )
    timeout_s: float | None = Field(
        default=None,
        gt=0,
        description="请求超时（秒），None 表示使用传输层默认值",
    )
    proxy_base_url: str = Field(
        default="http://localhost:4000",
        description="LiteLLM Proxy 基础 URL",
    )
    proxy_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Proxy 访问密钥",
    )
    embedding_model: str = Field(
        default="embedding",
        description="litellm 模式下的 embedding 模型 alias",
    )
    suggestion_model: str = Field(
        default="main",
        description="litellm 模式下的子任务建议模型 alias",
    )


def load_functions_config() -> FunctionsConfig:
    """从环境变量加载 Functions 配置

    非法的超时值记录 warning 后回退为默认值，不阻塞启动。

    Returns:
        FunctionsConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("SMARTTASK_FUNCTIONS_MODE"):
        kwargs["functions_mode"] = val

    if val := os.environ.get("SMARTTASK_FUNCTIONS_URL"):
        kwargs["functions_base_url"] = val

    if val := os.environ.get("SMARTTASK_FUNCTIONS_KEY"):
        kwargs["functions_api_key"] = SecretStr(val)

    if val := os.environ.get("SMARTTASK_FUNCTIONS_TIMEOUT_S"):
        try:
            timeout_s = float(val)
        except ValueError:
            timeout_s = None
        if timeout_s is not None and timeout_s > 0:
            kwargs["timeout_s"] = timeout_s
        else:
            log.warning(
                "invalid_timeout_config",
                env_var="SMARTTASK_FUNCTIONS_TIMEOUT_S",
                value=val,
                fallback=None,
            )

    if val := os.environ.get("LITELLM_PROXY_URL"):
        kwargs["proxy_base_url"] = val

    if val := os.environ.get("LITELLM_PROXY_KEY"):
        kwargs["proxy_api_key"] = SecretStr(val)

    if val := os.environ.get("SMARTTASK_EMBEDDING_MODEL"):
        kwargs["embedding_model"] = val

    if val := os.environ.get("SMARTTASK_SUGGESTION_MODEL"):
        kwargs["suggestion_model"] = val

    return FunctionsConfig(**kwargs)

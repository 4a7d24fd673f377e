"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、本地 embedding 维度、语义搜索相似度阈值等常量。
"""

import os
from pathlib import Path

import structlog

log = structlog.get_logger()

_DEFAULT_EMBEDDING_DIMENSIONS = 256


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("SMARTTASK_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "SMARTTASK_DB_PATH",
        str(_get_base_dir() / "sqlite" / "smarttask.db"),
    )


def get_embedding_dimensions() -> int:
    """本地 hashing embedder 的向量维度（非法值回退为 256）"""
    raw = os.environ.get("SMARTTASK_EMBEDDING_DIMENSIONS")
    if raw is None:
        return _DEFAULT_EMBEDDING_DIMENSIONS
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value <= 0:
        log.warning(
            "invalid_embedding_dimensions_config",
            env_var="SMARTTASK_EMBEDDING_DIMENSIONS",
            value=raw,
            fallback=_DEFAULT_EMBEDDING_DIMENSIONS,
        )
        return _DEFAULT_EMBEDDING_DIMENSIONS
    return value


# 语义搜索相似度阈值（固定策略，不允许通过环境变量覆盖）
SIMILARITY_THRESHOLD: float = 0.7

# 日志中标题预览截断长度
TITLE_PREVIEW_LENGTH: int = 80

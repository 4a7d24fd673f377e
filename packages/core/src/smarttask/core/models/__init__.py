"""SmartTask Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    INITIAL_STATUS,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    TaskPriority,
    TaskStatus,
    validate_transition,
)
from .profile import Profile
from .search import SearchResult, TaskEmbedding
from .task import Subtask, Task

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskPriority",
    # 状态机
    "INITIAL_STATUS",
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "validate_transition",
    # Task
    "Task",
    "Subtask",
    # Profile
    "Profile",
    # Search
    "SearchResult",
    "TaskEmbedding",
]

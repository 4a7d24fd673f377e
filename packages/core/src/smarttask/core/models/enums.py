"""枚举定义 -- 任务/子任务状态机与优先级

TaskStatus 同时用于 Task 与 Subtask。状态机不限制方向：
任意状态都可流转到任意状态（包括自身），初始状态恒为 PENDING，没有终态。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task / Subtask 状态"""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class TaskPriority(StrEnum):
    """Task 优先级"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


INITIAL_STATUS: TaskStatus = TaskStatus.PENDING

# 任意状态 -> 任意状态（done 可以重新打开）
VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    status: set(TaskStatus) for status in TaskStatus
}

TERMINAL_STATES: set[TaskStatus] = set()


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_status, set())
    return to_status in allowed

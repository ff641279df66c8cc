"""FocusGuard Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    RESOLVE_OUTCOMES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    TaskMode,
    TaskStatus,
    TaskType,
    validate_transition,
)
from .task import Task, TaskCreate, TaskUpdate, to_utc

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskMode",
    "TaskType",
    # 状态机
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "RESOLVE_OUTCOMES",
    "validate_transition",
    # Task
    "Task",
    "TaskCreate",
    "TaskUpdate",
    "to_utc",
]

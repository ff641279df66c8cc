"""枚举定义

包含 TaskStatus 状态机、TaskMode、TaskType 枚举，
以及 VALID_TRANSITIONS 合法流转映射和 TERMINAL_STATES 终态集合。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态机"""

    # 活跃状态
    ASSIGNED = "assigned"
    PROCESSING = "processing"

    # 终态
    DONE = "done"
    EXPIRED = "expired"


class TaskMode(StrEnum):
    """任务模式

    block: 占用全局唯一的专注槽位，按 duration_minutes 计时
    deadline: 固定截止时间，不受并发限制
    """

    BLOCK = "block"
    DEADLINE = "deadline"


class TaskType(StrEnum):
    """任务类型"""

    CONTENT = "CONTENT"
    MEDIA = "MEDIA"
    RESOURCE = "RESOURCE"
    REMINDER = "REMINDER"


# 合法状态流转（start / stop / 逾期扫描）
# resolve 不受此表约束，可从任意状态写入终态
VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.ASSIGNED: {TaskStatus.PROCESSING},
    TaskStatus.PROCESSING: {
        TaskStatus.ASSIGNED,
        TaskStatus.DONE,
        TaskStatus.EXPIRED,
    },
    # 终态不可再流转
    TaskStatus.DONE: set(),
    TaskStatus.EXPIRED: set(),
}

TERMINAL_STATES: set[TaskStatus] = {
    TaskStatus.DONE,
    TaskStatus.EXPIRED,
}

# resolve 允许的结果
RESOLVE_OUTCOMES: set[TaskStatus] = TERMINAL_STATES


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

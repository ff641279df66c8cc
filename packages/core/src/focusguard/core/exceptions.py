"""生命周期异常体系

所有异常原样抛给调用方，核心层不做重试、不吞异常。
code 字段供网关层映射为稳定的错误码。
"""

from .models.enums import TaskStatus


class TaskLifecycleError(Exception):
    """生命周期操作基础异常"""

    code = "TASK_LIFECYCLE_ERROR"

    def __init__(self, message: str, task_id: str | None = None) -> None:
        """
        Args:
            message: 错误描述
            task_id: 相关任务 ID（如有）
        """
        super().__init__(message)
        self.message = message
        self.task_id = task_id


class TaskNotFoundError(TaskLifecycleError):
    """引用的任务不存在"""

    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} does not exist", task_id=task_id)


class InvalidTransitionError(TaskLifecycleError):
    """当前状态下不允许该操作"""

    code = "INVALID_TRANSITION"

    def __init__(
        self, task_id: str, current_status: TaskStatus, message: str
    ) -> None:
        super().__init__(message, task_id=task_id)
        self.current_status = current_status


class BlockSlotConflictError(TaskLifecycleError):
    """全局 block 槽位已被占用（至多一个 block 任务处于 processing）"""

    code = "BLOCK_SLOT_OCCUPIED"

    def __init__(self, task_id: str, active_task_id: str | None = None) -> None:
        super().__init__(
            "Another block task is already in progress. Finish it first.",
            task_id=task_id,
        )
        self.active_task_id = active_task_id


class StoreError(TaskLifecycleError):
    """底层存储失败（含超时）"""

    code = "STORE_ERROR"

    def __init__(
        self,
        message: str,
        task_id: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, task_id=task_id)
        self.original_error = original_error


class InvalidTaskUpdateError(TaskLifecycleError):
    """编辑内容与任务当前状态冲突"""

    code = "INVALID_UPDATE"

    def __init__(self, task_id: str, message: str) -> None:
        super().__init__(message, task_id=task_id)

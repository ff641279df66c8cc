"""TaskLifecycleEngine -- 任务生命周期状态机

assigned -> processing -> {done, expired}，processing 可经 stop 回到 assigned。

规则：
- block 模式：全局同一时刻至多一个 block 任务处于 processing
- deadline 模式：processing 数量不受限制
- resolve 不做状态守卫，可从任意状态写入 done / expired

每个操作的取锁、BEGIN 与事务体须在 timeout_s 内完成（已开始的 COMMIT 以提交结果为准），
超时与底层存储异常统一以 StoreError 上报；
其余异常原样抛出，引擎内部不重试。
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import TypeVar

import aiosqlite
import structlog

from .config import DEFAULT_BLOCK_DURATION_MINUTES, get_store_timeout_s
from .exceptions import (
    BlockSlotConflictError,
    InvalidTransitionError,
    StoreError,
    TaskLifecycleError,
    TaskNotFoundError,
)
from .models.enums import RESOLVE_OUTCOMES, TERMINAL_STATES, TaskMode, TaskStatus
from .models.task import Task
from .store import StoreGroup, is_block_slot_conflict

log = structlog.get_logger()

T = TypeVar("T")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


async def run_store_operation(
    operation: str,
    factory: Callable[[], Awaitable[T]],
    timeout_s: float | None = None,
    task_id: str | None = None,
) -> T:
    """执行一次存储操作，并归一化底层异常

    写操作的截止时间由 write_transaction 控制（不覆盖 COMMIT），此时 timeout_s 为 None；
    只读操作传入 timeout_s，由 wait_for 控制。

    Args:
        operation: 操作名（用于日志与错误信息）
        factory: 返回待执行协程的工厂
        timeout_s: 整体超时时间（秒），None 表示不在此处限时
        task_id: 相关任务 ID

    Raises:
        TaskLifecycleError: 领域异常原样抛出
        StoreError: 超时或 aiosqlite 异常
    """
    try:
        if timeout_s is None:
            return await factory()
        return await asyncio.wait_for(factory(), timeout=timeout_s)
    except TaskLifecycleError:
        raise
    except TimeoutError as e:
        log.warning("store_operation_timeout", operation=operation, task_id=task_id)
        raise StoreError(
            f"{operation} timed out",
            task_id=task_id,
            original_error=e,
        ) from e
    except aiosqlite.Error as e:
        log.error(
            "store_operation_failed",
            operation=operation,
            task_id=task_id,
            error_type=type(e).__name__,
        )
        raise StoreError(
            f"{operation} failed: {e}",
            task_id=task_id,
            original_error=e,
        ) from e


class TaskLifecycleEngine:
    """任务生命周期引擎 -- start / stop / resolve"""

    def __init__(
        self,
        store_group: StoreGroup,
        *,
        clock: Clock | None = None,
        timeout_s: float | None = None,
    ) -> None:
        self._stores = store_group
        self._clock = clock or utc_now
        self._timeout_s = timeout_s if timeout_s is not None else get_store_timeout_s()

    async def start(self, task_id: str) -> Task:
        """开始处理任务

        Returns:
            更新后的 Task

        Raises:
            TaskNotFoundError: 任务不存在
            InvalidTransitionError: 已在 processing 或已处于终态
            BlockSlotConflictError: 已有其他 block 任务处于 processing
            StoreError: 存储失败或超时
        """
        return await run_store_operation(
            "start_task", lambda: self._start(task_id), task_id=task_id
        )

    async def stop(self, task_id: str) -> Task:
        """停止任务，重置回 assigned

        对 assigned 任务是幂等重置；对终态任务不做修改（终态不可复活）。

        Raises:
            TaskNotFoundError: 任务不存在
            StoreError: 存储失败或超时
        """
        return await run_store_operation(
            "stop_task", lambda: self._stop(task_id), task_id=task_id
        )

    async def resolve(self, task_id: str, outcome: TaskStatus | str) -> Task:
        """将任务标记为 done 或 expired

        不校验当前状态：可对未开始或已终结的任务调用，结果幂等。

        Raises:
            ValueError: outcome 不是 done / expired
            TaskNotFoundError: 任务不存在
            StoreError: 存储失败或超时
        """
        target = TaskStatus(outcome)
        if target not in RESOLVE_OUTCOMES:
            raise ValueError(f"resolve outcome must be done or expired, got {target}")
        return await run_store_operation(
            "resolve_task",
            lambda: self._resolve(task_id, target),
            task_id=task_id,
        )

    async def _start(self, task_id: str) -> Task:
        store = self._stores.task_store
        try:
            async with self._stores.transaction(self._timeout_s):
                task = await store.get_task(task_id)
                if task is None:
                    raise TaskNotFoundError(task_id)
                self._check_startable(task)

                if task.mode == TaskMode.BLOCK:
                    active = await store.count_tasks(
                        TaskMode.BLOCK, TaskStatus.PROCESSING, exclude_task_id=task_id
                    )
                    if active > 0:
                        holder = await store.get_active_block_task()
                        raise BlockSlotConflictError(
                            task_id,
                            active_task_id=holder.task_id if holder else None,
                        )

                now = self._clock()
                fields: dict[str, object] = {
                    "status": TaskStatus.PROCESSING,
                    "started_at": now,
                    "updated_at": now,
                }
                if task.mode == TaskMode.BLOCK:
                    minutes = task.duration_minutes or DEFAULT_BLOCK_DURATION_MINUTES
                    fields["due_at"] = now + timedelta(minutes=minutes)

                updated = await store.update_task_fields(
                    task_id, fields, expected_statuses={TaskStatus.ASSIGNED}
                )
                if not updated:
                    # 条件更新未命中：重新读取以给出准确的失败原因
                    current = await store.get_task(task_id)
                    if current is None:
                        raise TaskNotFoundError(task_id)
                    self._check_startable(current)
                    raise StoreError("start_task did not update any row", task_id=task_id)

                result = await self._reload(task_id)
        except aiosqlite.IntegrityError as e:
            if is_block_slot_conflict(e):
                log.info("block_slot_conflict_on_write", task_id=task_id)
                raise BlockSlotConflictError(task_id) from e
            raise
        except BlockSlotConflictError as e:
            log.info(
                "block_slot_occupied",
                task_id=task_id,
                active_task_id=e.active_task_id,
            )
            raise

        log.info(
            "task_started",
            task_id=task_id,
            mode=result.mode.value,
            due_at=result.due_at.isoformat() if result.due_at else None,
        )
        return result

    async def _reload(self, task_id: str) -> Task:
        """事务内回读更新后的行"""
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    @staticmethod
    def _check_startable(task: Task) -> None:
        if task.status == TaskStatus.PROCESSING:
            raise InvalidTransitionError(
                task.task_id, task.status, "Task is already processing."
            )
        if task.status in TERMINAL_STATES:
            raise InvalidTransitionError(
                task.task_id, task.status, "Cannot restart a completed task."
            )

    async def _stop(self, task_id: str) -> Task:
        store = self._stores.task_store
        async with self._stores.transaction(self._timeout_s):
            task = await store.get_task(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)

            if task.status in TERMINAL_STATES:
                log.info(
                    "task_stop_ignored_terminal",
                    task_id=task_id,
                    status=task.status.value,
                )
                return task

            now = self._clock()
            fields: dict[str, object] = {
                "status": TaskStatus.ASSIGNED,
                "started_at": None,
                "updated_at": now,
            }
            # deadline 模式的 due_at 是用户数据，保持不变
            if task.mode == TaskMode.BLOCK:
                fields["due_at"] = None

            await store.update_task_fields(
                task_id, fields, excluded_statuses=TERMINAL_STATES
            )
            result = await self._reload(task_id)

        log.info("task_stopped", task_id=task_id, previous_status=task.status.value)
        return result

    async def _resolve(self, task_id: str, outcome: TaskStatus) -> Task:
        store = self._stores.task_store
        async with self._stores.transaction(self._timeout_s):
            updated = await store.update_task_fields(
                task_id,
                {"status": outcome, "updated_at": self._clock()},
            )
            if not updated:
                raise TaskNotFoundError(task_id)
            result = await self._reload(task_id)

        log.info("task_resolved", task_id=task_id, outcome=outcome.value)
        return result

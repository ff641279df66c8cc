"""OverdueSweeper -- 逾期扫描

查找 due_at 已过的 processing 任务，单条批量 UPDATE 标记为 expired，
返回变更前快照（status 覆盖为 expired），调用方无需二次读取。

查询与批量更新在同一写事务内完成：任一步失败整体回滚，以 StoreError 上报，
不存在部分成功的中间状态。started_at / due_at 不做修改。
"""

from datetime import datetime

import structlog

from .config import get_store_timeout_s
from .lifecycle import Clock, run_store_operation, utc_now
from .models.enums import TaskStatus
from .models.task import Task
from .store import StoreGroup

log = structlog.get_logger()


async def sweep_overdue(
    store_group: StoreGroup,
    now: datetime,
    timeout_s: float | None = None,
) -> list[Task]:
    """执行一次逾期扫描（不含异常归一化）

    Args:
        store_group: Store 实例组
        now: 判定逾期的参考时间
        timeout_s: 写事务截止时间，None 表示不限

    Returns:
        本次新标记为 expired 的任务列表
    """
    store = store_group.task_store
    async with store_group.transaction(timeout_s):
        overdue = await store.list_overdue_tasks(now)
        if not overdue:
            return []

        await store.bulk_update_status(
            [t.task_id for t in overdue],
            TaskStatus.EXPIRED,
            updated_at=now,
            expected_status=TaskStatus.PROCESSING,
        )

    return [t.model_copy(update={"status": TaskStatus.EXPIRED}) for t in overdue]


class OverdueSweeper:
    """逾期扫描器 -- 可任意频率调用，结果幂等"""

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

    async def sweep(self) -> list[Task]:
        """扫描并标记逾期任务

        Raises:
            StoreError: 查询或批量更新失败、超时
        """
        now = self._clock()
        expired = await run_store_operation(
            "sweep_overdue",
            lambda: sweep_overdue(self._stores, now, self._timeout_s),
        )
        if expired:
            log.info(
                "overdue_tasks_expired",
                count=len(expired),
                task_ids=[t.task_id for t in expired],
            )
        return expired

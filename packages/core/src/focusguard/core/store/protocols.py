"""Store Protocol 接口定义

定义 TaskStore 的抽象接口，使用 Python Protocol 实现结构化子类型（duck typing）。
生命周期引擎与逾期扫描只依赖此接口发出的查询。
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from ..models.enums import TaskMode, TaskStatus
from ..models.task import Task


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """按 id 点查"""
        ...

    async def delete_task(self, task_id: str) -> bool:
        """删除任务记录"""
        ...

    async def list_tasks(
        self,
        status: str | None = None,
        project_id: str | None = None,
    ) -> list[Task]:
        """查询任务列表"""
        ...

    async def count_tasks(
        self,
        mode: TaskMode,
        status: TaskStatus,
        exclude_task_id: str | None = None,
    ) -> int:
        """按 (mode, status) 计数"""
        ...

    async def get_active_block_task(self) -> Task | None:
        """当前占用 block 槽位的任务"""
        ...

    async def update_task_fields(
        self,
        task_id: str,
        fields: dict[str, object],
        *,
        expected_statuses: Iterable[TaskStatus] | None = None,
        excluded_statuses: Iterable[TaskStatus] | None = None,
    ) -> bool:
        """按 id 条件更新，返回是否命中一行"""
        ...

    async def list_overdue_tasks(self, now: datetime) -> list[Task]:
        """查询 processing 且 due_at < now 的任务"""
        ...

    async def bulk_update_status(
        self,
        task_ids: list[str],
        status: TaskStatus,
        updated_at: datetime,
        expected_status: TaskStatus | None = None,
    ) -> int:
        """按 id 集合批量更新状态"""
        ...

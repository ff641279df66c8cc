"""TaskService -- 任务创建/查询/编辑/删除业务逻辑

任务创建流程：
1. CONTENT 类型任务按标题供给文档，得到不透明引用 drive_link
2. 供给失败只记录日志，任务照常创建（drive_link 为空）
3. 写入 Task 记录（status=assigned）

状态变更不经过此服务，统一由 TaskLifecycleEngine 负责；编辑只触及描述性字段。
读取与写事务串行（StoreGroup.read），不会读到其他协程未提交的修改。
"""

import structlog
from focusguard.core.config import get_store_timeout_s
from focusguard.core.exceptions import InvalidTaskUpdateError, TaskNotFoundError
from focusguard.core.lifecycle import Clock, run_store_operation, utc_now
from focusguard.core.models import (
    Task,
    TaskCreate,
    TaskMode,
    TaskStatus,
    TaskType,
    TaskUpdate,
)
from focusguard.core.store import StoreGroup
from focusguard.provider import DocumentProvisioner, ProvisioningError
from ulid import ULID

log = structlog.get_logger()


class TaskService:
    """任务业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        provisioner: DocumentProvisioner | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._stores = store_group
        self._provisioner = provisioner
        self._clock = clock or utc_now
        self._timeout_s = get_store_timeout_s()

    async def create_task(self, payload: TaskCreate) -> Task:
        """创建任务

        Args:
            payload: 任务创建输入

        Returns:
            新建的 Task

        Raises:
            StoreError: 写入失败或超时
        """
        task_id = str(ULID())
        drive_link = await self._provision_document(task_id, payload)

        now = self._clock()
        task = Task(
            task_id=task_id,
            project_id=payload.project_id,
            title=payload.title,
            type=payload.type,
            mode=payload.mode,
            status=TaskStatus.ASSIGNED,
            priority=payload.priority,
            reference_link=payload.reference_link,
            drive_link=drive_link,
            duration_minutes=payload.duration_minutes,
            due_at=payload.due_at,
            created_at=now,
            updated_at=now,
        )

        async def _insert() -> None:
            async with self._stores.transaction(self._timeout_s):
                await self._stores.task_store.create_task(task)

        await run_store_operation("create_task", _insert, task_id=task_id)
        log.info(
            "task_created",
            task_id=task_id,
            mode=task.mode.value,
            type=task.type.value,
            has_document=drive_link is not None,
        )
        return task

    async def _provision_document(
        self, task_id: str, payload: TaskCreate
    ) -> str | None:
        """CONTENT 任务自动创建文档；失败降级为无文档"""
        if payload.type != TaskType.CONTENT or self._provisioner is None:
            return None
        try:
            ref = await self._provisioner.create_document(
                payload.title, folder_id=payload.project_id
            )
        except ProvisioningError as e:
            log.error(
                "document_provision_skipped",
                task_id=task_id,
                error_type=type(e).__name__,
                recoverable=e.recoverable,
            )
            return None
        return ref.url

    async def get_task(self, task_id: str) -> Task | None:
        """查询任务详情"""

        async def _get() -> Task | None:
            async with self._stores.read():
                return await self._stores.task_store.get_task(task_id)

        return await run_store_operation("get_task", _get, self._timeout_s, task_id)

    async def list_tasks(
        self,
        status: TaskStatus | None = None,
        project_id: str | None = None,
    ) -> list[Task]:
        """查询任务列表"""

        async def _list() -> list[Task]:
            async with self._stores.read():
                return await self._stores.task_store.list_tasks(status, project_id)

        return await run_store_operation("list_tasks", _list, self._timeout_s)

    async def update_task(self, task_id: str, payload: TaskUpdate) -> Task:
        """编辑任务的描述性字段

        block 任务的 due_at 由 start 计算：assigned 时不可设置，processing 时不可清空。

        Raises:
            TaskNotFoundError: 任务不存在
            InvalidTaskUpdateError: 编辑内容与当前状态冲突
            StoreError: 存储失败或超时
        """
        changes = payload.changes()

        async def _update() -> Task:
            store = self._stores.task_store
            async with self._stores.transaction(self._timeout_s):
                task = await store.get_task(task_id)
                if task is None:
                    raise TaskNotFoundError(task_id)
                if not changes:
                    return task
                self._check_update(task, changes)

                await store.update_task_fields(
                    task_id, {**changes, "updated_at": self._clock()}
                )
                updated = await store.get_task(task_id)
                if updated is None:
                    raise TaskNotFoundError(task_id)
                return updated

        result = await run_store_operation("update_task", _update, task_id=task_id)
        log.info("task_updated", task_id=task_id, fields=sorted(changes))
        return result

    @staticmethod
    def _check_update(task: Task, changes: dict[str, object]) -> None:
        if task.mode != TaskMode.BLOCK or "due_at" not in changes:
            return
        due_at = changes["due_at"]
        if task.status == TaskStatus.ASSIGNED and due_at is not None:
            raise InvalidTaskUpdateError(
                task.task_id, "due_at of a block task is set when it starts."
            )
        if task.status == TaskStatus.PROCESSING and due_at is None:
            raise InvalidTaskUpdateError(
                task.task_id, "A running block task must keep its due_at."
            )

    async def delete_task(self, task_id: str) -> None:
        """删除任务（占用 block 槽位的任务删除后槽位随之释放）

        Raises:
            TaskNotFoundError: 任务不存在
            StoreError: 存储失败或超时
        """

        async def _delete() -> None:
            async with self._stores.transaction(self._timeout_s):
                if not await self._stores.task_store.delete_task(task_id):
                    raise TaskNotFoundError(task_id)

        await run_store_operation("delete_task", _delete, task_id=task_id)
        log.info("task_deleted", task_id=task_id)

"""SqliteTaskStore 单元测试

测试内容：
1. 创建/点查/列表
2. 条件更新（expected / excluded statuses）
3. (mode, status) 计数
4. 逾期查询与批量更新
5. 部分唯一索引拒绝第二个活跃 block 任务
6. 写事务回滚、截止时间与串行读取
"""

from datetime import UTC, datetime, timedelta

import asyncio

import aiosqlite
import pytest
from focusguard.core.models import TaskMode, TaskStatus, TaskType
from focusguard.core.store import is_block_slot_conflict
from focusguard.core.store.sqlite_init import verify_wal_mode
from focusguard.core.store.task_store import format_ts

T0 = datetime(2026, 1, 5, 9, 0, tzinfo=UTC)


class TestCrud:
    async def test_create_and_get(self, store_group, make_task):
        task = await make_task(
            TaskMode.DEADLINE,
            title="Draft outline",
            due_at=T0 + timedelta(hours=1),
            task_type=TaskType.CONTENT,
            project_id="proj-1",
        )

        loaded = await store_group.task_store.get_task(task.task_id)
        assert loaded is not None
        assert loaded == task
        assert loaded.due_at == T0 + timedelta(hours=1)

    async def test_get_missing_returns_none(self, store_group):
        assert await store_group.task_store.get_task("01JMISSING0000000000000000") is None

    async def test_list_filters(self, store_group, make_task, clock):
        a = await make_task(TaskMode.DEADLINE, project_id="p1")
        clock.advance(seconds=1)
        b = await make_task(TaskMode.BLOCK, project_id="p2")
        clock.advance(seconds=1)
        c = await make_task(TaskMode.DEADLINE, project_id="p1", status=TaskStatus.DONE)

        all_tasks = await store_group.task_store.list_tasks()
        assert [t.task_id for t in all_tasks] == [c.task_id, b.task_id, a.task_id]

        p1 = await store_group.task_store.list_tasks(project_id="p1")
        assert {t.task_id for t in p1} == {a.task_id, c.task_id}

        done_p1 = await store_group.task_store.list_tasks(status="done", project_id="p1")
        assert [t.task_id for t in done_p1] == [c.task_id]

    async def test_wal_mode_enabled(self, store_group):
        assert await verify_wal_mode(store_group.conn) is True


class TestConditionalUpdate:
    async def test_update_when_status_matches(self, store_group, make_task):
        task = await make_task(TaskMode.DEADLINE)
        async with store_group.transaction():
            updated = await store_group.task_store.update_task_fields(
                task.task_id,
                {"status": TaskStatus.PROCESSING, "started_at": T0},
                expected_statuses={TaskStatus.ASSIGNED},
            )
        assert updated is True
        loaded = await store_group.task_store.get_task(task.task_id)
        assert loaded.status == TaskStatus.PROCESSING
        assert loaded.started_at == T0

    async def test_no_update_when_status_differs(self, store_group, make_task):
        task = await make_task(TaskMode.DEADLINE, status=TaskStatus.DONE)
        async with store_group.transaction():
            updated = await store_group.task_store.update_task_fields(
                task.task_id,
                {"status": TaskStatus.ASSIGNED},
                excluded_statuses={TaskStatus.DONE, TaskStatus.EXPIRED},
            )
        assert updated is False
        loaded = await store_group.task_store.get_task(task.task_id)
        assert loaded.status == TaskStatus.DONE

    async def test_missing_row_returns_false(self, store_group):
        async with store_group.transaction():
            updated = await store_group.task_store.update_task_fields(
                "01JMISSING0000000000000000", {"status": TaskStatus.DONE}
            )
        assert updated is False

    async def test_immutable_column_rejected(self, store_group, make_task):
        task = await make_task(TaskMode.DEADLINE)
        with pytest.raises(ValueError):
            await store_group.task_store.update_task_fields(
                task.task_id, {"mode": TaskMode.BLOCK}
            )


class TestQueries:
    async def test_count_by_mode_and_status(self, store_group, make_task):
        active = await make_task(TaskMode.BLOCK, status=TaskStatus.PROCESSING)
        await make_task(TaskMode.BLOCK)
        await make_task(TaskMode.DEADLINE, status=TaskStatus.PROCESSING)

        store = store_group.task_store
        assert await store.count_tasks(TaskMode.BLOCK, TaskStatus.PROCESSING) == 1
        assert await store.count_tasks(TaskMode.DEADLINE, TaskStatus.PROCESSING) == 1
        assert (
            await store.count_tasks(
                TaskMode.BLOCK, TaskStatus.PROCESSING, exclude_task_id=active.task_id
            )
            == 0
        )
        holder = await store.get_active_block_task()
        assert holder is not None and holder.task_id == active.task_id

    async def test_list_overdue_uses_strict_less_than(self, store_group, make_task):
        past = await make_task(
            TaskMode.DEADLINE,
            status=TaskStatus.PROCESSING,
            due_at=T0 - timedelta(minutes=1),
            started_at=T0 - timedelta(hours=1),
        )
        await make_task(
            TaskMode.DEADLINE,
            status=TaskStatus.PROCESSING,
            due_at=T0,
            started_at=T0 - timedelta(hours=1),
        )
        # assigned 任务即使 due_at 已过也不算逾期
        await make_task(TaskMode.DEADLINE, due_at=T0 - timedelta(days=1))
        # 无 due_at 的 processing 任务
        await make_task(
            TaskMode.DEADLINE, status=TaskStatus.PROCESSING, started_at=T0
        )

        overdue = await store_group.task_store.list_overdue_tasks(T0)
        assert [t.task_id for t in overdue] == [past.task_id]

    async def test_bulk_update_status(self, store_group, make_task):
        a = await make_task(TaskMode.DEADLINE, status=TaskStatus.PROCESSING, started_at=T0)
        b = await make_task(TaskMode.DEADLINE, status=TaskStatus.PROCESSING, started_at=T0)
        c = await make_task(TaskMode.DEADLINE, status=TaskStatus.ASSIGNED)

        async with store_group.transaction():
            count = await store_group.task_store.bulk_update_status(
                [a.task_id, b.task_id, c.task_id],
                TaskStatus.EXPIRED,
                updated_at=T0,
                expected_status=TaskStatus.PROCESSING,
            )
        assert count == 2
        assert (await store_group.task_store.get_task(c.task_id)).status == TaskStatus.ASSIGNED

    async def test_bulk_update_empty_is_noop(self, store_group):
        count = await store_group.task_store.bulk_update_status([], TaskStatus.EXPIRED, T0)
        assert count == 0

    def test_timestamp_format_is_fixed_width(self):
        assert format_ts(T0) == "2026-01-05T09:00:00.000000+00:00"
        assert format_ts(None) is None


class TestBlockSlotIndex:
    async def test_second_active_block_rejected_by_index(self, store_group, make_task):
        await make_task(TaskMode.BLOCK, status=TaskStatus.PROCESSING, started_at=T0)

        with pytest.raises(aiosqlite.IntegrityError) as exc_info:
            await make_task(TaskMode.BLOCK, status=TaskStatus.PROCESSING, started_at=T0)
        assert is_block_slot_conflict(exc_info.value)

        assert (
            await store_group.task_store.count_tasks(TaskMode.BLOCK, TaskStatus.PROCESSING)
            == 1
        )

    async def test_multiple_active_deadline_tasks_allowed(self, store_group, make_task):
        for _ in range(3):
            await make_task(TaskMode.DEADLINE, status=TaskStatus.PROCESSING, started_at=T0)
        assert (
            await store_group.task_store.count_tasks(TaskMode.DEADLINE, TaskStatus.PROCESSING)
            == 3
        )

    def test_unrelated_integrity_error_is_not_slot_conflict(self):
        err = aiosqlite.IntegrityError("UNIQUE constraint failed: tasks.task_id")
        assert is_block_slot_conflict(err) is False
        assert is_block_slot_conflict(ValueError("x")) is False


class TestWriteTransaction:
    async def test_rollback_on_error(self, store_group, make_task):
        task = await make_task(TaskMode.DEADLINE)

        with pytest.raises(RuntimeError):
            async with store_group.transaction():
                await store_group.task_store.update_task_fields(
                    task.task_id, {"status": TaskStatus.PROCESSING}
                )
                raise RuntimeError("boom")

        loaded = await store_group.task_store.get_task(task.task_id)
        assert loaded.status == TaskStatus.ASSIGNED

    async def test_transaction_releases_lock(self, store_group):
        with pytest.raises(RuntimeError):
            async with store_group.transaction():
                raise RuntimeError("boom")
        assert store_group.write_lock.locked() is False

    async def test_body_deadline_rolls_back(self, store_group, make_task):
        task = await make_task(TaskMode.DEADLINE)

        with pytest.raises(TimeoutError):
            async with store_group.transaction(timeout_s=0.05):
                await store_group.task_store.update_task_fields(
                    task.task_id, {"status": TaskStatus.PROCESSING}
                )
                await asyncio.sleep(1)

        assert store_group.write_lock.locked() is False
        assert store_group.conn.in_transaction is False
        loaded = await store_group.task_store.get_task(task.task_id)
        assert loaded.status == TaskStatus.ASSIGNED

    async def test_read_waits_for_open_transaction(self, store_group, make_task):
        """read() 与写事务串行，看不到未提交的修改"""
        task = await make_task(TaskMode.DEADLINE)

        async def read_status():
            async with store_group.read():
                return (await store_group.task_store.get_task(task.task_id)).status

        with pytest.raises(RuntimeError):
            async with store_group.transaction():
                await store_group.task_store.update_task_fields(
                    task.task_id, {"status": TaskStatus.EXPIRED}
                )
                reader = asyncio.create_task(read_status())
                await asyncio.sleep(0.05)
                assert not reader.done()
                raise RuntimeError("rollback")

        assert await reader == TaskStatus.ASSIGNED


class TestDelete:
    async def test_delete_task(self, store_group, make_task):
        task = await make_task(TaskMode.BLOCK)

        async with store_group.transaction():
            deleted = await store_group.task_store.delete_task(task.task_id)

        assert deleted is True
        assert await store_group.task_store.get_task(task.task_id) is None

    async def test_delete_missing_task(self, store_group):
        async with store_group.transaction():
            assert await store_group.task_store.delete_task("01JMISSING0000000000000000") is False

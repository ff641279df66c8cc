"""packages/core 测试配置 -- 核心层 fixture"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from focusguard.core.lifecycle import TaskLifecycleEngine
from focusguard.core.models import Task, TaskMode, TaskStatus, TaskType
from focusguard.core.store import StoreGroup, create_store_group
from focusguard.core.sweeper import OverdueSweeper
from ulid import ULID

T0 = datetime(2026, 1, 5, 9, 0, tzinfo=UTC)


class FakeClock:
    """可手动推进的时钟"""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def core_db_path(tmp_path: Path) -> Path:
    """核心层临时数据库路径"""
    return tmp_path / "core_test.db"


@pytest_asyncio.fixture
async def store_group(core_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """核心层已初始化的 StoreGroup"""
    group = await create_store_group(str(core_db_path))
    yield group
    await group.conn.close()


@pytest.fixture
def engine(store_group: StoreGroup, clock: FakeClock) -> TaskLifecycleEngine:
    return TaskLifecycleEngine(store_group, clock=clock, timeout_s=5)


@pytest.fixture
def sweeper(store_group: StoreGroup, clock: FakeClock) -> OverdueSweeper:
    return OverdueSweeper(store_group, clock=clock, timeout_s=5)


@pytest.fixture
def make_task(store_group: StoreGroup, clock: FakeClock):
    """直接写入一条任务记录（绕过生命周期引擎）"""

    async def _make(
        mode: TaskMode = TaskMode.BLOCK,
        *,
        title: str = "focus session",
        status: TaskStatus = TaskStatus.ASSIGNED,
        duration_minutes: int | None = 25,
        due_at: datetime | None = None,
        started_at: datetime | None = None,
        task_type: TaskType = TaskType.REMINDER,
        project_id: str | None = None,
    ) -> Task:
        task = Task(
            task_id=str(ULID()),
            project_id=project_id,
            title=title,
            type=task_type,
            mode=mode,
            status=status,
            duration_minutes=duration_minutes if mode == TaskMode.BLOCK else None,
            due_at=due_at,
            started_at=started_at,
            created_at=clock(),
            updated_at=clock(),
        )
        async with store_group.transaction():
            await store_group.task_store.create_task(task)
        return task

    return _make

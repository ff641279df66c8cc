"""apps/gateway 测试配置 -- 手动装配 app.state（绕过 lifespan）+ httpx AsyncClient"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

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
async def test_app(tmp_path: Path, clock: FakeClock, monkeypatch: pytest.MonkeyPatch):
    """创建测试用 FastAPI app，后台轮询关闭，时钟可控"""
    db_path = tmp_path / "sqlite" / "test.db"
    monkeypatch.setenv("FOCUSGUARD_DB_PATH", str(db_path))
    monkeypatch.setenv("FOCUSGUARD_DOCS_MODE", "echo")
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")

    from focusguard.core.store import create_store_group
    from focusguard.gateway.main import create_app, init_app_state

    app = create_app()
    store_group = await create_store_group(str(db_path))
    poller = init_app_state(app, store_group, poll_interval_s=0, clock=clock)

    yield app

    await poller.stop()
    await store_group.conn.close()


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def create_task(client: AsyncClient):
    """通过 POST /api/tasks 创建任务，返回任务 JSON"""

    async def _create(**overrides) -> dict:
        body = {"title": "focus session", "type": "REMINDER", "mode": "block"}
        body.update(overrides)
        resp = await client.post("/api/tasks", json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create

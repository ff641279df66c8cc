"""集成测试共享 fixture -- 完整 app + 可控时钟"""

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
async def integration_app(
    tmp_path: Path, clock: FakeClock, monkeypatch: pytest.MonkeyPatch
):
    """集成测试用 FastAPI app"""
    db_path = tmp_path / "test.db"
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
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac

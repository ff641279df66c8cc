"""OverduePoller 单元测试 -- single-flight 与后台轮询"""

import asyncio
from itertools import chain, repeat
from unittest.mock import AsyncMock

import pytest
from focusguard.core.exceptions import StoreError
from focusguard.gateway.services.overdue_poller import OverduePoller
from focusguard.gateway.services.sse_hub import SSEHub


class BlockingSweeper:
    """sweep 在 release 前一直挂起"""

    def __init__(self, result=None) -> None:
        self.calls = 0
        self.release = asyncio.Event()
        self.result = result or []

    async def sweep(self):
        self.calls += 1
        await self.release.wait()
        return self.result


async def test_run_once_broadcasts_expired():
    sweeper = AsyncMock()
    sweeper.sweep.return_value = ["expired-task"]
    hub = AsyncMock(spec=SSEHub)
    poller = OverduePoller(sweeper, hub, interval_s=0)

    result = await poller.run_once()

    assert result == ["expired-task"]
    hub.broadcast.assert_awaited_once_with(["expired-task"])


async def test_run_once_no_broadcast_when_nothing_expired():
    sweeper = AsyncMock()
    sweeper.sweep.return_value = []
    hub = AsyncMock(spec=SSEHub)

    assert await OverduePoller(sweeper, hub).run_once() == []
    hub.broadcast.assert_not_awaited()


async def test_overlapping_run_is_skipped():
    sweeper = BlockingSweeper()
    poller = OverduePoller(sweeper)

    first = asyncio.create_task(poller.run_once())
    await asyncio.sleep(0)
    second = await poller.run_once()
    sweeper.release.set()

    assert second is None
    assert await first == []
    assert sweeper.calls == 1


async def test_run_once_propagates_store_error():
    sweeper = AsyncMock()
    sweeper.sweep.side_effect = StoreError("sweep_overdue timed out after 5s")
    poller = OverduePoller(sweeper)

    with pytest.raises(StoreError):
        await poller.run_once()
    # 失败后锁已释放
    sweeper.sweep.side_effect = None
    sweeper.sweep.return_value = []
    assert await poller.run_once() == []


async def test_background_loop_survives_store_error():
    sweeper = AsyncMock()
    sweeper.sweep.side_effect = chain([StoreError("database is locked")], repeat([]))
    poller = OverduePoller(sweeper, interval_s=0.01)

    poller.start()
    assert poller.running is True
    for _ in range(50):
        if sweeper.sweep.await_count >= 3:
            break
        await asyncio.sleep(0.01)
    await poller.stop()

    assert sweeper.sweep.await_count >= 3
    assert poller.running is False


async def test_start_is_idempotent_and_stop_without_start():
    sweeper = AsyncMock()
    sweeper.sweep.return_value = []
    poller = OverduePoller(sweeper, interval_s=60)

    await poller.stop()
    poller.start()
    runner = poller._runner
    poller.start()
    assert poller._runner is runner
    await poller.stop()


async def test_background_loop_survives_unexpected_error():
    sweeper = AsyncMock()
    sweeper.sweep.side_effect = chain([RuntimeError("unexpected row")], repeat([]))
    poller = OverduePoller(sweeper, interval_s=0.01)

    poller.start()
    for _ in range(50):
        if sweeper.sweep.await_count >= 2:
            break
        await asyncio.sleep(0.01)

    assert poller.running is True
    await poller.stop()
    assert sweeper.sweep.await_count >= 2

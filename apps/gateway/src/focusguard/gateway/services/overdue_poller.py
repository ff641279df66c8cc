"""OverduePoller -- 周期性逾期扫描

按固定间隔调用 OverdueSweeper，并把新逾期任务广播给订阅者。
run_once 带 single-flight 保护：已有扫描在执行时，重叠的调用直接跳过，
HTTP 触发与后台定时共用同一保护。
"""

import asyncio

import structlog
from focusguard.core.exceptions import StoreError
from focusguard.core.models import Task
from focusguard.core.sweeper import OverdueSweeper

from .sse_hub import SSEHub

log = structlog.get_logger()


class OverduePoller:
    """逾期扫描轮询器"""

    def __init__(
        self,
        sweeper: OverdueSweeper,
        sse_hub: SSEHub | None = None,
        interval_s: float = 60.0,
    ) -> None:
        self._sweeper = sweeper
        self._sse_hub = sse_hub
        self._interval_s = interval_s
        self._in_flight = asyncio.Lock()
        self._runner: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    async def run_once(self) -> list[Task] | None:
        """执行一次扫描并广播结果

        Returns:
            新逾期任务列表；已有扫描在执行时返回 None

        Raises:
            StoreError: 扫描失败
        """
        if self._in_flight.locked():
            log.debug("overdue_sweep_skipped_in_flight")
            return None

        async with self._in_flight:
            expired = await self._sweeper.sweep()

        if expired and self._sse_hub:
            await self._sse_hub.broadcast(expired)
        return expired

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception as e:
                # 下一轮继续，失败不终止轮询
                log.warning(
                    "overdue_sweep_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=not isinstance(e, StoreError),
                )
            await asyncio.sleep(self._interval_s)

    def start(self) -> None:
        """启动后台轮询（启动时立即执行一次）"""
        if self.running:
            return
        self._runner = asyncio.create_task(self._loop(), name="overdue-poller")
        log.info("overdue_poller_started", interval_s=self._interval_s)

    async def stop(self) -> None:
        """停止后台轮询"""
        if self._runner is None:
            return
        self._runner.cancel()
        try:
            await self._runner
        except asyncio.CancelledError:
            pass
        self._runner = None
        log.info("overdue_poller_stopped")

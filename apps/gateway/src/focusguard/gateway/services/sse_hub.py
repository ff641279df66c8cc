"""SSEHub -- 内存中逾期通知广播器

每个订阅者持有一个 asyncio.Queue，支持 subscribe/unsubscribe/broadcast。
广播内容为一次扫描中新标记为 expired 的任务列表。
"""

import asyncio

from focusguard.core.models import Task


class SSEHub:
    """SSE 通知广播器 -- 基于 asyncio.Queue 的发布/订阅模式"""

    def __init__(self, queue_maxsize: int = 100) -> None:
        self._subscribers: set[asyncio.Queue] = set()
        self._queue_maxsize = queue_maxsize

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self) -> asyncio.Queue:
        """订阅逾期通知

        Returns:
            asyncio.Queue 实例，新通知会被推送到此队列
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_maxsize)
        self._subscribers.add(queue)
        return queue

    async def unsubscribe(self, queue: asyncio.Queue) -> None:
        """取消订阅

        Args:
            queue: 之前订阅时返回的队列
        """
        self._subscribers.discard(queue)

    async def broadcast(self, tasks: list[Task]) -> None:
        """向所有订阅者广播一批新逾期任务

        Args:
            tasks: 新标记为 expired 的任务
        """
        if not tasks:
            return

        dead_queues = []
        for queue in self._subscribers:
            try:
                queue.put_nowait(tasks)
            except asyncio.QueueFull:
                dead_queues.append(queue)

        # 清理已满的队列
        for q in dead_queues:
            self._subscribers.discard(q)

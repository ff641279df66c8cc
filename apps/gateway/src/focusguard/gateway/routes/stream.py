"""SSE 逾期通知流

GET /api/stream/overdue: 每次扫描产生新逾期任务时推送一条 TASKS_EXPIRED 事件，
空闲时按 SSE_HEARTBEAT_INTERVAL 发送心跳注释。
"""

import asyncio
import json

from fastapi import APIRouter, Depends, Request
from focusguard.core.config import SSE_HEARTBEAT_INTERVAL
from focusguard.core.models import Task
from sse_starlette.sse import EventSourceResponse
from ulid import ULID

from ..deps import get_sse_hub
from ..services.sse_hub import SSEHub

router = APIRouter()

EXPIRED_EVENT = "TASKS_EXPIRED"


def _tasks_to_sse_data(tasks: list[Task]) -> dict:
    """将逾期任务列表转换为 SSE data JSON"""
    return {
        "type": EXPIRED_EVENT,
        "count": len(tasks),
        "tasks": [t.model_dump(mode="json") for t in tasks],
    }


@router.get("/api/stream/overdue")
async def stream_overdue(
    request: Request,
    sse_hub: SSEHub = Depends(get_sse_hub),
):
    """SSE 逾期通知端点"""
    queue = await sse_hub.subscribe()

    async def event_generator():
        try:
            while True:
                if await request.is_disconnected():
                    return
                try:
                    tasks = await asyncio.wait_for(
                        queue.get(), timeout=SSE_HEARTBEAT_INTERVAL
                    )
                except TimeoutError:
                    # 心跳保活
                    yield {"comment": "heartbeat"}
                    continue
                yield {
                    "id": str(ULID()),
                    "event": EXPIRED_EVENT,
                    "data": json.dumps(_tasks_to_sse_data(tasks), ensure_ascii=False),
                }
        finally:
            await sse_hub.unsubscribe(queue)

    return EventSourceResponse(event_generator())

"""TraceMiddleware -- 任务级追踪

/api/tasks/{task_id}[/action] 上的请求绑定 trace_id=trace-{task_id}，
贯穿该任务在本次请求内的生命周期日志。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ULID 长度
_TASK_ID_LENGTH = 26


def task_id_from_path(path: str) -> str | None:
    """从任务路径中取出 task_id；check-overdue 等非 ID 子路由返回 None"""
    parts = path.strip("/").split("/")
    for i, part in enumerate(parts):
        if part == "tasks" and i + 1 < len(parts):
            candidate = parts[i + 1]
            return candidate if len(candidate) == _TASK_ID_LENGTH else None
    return None


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件 -- 为任务操作绑定 trace_id"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        task_id = task_id_from_path(request.url.path)
        if task_id:
            structlog.contextvars.bind_contextvars(trace_id=f"trace-{task_id}")
        return await call_next(request)

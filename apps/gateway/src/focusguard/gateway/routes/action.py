"""任务动作路由

POST /api/tasks/{task_id}/action: {"action": "start" | "stop" | "done" | "expired"}
- 200: 操作成功，返回更新后的任务
- 400: 未知动作
- 404: 任务不存在
- 409: 状态不允许 / block 槽位已占用
- 503: 存储失败
"""

from fastapi import APIRouter, Depends
from focusguard.core.exceptions import TaskLifecycleError
from focusguard.core.lifecycle import TaskLifecycleEngine
from focusguard.core.models import TaskStatus
from pydantic import BaseModel, Field

from ..deps import get_engine
from ..errors import error_response, lifecycle_error_response

router = APIRouter()

_ACTIONS = ("start", "stop", "done", "expired")


class ActionRequest(BaseModel):
    """动作请求体"""

    action: str = Field(description="start / stop / done / expired")


@router.post("/api/tasks/{task_id}/action")
async def task_action(
    task_id: str,
    body: ActionRequest,
    engine: TaskLifecycleEngine = Depends(get_engine),
):
    """执行生命周期动作"""
    action = body.action
    if action not in _ACTIONS:
        return error_response(400, "UNKNOWN_ACTION", f"Unknown action: {action}")

    try:
        if action == "start":
            task = await engine.start(task_id)
        elif action == "stop":
            task = await engine.stop(task_id)
        else:
            task = await engine.resolve(task_id, TaskStatus(action))
    except TaskLifecycleError as e:
        return lifecycle_error_response(e)

    return {"success": True, "task": task.model_dump(mode="json")}

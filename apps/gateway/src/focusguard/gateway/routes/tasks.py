"""任务路由

GET /api/tasks: 任务列表查询，支持 status / project_id 筛选。
POST /api/tasks: 创建任务（CONTENT 类型自动供给文档）。
GET /api/tasks/{task_id}: 任务详情查询。
PATCH /api/tasks/{task_id}: 编辑标题、优先级、参考链接、时长、截止时间。
DELETE /api/tasks/{task_id}: 删除任务。
"""

from fastapi import APIRouter, Depends, Query
from focusguard.core.exceptions import StoreError, TaskLifecycleError
from focusguard.core.models import Task, TaskCreate, TaskStatus, TaskUpdate
from pydantic import BaseModel
from starlette.responses import JSONResponse

from ..deps import get_task_service
from ..errors import error_response, lifecycle_error_response
from ..services.task_service import TaskService

router = APIRouter()


class TaskListResponse(BaseModel):
    """任务列表响应"""

    tasks: list[Task]


@router.get("/api/tasks", response_model=TaskListResponse)
async def list_tasks(
    status: TaskStatus | None = Query(default=None, description="按状态筛选"),
    project_id: str | None = Query(default=None, description="按项目筛选"),
    service: TaskService = Depends(get_task_service),
):
    """查询任务列表，按 created_at 倒序"""
    try:
        tasks = await service.list_tasks(status, project_id)
    except StoreError as e:
        return lifecycle_error_response(e)
    return TaskListResponse(tasks=tasks)


@router.post("/api/tasks", status_code=201)
async def create_task(
    body: TaskCreate,
    service: TaskService = Depends(get_task_service),
):
    """创建任务

    - 成功返回 201 + 任务详情
    - 文档供给失败不影响创建，drive_link 为空
    """
    try:
        task = await service.create_task(body)
    except StoreError as e:
        return lifecycle_error_response(e)
    return JSONResponse(status_code=201, content=task.model_dump(mode="json"))


@router.get("/api/tasks/{task_id}")
async def get_task_detail(
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    """查询任务详情"""
    try:
        task = await service.get_task(task_id)
    except StoreError as e:
        return lifecycle_error_response(e)

    if task is None:
        return error_response(
            404, "TASK_NOT_FOUND", f"Task with id {task_id} does not exist"
        )
    return {"task": task.model_dump(mode="json")}


@router.patch("/api/tasks/{task_id}")
async def update_task(
    task_id: str,
    body: TaskUpdate,
    service: TaskService = Depends(get_task_service),
):
    """编辑任务

    - 404: 任务不存在
    - 409: block 任务的 due_at 与当前状态冲突
    - 422: 字段非法或包含不可编辑字段（status / started_at 等）
    """
    try:
        task = await service.update_task(task_id, body)
    except TaskLifecycleError as e:
        return lifecycle_error_response(e)
    return {"task": task.model_dump(mode="json")}


@router.delete("/api/tasks/{task_id}")
async def delete_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    """删除任务"""
    try:
        await service.delete_task(task_id)
    except TaskLifecycleError as e:
        return lifecycle_error_response(e)
    return {"success": True}

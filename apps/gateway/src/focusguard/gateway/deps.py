"""依赖注入模块 -- 通过 FastAPI Depends 注入服务实例

实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Request
from focusguard.core.lifecycle import TaskLifecycleEngine
from focusguard.core.store import StoreGroup

from .services.overdue_poller import OverduePoller
from .services.sse_hub import SSEHub
from .services.task_service import TaskService


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_sse_hub(request: Request) -> SSEHub:
    """从 app.state 获取 SSEHub 实例"""
    return request.app.state.sse_hub


def get_engine(request: Request) -> TaskLifecycleEngine:
    """从 app.state 获取生命周期引擎"""
    return request.app.state.engine


def get_poller(request: Request) -> OverduePoller:
    """从 app.state 获取逾期轮询器"""
    return request.app.state.overdue_poller


def get_task_service(request: Request) -> TaskService:
    """基于 app.state 构建 TaskService"""
    return TaskService(
        request.app.state.store_group,
        getattr(request.app.state, "provisioner", None),
        clock=getattr(request.app.state, "clock", None),
    )

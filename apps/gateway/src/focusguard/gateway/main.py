"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 生命周期引擎 + 逾期轮询 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from focusguard.core.config import get_db_path, get_overdue_poll_interval_s
from focusguard.core.lifecycle import Clock, TaskLifecycleEngine
from focusguard.core.store import StoreGroup, create_store_group
from focusguard.core.sweeper import OverdueSweeper
from focusguard.provider import build_provisioner, load_provisioner_config

from .middleware.observability import configure_observability
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import action, health, overdue, stream, tasks
from .services.overdue_poller import OverduePoller
from .services.sse_hub import SSEHub

log = structlog.get_logger()


def init_app_state(
    app: FastAPI,
    store_group: StoreGroup,
    poll_interval_s: float | None = None,
    clock: Clock | None = None,
) -> OverduePoller:
    """在 app.state 上装配服务实例（lifespan 与测试共用）"""
    interval = (
        poll_interval_s if poll_interval_s is not None else get_overdue_poll_interval_s()
    )
    provisioner_config = load_provisioner_config()

    app.state.store_group = store_group
    app.state.clock = clock
    app.state.sse_hub = SSEHub()
    app.state.provisioner = build_provisioner(provisioner_config)
    app.state.engine = TaskLifecycleEngine(store_group, clock=clock)
    app.state.sweeper = OverdueSweeper(store_group, clock=clock)
    app.state.overdue_poller = OverduePoller(
        app.state.sweeper,
        app.state.sse_hub,
        interval_s=interval,
    )
    log.info(
        "app_state_initialized",
        docs_mode=provisioner_config.mode,
        poll_interval_s=interval,
    )
    return app.state.overdue_poller


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 与轮询，关闭时清理"""
    store_group = await create_store_group(get_db_path())
    poller = init_app_state(app, store_group)

    # interval <= 0 表示不启动后台轮询，仅响应 check-overdue
    if get_overdue_poll_interval_s() > 0:
        poller.start()

    yield

    await poller.stop()
    await store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="FocusGuard Gateway",
        version="0.1.0",
        description="FocusGuard 任务生命周期 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    configure_observability(app)

    # 注册路由（check-overdue 需先于 /api/tasks/{task_id} 注册）
    app.include_router(overdue.router, tags=["overdue"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(action.router, tags=["action"])
    app.include_router(stream.router, tags=["stream"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()

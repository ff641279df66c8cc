"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含 SQLite 连通性、磁盘空间、逾期轮询状态；
         profile=full 时额外探测文档供给服务。
"""

import shutil

import structlog
from fastapi import APIRouter, Query, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(
    request: Request,
    profile: str | None = Query(
        default=None,
        description="检查配置：core（默认）仅核心检查；full 包含文档供给服务健康检查",
    ),
):
    """Readiness 检查 -- 验证核心依赖可用性

    检查项：
    1. sqlite: 数据库连通性
    2. disk_space_mb: 磁盘剩余空间
    3. overdue_poller: 后台轮询是否在运行（interval=0 时为 disabled）
    4. document_provider: 根据 profile 决定是否探测
    """
    effective_profile = profile or "core"

    checks: dict[str, object] = {}
    all_ok = True

    # 1. SQLite 连通性检查
    try:
        store_group = request.app.state.store_group
        cursor = await store_group.conn.execute("SELECT 1")
        await cursor.fetchone()
        checks["sqlite"] = "ok"
    except Exception as e:
        checks["sqlite"] = f"error: {str(e)}"
        all_ok = False

    # 2. 磁盘空间检查
    try:
        disk_usage = shutil.disk_usage("/")
        checks["disk_space_mb"] = disk_usage.free // (1024 * 1024)
    except OSError:
        checks["disk_space_mb"] = 0
        all_ok = False

    # 3. 逾期轮询
    poller = getattr(request.app.state, "overdue_poller", None)
    if poller is None:
        checks["overdue_poller"] = "missing"
        all_ok = False
    elif poller.running:
        checks["overdue_poller"] = "running"
    else:
        checks["overdue_poller"] = "disabled"

    # 4. 文档供给服务
    provisioner = getattr(request.app.state, "provisioner", None)
    if effective_profile == "full" and provisioner is not None:
        try:
            healthy = await provisioner.health_check()
        except Exception as e:
            log.warning("health_check_error", error=str(e))
            healthy = False
        checks["document_provider"] = "ok" if healthy else "unreachable"
        all_ok = all_ok and healthy
    else:
        checks["document_provider"] = "skipped"

    status_code = 200 if all_ok else 503
    status_text = "ready" if all_ok else "not_ready"

    return JSONResponse(
        status_code=status_code,
        content={
            "status": status_text,
            "profile": effective_profile,
            "checks": checks,
        },
    )

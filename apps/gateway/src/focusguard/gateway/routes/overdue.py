"""逾期扫描路由

GET /api/tasks/check-overdue: 立即执行一次逾期扫描，
返回新标记为 expired 的任务并广播给 SSE 订阅者。
已有扫描在执行时返回空列表与 skipped=true。
"""

from fastapi import APIRouter, Depends
from focusguard.core.exceptions import StoreError

from ..deps import get_poller
from ..errors import lifecycle_error_response
from ..services.overdue_poller import OverduePoller

router = APIRouter()


@router.get("/api/tasks/check-overdue")
async def check_overdue(poller: OverduePoller = Depends(get_poller)):
    """执行逾期扫描"""
    try:
        expired = await poller.run_once()
    except StoreError as e:
        return lifecycle_error_response(e)

    if expired is None:
        return {"tasks": [], "skipped": True}
    return {
        "tasks": [t.model_dump(mode="json") for t in expired],
        "skipped": False,
    }
